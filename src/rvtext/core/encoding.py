"""Text decoding for legacy script sources with unknown encoding."""

from __future__ import annotations

import logging

from rvtext.core.errors import DecodeError

logger = logging.getLogger(__name__)

# Tried in order; the first strict decode wins.
ENCODINGS: tuple[str, ...] = ("utf-8", "cp1252", "cp1251", "shift_jis", "gb18030")


def decode_text(raw: bytes) -> tuple[str, str]:
    """Decode *raw* with the first encoding of the cascade that succeeds.

    Returns:
        Tuple of (text, encoding_name).

    Raises:
        DecodeError: If no encoding decodes the bytes without errors.
    """
    for encoding in ENCODINGS:
        try:
            return raw.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    raise DecodeError(f"None of {', '.join(ENCODINGS)} could decode {len(raw)} bytes")


def encode_text(text: str, encoding: str) -> bytes:
    """Encode *text* back to its source encoding, falling back to UTF-8."""
    try:
        return text.encode(encoding)
    except UnicodeEncodeError:
        logger.debug("Text not representable in %s, writing UTF-8", encoding)
        return text.encode("utf-8")


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith("﻿") else text
