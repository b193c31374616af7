"""zlib compression/decompression for embedded script blobs."""

from __future__ import annotations

import zlib

from rvtext.core.errors import DocumentError

# Level used by the RPG Maker editor when saving Scripts files
SCRIPT_COMPRESSION_LEVEL = 6


def decompress_script(raw: bytes) -> bytes:
    """Inflate a script blob.

    Raises:
        DocumentError: If the blob is not valid zlib data.
    """
    try:
        return zlib.decompress(raw)
    except zlib.error as e:
        raise DocumentError(f"Script blob decompression failed: {e}") from e


def compress_script(data: bytes) -> bytes:
    """Deflate script source for storage in a Scripts file."""
    return zlib.compress(data, SCRIPT_COMPRESSION_LEVEL)


def compress_or_preserve(original: bytes, data: bytes) -> bytes:
    """Return the original compressed blob when its content is unchanged.

    Recompressing untouched scripts can yield different bytes than the editor
    produced, so unchanged scripts are written back verbatim.
    """
    try:
        unchanged = zlib.decompress(original) == data
    except zlib.error:
        unchanged = False  # corrupted original
    return original if unchanged else compress_script(data)
