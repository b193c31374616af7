"""Conversion between rubymarshal object graphs and generic documents.

Ruby objects become dicts with a ``__class__`` key and ``__symbol__<ivar>``
keys, so legacy documents can be walked with the same code as JSON ones.
Values without a document form (user-defined tables, colors, symbols) pass
through untouched and are restored as-is.
"""

from __future__ import annotations

import io
import json
from typing import Any

from rubymarshal import reader, writer
from rubymarshal.classes import RubyObject, RubyString, Symbol

from rvtext.core.constants import (
    BLOB_DATA_KEY,
    BLOB_TYPE,
    BLOB_TYPE_KEY,
    CLASS_KEY,
    INTEGER_PREFIX,
    SYMBOL_PREFIX,
)
from rvtext.core.errors import DocumentError


def to_document(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, RubyString):
        return value.text
    if isinstance(value, (bytes, bytearray)):
        return {BLOB_TYPE_KEY: BLOB_TYPE, BLOB_DATA_KEY: list(value)}
    if isinstance(value, list):
        return [to_document(v) for v in value]
    if isinstance(value, dict):
        return {_key_to_document(k): to_document(v) for k, v in value.items()}
    # Subclasses (UserDef, UsrMarshal) carry private data and stay opaque
    if type(value) is RubyObject:
        doc = {CLASS_KEY: value.ruby_class_name}
        for name, attr in value.attributes.items():
            doc[SYMBOL_PREFIX + name.lstrip("@")] = to_document(attr)
        return doc
    return value


def from_document(value: Any) -> Any:
    if isinstance(value, list):
        return [from_document(v) for v in value]
    if isinstance(value, dict):
        if value.get(BLOB_TYPE_KEY) == BLOB_TYPE and BLOB_DATA_KEY in value:
            return bytes(value[BLOB_DATA_KEY])
        if CLASS_KEY in value:
            attributes = {
                "@" + k[len(SYMBOL_PREFIX):]: from_document(v)
                for k, v in value.items()
                if k != CLASS_KEY
            }
            return RubyObject(value[CLASS_KEY], attributes=attributes)
        return {_key_from_document(k): from_document(v) for k, v in value.items()}
    return value


def _key_to_document(key: Any) -> Any:
    if isinstance(key, Symbol):
        return SYMBOL_PREFIX + key.name
    if isinstance(key, bool):
        return key
    if isinstance(key, int):
        return f"{INTEGER_PREFIX}{key}"
    if isinstance(key, RubyString):
        return key.text
    return key


def _key_from_document(key: Any) -> Any:
    if isinstance(key, str):
        if key.startswith(SYMBOL_PREFIX):
            return Symbol(key[len(SYMBOL_PREFIX):])
        if key.startswith(INTEGER_PREFIX):
            return int(key[len(INTEGER_PREFIX):])
    return key


def loads(data: bytes) -> Any:
    """Parse Ruby Marshal bytes into a document.

    Raises:
        DocumentError: If the data is not a valid marshal stream.
    """
    try:
        obj = reader.load(io.BytesIO(data))
    except Exception as e:  # rubymarshal raises plain ValueError/KeyError/struct.error
        raise DocumentError(f"Invalid marshal data: {e}") from e
    return to_document(obj)


def dumps(document: Any) -> bytes:
    buf = io.BytesIO()
    writer.write(buf, from_document(document))
    return buf.getvalue()


def to_json(document: Any) -> str:
    """Dump a legacy document as JSON text.

    Opaque values keep only their class name and raw bytes, so the result is
    for inspection and cannot be turned back into marshal data.
    """
    return json.dumps(document, ensure_ascii=False, default=_opaque_to_json)


def _opaque_to_json(value: Any) -> Any:
    if isinstance(value, Symbol):
        return SYMBOL_PREFIX + value.name
    doc: dict[str, Any] = {CLASS_KEY: getattr(value, "ruby_class_name", type(value).__name__)}
    data = getattr(value, "_private_data", None)
    if isinstance(data, (bytes, bytearray)):
        doc[BLOB_DATA_KEY] = list(data)
    return doc
