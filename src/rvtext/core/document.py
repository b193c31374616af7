"""Facade for loading and saving RPG Maker data files as generic documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rvtext.core import marshal
from rvtext.core.constants import BLOB_DATA_KEY, BLOB_TYPE, BLOB_TYPE_KEY, EngineType
from rvtext.core.encoding import strip_bom
from rvtext.core.errors import DocumentError

Document = Any


def load_document(data: bytes, engine_type: EngineType) -> Document:
    """Parse raw file bytes for the given engine.

    Raises:
        DocumentError: If the bytes are not a valid document.
    """
    if engine_type.is_legacy:
        return marshal.loads(data)
    try:
        return json.loads(strip_bom(data.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DocumentError(f"Invalid JSON document: {e}") from e


def save_document(document: Document, engine_type: EngineType) -> bytes:
    if engine_type.is_legacy:
        return marshal.dumps(document)
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def load_path(path: str | Path, engine_type: EngineType) -> Document:
    path = Path(path)
    try:
        return load_document(path.read_bytes(), engine_type)
    except DocumentError as e:
        raise DocumentError(f"{path.name}: {e}") from e


def save_path(document: Document, path: str | Path, engine_type: EngineType) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(save_document(document, engine_type))


# ── Values ──


def is_blob(value: Any) -> bool:
    return isinstance(value, dict) and value.get(BLOB_TYPE_KEY) == BLOB_TYPE


def make_blob(text: str) -> dict:
    return bytes_blob(text.encode("utf-8"))


def bytes_blob(data: bytes) -> dict:
    return {BLOB_TYPE_KEY: BLOB_TYPE, BLOB_DATA_KEY: list(data)}


def blob_bytes(value: dict) -> bytes:
    return bytes(value.get(BLOB_DATA_KEY, ()))


def value_text(value: Any) -> str | None:
    """Return the text of a string or byte blob value, None for anything else."""
    if isinstance(value, str):
        return value
    if is_blob(value):
        return blob_bytes(value).decode("utf-8", errors="replace")
    return None


def same_form(template: Any, text: str) -> Any:
    """Wrap *text* the way *template* was stored (plain string or blob)."""
    return make_blob(text) if is_blob(template) else text
