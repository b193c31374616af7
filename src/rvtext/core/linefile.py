"""Reading and writing of the bilingual line file format.

Each record is ``original<#>translation`` on its own line. Newlines inside a
field are stored as the ``\\#`` token on disk and restored on read, so code
outside this module only ever sees real ``\\n`` characters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from rvtext.core.constants import (
    COMMENT_PREFIX,
    COMMENT_SUFFIX,
    DISPLAY_NAME_PREFIX,
    LINES_SEPARATOR,
    MAP_MARKER,
    MAP_NAME_PREFIX,
    NEW_LINE,
    ORDER_MARKER,
)

logger = logging.getLogger(__name__)

_IGNORE_HEADER_PREFIX = "<!-- File: "


@dataclass
class LineEntry:
    """One record of a line file."""
    original: str
    translation: str = ""

    @property
    def is_comment(self) -> bool:
        return self.original.startswith(COMMENT_PREFIX)

    @property
    def is_translated(self) -> bool:
        return bool(self.translation.strip())


def escape(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", NEW_LINE)


def unescape(text: str) -> str:
    return text.replace(NEW_LINE, "\n")


# ── Line files ──


def parse_lines(text: str, source: str = "<memory>") -> list[LineEntry]:
    """Parse line file content into entries.

    Blank lines are ignored. Lines without a separator are logged and dropped.

    Args:
        text: Full file content.
        source: Name used in diagnostics.
    """
    entries: list[LineEntry] = []
    for number, raw in enumerate(text.split("\n"), start=1):
        line = raw.rstrip("\r")
        if not line:
            continue
        original, sep, translation = line.partition(LINES_SEPARATOR)
        if not sep:
            logger.warning("%s:%d: no '%s' separator, line dropped", source, number, LINES_SEPARATOR)
            continue
        entries.append(LineEntry(unescape(original), unescape(translation)))
    return entries


def dump_lines(entries: Iterable[LineEntry]) -> str:
    return "\n".join(
        f"{escape(e.original)}{LINES_SEPARATOR}{escape(e.translation)}" for e in entries
    )


def read_line_file(path: str | Path) -> list[LineEntry]:
    path = Path(path)
    return parse_lines(path.read_text(encoding="utf-8"), source=path.name)


def write_line_file(path: str | Path, entries: Iterable[LineEntry]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_lines(entries), encoding="utf-8")


# ── Map block structural entries ──


def map_marker(number: int) -> LineEntry:
    return LineEntry(MAP_MARKER, str(number))


def order_marker(order: int) -> LineEntry:
    return LineEntry(ORDER_MARKER, str(order))


def map_name_entry(name: str) -> LineEntry:
    return LineEntry(f"{MAP_NAME_PREFIX}{name}{COMMENT_SUFFIX}", "")


def display_name_entry(name: str, translation: str = "") -> LineEntry:
    return LineEntry(f"{DISPLAY_NAME_PREFIX}{name}{COMMENT_SUFFIX}", translation)


def parse_display_name(original: str) -> str | None:
    """Return the embedded name of a display-name comment, or None for other lines."""
    if original.startswith(DISPLAY_NAME_PREFIX) and original.endswith(COMMENT_SUFFIX):
        return original[len(DISPLAY_NAME_PREFIX):-len(COMMENT_SUFFIX)]
    return None


def parse_int_payload(entry: LineEntry) -> int | None:
    """Parse the numeric payload of a map or order marker."""
    try:
        return int(entry.translation.strip())
    except ValueError:
        logger.warning("Marker %r has a non-numeric payload %r", entry.original, entry.translation)
        return None


def is_map_marker(entry: LineEntry) -> bool:
    return entry.original == MAP_MARKER


# ── Ignore file ──


def parse_ignore(text: str) -> dict[str, list[str]]:
    """Parse an ignore file into ``{file_id: [original, ...]}``.

    Lines before the first ``<!-- File: ID -->`` header are dropped.
    """
    blocks: dict[str, list[str]] = {}
    current: list[str] | None = None
    for number, raw in enumerate(text.split("\n"), start=1):
        line = raw.rstrip("\r")
        if not line:
            continue
        if line.startswith(_IGNORE_HEADER_PREFIX) and line.endswith(COMMENT_SUFFIX):
            file_id = line[len(_IGNORE_HEADER_PREFIX):-len(COMMENT_SUFFIX)]
            current = blocks.setdefault(file_id, [])
            continue
        if current is None:
            logger.warning("ignore file:%d: entry outside of a file block, dropped", number)
            continue
        current.append(unescape(line))
    return blocks


def dump_ignore(blocks: dict[str, list[str]]) -> str:
    out: list[str] = []
    for file_id, originals in blocks.items():
        out.append(f"{_IGNORE_HEADER_PREFIX}{file_id}{COMMENT_SUFFIX}")
        out.extend(escape(o) for o in originals)
    return "\n".join(out)


def load_ignore(path: str | Path) -> dict[str, list[str]]:
    path = Path(path)
    if not path.exists():
        return {}
    return parse_ignore(path.read_text(encoding="utf-8"))


def append_ignore(path: str | Path, file_id: str, originals: Iterable[str]) -> None:
    """Add originals to the block of *file_id*, keeping existing entries unique."""
    path = Path(path)
    blocks = load_ignore(path)
    block = blocks.setdefault(file_id, [])
    seen = set(block)
    for original in originals:
        if original not in seen:
            seen.add(original)
            block.append(original)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_ignore(blocks), encoding="utf-8")


# ── Stat report ──


def append_stat(path: str | Path, unit_id: str, entries: Iterable[LineEntry]) -> None:
    """Append a block of removed entries to the stat report."""
    path = Path(path)
    block = [f"{COMMENT_PREFIX} {unit_id} -->{LINES_SEPARATOR}"]
    block.extend(f"{escape(e.original)}{LINES_SEPARATOR}{escape(e.translation)}" for e in entries)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n".join(block) + "\n")
