"""Reconciliation of freshly extracted lines with a saved translation file.

Deduplicated files keep one entry per original text, laid out in the order
the originals were found. Preserve-mode files keep every occurrence and are
aligned by position.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from rvtext.core.constants import MAP_MARKER, ORDER_MARKER, MapsProcessingMode, ProcessingMode
from rvtext.core.linefile import (
    LineEntry,
    display_name_entry,
    is_map_marker,
    map_marker,
    map_name_entry,
    order_marker,
    parse_display_name,
    parse_int_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Merged entries plus bookkeeping for the run report."""
    entries: list[LineEntry] = field(default_factory=list)
    added: int = 0
    kept: int = 0
    dropped: list[LineEntry] = field(default_factory=list)

    @property
    def lines(self) -> int:
        return sum(1 for e in self.entries if not e.is_comment)

    def absorb(self, other: MergeResult) -> None:
        self.entries.extend(other.entries)
        self.added += other.added
        self.kept += other.kept
        self.dropped.extend(other.dropped)


@dataclass
class MapBlock:
    """Fresh extraction of one map file."""
    number: int
    lines: list[str]
    name: str = ""
    display_name: str = ""
    order: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.order, self.number)


def _existing_table(existing: Iterable[LineEntry] | None) -> dict[str, str]:
    table: dict[str, str] = {}
    for entry in existing or ():
        if not entry.is_comment:
            table.setdefault(entry.original, entry.translation)
    return table


def _warn_dropped(dropped: list[LineEntry], source: str) -> None:
    lost = sum(1 for e in dropped if e.is_translated)
    if lost:
        logger.warning(
            "%s: %d translated line(s) no longer exist in the game and were dropped",
            source, lost,
        )


# ── Deduplicated tables ──


def merge(
    fresh: Iterable[str],
    existing: list[LineEntry] | None = None,
    processing_mode: ProcessingMode = ProcessingMode.default,
    source: str = "<memory>",
) -> MergeResult:
    """Merge fresh originals into a deduplicated table.

    In append mode every original keeps its saved translation and takes the
    position of its first occurrence in *fresh*; new originals get an empty
    translation at the position where they were found. Saved originals that
    are no longer extracted are dropped and reported. In the other modes the
    table is rebuilt from *fresh* alone.
    """
    table = _existing_table(existing) if processing_mode == ProcessingMode.append else {}
    result = MergeResult()
    order = dict.fromkeys(fresh)
    for original in order:
        if original in table:
            result.kept += 1
        else:
            result.added += 1
        result.entries.append(LineEntry(original, table.get(original, "")))
    result.dropped = [LineEntry(o, t) for o, t in table.items() if o not in order]
    _warn_dropped(result.dropped, source)
    return result


# ── Positional sequences ──


def _takes_fresh_payload(entry: LineEntry) -> bool:
    return entry.original in (MAP_MARKER, ORDER_MARKER)


def merge_sequence(
    fresh: Iterable[LineEntry],
    existing: list[LineEntry] | None = None,
    processing_mode: ProcessingMode = ProcessingMode.default,
    source: str = "<memory>",
) -> MergeResult:
    """Merge a fresh occurrence sequence into a saved one, aligning by position.

    A running position advances once per fresh entry. When the saved entry at
    that position has a different original, a blank entry is inserted there
    instead of overwriting it. Saved entries left past the end of the fresh
    sequence are dropped, so the result always has one entry per occurrence.
    Map and order markers always take their payload from *fresh*.
    """
    result = MergeResult()
    if processing_mode != ProcessingMode.append or existing is None:
        result.entries = [LineEntry(e.original, e.translation) for e in fresh]
        result.added = result.lines
        return result

    entries = [LineEntry(e.original, e.translation) for e in existing]
    pos = 0
    for item in fresh:
        if pos < len(entries) and entries[pos].original == item.original:
            if _takes_fresh_payload(item):
                entries[pos].translation = item.translation
            elif not item.is_comment:
                result.kept += 1
        else:
            translation = item.translation if item.is_comment else ""
            entries.insert(pos, LineEntry(item.original, translation))
            if not item.is_comment:
                result.added += 1
        pos += 1

    result.dropped = [e for e in entries[pos:] if not e.is_comment]
    if len(entries) > pos:
        logger.debug("%s: %d trailing saved entries past the fresh sequence", source, len(entries) - pos)
    result.entries = entries[:pos]
    _warn_dropped(result.dropped, source)
    return result


# ── Map files ──


def split_map_blocks(entries: Iterable[LineEntry]) -> list[tuple[int | None, list[LineEntry]]]:
    """Split maps.txt entries into ``(map_number, entries)`` blocks.

    Entries before the first map marker form a block with number None.
    """
    blocks: list[tuple[int | None, list[LineEntry]]] = []
    current: list[LineEntry] = []
    number: int | None = None
    for entry in entries:
        if is_map_marker(entry):
            if current or number is not None:
                blocks.append((number, current))
            number = parse_int_payload(entry)
            current = [entry]
        else:
            current.append(entry)
    if current or number is not None:
        blocks.append((number, current))
    return blocks


def display_names(entries: Iterable[LineEntry]) -> dict[str, str]:
    """Map original display names to their translations."""
    names: dict[str, str] = {}
    for entry in entries:
        name = parse_display_name(entry.original)
        if name is not None and entry.is_translated:
            names[name] = entry.translation.strip()
    return names


def block_header(block: MapBlock, names: dict[str, str]) -> list[LineEntry]:
    header = [map_marker(block.number)]
    if block.name:
        header.append(map_name_entry(block.name))
    if block.display_name:
        header.append(display_name_entry(block.display_name, names.get(block.display_name, "")))
    header.append(order_marker(block.order))
    return header


def merge_maps(
    blocks: Iterable[MapBlock],
    existing: list[LineEntry] | None = None,
    maps_mode: MapsProcessingMode = MapsProcessingMode.default,
    processing_mode: ProcessingMode = ProcessingMode.default,
    source: str = "maps.txt",
) -> MergeResult:
    """Build maps.txt entries from per-map extractions.

    Blocks are laid out by ascending (order, map number). Every block starts
    with its header lines, rebuilt from the fresh data on every run; saved
    display-name translations are carried over by name.

    Args:
        blocks: Fresh extraction of every map file.
        existing: Saved maps.txt entries (used in append mode).
        maps_mode: Duplicate policy.
        processing_mode: Existing-file policy.
        source: Name used in diagnostics.
    """
    ordered = sorted(blocks, key=lambda b: b.sort_key)
    append = processing_mode == ProcessingMode.append and existing is not None
    names = display_names(existing) if append else {}

    if maps_mode == MapsProcessingMode.preserve:
        # Headers never take part in alignment; bodies align within their own map.
        saved: dict[int, list[LineEntry]] = {}
        if append:
            for number, block_entries in split_map_blocks(existing):
                if number is not None:
                    saved[number] = [e for e in block_entries if not e.is_comment]
        result = MergeResult()
        for block in ordered:
            result.entries.extend(block_header(block, names))
            part = merge_sequence(
                [LineEntry(line) for line in block.lines],
                saved.pop(block.number, None),
                processing_mode,
                f"{source} (map {block.number})",
            )
            result.absorb(part)
        for number, dropped in saved.items():
            _warn_dropped(dropped, f"{source} (removed map {number})")
            result.dropped.extend(dropped)
        return result

    result = MergeResult()
    if maps_mode == MapsProcessingMode.separate:
        partitions: dict[int, dict[str, str]] = {}
        if append:
            for number, block_entries in split_map_blocks(existing):
                if number is not None:
                    partitions[number] = _existing_table(block_entries)
        for block in ordered:
            table = partitions.pop(block.number, {})
            result.entries.extend(block_header(block, names))
            part = merge(block.lines, [LineEntry(o, t) for o, t in table.items()],
                         ProcessingMode.append, f"{source} (map {block.number})")
            result.absorb(part)
        for number, table in partitions.items():
            dropped = [LineEntry(o, t) for o, t in table.items()]
            _warn_dropped(dropped, f"{source} (removed map {number})")
            result.dropped.extend(dropped)
        return result

    table = _existing_table(existing) if append else {}
    seen: set[str] = set()
    for block in ordered:
        result.entries.extend(block_header(block, names))
        for line in block.lines:
            if line in seen:
                continue
            seen.add(line)
            if line in table:
                result.kept += 1
            else:
                result.added += 1
            result.entries.append(LineEntry(line, table.get(line, "")))
    result.dropped = [LineEntry(o, t) for o, t in table.items() if o not in seen]
    _warn_dropped(result.dropped, source)
    return result
