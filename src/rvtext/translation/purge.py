"""Removal of saved entries whose original text no longer exists in the game."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from rvtext.core.constants import MapsProcessingMode
from rvtext.core.linefile import LineEntry
from rvtext.translation.merge import MapBlock, split_map_blocks

logger = logging.getLogger(__name__)


@dataclass
class PurgeOptions:
    leave_filled: bool = False  # keep stale entries that already have a translation
    purge_empty: bool = False   # drop untranslated entries instead of stale ones
    create_ignore: bool = False
    stat: bool = False          # report only, leave files untouched


@dataclass
class PurgeResult:
    entries: list[LineEntry] = field(default_factory=list)
    removed: list[LineEntry] = field(default_factory=list)
    retained_stale: int = 0


def purge(
    existing: Iterable[LineEntry],
    fresh: Iterable[str] | None,
    leave_filled: bool = False,
    purge_empty: bool = False,
) -> PurgeResult:
    """Drop stale entries from a saved table.

    An entry is stale when its original is missing from *fresh*. Structural
    comment lines are always kept.

    Args:
        existing: Saved entries.
        fresh: Originals of a new extraction. Ignored with *purge_empty*.
        leave_filled: Keep stale entries that already have a translation.
        purge_empty: Drop every untranslated entry without looking at *fresh*.
    """
    result = PurgeResult()
    current = set(fresh or ())
    for entry in existing:
        if entry.is_comment:
            result.entries.append(entry)
            continue
        if purge_empty:
            stale = not entry.is_translated
        else:
            stale = entry.original not in current
        if stale and leave_filled and entry.is_translated:
            result.retained_stale += 1
            stale = False
        if stale:
            result.removed.append(entry)
        else:
            result.entries.append(entry)
    return result


def purge_maps(
    existing: list[LineEntry],
    blocks: Iterable[MapBlock] | None,
    maps_mode: MapsProcessingMode = MapsProcessingMode.default,
    leave_filled: bool = False,
    purge_empty: bool = False,
) -> PurgeResult:
    """Purge maps.txt.

    Separate mode judges every map block against that map's own extraction;
    the other modes judge every entry against all maps together. Header lines
    of every block are kept.
    """
    block_list = list(blocks or ())
    if maps_mode != MapsProcessingMode.separate or purge_empty:
        fresh = {line for block in block_list for line in block.lines}
        result = purge(existing, fresh, leave_filled, purge_empty)
    else:
        per_map = {block.number: set(block.lines) for block in block_list}
        result = PurgeResult()
        for number, entries in split_map_blocks(existing):
            part = purge(entries, per_map.get(number, set()), leave_filled)
            result.entries.extend(part.entries)
            result.removed.extend(part.removed)
            result.retained_stale += part.retained_stale

    if maps_mode == MapsProcessingMode.preserve and result.retained_stale:
        logger.warning(
            "maps.txt: %d stale translated line(s) were kept; preserve-mode write-back "
            "will be misaligned until they are removed",
            result.retained_stale,
        )
    return result

