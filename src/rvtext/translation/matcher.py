"""Lookup of translations for extracted fragments at write time.

Deduplicated tables are looked up by original text. Preserve-mode files are
consumed as a queue in document order, so the queue must be walked in the
same order the lines were read.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterable
from typing import Protocol

from rvtext.core.constants import Code, EngineType
from rvtext.core.linefile import LineEntry
from rvtext.translation.classifier import classify_parts
from rvtext.translation.rules import GameRules

logger = logging.getLogger(__name__)


class Matcher(Protocol):
    def lookup(self, code: Code, text: str) -> str | None:
        """Return the translation for a classified fragment, None when absent."""
        ...


class TableMatcher:
    """Exact-key lookup in an original → translation table."""

    def __init__(self, table: dict[str, str]) -> None:
        self.table = table

    @classmethod
    def from_entries(cls, entries: Iterable[LineEntry]) -> TableMatcher:
        """Build from line file entries, skipping comments and untranslated lines."""
        table = {
            e.original.strip(): e.translation.strip()
            for e in entries
            if not e.is_comment and e.is_translated
        }
        return cls(table)

    def lookup(self, code: Code, text: str) -> str | None:
        return self.table.get(text) or None


class QueueMatcher:
    """FIFO consumption of entries in document order.

    A choice array's siblings were read as separate entries, so each sibling
    peeks at the head and only consumes it when the originals agree. The
    translations consumed this way are remembered for the 402 commands that
    repeat a choice inside its branch.
    """

    def __init__(self, entries: Iterable[LineEntry]) -> None:
        self._queue: deque[LineEntry] = deque(e for e in entries if not e.is_comment)
        self._choices: dict[str, str] = {}
        self._lock = threading.Lock()
        self.mismatches = 0

    def __len__(self) -> int:
        return len(self._queue)

    def lookup(self, code: Code, text: str) -> str | None:
        if code == Code.CHOICE:
            with self._lock:
                return self._choices.get(text) or None

        if code == Code.CHOICE_ARRAY:
            with self._lock:
                if not self._queue or self._queue[0].original != text:
                    return None
                entry = self._queue.popleft()
                if entry.is_translated:
                    self._choices[text] = entry.translation
                return entry.translation or None

        return self.take(text)

    def take(self, text: str) -> str | None:
        """Consume the head entry; its translation is returned only if the originals agree."""
        with self._lock:
            if not self._queue:
                logger.debug("Queue exhausted before %r", text)
                return None
            entry = self._queue.popleft()
            if entry.original != text:
                self.mismatches += 1
                logger.warning("Out of order line: expected %r, found %r", entry.original, text)
                return None
            return entry.translation or None


def resolve(
    matcher: Matcher,
    code: Code,
    text: str,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize: bool = False,
) -> str | None:
    """Classify a raw fragment, look it up and restore its stripped fragments.

    Returns:
        Text ready to be stored in the document, or None to leave it as is.
    """
    parts = classify_parts(text, code, rules, engine_type, romanize)
    if parts is None:
        return None
    translated = matcher.lookup(code, parts.text)
    if translated is None:
        return None
    return parts.wrap(translated)


def resplit(translation: str, slots: int) -> list[str]:
    """Split a joined dialogue translation over *slots* command parameters.

    Missing lines become a single space so the command stays valid; surplus
    lines are joined into the last slot.
    """
    lines = translation.split("\n")
    if len(lines) >= slots:
        return lines[:slots - 1] + ["\n".join(lines[slots - 1:])]
    return lines + [" "] * (slots - len(lines))
