"""Traversal of event command lists.

Consecutive dialogue commands form one logical line. On read the fragments
are joined with newlines; on write the translation is split back across the
original command slots.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from rvtext.core.constants import (
    DIALOGUE_CODES,
    Code,
    EngineType,
    MapLabels,
    classify_code,
    map_labels,
)
from rvtext.core.document import same_form, value_text
from rvtext.translation.classifier import classify
from rvtext.translation.matcher import Matcher, resolve, resplit
from rvtext.translation.rules import GameRules


def parameter_slot(code: Code) -> int:
    """Index of the text-carrying parameter for a command code."""
    return 1 if code in (Code.MISC1, Code.MISC2, Code.CHOICE) else 0


def _ends_sequence(code: Code, engine_type: EngineType, buffered: int) -> bool:
    if code not in DIALOGUE_CODES:
        return True
    # XP opens every message with 101, so a new 101 closes the previous one
    return engine_type == EngineType.xp and code == Code.DIALOGUE_START and buffered > 0


def _parameters(command: Any, labels: MapLabels) -> list | None:
    if not isinstance(command, dict):
        return None
    params = command.get(labels.parameters)
    return params if isinstance(params, list) else None


def _slot_text(params: list, index: int) -> str:
    text = value_text(params[index])
    return text.strip() if text is not None else ""


# ── Read ──


def walk(
    commands: list,
    engine_type: EngineType,
    rules: GameRules | None = None,
    romanize: bool = False,
) -> list[str]:
    """Return the translatable lines of a command list in document order.

    Duplicates are kept; deduplication is up to the caller.
    """
    labels = map_labels(engine_type)
    lines: list[str] = []
    buffer: list[str] = []
    in_sequence = False

    def emit(code: Code, text: str) -> None:
        parsed = classify(text, code, rules, engine_type, romanize)
        if parsed is not None:
            lines.append(parsed)

    for command in commands:
        if not isinstance(command, dict):
            continue
        code = classify_code(command.get(labels.code), engine_type)

        if in_sequence and _ends_sequence(code, engine_type, len(buffer)):
            if buffer:
                emit(Code.DIALOGUE, "\n".join(buffer))
                buffer.clear()
            in_sequence = False

        # 402 repeats a choice of the preceding 102, it is never read
        if code in (Code.BAD, Code.CHOICE):
            continue

        params = _parameters(command, labels)
        if params is None:
            continue

        if code == Code.CHOICE_ARRAY:
            choices = params[0] if params and isinstance(params[0], list) else []
            for choice in choices:
                text = value_text(choice)
                if text is not None and text.strip():
                    emit(code, text.strip())
            continue

        slot = parameter_slot(code)
        if slot >= len(params):
            continue
        text = _slot_text(params, slot)
        if code != Code.CREDIT and not text:
            continue

        if code in DIALOGUE_CODES:
            buffer.append(text)
            in_sequence = True
        else:
            emit(code, text)

    if buffer:
        emit(Code.DIALOGUE, "\n".join(buffer))

    return lines


# ── Write ──


def apply(
    commands: list,
    engine_type: EngineType,
    matcher: Matcher,
    rules: GameRules | None = None,
    romanize: bool = False,
) -> int:
    """Replace translatable fragments of a command list in place.

    Returns:
        Number of logical lines that received a translation.
    """
    labels = map_labels(engine_type)
    written = 0
    buffer: list[str] = []
    slots: list[list] = []
    in_sequence = False

    def flush() -> None:
        nonlocal written
        translated = resolve(matcher, Code.DIALOGUE, "\n".join(buffer), rules, engine_type, romanize)
        if translated is not None:
            for params, text in zip(slots, resplit(translated, len(slots))):
                params[0] = same_form(params[0], text)
            written += 1
        buffer.clear()
        slots.clear()

    for command in commands:
        if not isinstance(command, dict):
            continue
        code = classify_code(command.get(labels.code), engine_type)

        if in_sequence and _ends_sequence(code, engine_type, len(buffer)):
            if buffer:
                flush()
            in_sequence = False

        if code == Code.BAD:
            continue

        params = _parameters(command, labels)
        if params is None:
            continue

        if code == Code.CHOICE_ARRAY:
            choices = params[0] if params and isinstance(params[0], list) else []
            for i, choice in enumerate(choices):
                text = value_text(choice)
                if text is None or not text.strip():
                    continue
                translated = resolve(matcher, code, text.strip(), rules, engine_type, romanize)
                if translated is not None:
                    choices[i] = same_form(choice, translated)
                    written += 1
            continue

        slot = parameter_slot(code)
        if slot >= len(params):
            continue
        text = _slot_text(params, slot)
        if code != Code.CREDIT and not text:
            continue

        if code in DIALOGUE_CODES:
            buffer.append(text)
            slots.append(params)
            in_sequence = True
            continue

        translated = resolve(matcher, code, text, rules, engine_type, romanize)
        if translated is not None:
            params[slot] = same_form(params[slot], translated)
            written += 1

    if buffer:
        flush()

    return written


# ── Map and event structure ──


def iter_events(events: Any) -> Iterator[dict]:
    """Yield the events of a map, whether stored as a JSON array or a legacy hash."""
    values = events.values() if isinstance(events, dict) else events or ()
    for event in values:
        if isinstance(event, dict):
            yield event


def iter_page_lists(event: dict, labels: MapLabels) -> Iterator[list]:
    for page in event.get(labels.pages) or ():
        if isinstance(page, dict) and isinstance(page.get(labels.list), list):
            yield page[labels.list]


def iter_map_lists(map_doc: dict, engine_type: EngineType) -> Iterator[list]:
    """Yield every command list of a map document in traversal order."""
    labels = map_labels(engine_type)
    for event in iter_events(map_doc.get(labels.events)):
        yield from iter_page_lists(event, labels)
