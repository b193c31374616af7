"""Apply translations back to whole data files."""

from __future__ import annotations

import logging
from typing import Any

from rvtext.core.compression import compress_or_preserve
from rvtext.core.constants import EngineType, map_labels, system_labels
from rvtext.core.document import bytes_blob, same_form, value_text
from rvtext.core.encoding import encode_text
from rvtext.translation.classifier import romanize
from rvtext.translation.extractor import (
    ScriptSource,
    display_name,
    is_script_text,
    iter_other_lists,
    iter_plugin_strings,
    iter_system_values,
    plugin_text,
    uses_event_lists,
)
from rvtext.translation.lexer import extract_strings, splice
from rvtext.translation.matcher import Matcher, QueueMatcher
from rvtext.translation.rules import GameRules
from rvtext.translation.variables import apply_record
from rvtext.translation.walker import apply, iter_map_lists

logger = logging.getLogger(__name__)


def apply_map(
    map_doc: dict,
    engine_type: EngineType,
    matcher: Matcher,
    names: dict[str, str],
    rules: GameRules | None = None,
    romanize_text: bool = False,
) -> int:
    """Translate a map's display name and event pages in place.

    Returns:
        Number of lines patched.
    """
    patched = 0
    label = map_labels(engine_type).display_name
    name = display_name(map_doc, engine_type, romanize_text)
    if name and names.get(name):
        map_doc[label] = same_form(map_doc[label], names[name])
        patched += 1
    for commands in iter_map_lists(map_doc, engine_type):
        patched += apply(commands, engine_type, matcher, rules, romanize_text)
    return patched


def apply_other(
    document: Any,
    filename: str,
    engine_type: EngineType,
    table: dict[str, str],
    matcher: Matcher,
    rules: GameRules | None = None,
    romanize_text: bool = False,
) -> int:
    """Translate a database file in place.

    Args:
        document: Loaded data file.
        filename: File name, used for per-title prefix rules.
        engine_type: Engine variant.
        table: Original → translation table of the file.
        matcher: Matcher over the same table, for command lists.
        rules: Title rule set.
        romanize_text: Whether the lines were romanized on read.
    """
    patched = 0
    if uses_event_lists(filename):
        for commands in iter_other_lists(document, filename, engine_type):
            patched += apply(commands, engine_type, matcher, rules, romanize_text)
        return patched

    for record in document if isinstance(document, list) else ():
        if isinstance(record, dict):
            patched += apply_record(record, filename, table, rules, engine_type, romanize_text)
    return patched


def apply_system(
    document: dict,
    engine_type: EngineType,
    table: dict[str, str],
    title: str,
    romanize_text: bool = False,
) -> int:
    """Translate a System document in place; *title* replaces the game title when set."""
    patched = 0
    for container, key in iter_system_values(document, engine_type):
        text = value_text(container[key])
        if text is None or not text.strip():
            continue
        text = text.strip()
        if romanize_text:
            text = romanize(text)
        translation = table.get(text)
        if translation:
            container[key] = same_form(container[key], translation)
            patched += 1

    label = system_labels(engine_type).game_title
    if title and label in document:
        document[label] = same_form(document[label], title)
        patched += 1
    return patched


def apply_scripts(
    document: list,
    scripts: list[ScriptSource],
    table: dict[str, str],
    romanize_text: bool = False,
) -> int:
    """Splice translations into script literals and recompress changed scripts."""
    patched = 0
    for script in scripts:
        found = extract_strings(script.source, capture_ranges=True)
        replacements = []
        for text, text_range in zip(found.strings, found.ranges):
            if not is_script_text(text):
                continue
            key = romanize(text) if romanize_text else text
            translation = table.get(key)
            if translation:
                replacements.append((text_range, translation))
        if not replacements:
            continue

        source = splice(script.source, replacements)
        data = encode_text(source, script.encoding)
        document[script.index][2] = bytes_blob(compress_or_preserve(script.blob, data))
        patched += len(replacements)
        logger.debug("Script %r: %d literal(s) replaced", script.name, len(replacements))
    return patched


def apply_plugins(document: Any, matcher: QueueMatcher, romanize_text: bool = False) -> int:
    """Replace plugin string leaves in order, consuming the queue."""
    patched = 0
    for container, slot, key in iter_plugin_strings(document):
        text = plugin_text(container[slot], key)
        if text is None:
            continue
        if romanize_text:
            text = romanize(text)
        translation = matcher.take(text)
        if translation is not None:
            container[slot] = translation
            patched += 1
    return patched
