"""Extraction and write-back of named record fields (names, descriptions, notes...)."""

from __future__ import annotations

import re
from dataclasses import dataclass

from rvtext.core.constants import EngineType, Variable, variable_label
from rvtext.core.document import same_form, value_text
from rvtext.translation.classifier import is_only_symbols, romanize
from rvtext.translation.rules import GameRules, NoteRules

# Legacy records keep tags like <Stat: 5> or short ids in their text fields
_INVALID_MULTILINE_RE = re.compile(r"^#? ?<.*>.?$|^[a-z][0-9]$")
_INVALID_VARIABLE_RE = re.compile(r"^[+-]?[0-9]+$|^///|---|restrict eval")

_DEFAULT_RULES = GameRules()


@dataclass
class FieldText:
    """Lookup text of one record field."""
    variable: Variable
    text: str


def _normalize(text: str) -> str:
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def is_note_continuation(note: str, rules: NoteRules) -> bool:
    """Whether a note continues the description right before it.

    A continuation starts with a single newline or a letter or quote, and never
    with terminal punctuation.
    """
    if len(note) < 2 or note.startswith(rules.rejected_prefixes):
        return False
    first, second = note[0], note[1]
    if first in ".!/?":
        return False
    return (
        (first == "\n" and second != "\n")
        or (first.isascii() and first.isalpha())
        or first == '"'
        or note.startswith(rules.continuation_prefixes)
    )


def _continuation_line(note: str, rules: NoteRules) -> str | None:
    """First line of a continuation note, None when it does not end a sentence."""
    first = note.lstrip().split("\n", 1)[0].strip()
    if not first.endswith(tuple(rules.terminal_chars)):
        return None
    return first


def _note_is_linked(filename: str, rules: GameRules) -> bool:
    notes = rules.notes
    return (
        notes.continuation
        and not filename.startswith(notes.rejected_files)
        and not filename.startswith(notes.standalone_files)
    )


def extract_variable(
    text: str,
    variable: Variable,
    filename: str,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> tuple[str, bool] | None:
    """Decide whether a field value is translatable.

    Args:
        text: Field value; trimmed by the caller except for notes.
        variable: Field kind.
        filename: Data file name, used by per-title prefix rules.
        rules: Title rule set.
        engine_type: Engine variant of the source document.
        romanize_text: Apply the romanization table to the accepted text.

    Returns:
        Tuple of (text, is_continuation), or None when rejected. A
        continuation is the newline-prefixed line to append to the preceding
        description.
    """
    rules = rules or _DEFAULT_RULES
    if is_only_symbols(text):
        return None

    if engine_type.is_legacy:
        if all(not line or _INVALID_MULTILINE_RE.match(line) for line in text.split("\n")):
            return None
        if _INVALID_VARIABLE_RE.search(text):
            return None
        text = text.replace("\r\n", "\n")

    if any(s in text for s in rules.rejected_substrings) or text.startswith(rules.rejected_prefixes):
        return None
    if variable in rules.rejected_fields:
        return None

    continuation = False
    if variable in (Variable.name, Variable.nickname):
        rule = rules.name_rule(filename)
        if rule is not None and not rule.accepts(text):
            return None
    elif variable == Variable.note and rules.notes.continuation:
        if filename.startswith(rules.notes.rejected_files):
            return None
        if not filename.startswith(rules.notes.standalone_files):
            if not is_note_continuation(text, rules.notes):
                return None
            line = _continuation_line(text, rules.notes)
            if line is None:
                return None
            text = "\n" + line
            continuation = True

    if romanize_text:
        text = romanize(text)
    return text, continuation


def record_fields(
    record: dict,
    filename: str,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> list[FieldText]:
    """Translatable fields of one record, in extraction order.

    A rejected name drops the whole record. Note continuations are folded
    into the description before them.
    """
    fields: list[FieldText] = []
    previous: Variable | None = None
    for variable in Variable:
        raw = value_text(record.get(variable_label(engine_type, variable)))
        if raw is None or not raw.strip():
            continue
        if variable != Variable.note:
            raw = raw.strip()

        parsed = extract_variable(raw, variable, filename, rules, engine_type, romanize_text)
        if parsed is None:
            if variable == Variable.name:
                return []
            continue

        text, continuation = parsed
        if continuation:
            if previous == Variable.description and fields:
                fields[-1].text = fields[-1].text.strip() + text
            continue

        previous = variable
        fields.append(FieldText(variable, _normalize(text)))
    return fields


def extract_record(
    record: dict,
    filename: str,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> list[str]:
    return [f.text for f in record_fields(record, filename, rules, engine_type, romanize_text)]


# ── Write ──


def _decorate(translation: str, variable: Variable, filename: str, rules: GameRules) -> str:
    if variable.is_message and not (variable == Variable.message2 and filename.startswith("Sk")):
        translation = " " + translation
    if variable == Variable.note and rules.notes.continuation and not translation.startswith("\n"):
        translation = "\n" + translation
    return translation


def _linked_note(
    note: str,
    filename: str,
    table: dict[str, str],
    rules: GameRules,
    description_translated: bool,
) -> str:
    for seed in rules.seeds_for(filename):
        if seed in note and table.get(seed):
            note = note.replace(seed, table[seed])
    if description_translated and is_note_continuation(note, rules.notes):
        if _continuation_line(note, rules.notes) is not None:
            parts = note.lstrip().split("\n", 1)
            return parts[1] if len(parts) > 1 else ""
    return note


def apply_record(
    record: dict,
    filename: str,
    table: dict[str, str],
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> int:
    """Write translations into the fields of one record in place.

    Returns:
        Number of fields that received a translation.
    """
    rules = rules or _DEFAULT_RULES
    written = 0
    description_translated = False
    for field_text in record_fields(record, filename, rules, engine_type, romanize_text):
        translation = table.get(field_text.text)
        if not translation:
            continue
        label = variable_label(engine_type, field_text.variable)
        record[label] = same_form(
            record[label], _decorate(translation, field_text.variable, filename, rules)
        )
        written += 1
        if field_text.variable == Variable.description:
            description_translated = True

    if _note_is_linked(filename, rules):
        label = variable_label(engine_type, Variable.note)
        note = value_text(record.get(label))
        if note:
            if engine_type.is_legacy:
                note = note.replace("\r\n", "\n")
            updated = _linked_note(note, filename, table, rules, description_translated)
            if updated != note:
                record[label] = same_form(record[label], updated)
    return written
