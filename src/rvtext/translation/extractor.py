"""Extract translatable lines from whole data files."""

from __future__ import annotations

import json
import re
import unicodedata
from dataclasses import dataclass
from typing import Any

from rvtext.core.compression import decompress_script
from rvtext.core.constants import (
    INTEGER_PREFIX,
    SYMBOL_PREFIX,
    EngineType,
    map_labels,
    system_labels,
)
from rvtext.core.document import blob_bytes, is_blob, value_text
from rvtext.core.encoding import decode_text
from rvtext.core.errors import DocumentError
from rvtext.translation.classifier import is_junk, is_only_symbols, romanize
from rvtext.translation.lexer import extract_strings
from rvtext.translation.merge import MapBlock
from rvtext.translation.rules import GameRules
from rvtext.translation.variables import extract_record
from rvtext.translation.walker import iter_events, iter_map_lists, iter_page_lists, walk

_MAP_NUMBER_RE = re.compile(r"\d+")

# ── Maps ──


def map_number(stem: str) -> int:
    """Map number of a ``MapNNN`` file stem."""
    m = _MAP_NUMBER_RE.search(stem)
    if m is None:
        raise ValueError(f"Not a map file name: {stem}")
    return int(m.group())


@dataclass
class MapInfo:
    name: str = ""
    order: int = 0


def map_infos(document: Any, engine_type: EngineType) -> dict[int, MapInfo]:
    """Editor names and tree order of every map, keyed by map number."""
    labels = map_labels(engine_type)
    infos: dict[int, MapInfo] = {}

    if isinstance(document, dict):
        items = []
        for key, info in document.items():
            if isinstance(key, str) and key.startswith(INTEGER_PREFIX):
                items.append((int(key[len(INTEGER_PREFIX):]), info))
    elif isinstance(document, list):
        items = [
            (info.get("id", i), info)
            for i, info in enumerate(document)
            if isinstance(info, dict)
        ]
    else:
        return infos

    for number, info in items:
        if not isinstance(info, dict):
            continue
        order = info.get(labels.order)
        infos[number] = MapInfo(
            name=(value_text(info.get(labels.name)) or "").strip(),
            order=order if isinstance(order, int) else 0,
        )
    return infos


def display_name(map_doc: dict, engine_type: EngineType, romanize_text: bool = False) -> str:
    text = (value_text(map_doc.get(map_labels(engine_type).display_name)) or "").strip()
    return romanize(text) if romanize_text else text


def extract_map(
    map_doc: dict,
    number: int,
    engine_type: EngineType,
    info: MapInfo | None = None,
    rules: GameRules | None = None,
    romanize_text: bool = False,
) -> MapBlock:
    """Extract every line of a map's event pages, duplicates included."""
    lines: list[str] = []
    for commands in iter_map_lists(map_doc, engine_type):
        lines.extend(walk(commands, engine_type, rules, romanize_text))
    info = info or MapInfo()
    return MapBlock(
        number=number,
        lines=lines,
        name=info.name,
        display_name=display_name(map_doc, engine_type, romanize_text),
        order=info.order,
    )


# ── Other data files ──


def uses_event_lists(filename: str) -> bool:
    """CommonEvents and Troops hold command lists instead of plain records."""
    return filename.startswith(("Co", "Tr"))


def iter_other_lists(document: Any, filename: str, engine_type: EngineType):
    """Yield the command lists of a CommonEvents or Troops document."""
    labels = map_labels(engine_type)
    for entry in iter_events(document):
        if filename.startswith("Tr"):
            yield from iter_page_lists(entry, labels)
        elif isinstance(entry.get(labels.list), list):
            yield entry[labels.list]


def extract_other(
    document: Any,
    filename: str,
    engine_type: EngineType,
    rules: GameRules | None = None,
    romanize_text: bool = False,
) -> list[str]:
    """Extract the lines of a database file (Actors, Items, Troops...)."""
    lines: list[str] = []
    if uses_event_lists(filename):
        for commands in iter_other_lists(document, filename, engine_type):
            lines.extend(walk(commands, engine_type, rules, romanize_text))
        return lines

    if rules is not None:
        lines.extend(rules.seeds_for(filename))
    for record in document if isinstance(document, list) else ():
        if isinstance(record, dict):
            lines.extend(extract_record(record, filename, rules, engine_type, romanize_text))
    return lines


# ── System ──


def _system_text(value: Any, romanize_text: bool) -> str | None:
    text = value_text(value)
    if text is None or not text.strip():
        return None
    text = text.strip()
    return romanize(text) if romanize_text else text


def iter_system_values(document: dict, engine_type: EngineType):
    """Yield ``(container, key)`` for every text slot of a System document, in file order."""
    labels = system_labels(engine_type)
    for label in (labels.armor_types, labels.elements, labels.skill_types,
                  labels.weapon_types, labels.equip_types):
        values = document.get(label)
        if isinstance(values, list):
            for i in range(len(values)):
                yield values, i

    terms = document.get(labels.terms)
    if isinstance(terms, dict):
        for key, value in terms.items():
            if engine_type.is_legacy and not key.startswith(SYMBOL_PREFIX):
                continue
            if key == "messages":
                if isinstance(value, dict):
                    for message_key in value:
                        yield value, message_key
            elif isinstance(value, list):
                for i in range(len(value)):
                    yield value, i
            elif isinstance(value, str) or is_blob(value):
                yield terms, key

    if engine_type.is_legacy and labels.currency_unit in document:
        yield document, labels.currency_unit


def extract_system(document: dict, engine_type: EngineType, romanize_text: bool = False) -> tuple[list[str], str]:
    """Return the System lines and the game title, which always goes last."""
    lines = []
    for container, key in iter_system_values(document, engine_type):
        text = _system_text(container[key], romanize_text)
        if text is not None:
            lines.append(text)
    title = (value_text(document.get(system_labels(engine_type).game_title)) or "").strip()
    return lines, romanize(title) if romanize_text else title


# ── Scripts ──

_SCRIPT_REJECT_RES = (
    re.compile(r"(Graphics|Data|Audio|Movies|System)/.*/?"),
    re.compile(r"r[xv]data2?$"),
    re.compile(r"\("),
    re.compile(
        r"^(Actor<id>|ExtraDropItem|EquipLearnSkill|GameOver|Iconset|Window|true|false"
        r"|MActor%d|[wr]b|\\f|\\n|\[[A-Z]*\])$"
    ),
)
_SCRIPT_REJECT_SUBSTRINGS = ("@window", "$game", "ALPHAC", "_")


def _is_format_noise(text: str) -> bool:
    """Digits, 'd' and punctuation only, or one such character followed by ampersands."""
    def noise(c: str) -> bool:
        return c == "d" or c in "+-" or c.isdigit() or unicodedata.category(c).startswith("P")

    if all(noise(c) for c in text):
        return True
    return noise(text[0]) and not text[0].isdigit() and all(c == "&" for c in text[1:])


def is_script_text(text: str) -> bool:
    """Whether a script literal looks like player-facing text rather than code."""
    if not text or is_only_symbols(text) or _is_format_noise(text):
        return False
    if text.startswith("\\\\e") or any(s in text for s in _SCRIPT_REJECT_SUBSTRINGS):
        return False
    return not any(r.search(text) for r in _SCRIPT_REJECT_RES)


@dataclass
class ScriptSource:
    """One decoded entry of a Scripts file."""
    index: int
    name: str
    blob: bytes
    source: str
    encoding: str


def decode_scripts(document: Any) -> list[ScriptSource]:
    """Decompress and decode every script of a Scripts document.

    Raises:
        DocumentError: If the document is not a script list or a blob cannot be inflated.
        DecodeError: If a script's text cannot be decoded.
    """
    if not isinstance(document, list):
        raise DocumentError("Scripts file is not an array")
    scripts = []
    for i, entry in enumerate(document):
        if not isinstance(entry, list) or len(entry) < 3 or not is_blob(entry[2]):
            raise DocumentError(f"Script entry {i} is not [id, name, data]")
        blob = blob_bytes(entry[2])
        source, encoding = decode_text(decompress_script(blob))
        scripts.append(ScriptSource(i, value_text(entry[1]) or "", blob, source, encoding))
    return scripts


def extract_scripts(scripts: list[ScriptSource], romanize_text: bool = False) -> list[str]:
    """Unique player-facing literals across all scripts, in script order."""
    seen: set[str] = set()
    lines: list[str] = []
    for script in scripts:
        for text in extract_strings(script.source).strings:
            if not is_script_text(text):
                continue
            if romanize_text:
                text = romanize(text)
            if text not in seen:
                seen.add(text)
                lines.append(text)
    return lines


# ── Plugins ──

_PLUGIN_KEY_RE = re.compile(
    r"^name$|file|image|picture|icon|sound|bgm|\bse\b|font|colou?r|switch|variable|symbol|^key$|\bid$",
    re.IGNORECASE,
)
_PLUGINS_PREFIX = "var $plugins ="


def parse_plugins(text: str) -> Any:
    """Parse the JSON payload of a ``js/plugins.js`` file.

    Raises:
        DocumentError: If the file has no assignment or the payload is not JSON.
    """
    _, sep, payload = text.partition("=")
    if not sep:
        raise DocumentError("plugins.js has no '$plugins =' assignment")
    try:
        return json.loads(payload.strip().rstrip(";").strip())
    except json.JSONDecodeError as e:
        raise DocumentError(f"plugins.js payload is not JSON: {e}") from e


def dump_plugins(document: Any) -> str:
    return f"{_PLUGINS_PREFIX}\n{json.dumps(document, ensure_ascii=False)};\n"


def plugin_key_allowed(key: str | None) -> bool:
    if key is None or key.startswith("LATIN"):
        return True
    return not _PLUGIN_KEY_RE.search(key)


def plugin_text(value: str, key: str | None) -> str | None:
    """Classify a plugin string leaf, None when it is not text."""
    text = value.strip()
    if not text or not plugin_key_allowed(key):
        return None
    if key is not None and key.startswith("LATIN"):
        return text
    if is_only_symbols(text) or is_junk(text):
        return None
    return text


def iter_plugin_strings(node: Any):
    """Yield ``(container, slot, key)`` for every string leaf in document order."""
    if isinstance(node, dict):
        for k, v in node.items():
            if isinstance(v, str):
                yield node, k, k
            else:
                yield from iter_plugin_strings(v)
    elif isinstance(node, list):
        for i, v in enumerate(node):
            if isinstance(v, str):
                yield node, i, None
            else:
                yield from iter_plugin_strings(v)


def extract_plugins(document: Any, romanize_text: bool = False) -> list[str]:
    """Every text leaf of the plugin list, duplicates included."""
    lines = []
    for container, slot, key in iter_plugin_strings(document):
        text = plugin_text(container[slot], key)
        if text is not None:
            lines.append(romanize(text) if romanize_text else text)
    return lines
