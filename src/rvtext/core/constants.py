"""Constants for RPG Maker data files and the translation line format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

# Line file format
LINES_SEPARATOR = "<#>"
NEW_LINE = r"\#"  # Escaped newline inside a line file field
COMMENT_PREFIX = "<!--"

# Structural comment lines of maps.txt
MAP_MARKER = "<!-- Map -->"
ORDER_MARKER = "<!-- Order -->"
MAP_NAME_PREFIX = "<!-- Map Name: "
DISPLAY_NAME_PREFIX = "<!-- In-game Displayed Name: "
COMMENT_SUFFIX = " -->"

IGNORE_FILENAME = ".rvpacker-ignore"
STAT_FILENAME = "stat.txt"

# Legacy marshal documents expose instance variables and hash keys with these prefixes
SYMBOL_PREFIX = "__symbol__"
INTEGER_PREFIX = "__integer__"
CLASS_KEY = "__class__"
BLOB_TYPE_KEY = "__type"
BLOB_DATA_KEY = "data"
BLOB_TYPE = "bytes"


class EngineType(str, Enum):
    """RPG Maker engine variant, which decides the serialization and field labels."""
    new = "new"      # MV / MZ, JSON
    vxace = "vxace"  # .rvdata2
    vx = "vx"        # .rvdata
    xp = "xp"        # .rxdata

    @property
    def is_legacy(self) -> bool:
        return self != EngineType.new

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    EngineType.new: ".json",
    EngineType.vxace: ".rvdata2",
    EngineType.vx: ".rvdata",
    EngineType.xp: ".rxdata",
}


class GameType(str, Enum):
    """Titles with dedicated extraction rules."""
    termina = "termina"
    lisarpg = "lisarpg"


class ProcessingMode(str, Enum):
    """What to do when a translation file already exists."""
    default = "default"  # refuse to overwrite
    force = "force"      # regenerate, discarding previous translations
    append = "append"    # merge fresh lines into the existing file


class MapsProcessingMode(str, Enum):
    """How duplicate lines across and inside map files are handled."""
    default = "default"    # one shared deduplicated table
    separate = "separate"  # one deduplicated table per map file
    preserve = "preserve"  # no deduplication, positional alignment


class Code(IntEnum):
    """Event command codes that may carry text."""
    BAD = 0
    DIALOGUE_START = 101  # XP only
    CHOICE_ARRAY = 102
    MISC1 = 320
    MISC2 = 324
    SYSTEM = 356
    DIALOGUE = 401
    CHOICE = 402  # write only
    CREDIT = 405
    SHOP = 655    # legacy engines only


_ALLOWED_CODES = {code.value: code for code in Code if code != Code.BAD}

DIALOGUE_CODES = frozenset({Code.DIALOGUE, Code.DIALOGUE_START, Code.CREDIT})


def classify_code(raw: object, engine_type: EngineType) -> Code:
    """Map a raw command code to a Code, falling back to BAD for anything unknown."""
    if isinstance(raw, bool) or not isinstance(raw, int):
        return Code.BAD
    code = _ALLOWED_CODES.get(raw, Code.BAD)
    if code == Code.DIALOGUE_START and engine_type != EngineType.xp:
        return Code.BAD
    return code


class Variable(str, Enum):
    """Record fields handled by the variable extractor, in extraction order."""
    name = "name"
    nickname = "nickname"
    description = "description"
    message1 = "message1"
    message2 = "message2"
    message3 = "message3"
    message4 = "message4"
    note = "note"

    @property
    def is_message(self) -> bool:
        return self in (Variable.message1, Variable.message2, Variable.message3, Variable.message4)


# ── Field labels ──


def _label(engine_type: EngineType, name: str) -> str:
    return name if engine_type == EngineType.new else SYMBOL_PREFIX + _snake(name)


def _snake(name: str) -> str:
    out = []
    for char in name:
        if char.isupper():
            out.append("_")
            out.append(char.lower())
        else:
            out.append(char)
    return "".join(out)


@dataclass(frozen=True)
class MapLabels:
    display_name: str
    events: str
    pages: str
    list: str
    code: str
    parameters: str
    name: str
    order: str


@dataclass(frozen=True)
class SystemLabels:
    armor_types: str
    elements: str
    skill_types: str
    weapon_types: str
    equip_types: str
    terms: str
    game_title: str
    currency_unit: str


def map_labels(engine_type: EngineType) -> MapLabels:
    return MapLabels(*(_label(engine_type, n) for n in (
        "displayName", "events", "pages", "list", "code", "parameters", "name", "order",
    )))


def variable_label(engine_type: EngineType, variable: Variable) -> str:
    return _label(engine_type, variable.value)


def system_labels(engine_type: EngineType) -> SystemLabels:
    labels = [_label(engine_type, n) for n in (
        "armorTypes", "elements", "skillTypes", "weaponTypes", "equipTypes",
    )]
    if engine_type == EngineType.new:
        terms = "terms"
    elif engine_type == EngineType.xp:
        terms = SYMBOL_PREFIX + "words"
    else:
        terms = SYMBOL_PREFIX + "terms"
    return SystemLabels(
        *labels,
        terms=terms,
        game_title=_label(engine_type, "gameTitle"),
        currency_unit=_label(engine_type, "currencyUnit"),
    )


# Data files that never carry translatable text
NON_TEXT_FILES = frozenset({"Areas", "Tilesets", "Animations", "System", "Scripts"})
