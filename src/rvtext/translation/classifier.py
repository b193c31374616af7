"""Predicates deciding whether a game string is translatable text."""

from __future__ import annotations

import re
import string
import unicodedata
from dataclasses import dataclass

from rvtext.core.constants import Code, EngineType
from rvtext.translation.rules import GameRules

_ROMAN_NUMERALS = "ⅠⅰⅡⅱⅢⅲⅣⅳⅤⅴⅥⅵⅦⅶⅧⅷⅨⅸⅩⅹⅪⅺⅫⅻⅬⅼⅭⅽⅮⅾⅯⅿ"

SYMBOLS = frozenset(
    ".()+-:;[]^~%&!№$@`*/→×？?ｘ％▼|♥♪！：〜『』「」〽。…‥＝゠、，【】［］｛｝（）〔〕｟｠〘〙〈〉《》・\\#<>=_ー※▶"
    + _ROMAN_NUMERALS
    + "0123456789"
)

JUNK_LITERALS = frozenset({"true", "false", "none", "time", "off"})

_CALL_RE = re.compile(r"^this\.\w+\(.*\)$", re.DOTALL)
_IF_SUFFIX_RE = re.compile(r" if\(.*\)$")

_ROMANIZE_TABLE = str.maketrans({
    "。": ".",
    "、": ",",
    "，": ",",
    "・": "·",
    "゠": "–",
    "＝": "—",
    "ー": "—",
    "「": "'",
    "」": "'",
    "〈": "'",
    "〉": "'",
    "『": '"',
    "』": '"',
    "《": '"',
    "》": '"',
    "（": "(",
    "〔": "(",
    "｟": "(",
    "〘": "(",
    "）": ")",
    "〕": ")",
    "｠": ")",
    "〙": ")",
    "｛": "{",
    "｝": "}",
    "［": "[",
    "【": "[",
    "〖": "[",
    "〚": "[",
    "］": "]",
    "】": "]",
    "〗": "]",
    "〛": "]",
    "〜": "~",
    "？": "?",
    "！": "!",
    "：": ":",
    "※": "·",
    "…": "...",
    "‥": "...",
    "　": " ",
    "Ⅰ": "I", "ⅰ": "i", "Ⅱ": "II", "ⅱ": "ii", "Ⅲ": "III", "ⅲ": "iii",
    "Ⅳ": "IV", "ⅳ": "iv", "Ⅴ": "V", "ⅴ": "v", "Ⅵ": "VI", "ⅵ": "vi",
    "Ⅶ": "VII", "ⅶ": "vii", "Ⅷ": "VIII", "ⅷ": "viii", "Ⅸ": "IX", "ⅸ": "ix",
    "Ⅹ": "X", "ⅹ": "x", "Ⅺ": "XI", "ⅺ": "xi", "Ⅻ": "XII", "ⅻ": "xii",
    "Ⅼ": "L", "ⅼ": "l", "Ⅽ": "C", "ⅽ": "c", "Ⅾ": "D", "ⅾ": "d",
    "Ⅿ": "M", "ⅿ": "m",
})

SHOP_MARKER = "shop_talk"

_LOWERCASE_NOISE = frozenset(string.ascii_lowercase + string.punctuation)

_DEFAULT_RULES = GameRules()


@dataclass
class Classified:
    """Accepted text plus the fragments stripped around it.

    ``text`` is the lookup key. ``prefix`` and ``suffix`` are re-attached
    around a translation before it is written back.
    """
    text: str
    prefix: str = ""
    suffix: str = ""

    def wrap(self, translation: str) -> str:
        return f"{self.prefix}{translation}{self.suffix}"


def _is_symbol(char: str) -> bool:
    return char in SYMBOLS or char.isspace() or unicodedata.category(char).startswith("P")


def is_only_symbols(text: str) -> bool:
    """True when *text* has no character outside the symbol set (empty counts)."""
    return all(_is_symbol(c) for c in text)


def is_junk(text: str) -> bool:
    """Literals and code snippets that show up in string slots but are never text."""
    return text in JUNK_LITERALS or text.startswith("rgba") or bool(_CALL_RE.match(text))


def romanize(text: str) -> str:
    """Replace CJK and fullwidth punctuation and Roman numeral glyphs with ASCII."""
    return text.translate(_ROMANIZE_TABLE)


def speaker_prefix_end(text: str) -> int | None:
    r"""Index just past a ``\et[N]`` or ``\nbt`` speaker tag, None without one."""
    if text.startswith("\\et"):
        close = text.find("]", 5, 10)
        return close + 1 if close != -1 else None
    if text.startswith("\\nbt"):
        return 4
    return None


def if_suffix_start(text: str) -> int | None:
    """Index of a trailing `` if(...)`` condition, None without one."""
    m = _IF_SUFFIX_RE.search(text)
    return m.start() if m else None


def _is_lowercase_noise(text: str) -> bool:
    return all(c in _LOWERCASE_NOISE for c in text)


def classify_parts(
    text: str,
    code: Code,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> Classified | None:
    """Decide whether *text* is translatable and split off non-text fragments.

    Args:
        text: Candidate string, already trimmed by the caller.
        code: Command code the string came from.
        rules: Title rule set, or None for no special-casing.
        engine_type: Engine variant of the source document.
        romanize_text: Apply the romanization table to the accepted text.

    Returns:
        The accepted text with stripped fragments, or None when rejected.
    """
    rules = rules or _DEFAULT_RULES
    if is_only_symbols(text) or is_junk(text):
        return None

    prefix = ""
    suffix = ""

    if rules.reject_lowercase_lines and _is_lowercase_noise(text):
        return None
    if code == Code.SYSTEM and rules.system_lines:
        if not any(rule.accepts(text) for rule in rules.system_lines):
            return None
    if rules.dialogue_speaker_prefix and code in (Code.DIALOGUE, Code.DIALOGUE_START):
        end = speaker_prefix_end(text)
        if end is not None:
            if is_only_symbols(text[end:]):
                return None
            # \et tags stay part of the line, \nbt is stripped
            if not text.startswith("\\et"):
                prefix = text[:end]
                text = text[end:]

    if engine_type.is_legacy:
        start = if_suffix_start(text)
        if start is not None:
            suffix = text[start:]
            text = text[:start]

        if code == Code.SHOP:
            if SHOP_MARKER not in text or "=" not in text:
                return None
            left, _, right = text.partition("=")
            right = right.strip()
            inner = right[1:-1] if len(right) >= 2 else ""
            if not inner or is_only_symbols(inner):
                return None
            prefix = f'{prefix}{left}="'
            suffix = f'"{suffix}'
            text = inner

    if romanize_text:
        text = romanize(text)
    return Classified(text, prefix, suffix)


def classify(
    text: str,
    code: Code,
    rules: GameRules | None = None,
    engine_type: EngineType = EngineType.new,
    romanize_text: bool = False,
) -> str | None:
    """Return the cleaned text of a translatable string, or None."""
    parts = classify_parts(text, code, rules, engine_type, romanize_text)
    return parts.text if parts is not None else None
