"""Per-title extraction rules loaded from TOML tables.

Rule files ship inside the package as ``rvtext/rules/<game>.toml``. A user
file can be layered on top; its keys override the shipped ones.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path

from rvtext.core.constants import GameType, Variable

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

_RULES_DIR = Path(__file__).resolve().parent.parent / "rules"


@dataclass(frozen=True)
class FieldRule:
    """Literal allow/deny lists for name and nickname fields of one file prefix."""
    allow: frozenset[str] = frozenset()
    deny: frozenset[str] = frozenset()
    deny_prefixes: tuple[str, ...] = ()
    deny_suffixes: tuple[str, ...] = ()

    def accepts(self, text: str) -> bool:
        if self.allow and text not in self.allow:
            return False
        if text in self.deny:
            return False
        if text.startswith(self.deny_prefixes) or text.endswith(self.deny_suffixes):
            return False
        return True


@dataclass(frozen=True)
class SystemLineRule:
    prefix: str
    rejected_suffix: str = ""

    def accepts(self, text: str) -> bool:
        if not text.startswith(self.prefix):
            return False
        return not (self.rejected_suffix and text.endswith(self.rejected_suffix))


@dataclass(frozen=True)
class NoteRules:
    """How record notes relate to the description before them."""
    continuation: bool = False
    rejected_files: tuple[str, ...] = ()
    standalone_files: tuple[str, ...] = ()
    rejected_prefixes: tuple[str, ...] = ()
    continuation_prefixes: tuple[str, ...] = ()
    terminal_chars: str = ""


@dataclass(frozen=True)
class GameRules:
    """Title-specific extraction rules. The default instance changes nothing."""

    name: str = ""
    reject_lowercase_lines: bool = False
    dialogue_speaker_prefix: bool = False
    system_lines: tuple[SystemLineRule, ...] = ()
    skipped_files: frozenset[str] = frozenset()
    rejected_fields: frozenset[Variable] = frozenset()
    rejected_substrings: tuple[str, ...] = ()
    rejected_prefixes: tuple[str, ...] = ()
    notes: NoteRules = field(default_factory=NoteRules)
    seed_lines: dict[str, tuple[str, ...]] = field(default_factory=dict)
    names: dict[str, FieldRule] = field(default_factory=dict)

    def name_rule(self, filename: str) -> FieldRule | None:
        for prefix, rule in self.names.items():
            if filename.startswith(prefix):
                return rule
        return None

    def seeds_for(self, filename: str) -> tuple[str, ...]:
        for prefix, lines in self.seed_lines.items():
            if filename.startswith(prefix):
                return lines
        return ()

    def skips_file(self, stem: str) -> bool:
        return stem in self.skipped_files

    @classmethod
    def from_dict(cls, name: str, data: dict) -> GameRules:
        notes = data.get("notes", {})
        return cls(
            name=name,
            reject_lowercase_lines=bool(data.get("reject_lowercase_lines", False)),
            dialogue_speaker_prefix=bool(data.get("dialogue_speaker_prefix", False)),
            system_lines=tuple(
                SystemLineRule(r["prefix"], r.get("rejected_suffix", ""))
                for r in data.get("system_lines", [])
            ),
            skipped_files=frozenset(data.get("skipped_files", [])),
            rejected_fields=frozenset(Variable(v) for v in data.get("rejected_fields", [])),
            rejected_substrings=tuple(data.get("rejected_substrings", [])),
            rejected_prefixes=tuple(data.get("rejected_prefixes", [])),
            notes=NoteRules(
                continuation=bool(notes.get("continuation", False)),
                rejected_files=tuple(notes.get("rejected_files", [])),
                standalone_files=tuple(notes.get("standalone_files", [])),
                rejected_prefixes=tuple(notes.get("rejected_prefixes", [])),
                continuation_prefixes=tuple(notes.get("continuation_prefixes", [])),
                terminal_chars=notes.get("terminal_chars", ""),
            ),
            seed_lines={k: tuple(v) for k, v in data.get("seed_lines", {}).items()},
            names={
                prefix: FieldRule(
                    allow=frozenset(r.get("allow", [])),
                    deny=frozenset(r.get("deny", [])),
                    deny_prefixes=tuple(r.get("deny_prefixes", [])),
                    deny_suffixes=tuple(r.get("deny_suffixes", [])),
                )
                for prefix, r in data.get("names", {}).items()
            },
        )


def _read_toml(path: Path) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@functools.lru_cache(maxsize=None)
def load_rules(game_type: GameType | None, extra: Path | None = None) -> GameRules:
    """Load the rule set for a title, cached per process.

    Args:
        game_type: Title to load, or None for no special-casing.
        extra: Optional user TOML whose keys override the shipped file.
    """
    data: dict = {}
    if game_type is not None:
        shipped = _RULES_DIR / f"{game_type.value}.toml"
        if shipped.exists():
            data = _read_toml(shipped)
    if extra is not None:
        data = _merge(data, _read_toml(Path(extra)))
    name = game_type.value if game_type is not None else ""
    return GameRules.from_dict(name, data)
