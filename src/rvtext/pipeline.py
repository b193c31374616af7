"""Directory-level read, write and purge runs.

Used by the CLI. A run is split into independent units: ``maps`` (every map
file together), one unit per other data file, ``system``, ``scripts``
(legacy engines) and ``plugins`` (MV/MZ). A unit that fails is recorded in
the :class:`RunResult` and the remaining units still run.

Data files are decoded on a thread pool before any traversal starts; all
line files are read before traversal and written after it.
"""

from __future__ import annotations

import logging
import re
import time as _time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from rvtext.core.constants import (
    IGNORE_FILENAME,
    NON_TEXT_FILES,
    STAT_FILENAME,
    EngineType,
    GameType,
    MapsProcessingMode,
    ProcessingMode,
)
from rvtext.core import marshal
from rvtext.core.document import Document, load_path, save_path
from rvtext.core.encoding import strip_bom
from rvtext.core.errors import MissingInputError, RvTextError
from rvtext.core.linefile import (
    LineEntry,
    append_ignore,
    append_stat,
    load_ignore,
    read_line_file,
    write_line_file,
)
from rvtext.reporting.report import UnitReport
from rvtext.translation.extractor import (
    decode_scripts,
    dump_plugins,
    extract_map,
    extract_other,
    extract_plugins,
    extract_scripts,
    extract_system,
    map_infos,
    map_number,
    parse_plugins,
)
from rvtext.translation.matcher import Matcher, QueueMatcher, TableMatcher
from rvtext.translation.merge import (
    MapBlock,
    display_names,
    merge,
    merge_maps,
    merge_sequence,
    split_map_blocks,
)
from rvtext.translation.patcher import (
    apply_map,
    apply_other,
    apply_plugins,
    apply_scripts,
    apply_system,
)
from rvtext.translation.purge import PurgeOptions, PurgeResult, purge, purge_maps
from rvtext.translation.rules import GameRules, load_rules

logger = logging.getLogger(__name__)

_DATA_DIRS = ("data", "Data", "www/data")
_MAP_FILE_RE = re.compile(r"^Map\d+$")
_MAP_INFOS = "MapInfos"

# Type alias for progress callback: (phase, current, total, message)
ProgressCallback = Callable[[str, int, int, str], None]


# ── Paths and options ──


@dataclass
class GamePaths:
    """Locations used by a run."""
    game_dir: Path
    data_dir: Path
    translation_dir: Path
    output_dir: Path

    @property
    def plugins_file(self) -> Path:
        return self.data_dir.parent / "js" / "plugins.js"

    @property
    def output_data_dir(self) -> Path:
        return self.output_dir / self.data_dir.name

    @property
    def output_plugins_file(self) -> Path:
        return self.output_dir / "js" / "plugins.js"

    @property
    def ignore_file(self) -> Path:
        return self.translation_dir / IGNORE_FILENAME

    @property
    def stat_file(self) -> Path:
        return self.translation_dir / STAT_FILENAME

    @property
    def json_dir(self) -> Path:
        return self.translation_dir.parent / "json"


def resolve_paths(
    game_dir: Path,
    translation_dir: Path | None = None,
    output_dir: Path | None = None,
) -> GamePaths:
    """Locate the data directory of a game and default the other directories.

    Raises:
        MissingInputError: If the game directory or its data directory does not exist.
    """
    if not game_dir.is_dir():
        raise MissingInputError(f"Game directory not found: {game_dir}")
    for name in _DATA_DIRS:
        data_dir = game_dir / name
        if data_dir.is_dir():
            break
    else:
        raise MissingInputError(f"No data directory ({', '.join(_DATA_DIRS)}) in {game_dir}")
    return GamePaths(
        game_dir=game_dir,
        data_dir=data_dir,
        translation_dir=translation_dir or game_dir / "translation",
        output_dir=output_dir or game_dir / "output",
    )


def detect_engine(data_dir: Path) -> EngineType:
    """Detect the engine from the System file present in *data_dir*.

    Raises:
        MissingInputError: If no System file exists.
    """
    for engine_type in (EngineType.new, EngineType.vxace, EngineType.vx, EngineType.xp):
        if (data_dir / f"System{engine_type.extension}").exists():
            return engine_type
    raise MissingInputError(f"No System file in {data_dir}, cannot detect the engine")


def engine_for_file(path: Path) -> EngineType:
    """Engine variant implied by a data file's extension."""
    for engine_type in EngineType:
        if path.suffix.lower() == engine_type.extension:
            return engine_type
    raise MissingInputError(f"Unsupported data file: {path.name}")


@dataclass
class RunOptions:
    """Options shared by read, write and purge runs."""
    engine_type: EngineType = EngineType.new
    processing_mode: ProcessingMode = ProcessingMode.default
    maps_processing_mode: MapsProcessingMode = MapsProcessingMode.default
    game_type: GameType | None = None
    romanize: bool = False
    ignore: bool = False
    rules_file: Path | None = None
    generate_json: bool = False
    max_workers: int = 4

    @property
    def rules(self) -> GameRules:
        return load_rules(self.game_type, self.rules_file)


@dataclass
class RunResult:
    """Result of a read, write or purge run."""
    units: list[UnitReport] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def _count(self, status: str) -> int:
        return sum(1 for u in self.units if u.status == status)

    @property
    def success_count(self) -> int:
        return self._count("written")

    @property
    def skip_count(self) -> int:
        return self._count("skipped")

    @property
    def error_count(self) -> int:
        return self._count("error")

    @property
    def errors(self) -> list[tuple[str, str]]:
        return [(u.unit, u.message) for u in self.units if u.status == "error"]


# ── Internal run context ──


@dataclass
class _RunContext:
    """State shared by the units of one run."""

    paths: GamePaths
    options: RunOptions
    rules: GameRules
    map_files: list[Path] = field(default_factory=list)
    other_files: list[Path] = field(default_factory=list)
    decoded: dict[Path, Future] = field(default_factory=dict)
    ignored: dict[str, list[str]] = field(default_factory=dict)

    @property
    def engine_type(self) -> EngineType:
        return self.options.engine_type

    @property
    def romanize(self) -> bool:
        return self.options.romanize

    def data_file(self, stem: str) -> Path:
        return self.paths.data_dir / f"{stem}{self.engine_type.extension}"

    def document(self, path: Path) -> Document:
        """Decoded document of *path*; re-raises the decoding error of that file."""
        return self.decoded[path].result()

    def filter_ignored(self, file_id: str, lines: list[str]) -> list[str]:
        skip = set(self.ignored.get(file_id, ()))
        if not skip:
            return lines
        return [line for line in lines if line not in skip]

    def line_file(self, name: str) -> Path:
        return self.paths.translation_dir / name


def _list_data_files(data_dir: Path, engine_type: EngineType, rules: GameRules) -> tuple[list[Path], list[Path]]:
    """Return ``(map_files, other_files)`` of a data directory, sorted by name."""
    map_files: list[Path] = []
    other_files: list[Path] = []
    for path in sorted(data_dir.glob(f"*{engine_type.extension}")):
        stem = path.stem
        if _MAP_FILE_RE.match(stem):
            map_files.append(path)
        elif stem == _MAP_INFOS or stem in NON_TEXT_FILES or rules.skips_file(stem):
            continue
        else:
            other_files.append(path)
    return map_files, other_files


def _start_run(paths: GamePaths, options: RunOptions, *, decode: bool = True) -> _RunContext:
    """Collect the data files of a run and start decoding them in parallel."""
    rules = options.rules
    ctx = _RunContext(paths=paths, options=options, rules=rules)
    ctx.map_files, ctx.other_files = _list_data_files(paths.data_dir, options.engine_type, rules)
    if not decode:
        return ctx

    to_decode = [*ctx.map_files, *ctx.other_files]
    for stem in (_MAP_INFOS, "System", "Scripts"):
        path = ctx.data_file(stem)
        if path.exists():
            to_decode.append(path)

    with ThreadPoolExecutor(max_workers=options.max_workers) as pool:
        ctx.decoded = {
            path: pool.submit(load_path, path, options.engine_type)
            for path in to_decode
        }
    return ctx


def _run_units(
    phase: str,
    units: list[tuple[str, Callable[[UnitReport], None]]],
    on_progress: ProgressCallback | None,
) -> RunResult:
    result = RunResult()
    t0 = _time.monotonic()
    for i, (unit_id, run) in enumerate(units):
        unit = UnitReport(unit_id)
        try:
            run(unit)
        except (RvTextError, OSError) as e:
            unit.status = "error"
            unit.message = str(e)
            logger.error("%s: %s", unit_id, e)
        result.units.append(unit)
        if on_progress:
            on_progress(phase, i + 1, len(units), unit_id)
    result.elapsed_seconds = _time.monotonic() - t0
    return result


def _other_id(path: Path) -> str:
    return path.stem.lower()


# ── Shared extraction ──


def _extract_map_blocks(ctx: _RunContext, apply_ignore: bool) -> list[MapBlock]:
    infos_file = ctx.data_file(_MAP_INFOS)
    infos = map_infos(ctx.document(infos_file), ctx.engine_type) if infos_file in ctx.decoded else {}
    blocks = []
    for path in ctx.map_files:
        number = map_number(path.stem)
        block = extract_map(
            ctx.document(path), number, ctx.engine_type, infos.get(number), ctx.rules, ctx.romanize,
        )
        if apply_ignore:
            block.lines = ctx.filter_ignored(f"Map{number}", block.lines)
        blocks.append(block)
    return blocks


def _system_lines(ctx: _RunContext) -> tuple[list[str], str]:
    path = ctx.data_file("System")
    if path not in ctx.decoded:
        raise MissingInputError(f"{path.name} not found")
    return extract_system(ctx.document(path), ctx.engine_type, ctx.romanize)


def _scripts_document(ctx: _RunContext) -> Document:
    path = ctx.data_file("Scripts")
    if path not in ctx.decoded:
        raise MissingInputError(f"{path.name} not found")
    return ctx.document(path)


def _plugins_document(ctx: _RunContext) -> Document:
    path = ctx.paths.plugins_file
    if not path.exists():
        raise MissingInputError(f"{path} not found")
    return parse_plugins(strip_bom(path.read_text(encoding="utf-8")))


def _unit_plan(ctx: _RunContext, handlers: dict[str, Callable]) -> list[tuple[str, Callable[[UnitReport], None]]]:
    """Bind the per-unit handlers of a run to the units present in the game."""
    units: list[tuple[str, Callable[[UnitReport], None]]] = []
    if ctx.map_files:
        units.append(("maps", lambda unit: handlers["maps"](ctx, unit)))
    for path in ctx.other_files:
        units.append((_other_id(path), lambda unit, p=path: handlers["other"](ctx, unit, p)))
    units.append(("system", lambda unit: handlers["system"](ctx, unit)))
    if ctx.engine_type.is_legacy:
        if ctx.data_file("Scripts").exists():
            units.append(("scripts", lambda unit: handlers["scripts"](ctx, unit)))
    elif ctx.paths.plugins_file.exists():
        units.append(("plugins", lambda unit: handlers["plugins"](ctx, unit)))
    return units


# ═══════════════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════════════


def _saved_entries(unit: UnitReport, path: Path, mode: ProcessingMode) -> list[LineEntry] | None | bool:
    """Apply the processing mode to an existing line file.

    Returns:
        False when the unit must be skipped, the saved entries in append
        mode, None otherwise.

    Raises:
        MissingInputError: If append mode finds no saved file.
    """
    if mode == ProcessingMode.default and path.exists():
        unit.status = "skipped"
        unit.message = f"{path.name} already exists, use append or force mode"
        logger.info("%s", unit.message)
        return False
    if mode == ProcessingMode.append:
        if not path.exists():
            raise MissingInputError(f"{path.name} does not exist, nothing to append to")
        return read_line_file(path)
    return None


def _record_merge(unit: UnitReport, path: Path, extracted: int, merged) -> None:
    write_line_file(path, merged.entries)
    unit.extracted = extracted
    unit.added = merged.added
    unit.kept = merged.kept
    unit.dropped = len(merged.dropped)
    unit.written = merged.lines
    unit.status = "written"
    logger.info("Parsed %s: %d line(s)", path.name, merged.lines)


def _read_maps(ctx: _RunContext, unit: UnitReport) -> None:
    path = ctx.line_file("maps.txt")
    saved = _saved_entries(unit, path, ctx.options.processing_mode)
    if saved is False:
        return
    preserve = ctx.options.maps_processing_mode == MapsProcessingMode.preserve
    if preserve and ctx.options.ignore:
        logger.info("maps.txt: the ignore file does not apply in preserve mode")
    blocks = _extract_map_blocks(ctx, apply_ignore=ctx.options.ignore and not preserve)
    merged = merge_maps(
        blocks, saved, ctx.options.maps_processing_mode, ctx.options.processing_mode, path.name,
    )
    _record_merge(unit, path, sum(len(b.lines) for b in blocks), merged)


def _read_other(ctx: _RunContext, unit: UnitReport, data_file: Path) -> None:
    path = ctx.line_file(f"{_other_id(data_file)}.txt")
    saved = _saved_entries(unit, path, ctx.options.processing_mode)
    if saved is False:
        return
    lines = extract_other(
        ctx.document(data_file), data_file.name, ctx.engine_type, ctx.rules, ctx.romanize,
    )
    lines = ctx.filter_ignored(_other_id(data_file), lines)
    merged = merge(lines, saved, ctx.options.processing_mode, path.name)
    _record_merge(unit, path, len(lines), merged)


def _read_system(ctx: _RunContext, unit: UnitReport) -> None:
    path = ctx.line_file("system.txt")
    saved = _saved_entries(unit, path, ctx.options.processing_mode)
    if saved is False:
        return
    lines, title = _system_lines(ctx)
    lines = ctx.filter_ignored("system", lines)

    # The title is always the last entry, even when a body line has the same text.
    title_translation = ""
    if saved is not None:
        body = [e for e in saved if not e.is_comment]
        if body and body[-1].original == title:
            title_translation = body[-1].translation
        saved = body[:-1]
    merged = merge(lines, saved, ctx.options.processing_mode, path.name)
    merged.entries.append(LineEntry(title, title_translation))
    _record_merge(unit, path, len(lines) + 1, merged)


def _read_scripts(ctx: _RunContext, unit: UnitReport) -> None:
    path = ctx.line_file("scripts.txt")
    saved = _saved_entries(unit, path, ctx.options.processing_mode)
    if saved is False:
        return
    lines = extract_scripts(decode_scripts(_scripts_document(ctx)), ctx.romanize)
    lines = ctx.filter_ignored("scripts", lines)
    merged = merge(lines, saved, ctx.options.processing_mode, path.name)
    _record_merge(unit, path, len(lines), merged)


def _read_plugins(ctx: _RunContext, unit: UnitReport) -> None:
    path = ctx.line_file("plugins.txt")
    saved = _saved_entries(unit, path, ctx.options.processing_mode)
    if saved is False:
        return
    lines = extract_plugins(_plugins_document(ctx), ctx.romanize)
    merged = merge_sequence(
        (LineEntry(line) for line in lines), saved, ctx.options.processing_mode, path.name,
    )
    _record_merge(unit, path, len(lines), merged)


def _dump_json(ctx: _RunContext, unit: UnitReport) -> None:
    """Write a JSON copy of every decoded legacy data file."""
    json_dir = ctx.paths.json_dir
    json_dir.mkdir(parents=True, exist_ok=True)
    for path in sorted(ctx.decoded):
        target = json_dir / f"{path.stem}.json"
        target.write_text(marshal.to_json(ctx.document(path)), encoding="utf-8")
        unit.written += 1
    unit.status = "written"
    logger.info("Wrote %d JSON file(s) to %s", unit.written, json_dir)


_READ_HANDLERS = {
    "maps": _read_maps,
    "other": _read_other,
    "system": _read_system,
    "scripts": _read_scripts,
    "plugins": _read_plugins,
}


def read_game(
    paths: GamePaths,
    options: RunOptions,
    *,
    on_progress: ProgressCallback | None = None,
) -> RunResult:
    """Extract every translatable line of a game into line files."""
    paths.translation_dir.mkdir(parents=True, exist_ok=True)
    ctx = _start_run(paths, options)
    if options.ignore:
        ctx.ignored = load_ignore(paths.ignore_file)
    units = _unit_plan(ctx, _READ_HANDLERS)
    if options.generate_json and options.engine_type.is_legacy:
        units.append(("json", lambda unit: _dump_json(ctx, unit)))
    return _run_units("read", units, on_progress)


# ═══════════════════════════════════════════════════════════════════
# Write
# ═══════════════════════════════════════════════════════════════════


def _translation_entries(ctx: _RunContext, name: str) -> list[LineEntry]:
    path = ctx.line_file(name)
    if not path.exists():
        raise MissingInputError(f"{name} not found in {ctx.paths.translation_dir}")
    return read_line_file(path)


def _map_matchers(entries: list[LineEntry], maps_mode: MapsProcessingMode) -> Callable[[int], Matcher]:
    """Return a factory giving the matcher of each map number."""
    if maps_mode == MapsProcessingMode.default:
        shared = TableMatcher.from_entries(entries)
        return lambda number: shared

    per_map: dict[int, Matcher] = {}
    for number, block in split_map_blocks(entries):
        if number is None:
            continue
        if maps_mode == MapsProcessingMode.preserve:
            per_map[number] = QueueMatcher(block)
        else:
            per_map[number] = TableMatcher.from_entries(block)
    empty = TableMatcher({})
    return lambda number: per_map.get(number, empty)


def _write_maps(ctx: _RunContext, unit: UnitReport) -> None:
    entries = _translation_entries(ctx, "maps.txt")
    names = display_names(entries)
    matcher_for = _map_matchers(entries, ctx.options.maps_processing_mode)

    def patch(path: Path) -> int:
        document = ctx.document(path)
        patched = apply_map(
            document, ctx.engine_type, matcher_for(map_number(path.stem)),
            names, ctx.rules, ctx.romanize,
        )
        save_path(document, ctx.paths.output_data_dir / path.name, ctx.engine_type)
        return patched

    # Every map owns its matcher or only reads a shared table, so maps run in parallel.
    with ThreadPoolExecutor(max_workers=ctx.options.max_workers) as pool:
        unit.written = sum(pool.map(patch, ctx.map_files))
    unit.status = "written"
    logger.info("Wrote %d map file(s)", len(ctx.map_files))


def _write_other(ctx: _RunContext, unit: UnitReport, data_file: Path) -> None:
    entries = _translation_entries(ctx, f"{_other_id(data_file)}.txt")
    matcher = TableMatcher.from_entries(entries)
    if not matcher.table:
        unit.status = "skipped"
        unit.message = "no translated lines"
        return
    document = ctx.document(data_file)
    unit.written = apply_other(
        document, data_file.name, ctx.engine_type, matcher.table, matcher, ctx.rules, ctx.romanize,
    )
    save_path(document, ctx.paths.output_data_dir / data_file.name, ctx.engine_type)
    unit.status = "written"


def _write_system(ctx: _RunContext, unit: UnitReport) -> None:
    entries = _translation_entries(ctx, "system.txt")
    body = [e for e in entries if not e.is_comment]
    title = body[-1].translation.strip() if body else ""
    table = TableMatcher.from_entries(body[:-1]).table
    path = ctx.data_file("System")
    document = ctx.document(path)
    unit.written = apply_system(document, ctx.engine_type, table, title, ctx.romanize)
    save_path(document, ctx.paths.output_data_dir / path.name, ctx.engine_type)
    unit.status = "written"


def _write_scripts(ctx: _RunContext, unit: UnitReport) -> None:
    table = TableMatcher.from_entries(_translation_entries(ctx, "scripts.txt")).table
    document = _scripts_document(ctx)
    scripts = decode_scripts(document)
    unit.written = apply_scripts(document, scripts, table, ctx.romanize)
    save_path(document, ctx.paths.output_data_dir / ctx.data_file("Scripts").name, ctx.engine_type)
    unit.status = "written"


def _write_plugins(ctx: _RunContext, unit: UnitReport) -> None:
    matcher = QueueMatcher(_translation_entries(ctx, "plugins.txt"))
    document = _plugins_document(ctx)
    unit.written = apply_plugins(document, matcher, ctx.romanize)
    out = ctx.paths.output_plugins_file
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(dump_plugins(document), encoding="utf-8")
    unit.status = "written"


_WRITE_HANDLERS = {
    "maps": _write_maps,
    "other": _write_other,
    "system": _write_system,
    "scripts": _write_scripts,
    "plugins": _write_plugins,
}


def write_game(
    paths: GamePaths,
    options: RunOptions,
    *,
    on_progress: ProgressCallback | None = None,
) -> RunResult:
    """Write translated copies of the game's data files into the output directory."""
    ctx = _start_run(paths, options)
    return _run_units("write", _unit_plan(ctx, _WRITE_HANDLERS), on_progress)


# ═══════════════════════════════════════════════════════════════════
# Purge
# ═══════════════════════════════════════════════════════════════════


def _finish_purge(
    ctx: _RunContext,
    unit: UnitReport,
    path: Path,
    result: PurgeResult,
    purge_options: PurgeOptions,
    ignore_ids: dict[str, list[str]],
) -> None:
    unit.purged = len(result.removed)
    unit.kept = sum(1 for e in result.entries if not e.is_comment)
    if purge_options.stat:
        append_stat(ctx.paths.stat_file, path.name, result.removed)
        unit.status = "skipped"
        unit.message = f"{unit.purged} stale line(s) reported"
        return
    write_line_file(path, result.entries)
    if purge_options.create_ignore:
        for file_id, originals in ignore_ids.items():
            if originals:
                append_ignore(ctx.paths.ignore_file, file_id, originals)
    unit.written = unit.kept
    unit.status = "written"
    logger.info("Purged %s: %d line(s) removed", path.name, unit.purged)


def _purge_maps(ctx: _RunContext, unit: UnitReport, purge_options: PurgeOptions) -> None:
    path = ctx.line_file("maps.txt")
    existing = _translation_entries(ctx, path.name)
    blocks = None if purge_options.purge_empty else _extract_map_blocks(ctx, apply_ignore=False)
    result = purge_maps(
        existing, blocks, ctx.options.maps_processing_mode,
        purge_options.leave_filled, purge_options.purge_empty,
    )

    # Removed originals are ignored for the map whose block they were saved under.
    owner = {
        id(entry): number
        for number, block in split_map_blocks(existing)
        for entry in block
    }
    ignore_ids: dict[str, list[str]] = {}
    for entry in result.removed:
        number = owner.get(id(entry))
        if number is not None:
            ignore_ids.setdefault(f"Map{number}", []).append(entry.original)
    _finish_purge(ctx, unit, path, result, purge_options, ignore_ids)


def _purge_table(
    ctx: _RunContext,
    unit: UnitReport,
    purge_options: PurgeOptions,
    file_id: str,
    fresh: Callable[[], list[str]],
) -> None:
    path = ctx.line_file(f"{file_id}.txt")
    existing = _translation_entries(ctx, path.name)
    lines = None if purge_options.purge_empty else fresh()
    result = purge(existing, lines, purge_options.leave_filled, purge_options.purge_empty)
    ignore_ids = {file_id: [e.original for e in result.removed]}
    _finish_purge(ctx, unit, path, result, purge_options, ignore_ids)


def _purge_handlers(purge_options: PurgeOptions) -> dict[str, Callable]:
    def other(ctx: _RunContext, unit: UnitReport, data_file: Path) -> None:
        _purge_table(ctx, unit, purge_options, _other_id(data_file), lambda: extract_other(
            ctx.document(data_file), data_file.name, ctx.engine_type, ctx.rules, ctx.romanize,
        ))

    def system(ctx: _RunContext, unit: UnitReport) -> None:
        def fresh() -> list[str]:
            lines, title = _system_lines(ctx)
            return [*lines, title]
        _purge_table(ctx, unit, purge_options, "system", fresh)

    def scripts(ctx: _RunContext, unit: UnitReport) -> None:
        _purge_table(ctx, unit, purge_options, "scripts", lambda: extract_scripts(
            decode_scripts(_scripts_document(ctx)), ctx.romanize,
        ))

    def plugins(ctx: _RunContext, unit: UnitReport) -> None:
        _purge_table(ctx, unit, purge_options, "plugins", lambda: extract_plugins(
            _plugins_document(ctx), ctx.romanize,
        ))

    return {
        "maps": lambda ctx, unit: _purge_maps(ctx, unit, purge_options),
        "other": other,
        "system": system,
        "scripts": scripts,
        "plugins": plugins,
    }


def purge_game(
    paths: GamePaths,
    options: RunOptions,
    purge_options: PurgeOptions,
    *,
    on_progress: ProgressCallback | None = None,
) -> RunResult:
    """Remove saved lines that no longer exist in the game."""
    if purge_options.stat and paths.stat_file.exists():
        paths.stat_file.unlink()
    ctx = _start_run(paths, options, decode=not purge_options.purge_empty)
    return _run_units("purge", _unit_plan(ctx, _purge_handlers(purge_options)), on_progress)


# ═══════════════════════════════════════════════════════════════════
# Scan
# ═══════════════════════════════════════════════════════════════════


def scan_file(
    path: Path,
    game_type: GameType | None = None,
    romanize: bool = False,
    rules_file: Path | None = None,
) -> list[str]:
    """Extract the lines of a single data file, duplicates included for maps.

    Raises:
        MissingInputError: If the file does not exist or has an unknown extension.
        DocumentError: If the file cannot be decoded.
    """
    if not path.is_file():
        raise MissingInputError(f"File not found: {path}")
    rules = load_rules(game_type, rules_file)
    if path.name == "plugins.js":
        document = parse_plugins(strip_bom(path.read_text(encoding="utf-8")))
        return extract_plugins(document, romanize)

    engine_type = engine_for_file(path)
    document = load_path(path, engine_type)
    stem = path.stem
    if _MAP_FILE_RE.match(stem):
        return extract_map(document, map_number(stem), engine_type, None, rules, romanize).lines
    if stem == "System":
        lines, title = extract_system(document, engine_type, romanize)
        return [*lines, title]
    if stem == "Scripts":
        return extract_scripts(decode_scripts(document), romanize)
    return extract_other(document, path.name, engine_type, rules, romanize)
