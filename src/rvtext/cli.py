"""CLI interface for rvtext using Typer."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from rvtext import __version__
from rvtext.core.constants import EngineType, GameType, MapsProcessingMode, ProcessingMode
from rvtext.core.errors import RvTextError


class EngineChoice(str, Enum):
    """User-facing engine selection (``auto`` inspects the data directory)."""
    auto = "auto"
    new = "new"
    vxace = "vxace"
    vx = "vx"
    xp = "xp"


app = typer.Typer(
    name="rvtext",
    help="Extract, merge and write back the text of RPG Maker games.",
    add_completion=False,
)
console = Console()

_verbose = False
_quiet = False


def _print(msg: str, *, verbose_only: bool = False) -> None:
    """Print respecting --verbose/--quiet flags. Errors bypass --quiet."""
    if _quiet:
        return
    if verbose_only and not _verbose:
        return
    console.print(msg)


def _setup_logging() -> None:
    level = logging.ERROR if _quiet else logging.INFO if _verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    if value:
        console.print(f"rvtext {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show per-file progress and timing.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show errors.",
    ),
) -> None:
    """rvtext: Translate RPG Maker games through plain-text line files."""
    global _verbose, _quiet
    _verbose = verbose
    _quiet = quiet
    _setup_logging()


# ── Shared helpers ──


def _prepare(
    game_dir: Path,
    engine: EngineChoice,
    translation_dir: Path | None,
    output_dir: Path | None,
):
    """Resolve paths and engine, exiting with code 1 on failure."""
    from rvtext.pipeline import detect_engine, resolve_paths

    try:
        paths = resolve_paths(game_dir, translation_dir, output_dir)
        engine_type = (
            detect_engine(paths.data_dir) if engine == EngineChoice.auto else EngineType(engine.value)
        )
    except RvTextError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _print(f"Engine: [cyan]{engine_type.value}[/cyan]", verbose_only=True)
    _print(f"Data: [cyan]{paths.data_dir}[/cyan]", verbose_only=True)
    return paths, engine_type


def _run_with_progress(description: str, run):
    """Run a pipeline function with a Rich progress bar over its units."""
    if _quiet:
        return run(None)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)

        def on_progress(phase: str, current: int, total: int, message: str) -> None:
            progress.update(task, completed=current, total=total, description=f"{description}: {message}")

        return run(on_progress)


def _summarize(command: str, result, report: Path | None, options, game_dir: Path) -> None:
    """Print the unit table, save the report and exit 1 when a unit failed."""
    if not _quiet:
        table = Table(title=f"{command.capitalize()} Summary")
        table.add_column("Unit", style="bold")
        table.add_column("Status")
        table.add_column("Lines", justify="right")
        table.add_column("Added", justify="right")
        table.add_column("Dropped", justify="right")
        table.add_column("Purged", justify="right")
        colors = {"written": "green", "skipped": "yellow", "error": "red"}
        for unit in result.units:
            color = colors.get(unit.status, "white")
            table.add_row(
                unit.unit,
                f"[{color}]{unit.status}[/{color}]",
                str(unit.written),
                str(unit.added),
                str(unit.dropped),
                str(unit.purged),
            )
        console.print(table)
        _print(f"Done in {result.elapsed_seconds:.1f}s", verbose_only=True)

    if report is not None:
        from rvtext.reporting.formatters import save_report
        from rvtext.reporting.report import RunReport

        run_report = RunReport(
            command=command,
            game_dir=str(game_dir),
            engine=options.engine_type.value,
            processing_mode=options.processing_mode.value,
            maps_processing_mode=options.maps_processing_mode.value,
            game_type=options.game_type.value if options.game_type else "",
            romanize=options.romanize,
            units=result.units,
        )
        run_report.finish()
        save_report(run_report, report)
        _print(f"Report saved to [cyan]{report}[/cyan]")

    if result.errors:
        err_table = Table(title="Errors")
        err_table.add_column("Unit", style="red")
        err_table.add_column("Error")
        for unit_id, err_msg in result.errors:
            err_table.add_row(unit_id, escape(err_msg))
        console.print(err_table)
        raise typer.Exit(1)


# ── Commands ──


_GAME_DIR = typer.Argument(..., help="Game root directory (contains data/ or www/data/).")
_ENGINE = typer.Option(EngineChoice.auto, "--engine", "-e", help="Engine: auto, new, vxace, vx, xp.")
_GAME = typer.Option(None, "--game", "-g", help="Enable title-specific rules: termina, lisarpg.")
_MAPS_MODE = typer.Option(
    MapsProcessingMode.default, "--maps-mode",
    help="Map lines: default (shared table), separate (per map), preserve (every occurrence).",
)
_ROMANIZE = typer.Option(False, "--romanize", help="Replace CJK punctuation with ASCII equivalents.")
_RULES = typer.Option(None, "--rules", help="Extra TOML rules file overriding the shipped rules.")
_TRANSLATION_DIR = typer.Option(
    None, "--translation-dir", "-t", help="Line files directory. Defaults to <game>/translation.",
)
_REPORT = typer.Option(None, "--report", "-r", help="Save report to file (json/md/csv).")


@app.command()
def read(
    game_dir: Path = _GAME_DIR,
    mode: ProcessingMode = typer.Option(
        ProcessingMode.default, "--mode", "-m",
        help="default (keep existing files), force (overwrite), append (merge new lines).",
    ),
    maps_mode: MapsProcessingMode = _MAPS_MODE,
    engine: EngineChoice = _ENGINE,
    game: GameType | None = _GAME,
    romanize: bool = _ROMANIZE,
    ignore: bool = typer.Option(False, "--ignore", help="Skip lines listed in .rvpacker-ignore."),
    generate_json: bool = typer.Option(
        False, "--generate-json", help="Also dump legacy data files as JSON into <translation dir>/../json.",
    ),
    rules: Path | None = _RULES,
    translation_dir: Path | None = _TRANSLATION_DIR,
    report: Path | None = _REPORT,
) -> None:
    """Extract the game's text into line files."""
    from rvtext.pipeline import RunOptions, read_game

    paths, engine_type = _prepare(game_dir, engine, translation_dir, None)
    options = RunOptions(
        engine_type=engine_type,
        processing_mode=mode,
        maps_processing_mode=maps_mode,
        game_type=game,
        romanize=romanize,
        ignore=ignore,
        rules_file=rules,
        generate_json=generate_json,
    )
    result = _run_with_progress("Reading", lambda cb: read_game(paths, options, on_progress=cb))
    _print(f"Line files in [cyan]{paths.translation_dir}[/cyan]")
    _summarize("read", result, report, options, game_dir)


@app.command()
def write(
    game_dir: Path = _GAME_DIR,
    maps_mode: MapsProcessingMode = _MAPS_MODE,
    engine: EngineChoice = _ENGINE,
    game: GameType | None = _GAME,
    romanize: bool = _ROMANIZE,
    rules: Path | None = _RULES,
    translation_dir: Path | None = _TRANSLATION_DIR,
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory. Defaults to <game>/output.",
    ),
    report: Path | None = _REPORT,
) -> None:
    """Write translated data files from the line files."""
    from rvtext.pipeline import RunOptions, write_game

    paths, engine_type = _prepare(game_dir, engine, translation_dir, output)
    options = RunOptions(
        engine_type=engine_type,
        maps_processing_mode=maps_mode,
        game_type=game,
        romanize=romanize,
        rules_file=rules,
    )
    result = _run_with_progress("Writing", lambda cb: write_game(paths, options, on_progress=cb))
    _print(f"Translated files in [cyan]{paths.output_dir}[/cyan]")
    _summarize("write", result, report, options, game_dir)


@app.command()
def purge(
    game_dir: Path = _GAME_DIR,
    maps_mode: MapsProcessingMode = _MAPS_MODE,
    engine: EngineChoice = _ENGINE,
    game: GameType | None = _GAME,
    romanize: bool = _ROMANIZE,
    leave_filled: bool = typer.Option(
        False, "--leave-filled", help="Keep stale lines that already have a translation.",
    ),
    purge_empty: bool = typer.Option(
        False, "--purge-empty", help="Remove untranslated lines instead of stale ones.",
    ),
    create_ignore: bool = typer.Option(
        False, "--create-ignore", help="Add removed lines to .rvpacker-ignore.",
    ),
    stat: bool = typer.Option(
        False, "--stat", help="Only report removable lines to stat.txt.",
    ),
    rules: Path | None = _RULES,
    translation_dir: Path | None = _TRANSLATION_DIR,
    report: Path | None = _REPORT,
) -> None:
    """Remove lines that no longer exist in the game from the line files."""
    from rvtext.pipeline import RunOptions, purge_game
    from rvtext.translation.purge import PurgeOptions

    paths, engine_type = _prepare(game_dir, engine, translation_dir, None)
    options = RunOptions(
        engine_type=engine_type,
        maps_processing_mode=maps_mode,
        game_type=game,
        romanize=romanize,
        rules_file=rules,
    )
    purge_options = PurgeOptions(
        leave_filled=leave_filled,
        purge_empty=purge_empty,
        create_ignore=create_ignore,
        stat=stat,
    )
    result = _run_with_progress(
        "Purging", lambda cb: purge_game(paths, options, purge_options, on_progress=cb),
    )
    if stat:
        _print(f"Removable lines listed in [cyan]{paths.stat_file}[/cyan]")
    _summarize("purge", result, report, options, game_dir)


@app.command()
def scan(
    file: Path = typer.Argument(..., help="Data file (MapNNN, Items, System, Scripts, plugins.js)."),
    game: GameType | None = _GAME,
    romanize: bool = _ROMANIZE,
    rules: Path | None = _RULES,
) -> None:
    """Scan a single data file and list its translatable lines."""
    from rvtext.pipeline import scan_file

    try:
        with console.status("Parsing..."):
            lines = scan_file(file, game, romanize, rules)
    except RvTextError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"Found [green]{len(lines)}[/green] translatable lines\n")

    table = Table(title=f"Translatable lines in {file.name}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Text")
    for i, line in enumerate(lines, start=1):
        table.add_row(str(i), escape(line.replace("\n", " ⏎ ")[:80]))

    console.print(table)
