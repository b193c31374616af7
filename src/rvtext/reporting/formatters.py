"""Output formatters for run reports."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path

from rvtext.reporting.report import RunReport

_COUNTERS = ("extracted", "added", "kept", "dropped", "written", "purged")


def to_json(report: RunReport, indent: int = 2) -> str:
    """Format report as JSON string."""
    return json.dumps(report.to_dict(), indent=indent, default=str)


def to_markdown(report: RunReport) -> str:
    """Format report as Markdown."""
    lines = [
        f"# Run Report: {report.command}",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Game directory | `{report.game_dir}` |",
        f"| Engine | {report.engine} |",
        f"| Processing mode | {report.processing_mode} |",
        f"| Maps processing mode | {report.maps_processing_mode} |",
        f"| Game type | {report.game_type or '-'} |",
        f"| Romanize | {report.romanize} |",
        f"| Duration | {report.duration_seconds:.1f}s |",
        "",
        "## Units",
        "",
        "| Unit | Status | " + " | ".join(c.capitalize() for c in _COUNTERS) + " |",
        "|------|--------|" + "|".join("---:" for _ in _COUNTERS) + "|",
    ]
    for unit in report.units:
        counts = " | ".join(str(getattr(unit, c)) for c in _COUNTERS)
        lines.append(f"| {unit.unit} | {unit.status} | {counts} |")

    if report.errors:
        lines.extend([
            "",
            "## Errors",
            "",
        ])
        for err in report.errors:
            lines.append(f"- {err}")

    return "\n".join(lines) + "\n"


def to_csv(report: RunReport) -> str:
    """Format report as CSV, one row per unit."""
    output = io.StringIO()
    fieldnames = ["command", "engine", "unit", "status", *_COUNTERS, "message"]
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    for unit in report.units:
        row = unit.to_dict()
        row["command"] = report.command
        row["engine"] = report.engine
        writer.writerow(row)
    return output.getvalue()


def save_report(report: RunReport, path: str | Path) -> None:
    """Save report to file, auto-detecting format from extension."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        content = to_json(report)
    elif suffix in (".md", ".markdown"):
        content = to_markdown(report)
    elif suffix == ".csv":
        content = to_csv(report)
    else:
        content = to_json(report)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
