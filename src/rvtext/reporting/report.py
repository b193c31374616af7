"""Run report data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class UnitReport:
    """Counts for one processing unit (maps, a data file, system, scripts, plugins)."""

    unit: str
    status: str = "pending"
    message: str = ""
    extracted: int = 0
    added: int = 0
    kept: int = 0
    dropped: int = 0
    written: int = 0
    purged: int = 0

    def to_dict(self) -> dict:
        return {
            "unit": self.unit,
            "status": self.status,
            "message": self.message,
            "extracted": self.extracted,
            "added": self.added,
            "kept": self.kept,
            "dropped": self.dropped,
            "written": self.written,
            "purged": self.purged,
        }


@dataclass
class RunReport:
    """Collects statistics about a read, write or purge run."""

    command: str = ""
    game_dir: str = ""
    engine: str = ""
    processing_mode: str = ""
    maps_processing_mode: str = ""
    game_type: str = ""
    romanize: bool = False

    units: list[UnitReport] = field(default_factory=list)

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def errors(self) -> list[str]:
        return [f"{u.unit}: {u.message}" for u in self.units if u.status == "error"]

    def total(self, counter: str) -> int:
        return sum(getattr(u, counter) for u in self.units)

    def finish(self) -> None:
        self.finished_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "game_dir": self.game_dir,
            "engine": self.engine,
            "processing_mode": self.processing_mode,
            "maps_processing_mode": self.maps_processing_mode,
            "game_type": self.game_type,
            "romanize": self.romanize,
            "units": [u.to_dict() for u in self.units],
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
        }
