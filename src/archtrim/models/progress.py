"""Progress snapshots published by background jobs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ScanProgress:
    """How many bundles the scan has reached out of the total."""

    completed: int = 0
    total: int = 0

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 0.0


@dataclass(frozen=True, slots=True)
class TrimProgress:
    """Position of the trim run and the application currently being trimmed."""

    completed: int = 0
    total: int = 0
    current_name: str = ""

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 0.0
