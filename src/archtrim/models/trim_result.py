"""Trim result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from archtrim.models.app_entry import ApplicationEntry


@dataclass(slots=True)
class TrimOutcome:
    """What happened to one application during a trim run.

    ``ownership_restored`` is None when the ownership step never ran
    because the strip failed.
    """

    name: str
    executable_path: Path
    stripped: bool = False
    ownership_restored: bool | None = None
    detail: str = ""


@dataclass(slots=True)
class TrimReport:
    """Per-entry outcomes of a trim run plus the rescanned entry set."""

    outcomes: list[TrimOutcome] = field(default_factory=list)
    entries: list[ApplicationEntry] = field(default_factory=list)

    @property
    def stripped_count(self) -> int:
        return sum(1 for o in self.outcomes if o.stripped)
