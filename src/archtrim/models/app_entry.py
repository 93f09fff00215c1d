"""Application entry dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Slice removed by a trim.
REMOVABLE_ARCH = "x86_64"

# Prefix a slice must carry for the app to run natively (arm64, arm64e).
REQUIRED_ARCH = "arm64"


@dataclass(frozen=True, slots=True)
class ArchitectureSlice:
    """One architecture found inside a binary.

    ``size_bytes`` is None for single-architecture binaries, since lipo
    only reports slice sizes in a fat header.
    """

    name: str
    size_bytes: int | None = None


class ReportKind(Enum):
    FAT = "fat"
    NON_FAT = "non_fat"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ArchitectureReport:
    """Outcome of introspecting one executable."""

    kind: ReportKind
    slices: tuple[ArchitectureSlice, ...] = ()
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is not ReportKind.FAILED


@dataclass(slots=True)
class ApplicationEntry:
    """A discovered application bundle and the slices of its executable."""

    name: str
    bundle_path: Path
    executable_path: Path
    slices: tuple[ArchitectureSlice, ...] = field(default_factory=tuple)
    selected: bool = False

    @property
    def is_eligible(self) -> bool:
        """Whether the entry carries a removable slice and can be trimmed."""
        return any(s.name == REMOVABLE_ARCH for s in self.slices)

    @property
    def runs_natively(self) -> bool:
        return any(s.name.startswith(REQUIRED_ARCH) for s in self.slices)

    @property
    def removable_size(self) -> int | None:
        for s in self.slices:
            if s.name == REMOVABLE_ARCH:
                return s.size_bytes
        return None

    @property
    def architectures_display(self) -> str:
        return ", ".join(s.name for s in self.slices)
