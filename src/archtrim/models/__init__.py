"""archtrim data models."""

from archtrim.models.app_entry import (
    REMOVABLE_ARCH,
    REQUIRED_ARCH,
    ApplicationEntry,
    ArchitectureReport,
    ArchitectureSlice,
    ReportKind,
)
from archtrim.models.progress import ScanProgress, TrimProgress
from archtrim.models.trim_result import TrimOutcome, TrimReport

__all__ = [
    "REMOVABLE_ARCH",
    "REQUIRED_ARCH",
    "ApplicationEntry",
    "ArchitectureReport",
    "ArchitectureSlice",
    "ReportKind",
    "ScanProgress",
    "TrimOutcome",
    "TrimProgress",
    "TrimReport",
]
