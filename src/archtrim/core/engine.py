"""Scanning and trimming orchestration engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from archtrim.core.architectures import describe_architectures
from archtrim.core.locator import APPLICATIONS_DIR, BUNDLE_SUFFIX, find_bundles, find_executable
from archtrim.core.privileges import PrivilegeError, restore_ownership, strip_architecture
from archtrim.models.app_entry import REMOVABLE_ARCH, ApplicationEntry
from archtrim.models.progress import ScanProgress, TrimProgress
from archtrim.models.trim_result import TrimOutcome, TrimReport

log = logging.getLogger(__name__)

ScanProgressCallback = Callable[[ScanProgress], None]
TrimProgressCallback = Callable[[TrimProgress], None]


class TrimEngine:
    """Orchestrates application scans and architecture trims."""

    def __init__(self, applications_dir: Path = APPLICATIONS_DIR) -> None:
        self.applications_dir = applications_dir

    def scan(self, on_progress: ScanProgressCallback | None = None) -> list[ApplicationEntry]:
        """Inventory the application directory.

        Progress is reported for every bundle before it is inspected, so it
        advances even for bundles that end up excluded. Only bundles whose
        executable has a native slice are kept.

        Args:
            on_progress: Optional callback receiving a ScanProgress per bundle.

        Returns:
            Entries sorted by name.
        """
        bundles = find_bundles(self.applications_dir)
        total = len(bundles)
        entries: list[ApplicationEntry] = []

        for index, bundle in enumerate(bundles):
            if on_progress:
                on_progress(ScanProgress(completed=index + 1, total=total))
            entry = self._inspect(bundle)
            if entry is not None:
                entries.append(entry)

        entries.sort(key=lambda e: e.name)
        log.info("Scan found %d native applications in %d bundles", len(entries), total)
        return entries

    def _inspect(self, bundle: Path) -> ApplicationEntry | None:
        name = bundle.name.removesuffix(BUNDLE_SUFFIX)

        executable = find_executable(bundle)
        if executable is None:
            log.debug("Skipping %s: no executable in Contents/MacOS", name)
            return None

        report = describe_architectures(executable)
        if not report.ok:
            log.info("Skipping %s: %s", name, report.detail)
            return None

        entry = ApplicationEntry(
            name=name,
            bundle_path=bundle,
            executable_path=executable,
            slices=report.slices,
        )
        if not entry.runs_natively:
            log.debug("Skipping %s: no native slice (%s)", name, entry.architectures_display)
            return None
        return entry

    def trim(
        self,
        entries: list[ApplicationEntry],
        credential: str,
        on_progress: TrimProgressCallback | None = None,
    ) -> TrimReport:
        """Strip the removable slice from every selected entry, then rescan.

        Entries are processed sequentially in the given order. A failed strip
        leaves that application untouched and the run moves on; the rescan
        is the only place the failure becomes visible.

        Args:
            entries: Candidates; only selected, eligible ones are trimmed.
            credential: sudo password, piped to the strip command.
            on_progress: Optional callback receiving a TrimProgress per entry.

        Returns:
            Per-entry outcomes and the rescanned entry set.
        """
        if not credential:
            raise ValueError("A credential is required to trim")

        targets = [e for e in entries if e.selected and e.is_eligible]
        outcomes: list[TrimOutcome] = []

        for index, entry in enumerate(targets):
            if on_progress:
                on_progress(TrimProgress(completed=index + 1, total=len(targets), current_name=entry.name))
            outcomes.append(self._trim_one(entry, credential))

        stripped = sum(1 for o in outcomes if o.stripped)
        log.info("Stripped %s from %d of %d applications", REMOVABLE_ARCH, stripped, len(targets))

        return TrimReport(outcomes=outcomes, entries=self.scan())

    @staticmethod
    def _trim_one(entry: ApplicationEntry, credential: str) -> TrimOutcome:
        """Strip then restore ownership; the second step runs only after a successful strip."""
        outcome = TrimOutcome(name=entry.name, executable_path=entry.executable_path)

        try:
            strip_architecture(entry.executable_path, REMOVABLE_ARCH, credential)
        except PrivilegeError as exc:
            log.warning("Could not trim %s: %s", entry.name, exc)
            outcome.detail = str(exc)
            return outcome
        outcome.stripped = True

        try:
            restore_ownership(entry.executable_path)
        except PrivilegeError as exc:
            # The binary is already rewritten; a root-owned file is left as is.
            log.info("Ownership of %s not restored: %s", entry.name, exc)
            outcome.ownership_restored = False
            outcome.detail = str(exc)
        else:
            outcome.ownership_restored = True

        return outcome
