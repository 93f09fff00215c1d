"""Foreground state machine driven by a polling front end.

The front end calls :meth:`Session.tick` once per loop iteration, renders
whatever the session exposes, and forwards user intents. While a job is
running it should wait for input at most :attr:`Session.poll_timeout`
seconds; once idle, the timeout is None and it may block.
"""

from __future__ import annotations

import logging
from enum import Enum

from archtrim.core.engine import TrimEngine
from archtrim.core.selection import SelectionModel, SortMode
from archtrim.core.tracker import Reclaimed, Tracker
from archtrim.core.worker import Job, ScanJob, TrimJob
from archtrim.models.app_entry import ApplicationEntry
from archtrim.models.progress import ScanProgress, TrimProgress
from archtrim.models.trim_result import TrimReport

log = logging.getLogger(__name__)

# Input wait while a background job is running (seconds).
POLL_INTERVAL = 0.05


class Phase(Enum):
    SCANNING = "scanning"
    READY = "ready"
    NOTHING_SELECTED = "nothing_selected"
    AWAITING_CREDENTIAL = "awaiting_credential"
    TRIMMING = "trimming"
    STOPPED = "stopped"


class Session:
    """Owns the selection model and at most one background job."""

    def __init__(
        self,
        engine: TrimEngine | None = None,
        selection: SelectionModel | None = None,
        tracker: Tracker | None = None,
    ) -> None:
        self.engine = engine or TrimEngine()
        self.selection = selection or SelectionModel()
        self.tracker = tracker
        self.phase = Phase.SCANNING
        self.scan_progress = ScanProgress()
        self.trim_progress = TrimProgress()
        self.last_report: TrimReport | None = None
        self.last_reclaimed: list[Reclaimed] = []
        self._credential = ""
        self._job: Job | None = None
        self._trimmed: list[ApplicationEntry] = []

    # -- Lifecycle --

    def start(self) -> None:
        """Kick off the initial scan."""
        self.phase = Phase.SCANNING
        self.scan_progress = ScanProgress()
        self._job = ScanJob(self.engine).start()

    @property
    def running(self) -> bool:
        return self.phase is not Phase.STOPPED

    @property
    def busy(self) -> bool:
        return self.phase in (Phase.SCANNING, Phase.TRIMMING)

    @property
    def poll_timeout(self) -> float | None:
        return POLL_INTERVAL if self.busy else None

    @property
    def credential_length(self) -> int:
        return len(self._credential)

    def tick(self) -> None:
        """Fold any pending job messages into the session state."""
        job = self._job
        if job is None:
            return
        polled = job.poll()

        if self.phase is Phase.SCANNING:
            if polled.progress is not None:
                self.scan_progress = polled.progress
            if polled.finished:
                self._job = None
                self.selection.replace(polled.result)
                self.phase = Phase.READY
        elif self.phase is Phase.TRIMMING:
            if polled.progress is not None:
                self.trim_progress = polled.progress
            if polled.finished:
                self._job = None
                self._finish_trim(polled.result)

    def _finish_trim(self, report: TrimReport) -> None:
        self.last_report = report
        if self.tracker is not None:
            self.last_reclaimed = self.tracker.record_trim(self._trimmed, report.entries)
            self.tracker.save_session()
        self._trimmed = []
        self.selection.replace(report.entries)
        self.phase = Phase.READY

    # -- Intents --

    def navigate(self, step: int) -> None:
        if self.phase is Phase.READY:
            self.selection.navigate(step)

    def toggle_current(self) -> None:
        if self.phase is Phase.READY:
            self.selection.toggle_current()

    def toggle_all(self) -> None:
        if self.phase is Phase.READY:
            self.selection.toggle_all()

    def set_filter(self, show_all: bool) -> None:
        if self.phase is Phase.READY:
            self.selection.set_filter(show_all)

    def set_sort(self, mode: SortMode) -> None:
        if self.phase is Phase.READY:
            self.selection.set_sort(mode)

    def supply_credential(self, chars: str) -> None:
        if self.phase is Phase.AWAITING_CREDENTIAL:
            self._credential += chars

    def erase_credential(self) -> None:
        if self.phase is Phase.AWAITING_CREDENTIAL:
            self._credential = self._credential[:-1]

    def confirm_trim(self) -> None:
        """Advance the confirmation gate (the Enter key)."""
        match self.phase:
            case Phase.READY:
                if self.selection.selected_entries():
                    self._credential = ""
                    self.phase = Phase.AWAITING_CREDENTIAL
                else:
                    self.phase = Phase.NOTHING_SELECTED
            case Phase.NOTHING_SELECTED:
                self.phase = Phase.READY
            case Phase.AWAITING_CREDENTIAL:
                if self._credential:
                    self._start_trim()

    def cancel(self) -> None:
        match self.phase:
            case Phase.NOTHING_SELECTED:
                self.phase = Phase.READY
            case Phase.AWAITING_CREDENTIAL:
                self._credential = ""
                self.phase = Phase.READY

    def quit(self) -> None:
        self.phase = Phase.STOPPED

    def _start_trim(self) -> None:
        entries = self.selection.selected_entries()
        credential, self._credential = self._credential, ""
        self._trimmed = entries
        self.trim_progress = TrimProgress(completed=0, total=len(entries))
        self.phase = Phase.TRIMMING
        log.info("Trimming %d applications", len(entries))
        self._job = TrimJob(self.engine, entries, credential).start()
