"""Background jobs that report to a polling foreground loop.

A job runs on a single daemon thread and talks to its owner only through a
queue: zero or more progress snapshots followed by exactly one result.
The owner drains the queue with :meth:`Job.poll`, which hands the result
over at most once.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from archtrim.core.engine import TrimEngine
from archtrim.models.app_entry import ApplicationEntry
from archtrim.models.progress import ScanProgress, TrimProgress
from archtrim.models.trim_result import TrimReport

log = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class _Progress:
    snapshot: Any


@dataclass(frozen=True, slots=True)
class _Finished:
    result: Any


@dataclass(slots=True)
class PollResult(Generic[P, R]):
    """What one drain of the job's channel produced."""

    progress: P | None = None
    result: R | None = None
    finished: bool = False


class Job(Generic[P, R]):
    """Runs *work* on a background thread.

    *work* receives a ``report(snapshot)`` callable and returns the result.
    If it raises, the exception is logged and no result is ever delivered.
    """

    def __init__(self, name: str, work: Callable[[Callable[[P], None]], R]) -> None:
        self.name = name
        self._work = work
        self._channel: queue.SimpleQueue[_Progress | _Finished] = queue.SimpleQueue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._delivered = False

    def start(self) -> Job[P, R]:
        self._thread.start()
        return self

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        try:
            result = self._work(self._report)
        except Exception:
            log.exception("Background job '%s' failed", self.name)
            return
        self._channel.put(_Finished(result))

    def _report(self, snapshot: P) -> None:
        self._channel.put(_Progress(snapshot))

    def poll(self) -> PollResult[P, R]:
        """Drain pending messages without blocking.

        Returns the most recent progress snapshot seen in this drain (if
        any) and the result, the first time it is drained.
        """
        polled: PollResult[P, R] = PollResult()
        while True:
            try:
                message = self._channel.get_nowait()
            except queue.Empty:
                break
            if isinstance(message, _Progress):
                polled.progress = message.snapshot
            elif not self._delivered:
                self._delivered = True
                polled.result = message.result
                polled.finished = True
        return polled


class ScanJob(Job[ScanProgress, list[ApplicationEntry]]):
    """Inventories applications in the background."""

    def __init__(self, engine: TrimEngine) -> None:
        super().__init__("scan", lambda report: engine.scan(on_progress=report))


class TrimJob(Job[TrimProgress, TrimReport]):
    """Trims the captured entries, then rescans, in the background."""

    def __init__(self, engine: TrimEngine, entries: list[ApplicationEntry], credential: str) -> None:
        super().__init__("trim", lambda report: engine.trim(entries, credential, on_progress=report))
