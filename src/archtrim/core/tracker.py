"""Tracks reclaimed space across trim sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from archtrim.models.app_entry import ApplicationEntry
from archtrim import storage

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Reclaimed:
    """Space reclaimed from one application."""

    name: str
    bytes_freed: int


class Tracker:
    """Tracks and persists trim statistics."""

    def __init__(self) -> None:
        self._session: list[Reclaimed] = []

    def record_trim(self, trimmed: list[ApplicationEntry], rescanned: list[ApplicationEntry]) -> list[Reclaimed]:
        """Credit every trimmed entry whose removable slice is gone after the rescan.

        Entries whose size was unknown before the trim contribute nothing.
        """
        after = {e.executable_path: e for e in rescanned}
        reclaimed: list[Reclaimed] = []
        for entry in trimmed:
            size = entry.removable_size
            if not entry.is_eligible or size is None:
                continue
            later = after.get(entry.executable_path)
            if later is not None and later.is_eligible:
                log.debug("%s still carries its removable slice", entry.name)
                continue
            reclaimed.append(Reclaimed(name=entry.name, bytes_freed=size))
        self._session.extend(reclaimed)
        return reclaimed

    def get_last_trim_time(self) -> str | None:
        """Return ISO timestamp of the most recent trim session, or None."""
        sessions = storage.load_history().get("sessions", [])
        return sessions[-1]["timestamp"] if sessions else None

    def save_session(self) -> None:
        """Persist the current session to history."""
        if not self._session:
            return

        history = storage.load_history()
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": [{"name": r.name, "bytes_freed": r.bytes_freed} for r in self._session],
        }
        history.setdefault("sessions", []).append(entry)
        storage.save_history(history)

        log.info("Saved session: %d bytes reclaimed from %d apps", _session_bytes(entry), len(self._session))
        self._session.clear()

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        all_sessions = storage.load_history().get("sessions", [])

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [s for s in all_sessions if datetime.fromisoformat(s["timestamp"]) >= cutoff]
        else:
            sessions = all_sessions

        per_app: dict[str, int] = {}
        for session in sessions:
            for detail in session.get("details", []):
                per_app[detail["name"]] = per_app.get(detail["name"], 0) + detail.get("bytes_freed", 0)

        return {
            "period": period,
            "bytes_freed": sum(_session_bytes(s) for s in sessions),
            "apps_trimmed": sum(len(s.get("details", [])) for s in sessions),
            "session_count": len(sessions),
            "lifetime_bytes_freed": sum(_session_bytes(s) for s in all_sessions),
            "per_app": per_app,
        }


def _session_bytes(session: dict[str, Any]) -> int:
    """Derive total bytes reclaimed from a session's details."""
    return sum(d.get("bytes_freed", 0) for d in session.get("details", []))


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
