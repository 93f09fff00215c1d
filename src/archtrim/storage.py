"""Trim history on disk.

The history file holds one record per trim session:

    {"version": 1, "sessions": [{"timestamp": "...", "details": [{"name": "...", "bytes_freed": 0}]}]}
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any

from archtrim.utils import support_dir

log = logging.getLogger(__name__)

HISTORY_VERSION = 1

_DATA_DIR = support_dir("XDG_DATA_HOME")

HISTORY_FILE = _DATA_DIR / "history.json"


def _empty() -> dict[str, Any]:
    return {"version": HISTORY_VERSION, "sessions": []}


def load_history() -> dict[str, Any]:
    """Read the history file. A missing or unreadable file yields an empty history."""
    try:
        data = json.loads(HISTORY_FILE.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _empty()
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        log.exception("Failed to load history file: %s", HISTORY_FILE)
        return _empty()

    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        log.warning("Ignoring malformed history file: %s", HISTORY_FILE)
        return _empty()
    data["sessions"] = [s for s in data["sessions"] if isinstance(s, dict) and "timestamp" in s]
    return data


def save_history(data: dict[str, Any]) -> None:
    """Replace the history file atomically with *data*."""
    data.setdefault("version", HISTORY_VERSION)
    try:
        _DATA_DIR.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=_DATA_DIR, prefix=".history-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, HISTORY_FILE)
        except BaseException:
            os.unlink(tmp)
            raise
    except OSError:
        log.exception("Failed to save history file: %s", HISTORY_FILE)
