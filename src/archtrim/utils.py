"""Shared utility functions."""

from __future__ import annotations

import os
import shutil
from pathlib import Path


def has_command(name: str) -> bool:
    return shutil.which(name) is not None


def support_dir(override_env: str) -> Path:
    """Per-user archtrim directory.

    ``$<override_env>/archtrim`` when that variable is set, otherwise
    ``~/Library/Application Support/archtrim``.
    """
    base = os.environ.get(override_env)
    if base:
        return Path(base) / "archtrim"
    return Path.home() / "Library" / "Application Support" / "archtrim"


def format_size(size: int) -> str:
    """Render a byte count in Finder's decimal units."""
    if size < 1000:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1000
        if value < 1000:
            return f"{value:.1f} {unit}"
    return f"{value / 1000:.1f} TB"
