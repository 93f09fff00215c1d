"""Discovery of application bundles and their primary executables."""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger(__name__)

APPLICATIONS_DIR = Path("/Applications")

BUNDLE_SUFFIX = ".app"

_EXECUTABLE_SUBPATH = Path("Contents") / "MacOS"


def find_bundles(directory: Path = APPLICATIONS_DIR) -> list[Path]:
    """Return the ``.app`` bundle directories directly inside *directory*."""
    try:
        items = sorted(directory.iterdir())
    except OSError:
        log.warning("Cannot read application directory: %s", directory)
        return []

    bundles: list[Path] = []
    for item in items:
        try:
            if item.name.endswith(BUNDLE_SUFFIX) and item.is_dir() and not item.is_symlink():
                bundles.append(item)
        except OSError:
            log.debug("Cannot access: %s", item)
    return bundles


def is_executable(path: Path) -> bool:
    """Check whether any execute permission bit is set on *path*."""
    try:
        return path.stat().st_mode & 0o111 != 0
    except OSError:
        return False


def find_executable(bundle: Path) -> Path | None:
    """Locate the primary executable of *bundle*.

    Prefers ``Contents/MacOS/<bundle name>``, then falls back to the first
    file in that directory with an execute bit set. A bundle whose contents
    cannot be read has no executable.
    """
    macos_dir = bundle / _EXECUTABLE_SUBPATH
    try:
        if not macos_dir.is_dir():
            return None

        named = macos_dir / bundle.name.removesuffix(BUNDLE_SUFFIX)
        if named.is_file():
            return named

        for candidate in sorted(macos_dir.iterdir()):
            if candidate.is_file() and is_executable(candidate):
                return candidate
    except OSError as exc:
        log.debug("Cannot read %s: %s", macos_dir, exc)
    return None
