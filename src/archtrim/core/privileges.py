"""Privileged file rewrites via sudo."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from archtrim.utils import has_command

log = logging.getLogger(__name__)

# Timeout for each sudo subprocess (seconds).
_SUDO_TIMEOUT = 300


class PrivilegeError(Exception):
    """Raised when a privileged operation fails."""


def sudo_available() -> bool:
    """Check if sudo is available on the system."""
    return has_command("sudo")


def current_owner() -> str:
    """Return ``uid:gid`` of the running process."""
    return f"{os.getuid()}:{os.getgid()}"


def strip_architecture(binary: Path, arch: str, credential: str) -> None:
    """Remove *arch* from *binary* in place with ``sudo -S lipo``.

    The credential is written to sudo's stdin as a single line, after
    which stdin is closed.

    Raises:
        PrivilegeError: On a missing tool, timeout or non-zero exit.
    """
    path = str(binary)
    try:
        proc = subprocess.run(
            ["sudo", "-S", "lipo", path, "-remove", arch, "-output", path],
            input=credential + "\n",
            capture_output=True,
            text=True,
            errors="replace",
            timeout=_SUDO_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise PrivilegeError("Strip timed out after 5 minutes")
    except OSError as exc:
        raise PrivilegeError(f"Could not run sudo: {exc}")

    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        raise PrivilegeError(f"Strip failed (exit {proc.returncode}): {stderr}")


def restore_ownership(binary: Path, owner: str | None = None) -> None:
    """Hand *binary* back to the current user with ``sudo -n chown``.

    Relies on the credential cached by a preceding ``sudo -S`` call;
    nothing is written to stdin.

    Raises:
        PrivilegeError: On a missing tool, timeout or non-zero exit.
    """
    owner = owner or current_owner()
    try:
        proc = subprocess.run(
            ["sudo", "-n", "chown", owner, str(binary)],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=_SUDO_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise PrivilegeError("Ownership restore timed out after 5 minutes")
    except OSError as exc:
        raise PrivilegeError(f"Could not run sudo: {exc}")

    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        raise PrivilegeError(f"Ownership restore failed (exit {proc.returncode}): {stderr}")
