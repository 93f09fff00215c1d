"""Tests for privileged strip and ownership helpers."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from archtrim.core.privileges import (
    PrivilegeError,
    current_owner,
    restore_ownership,
    strip_architecture,
    sudo_available,
)

BINARY = Path("/Applications/Foo.app/Contents/MacOS/Foo")


class TestSudoAvailable:
    def test_available(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: "/usr/bin/sudo" if name == "sudo" else None)
        assert sudo_available() is True

    def test_not_available(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: None)
        assert sudo_available() is False


class TestStripArchitecture:
    def test_success(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
            strip_architecture(BINARY, "x86_64", "hunter2")

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] == ["sudo", "-S", "lipo", str(BINARY), "-remove", "x86_64", "-output", str(BINARY)]
        assert kwargs["input"] == "hunter2\n"

    def test_bad_password(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(
                args=[], returncode=1, stdout="", stderr="Sorry, try again."
            )
            with pytest.raises(PrivilegeError, match="exit 1"):
                strip_architecture(BINARY, "x86_64", "wrong")

    def test_timeout(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="sudo", timeout=300)
            with pytest.raises(PrivilegeError, match="timed out"):
                strip_architecture(BINARY, "x86_64", "pw")

    def test_sudo_missing(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("sudo")
            with pytest.raises(PrivilegeError, match="Could not run sudo"):
                strip_architecture(BINARY, "x86_64", "pw")


class TestRestoreOwnership:
    def test_uses_cached_credentials(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
            restore_ownership(BINARY)

        args, kwargs = mock_run.call_args
        assert args[0] == ["sudo", "-n", "chown", f"{os.getuid()}:{os.getgid()}", str(BINARY)]
        assert "input" not in kwargs
        assert kwargs["stdin"] is subprocess.DEVNULL

    def test_explicit_owner(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
            restore_ownership(BINARY, owner="501:20")

        assert mock_run.call_args[0][0][3] == "501:20"

    def test_expired_credentials(self):
        with patch("archtrim.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(
                args=[], returncode=1, stdout="", stderr="sudo: a password is required"
            )
            with pytest.raises(PrivilegeError, match="password is required"):
                restore_ownership(BINARY)

    def test_current_owner(self):
        assert current_owner() == f"{os.getuid()}:{os.getgid()}"
