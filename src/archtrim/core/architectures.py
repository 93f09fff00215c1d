"""Architecture introspection via ``lipo``.

``lipo -detailed_info`` prints a fat header for universal binaries::

    Fat header in: /Applications/Foo.app/Contents/MacOS/Foo
    fat_magic 0xcafebabe
    nfat_arch 2
    architecture x86_64
        cputype CPU_TYPE_X86_64
        ...
        size 9228032
        align 2^14 (16384)
    architecture arm64
        ...

and a short notice for single-architecture binaries::

    input file /Applications/Bar.app/Contents/MacOS/Bar is not a fat file
    Non-fat file: /Applications/Bar.app/Contents/MacOS/Bar is architecture: arm64

Anything else is treated as a failure and the binary is skipped.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from archtrim.models.app_entry import ArchitectureReport, ArchitectureSlice, ReportKind

log = logging.getLogger(__name__)

_NON_FAT_MARKERS = ("is not a fat file", "Non-fat file")
_ARCH_MARKER = "is architecture:"

# Lines after an "architecture" line searched for its "size" line.
_SIZE_LOOKAHEAD = 9

# Timeout for a single lipo invocation (seconds).
_LIPO_TIMEOUT = 60


def _run_lipo(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["lipo", *args],
        capture_output=True,
        text=True,
        errors="replace",
        timeout=_LIPO_TIMEOUT,
    )


def parse_detailed_info(text: str) -> list[ArchitectureSlice]:
    """Parse every ``architecture``/``size`` block of a fat header."""
    lines = text.splitlines()
    slices: list[ArchitectureSlice] = []

    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line.startswith("architecture "):
            continue
        name = line.removeprefix("architecture ").strip()

        size: int | None = None
        for follow in lines[i + 1 : i + 1 + _SIZE_LOOKAHEAD]:
            follow = follow.strip()
            if not follow.startswith("size "):
                continue
            parts = follow.split()
            # str.isdigit alone accepts superscripts, which int() rejects.
            if len(parts) >= 2 and parts[1].isascii() and parts[1].isdigit():
                size = int(parts[1])
                break

        slices.append(ArchitectureSlice(name=name, size_bytes=size))

    return slices


def parse_non_fat_architecture(text: str) -> str | None:
    """Extract the architecture name from a non-fat notice, if present."""
    for line in text.splitlines():
        if _ARCH_MARKER in line:
            arch = line.split(_ARCH_MARKER, 1)[1].strip()
            if arch:
                return arch
    return None


def is_non_fat_report(stdout: str, stderr: str) -> bool:
    return any(marker in stdout or marker in stderr for marker in _NON_FAT_MARKERS)


def _list_architectures(binary: Path) -> str | None:
    """Ask ``lipo -archs`` for the architecture of a thin binary."""
    try:
        proc = _run_lipo("-archs", str(binary))
    except (OSError, subprocess.TimeoutExpired) as exc:
        log.debug("lipo -archs failed for %s: %s", binary, exc)
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def _describe_non_fat(binary: Path, output: str) -> ArchitectureReport:
    arch = parse_non_fat_architecture(output) or _list_architectures(binary)
    if arch is None:
        return ArchitectureReport(ReportKind.FAILED, detail="thin binary with unknown architecture")
    return ArchitectureReport(ReportKind.NON_FAT, slices=(ArchitectureSlice(name=arch),))


def describe_architectures(binary: Path) -> ArchitectureReport:
    """Classify the ``lipo -detailed_info`` output for *binary*.

    Returns a FAT report with one slice per block, a NON_FAT report with a
    single size-less slice, or a FAILED report explaining why nothing could
    be extracted.
    """
    try:
        proc = _run_lipo("-detailed_info", str(binary))
    except (OSError, subprocess.TimeoutExpired) as exc:
        return ArchitectureReport(ReportKind.FAILED, detail=f"could not run lipo: {exc}")

    # lipo may exit 0 for thin binaries, so the markers win over the status.
    if is_non_fat_report(proc.stdout, proc.stderr):
        return _describe_non_fat(binary, proc.stdout or proc.stderr)

    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        return ArchitectureReport(ReportKind.FAILED, detail=f"lipo exit {proc.returncode}: {stderr}")

    slices = parse_detailed_info(proc.stdout)
    if not slices:
        return ArchitectureReport(ReportKind.FAILED, detail="no architectures in lipo output")
    return ArchitectureReport(ReportKind.FAT, slices=tuple(slices))
