"""Shared test fixtures."""

from __future__ import annotations

import errno
from pathlib import Path

import pytest

import archtrim.storage as storage
from archtrim.core.privileges import PrivilegeError
from archtrim.models.app_entry import ApplicationEntry, ArchitectureReport, ArchitectureSlice, ReportKind

FAT_OUTPUT = """\
Fat header in: /Applications/NotchNook.app/Contents/MacOS/NotchNook
fat_magic 0xcafebabe
nfat_arch 2
architecture x86_64
    cputype CPU_TYPE_X86_64
    cpusubtype CPU_SUBTYPE_X86_64_ALL
    capabilities 0x0
    offset 16384
    size 9228032
    align 2^14 (16384)
architecture arm64
    cputype CPU_TYPE_ARM64
    cpusubtype CPU_SUBTYPE_ARM64_ALL
    capabilities 0x0
    offset 9256960
    size 8804432
    align 2^14 (16384)
"""

NON_FAT_OUTPUT = (
    "input file /Applications/Beekeeper Studio.app/Contents/MacOS/Beekeeper Studio is not a fat file\n"
    "Non-fat file: /Applications/Beekeeper Studio.app/Contents/MacOS/Beekeeper Studio is architecture: arm64\n"
)


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "archtrim_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture
def apps_dir(tmp_path):
    """An empty stand-in for /Applications."""
    path = tmp_path / "Applications"
    path.mkdir()
    return path


@pytest.fixture
def make_bundle(apps_dir):
    """Create ``<name>.app/Contents/MacOS/<executable>`` and return the bundle path."""

    def _make(name: str, executable: str | None = None, mode: int = 0o755) -> Path:
        bundle = apps_dir / f"{name}.app"
        macos = bundle / "Contents" / "MacOS"
        macos.mkdir(parents=True)
        exe = macos / (executable or name)
        exe.write_bytes(b"\xca\xfe\xba\xbe")
        exe.chmod(mode)
        return bundle

    return _make


def make_entry(name: str, *slices: tuple[str, int | None], selected: bool = False) -> ApplicationEntry:
    """Build an ApplicationEntry from ``(arch, size)`` pairs."""
    bundle = Path("/Applications") / f"{name}.app"
    return ApplicationEntry(
        name=name,
        bundle_path=bundle,
        executable_path=bundle / "Contents" / "MacOS" / name,
        slices=tuple(ArchitectureSlice(arch, size) for arch, size in slices),
        selected=selected,
    )


FAT_A = ArchitectureReport(
    ReportKind.FAT,
    slices=(ArchitectureSlice("x86_64", 9228032), ArchitectureSlice("arm64", 8804432)),
)
THIN_B = ArchitectureReport(ReportKind.NON_FAT, slices=(ArchitectureSlice("arm64", 5000000),))
FAILED = ArchitectureReport(ReportKind.FAILED, detail="lipo exit 1")
INTEL_ONLY = ArchitectureReport(ReportKind.NON_FAT, slices=(ArchitectureSlice("x86_64"),))
THIN_A = ArchitectureReport(ReportKind.NON_FAT, slices=(ArchitectureSlice("arm64"),))


class FakeLipo:
    """Stands in for describe_architectures, keyed by executable file name."""

    def __init__(self, reports: dict[str, ArchitectureReport]) -> None:
        self.reports = reports
        self.calls: list[Path] = []

    def __call__(self, binary: Path) -> ArchitectureReport:
        self.calls.append(binary)
        return self.reports.get(binary.name, FAILED)


class FakeSudo:
    """Records strip/chown invocations and fails the ones it is told to."""

    def __init__(self, lipo: FakeLipo | None = None, fail_strip: set[str] = frozenset(), fail_chown: bool = False):
        self.lipo = lipo
        self.fail_strip = fail_strip
        self.fail_chown = fail_chown
        self.calls: list[tuple] = []

    def strip(self, binary: Path, arch: str, credential: str) -> None:
        self.calls.append(("strip", binary.name, arch, credential))
        if binary.name in self.fail_strip:
            raise PrivilegeError("Strip failed (exit 1): Sorry, try again.")
        if self.lipo is not None:
            self.lipo.reports[binary.name] = THIN_A

    def chown(self, binary: Path, owner: str | None = None) -> None:
        self.calls.append(("chown", binary.name))
        if self.fail_chown:
            raise PrivilegeError("Ownership restore failed (exit 1): sudo: a password is required")


@pytest.fixture
def three_apps(make_bundle, monkeypatch):
    """Bundles A (fat), B (thin arm64) and C (introspection fails)."""
    make_bundle("A")
    make_bundle("B")
    make_bundle("C")
    lipo = FakeLipo({"A": FAT_A, "B": THIN_B, "C": FAILED})
    monkeypatch.setattr("archtrim.core.engine.describe_architectures", lipo)
    return lipo


@pytest.fixture
def sudo(three_apps, monkeypatch):
    fake = FakeSudo(lipo=three_apps)
    monkeypatch.setattr("archtrim.core.engine.strip_architecture", fake.strip)
    monkeypatch.setattr("archtrim.core.engine.restore_ownership", fake.chown)
    return fake


@pytest.fixture
def locked_bundle(make_bundle, monkeypatch):
    """A bundle whose Contents directory cannot be searched."""
    bundle = make_bundle("Locked")
    contents = bundle / "Contents"
    real_is_dir = Path.is_dir

    def is_dir(self, *args, **kwargs):
        if self == contents or contents in self.parents:
            raise PermissionError(errno.EACCES, "Permission denied", str(self))
        return real_is_dir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "is_dir", is_dir)
    return bundle
