"""CLI interface for archtrim."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime

import click

from archtrim.core.engine import TrimEngine
from archtrim.core.privileges import sudo_available
from archtrim.core.selection import SelectionModel, SortMode
from archtrim.core.session import Phase, Session
from archtrim.core.tracker import Tracker
from archtrim.models.app_entry import REMOVABLE_ARCH, ApplicationEntry
from archtrim.settings import DEFAULTS, Settings
from archtrim.utils import format_size, has_command


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_session(sort: str | None, show_all: bool | None, tracker: Tracker | None = None) -> Session:
    settings = Settings()
    try:
        mode = SortMode(sort or settings.get("view.sort"))
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid view.sort in %s", settings.path)
        mode = SortMode.SIZE
    if show_all is None:
        show_all = bool(settings.get("view.show_all"))
    return Session(TrimEngine(), SelectionModel(sort_mode=mode, show_all=show_all), tracker=tracker)


def _wait(session: Session, quiet: bool = False) -> None:
    """Foreground loop: drain the running job and redraw its progress line."""
    start = time.monotonic()
    while session.busy:
        session.tick()
        if not quiet:
            click.echo(f"\r{_progress_line(session)}\033[K", nl=False, err=True)
        timeout = session.poll_timeout
        if timeout is not None:
            time.sleep(timeout)
    if not quiet:
        click.echo(f"\r\033[K  done in {time.monotonic() - start:.1f}s", err=True)


def _progress_line(session: Session) -> str:
    if session.phase is Phase.SCANNING:
        p = session.scan_progress
        if not p.total:
            return "  Initializing..."
        return f"  Scanning {p.completed}/{p.total} ({p.fraction:.0%})"
    p = session.trim_progress
    if not p.completed:
        return "  Preparing..."
    return f"  Trimming {p.current_name} {p.completed}/{p.total} ({p.fraction:.0%})"


def _entry_json(entry: ApplicationEntry) -> dict:
    return {
        "name": entry.name,
        "bundle_path": str(entry.bundle_path),
        "executable_path": str(entry.executable_path),
        "architectures": [{"name": s.name, "size_bytes": s.size_bytes} for s in entry.slices],
        "eligible": entry.is_eligible,
        "removable_bytes": entry.removable_size,
    }


def _print_table(selection: SelectionModel) -> None:
    view = selection.view()
    if not view:
        click.echo(f"No applications carrying {REMOVABLE_ARCH} found.")
        return

    click.echo(f"\n      {'Name':30s}  {'Architectures':20s}  Prunable size")
    for i, entry in enumerate(view, 1):
        if entry.is_eligible:
            box = "[x]" if entry.selected else "[ ]"
            size = entry.removable_size
            size_str = click.style(format_size(size), fg="yellow") if size is not None else "N/A"
            name = entry.name
        else:
            box = click.style("[-]", fg="bright_black")
            size_str = click.style("N/A", fg="bright_black")
            name = click.style(f"{entry.name:30s}", fg="bright_black")
        click.echo(
            f"  {i:>3} {box} {name:30s}  {click.style(f'{entry.architectures_display:20s}', fg='cyan')}  {size_str}"
        )
    _print_summary(selection)


def _print_summary(selection: SelectionModel) -> None:
    click.echo(f"\n  Prunable applications: {click.style(str(selection.eligible_count), fg='cyan', bold=True)}")
    total = selection.total_removable_bytes
    click.echo(f"  Total prunable size:   {click.style(format_size(total), fg='yellow', bold=True)}")
    selected = selection.selected_entries()
    if selected:
        click.echo(f"  Selected:              {click.style(str(len(selected)), fg='green', bold=True)}")
        click.echo(
            f"  Prune size:            "
            f"{click.style(format_size(selection.selected_removable_bytes), fg='red', bold=True)}"
        )
    click.echo()


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """archtrim: strip unneeded x86_64 code from universal macOS apps."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.option("--show", type=click.Choice(["prunable", "all"]), default=None, help="Which apps to list")
@click.option("--sort", "-s", type=click.Choice([m.value for m in SortMode]), default=None, help="Sort order")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(show: str | None, sort: str | None, as_json: bool) -> None:
    """Inventory /Applications (preview only, never modifies anything)."""
    if not has_command("lipo"):
        click.echo("lipo not found; install the Xcode command line tools.", err=True)
        sys.exit(1)

    session = _build_session(sort, None if show is None else show == "all")
    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning applications...\n", err=True)
    session.start()
    _wait(session, quiet=as_json)

    if as_json:
        click.echo(json.dumps([_entry_json(e) for e in session.selection.view()], indent=2))
        return
    _print_table(session.selection)


# ── trim ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("names", nargs=-1)
@click.option("--all-eligible", "-a", is_flag=True, help=f"Trim every app carrying {REMOVABLE_ARCH}")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def trim(names: tuple[str, ...], all_eligible: bool, yes: bool) -> None:
    """Scan, then strip the x86_64 slice from the chosen apps."""
    if not has_command("lipo"):
        click.echo("lipo not found; install the Xcode command line tools.", err=True)
        sys.exit(1)

    tracker = Tracker()
    session = _build_session(None, False, tracker=tracker)
    click.echo(f"\n{click.style('🔍', bold=True)} Scanning applications...\n", err=True)
    session.start()
    _wait(session)

    selection = session.selection
    if names:
        missing = selection.select_names(set(names))
        for name in missing:
            click.echo(f"  {click.style('✗', fg='red')} {name}: not found or nothing to prune", err=True)
    elif all_eligible:
        selection.toggle_all()
    else:
        _print_table(selection)
        _interactive_select(selection)

    session.confirm_trim()
    if session.phase is Phase.NOTHING_SELECTED:
        click.echo("No applications selected.")
        session.confirm_trim()
        return

    selected = selection.selected_entries()
    click.echo(
        f"\n{click.style(f'{len(selected)} application(s) will be trimmed', fg='red', bold=True)} "
        f"({format_size(selection.selected_removable_bytes)})"
    )
    for entry in selected:
        click.echo(f"  {entry.name}")

    if not yes and not click.confirm("\nProceed?", default=False):
        session.cancel()
        click.echo("Aborted.")
        return

    if not sudo_available():
        click.echo("sudo not available.", err=True)
        sys.exit(1)

    credential = click.prompt("Password (sudo)", hide_input=True, default="", show_default=False)
    session.supply_credential(credential)
    session.confirm_trim()
    if session.phase is not Phase.TRIMMING:
        session.cancel()
        click.echo("No password given. Aborted.")
        return

    click.echo(f"\n{click.style('✂', bold=True)} Trimming...\n", err=True)
    _wait(session)

    report = session.last_report
    attempted = len(report.outcomes) if report else 0
    freed = sum(r.bytes_freed for r in session.last_reclaimed)
    click.echo(
        f"\n  Trimmed {click.style(str(len(session.last_reclaimed)), fg='green', bold=True)} of {attempted} "
        f"(reclaimed {click.style(format_size(freed), fg='green', bold=True)})"
    )
    _print_summary(selection)


def _interactive_select(selection: SelectionModel) -> None:
    """Let the user pick apps by their number in the table."""
    view = selection.view()
    raw = click.prompt("Select apps to trim (numbers, comma-separated, 'a' for all)", default="")
    if raw.strip().lower() == "a":
        selection.toggle_all()
        return
    chosen: set[str] = set()
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            idx = int(part) - 1
            if 0 <= idx < len(view):
                chosen.add(view[idx].name)
    selection.select_names(chosen)


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show reclaimed space statistics."""
    tracker = Tracker()
    data = tracker.get_stats(period)
    data["last_trim"] = tracker.get_last_trim_time()

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{click.style('📊', bold=True)} Statistics ({period})\n")
    click.echo(f"  Bytes reclaimed: {click.style(format_size(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Apps trimmed:    {data['apps_trimmed']:,}")
    click.echo(f"  Sessions:        {data['session_count']}")
    click.echo(f"  Lifetime total:  {click.style(format_size(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")
    if data["last_trim"]:
        last = datetime.fromisoformat(data["last_trim"]).astimezone()
        click.echo(f"  Last trim:       {last:%Y-%m-%d %H:%M}")

    if data["per_app"]:
        click.echo("\n  Per-app breakdown:")
        for name, freed in sorted(data["per_app"].items(), key=lambda x: x[1], reverse=True):
            click.echo(f"    {name:30s} {format_size(freed):>10s}")
    click.echo()


# ── config ───────────────────────────────────────────────────────────────

def _parse_setting(key: str, value: str) -> object:
    match key:
        case "view.sort":
            if value not in {m.value for m in SortMode}:
                raise click.BadParameter(f"expected one of: {', '.join(m.value for m in SortMode)}")
            return value
        case "view.show_all":
            lowered = value.lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise click.BadParameter("expected a boolean (on/off)")
    raise click.BadParameter(f"unknown setting '{key}'")


@main.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
def config(key: str | None, value: str | None) -> None:
    """Show or change default view settings."""
    settings = Settings()
    if key is None:
        for name in DEFAULTS:
            click.echo(f"  {name:16s} {settings.get(name)}")
        return
    if key not in DEFAULTS:
        click.echo(f"Unknown setting '{key}'.", err=True)
        sys.exit(1)
    if value is None:
        click.echo(settings.get(key))
        return
    settings.set(key, _parse_setting(key, value))
