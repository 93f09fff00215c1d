"""Selection, filtering and ordering of scanned applications."""

from __future__ import annotations

from enum import Enum

from archtrim.models.app_entry import ApplicationEntry


class SortMode(Enum):
    SIZE = "size"
    NAME = "name"


def _size_key(entry: ApplicationEntry) -> tuple:
    """Sized removable slices first (largest first), then size-less eligible, then the rest."""
    size = entry.removable_size
    if entry.is_eligible and size is not None:
        return (0, -size, "")
    if entry.is_eligible:
        return (1, 0, entry.name)
    return (2, 0, entry.name)


def sort_entries(entries: list[ApplicationEntry], mode: SortMode) -> None:
    """Sort *entries* in place; the sort is stable so ties keep their order."""
    if mode is SortMode.SIZE:
        entries.sort(key=_size_key)
    else:
        entries.sort(key=lambda e: e.name)


class SelectionModel:
    """Holds the scanned entries with a cursor, a filter and a sort mode.

    Storage order follows the active sort mode. The filter only changes
    which entries are visible; navigation and the cursor work on that
    visible projection.
    """

    def __init__(
        self,
        entries: list[ApplicationEntry] | None = None,
        sort_mode: SortMode = SortMode.SIZE,
        show_all: bool = False,
    ) -> None:
        self._entries: list[ApplicationEntry] = []
        self._sort_mode = sort_mode
        self._show_all = show_all
        self._cursor = 0
        self.replace(entries or [])

    # -- Projection --

    @property
    def entries(self) -> list[ApplicationEntry]:
        """All entries in storage order."""
        return list(self._entries)

    @property
    def sort_mode(self) -> SortMode:
        return self._sort_mode

    @property
    def show_all(self) -> bool:
        return self._show_all

    def view(self) -> list[ApplicationEntry]:
        if self._show_all:
            return list(self._entries)
        return [e for e in self._entries if e.is_eligible]

    @property
    def cursor(self) -> int | None:
        """Position of the cursor in the view, or None when the view is empty."""
        return self._cursor if self.view() else None

    @property
    def current(self) -> ApplicationEntry | None:
        view = self.view()
        if not view:
            return None
        return view[min(self._cursor, len(view) - 1)]

    # -- Mutators --

    def replace(self, entries: list[ApplicationEntry]) -> None:
        """Swap in a new entry set wholesale, keeping the active sort."""
        self._entries = list(entries)
        sort_entries(self._entries, self._sort_mode)
        self._cursor = 0

    def set_filter(self, show_all: bool) -> None:
        self._show_all = show_all
        self._cursor = 0

    def set_sort(self, mode: SortMode) -> None:
        self._sort_mode = mode
        sort_entries(self._entries, mode)
        self._cursor = 0

    def navigate(self, step: int) -> None:
        """Move the cursor by *step* within the view, wrapping at both ends."""
        count = len(self.view())
        if count == 0:
            return
        self._cursor = (self._cursor + step) % count

    def toggle_current(self) -> None:
        entry = self.current
        if entry is not None and entry.is_eligible:
            entry.selected = not entry.selected

    def toggle_all(self) -> None:
        """Select every eligible entry, or deselect all if they already are."""
        eligible = [e for e in self._entries if e.is_eligible]
        new_state = not all(e.selected for e in eligible)
        for entry in eligible:
            entry.selected = new_state

    def select_names(self, names: set[str]) -> list[str]:
        """Select eligible entries by name; return names with no eligible match."""
        found: set[str] = set()
        for entry in self._entries:
            if entry.name in names and entry.is_eligible:
                entry.selected = True
                found.add(entry.name)
        return sorted(names - found)

    # -- Queries --

    def selected_entries(self) -> list[ApplicationEntry]:
        """Selected eligible entries in storage order."""
        return [e for e in self._entries if e.selected and e.is_eligible]

    @property
    def eligible_count(self) -> int:
        return sum(1 for e in self._entries if e.is_eligible)

    @property
    def total_removable_bytes(self) -> int:
        return sum(e.removable_size or 0 for e in self._entries if e.is_eligible)

    @property
    def selected_removable_bytes(self) -> int:
        return sum(e.removable_size or 0 for e in self.selected_entries())
