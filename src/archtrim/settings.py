"""Persistent defaults for the application list view.

Settings live in ``settings.json`` under the support directory, grouped by section,
so ``view.sort`` is stored as ``{"view": {"sort": ...}}``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from archtrim.utils import support_dir

log = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "view.sort": "size",
    "view.show_all": False,
}


def default_path() -> Path:
    return support_dir("XDG_CONFIG_HOME") / "settings.json"


class Settings:
    """View defaults read once at construction and written through on ``set``.

    Values whose type does not match the built-in default are ignored on read.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_path()
        self._sections: dict[str, dict[str, Any]] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        section, _, name = key.partition(".")
        fallback = DEFAULTS.get(key) if default is None else default
        value = self._sections.get(section, {}).get(name, fallback)
        if key in DEFAULTS and type(value) is not type(DEFAULTS[key]):
            log.warning("Ignoring %s=%r in %s", key, value, self._path)
            return fallback
        return value

    def set(self, key: str, value: Any) -> None:
        section, _, name = key.partition(".")
        self._sections.setdefault(section, {})[name] = value
        self._write()

    def _read(self) -> dict[str, dict[str, Any]]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return {}
        if not isinstance(raw, dict):
            log.warning("Could not load settings from %s: not an object", self._path)
            return {}
        return {k: v for k, v in raw.items() if isinstance(v, dict)}

    def _write(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._sections, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
