"""Tests for the settings store."""

from __future__ import annotations

import json

from archtrim.settings import Settings


class TestSettings:
    def test_defaults_when_file_missing(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        assert settings.get("view.sort") == "size"
        assert settings.get("view.show_all") is False
        assert settings.get("unknown.key", 42) == 42

    def test_set_persists_nested(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        Settings(path).set("view.sort", "name")

        assert json.loads(path.read_text()) == {"view": {"sort": "name"}}
        assert Settings(path).get("view.sort") == "name"
        assert Settings(path).get("view.show_all") is False

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        settings = Settings(path)
        assert settings.get("view.sort") == "size"
        assert "Could not load settings" in caplog.text

    def test_mistyped_value_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"view": {"show_all": "yes", "sort": "name"}}))
        settings = Settings(path)
        assert settings.get("view.show_all") is False
        assert settings.get("view.sort") == "name"
