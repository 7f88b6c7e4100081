"""Tests for persisted settings."""

import json
from pathlib import Path

import pytest

from scriptorai_search.settings import (
    add_text,
    load_settings,
    remove_text,
    reset_settings,
    resolve_settings,
    save_settings,
    set_site_url,
    set_static_dir,
)


class TestLoadSave:
    """Tests for reading and writing settings.json."""

    def test_defaults_when_missing(self, config_dir: Path) -> None:
        settings = load_settings()
        assert settings.site_url == "https://scriptorai.sadalsvvd.com"
        assert not (config_dir / "settings.json").exists()

    def test_save_and_load(self, config_dir: Path) -> None:
        settings = load_settings()
        settings.static_dir = "/srv/static"
        save_settings(settings)

        data = json.loads((config_dir / "settings.json").read_text())
        assert data["static_dir"] == "/srv/static"
        assert load_settings().static_dir == "/srv/static"

    def test_corrupt_file_falls_back_to_defaults(self, config_dir: Path) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "settings.json").write_text("{not json")
        assert load_settings().site_url == "https://scriptorai.sadalsvvd.com"

    def test_invalid_file_falls_back_to_defaults(self, config_dir: Path) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "settings.json").write_text(json.dumps({"site_url": "not a url"}))
        assert load_settings().site_url == "https://scriptorai.sadalsvvd.com"


class TestEnvironmentOverrides:
    """Environment variables take precedence over the file."""

    def test_site_and_static_dir(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCRIPTORAI_SITE_URL", "http://localhost:4321/")
        monkeypatch.setenv("SCRIPTORAI_STATIC_DIR", "/tmp/static")

        settings = resolve_settings()

        assert settings.site_url == "http://localhost:4321"
        assert settings.static_dir == "/tmp/static"

    def test_no_overrides(self, config_dir: Path) -> None:
        assert resolve_settings() == load_settings()


class TestUpdates:
    """Tests for the settings update helpers."""

    def test_set_site_url(self, config_dir: Path) -> None:
        set_site_url("https://mirror.example.org/")
        assert load_settings().site_url == "https://mirror.example.org"

    def test_set_invalid_site_url(self, config_dir: Path) -> None:
        with pytest.raises(ValueError):
            set_site_url("mirror.example.org")

    def test_set_and_clear_static_dir(self, config_dir: Path) -> None:
        set_static_dir("/srv/static")
        assert load_settings().static_dir == "/srv/static"
        set_static_dir(None)
        assert load_settings().static_dir is None

    def test_add_text(self, config_dir: Path) -> None:
        settings = add_text("CCAG_2", "CCAG 2", select=True)

        source = settings.get_text("CCAG_2")
        assert source is not None
        assert source.index_path == "/texts_indices/CCAG_2.json"
        assert load_settings().default_texts == ["CCAG_1", "CCAG_2"]

    def test_add_duplicate_text(self, config_dir: Path) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            add_text("CCAG_1", "CCAG 1 again")

    def test_remove_text(self, config_dir: Path) -> None:
        add_text("CCAG_2", "CCAG 2", select=True)

        assert remove_text("CCAG_2") is True
        settings = load_settings()
        assert settings.get_text("CCAG_2") is None
        assert settings.default_texts == ["CCAG_1"]

    def test_remove_unknown_text(self, config_dir: Path) -> None:
        assert remove_text("CCAG_9") is False

    def test_reset(self, config_dir: Path) -> None:
        add_text("CCAG_2", "CCAG 2")
        reset_settings()
        assert [t.slug for t in load_settings().texts] == ["CCAG_1"]
