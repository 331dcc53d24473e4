"""Tests for settings loaded from the environment."""

import pytest

from tradebinder.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CATALOG_TTL_HOURS", raising=False)
        monkeypatch.delenv("EDITOR_PERMISSION", raising=False)

        settings = Settings(_env_file=None)

        assert settings.app_name == "TradeBinder"
        assert settings.catalog_ttl_hours == 24
        assert settings.catalog_base_url == "https://api.scryfall.com"
        assert settings.editor_permission == "CARD_EDITOR"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CATALOG_TTL_HOURS", "6")
        monkeypatch.setenv("CATALOG_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///binder.db")

        settings = Settings(_env_file=None)

        assert settings.catalog_ttl_hours == 6
        assert settings.catalog_timeout_seconds == 2.5
        assert settings.database_url == "sqlite+aiosqlite:///binder.db"
