"""Settings loading from the environment."""

from rideshare.config import Settings


def test_defaults_use_async_driver(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(_env_file=None)
    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.max_page_size == 50
    assert settings.search_timezone == "UTC"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///tmp/x.db")
    monkeypatch.setenv("MAX_PAGE_SIZE", "10")
    settings = Settings(_env_file=None)
    assert settings.database_url == "sqlite+aiosqlite:///tmp/x.db"
    assert settings.max_page_size == 10


def test_only_the_async_url_is_configurable():
    assert "database_url_sync" not in Settings.model_fields
