"""Tests for application settings."""

from category_engine.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_postgres_url_from_parts(self):
        settings = Settings(
            db_url="",
            db_user="u",
            db_password="p",
            db_host="db",
            db_port=5433,
            db_name="blog",
        )

        assert settings.database_url == "postgresql+asyncpg://u:p@db:5433/blog"
        assert settings.is_sqlite is False

    def test_explicit_url_wins(self):
        settings = Settings(db_url="sqlite+aiosqlite:///./local.db")

        assert settings.database_url == "sqlite+aiosqlite:///./local.db"
        assert settings.is_sqlite is True

    def test_cache_disabled_without_redis_url(self):
        assert Settings(redis_url="").redis_url == ""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
