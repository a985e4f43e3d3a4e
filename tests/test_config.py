"""
tests/test_config.py

Environment-driven settings for the upload pipeline and its Redis staging.
"""

from __future__ import annotations

import pytest

from app.config import get_csv_upload_settings, get_staging_settings
from db.config import normalize_postgres_url, resolve_redis_url


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_csv_upload_settings.cache_clear()
    get_staging_settings.cache_clear()
    yield
    get_csv_upload_settings.cache_clear()
    get_staging_settings.cache_clear()


def test_upload_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CSV_UPLOAD_BATCH_SIZE", "CSV_UPLOAD_PROGRESS_INTERVAL_ROWS", "CSV_UPLOAD_MAX_FILE_BYTES"):
        monkeypatch.delenv(name, raising=False)

    settings = get_csv_upload_settings()

    assert settings.batch_size == 100
    assert settings.progress_interval_rows == 100
    assert settings.progress_error_limit == 10
    assert settings.max_file_size_bytes == 50 * 1024 * 1024


def test_upload_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CSV_UPLOAD_BATCH_SIZE", "250")
    monkeypatch.setenv("CSV_UPLOAD_LOG_VALIDATION_ERRORS", "yes")

    settings = get_csv_upload_settings()

    assert settings.batch_size == 250
    assert settings.log_validation_errors is True


def test_invalid_integers_fall_back_and_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CSV_UPLOAD_BATCH_SIZE", "lots")
    monkeypatch.setenv("CSV_UPLOAD_PROGRESS_INTERVAL_ROWS", "0")

    settings = get_csv_upload_settings()

    assert settings.batch_size == 100
    assert settings.progress_interval_rows == 1


def test_staging_ttls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
    monkeypatch.setenv("STAGING_RESULT_TTL_SECONDS", "600")

    settings = get_staging_settings()

    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.progress_ttl_seconds == 3600
    assert settings.result_ttl_seconds == 600
    assert settings.progress_channel == "csv:progress"


def test_redis_url_prefers_cloud_variable_in_cloud_environments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("CLOUD_REDIS_URL", "redis://cloud:6379/0")
    monkeypatch.setenv("LOCAL_REDIS_URL", "redis://localhost:6379/0")

    assert resolve_redis_url() == "redis://cloud:6379/0"


def test_postgres_urls_use_psycopg_driver() -> None:
    assert normalize_postgres_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_postgres_url("postgresql+psycopg://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
