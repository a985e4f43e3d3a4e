"""
app/config.py

Runtime settings for the upload pipeline, read once from the environment.

Malformed numeric values fall back to their defaults here; app.main rejects
them at startup so a misconfiguration is reported instead of silently ignored.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files, resolve_redis_url

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _env(name: str) -> str | None:
    """Stripped value of ``name``, or None when unset or blank."""
    load_env_files()
    value = (os.getenv(name) or "").strip()
    return value or None


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    return default if value is None else value.lower() in _TRUE_VALUES


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    value = _env(name)
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        parsed = default
    return max(minimum, parsed)


@dataclass(frozen=True)
class CSVUploadSettings:
    """
    Runtime settings for the CSV upload pipeline.
    """

    batch_size: int = 100
    progress_interval_rows: int = 100
    preview_rows: int = 10
    progress_error_limit: int = 10
    max_file_size_bytes: int = 50 * 1024 * 1024
    log_validation_errors: bool = False


@dataclass(frozen=True)
class StagingSettings:
    """
    Redis staging store and progress channel settings.

    ``redis_url`` is optional: without it the pipeline runs with a no-op
    staging store, so uploads validate but can never be committed.
    """

    redis_url: str | None = None
    progress_ttl_seconds: int = 3600
    result_ttl_seconds: int = 86400
    commit_lock_ttl_seconds: int = 900
    progress_channel: str = "csv:progress"
    socket_timeout_seconds: int = 5


@lru_cache(maxsize=1)
def get_csv_upload_settings() -> CSVUploadSettings:
    return CSVUploadSettings(
        batch_size=_env_int("CSV_UPLOAD_BATCH_SIZE", 100),
        progress_interval_rows=_env_int("CSV_UPLOAD_PROGRESS_INTERVAL_ROWS", 100),
        preview_rows=_env_int("CSV_UPLOAD_PREVIEW_ROWS", 10, minimum=0),
        progress_error_limit=_env_int("CSV_UPLOAD_PROGRESS_ERROR_LIMIT", 10, minimum=0),
        max_file_size_bytes=_env_int("CSV_UPLOAD_MAX_FILE_BYTES", 50 * 1024 * 1024),
        log_validation_errors=_env_bool("CSV_UPLOAD_LOG_VALIDATION_ERRORS", False),
    )


@lru_cache(maxsize=1)
def get_staging_settings() -> StagingSettings:
    return StagingSettings(
        redis_url=resolve_redis_url(),
        progress_ttl_seconds=_env_int("STAGING_PROGRESS_TTL_SECONDS", 3600),
        result_ttl_seconds=_env_int("STAGING_RESULT_TTL_SECONDS", 86400),
        commit_lock_ttl_seconds=_env_int("STAGING_COMMIT_LOCK_TTL_SECONDS", 900),
        progress_channel=_env("STAGING_PROGRESS_CHANNEL") or "csv:progress",
        socket_timeout_seconds=_env_int("REDIS_SOCKET_TIMEOUT_SECONDS", 5),
    )
