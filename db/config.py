"""
Environment-driven connection settings for PostgreSQL and Redis.

Values come from the process environment, topped up from `.env` and
`.env.local` at the project root. Cloud-like deployments (ENVIRONMENT set to
prod, production, staging or cloud) read the CLOUD_* variants, everything
else the LOCAL_* ones; the plain variable always wins.
"""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files() -> None:
    """
    Export KEY=VALUE pairs from the project env files without overriding
    variables that are already set.
    """

    for filename in ENV_FILES:
        env_path = PROJECT_ROOT / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def is_cloud_environment() -> bool:
    return os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_ENVIRONMENTS


def _first_configured(prefix_less_name: str) -> str | None:
    """
    Return NAME, else CLOUD_NAME or LOCAL_NAME depending on the environment.
    """

    load_env_files()
    scoped = ("CLOUD_" if is_cloud_environment() else "LOCAL_") + prefix_less_name
    for name in (prefix_less_name, scoped):
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare postgres URLs to use SQLAlchemy's psycopg 3 driver.
    """

    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def resolve_database_url() -> str:
    url = _first_configured("DATABASE_URL")
    if url is None:
        # Local runs fall back to LOCAL_DATABASE_URL even in cloud-like environments.
        url = (os.getenv("LOCAL_DATABASE_URL") or "").strip() or None
    if url is None:
        raise RuntimeError(
            "No database URL configured. Set DATABASE_URL, or configure "
            "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )
    return normalize_postgres_url(url)


def resolve_redis_url() -> str | None:
    """
    Redis URL for upload staging and progress pub/sub, or None when unset.
    """

    return _first_configured("REDIS_URL")
