"""
db/session.py

Lazily built SQLAlchemy engine and session factory.

Every commit batch and every history write opens its own short-lived session,
so the pool has to cover concurrent commits plus request-scoped reads. Pool
sizing is read from DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT and
DB_POOL_RECYCLE; SQL_ECHO turns on statement logging.
"""

from __future__ import annotations

import os
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

_POOL_DEFAULTS = {
    "pool_size": ("DB_POOL_SIZE", 5),
    "max_overflow": ("DB_MAX_OVERFLOW", 10),
    "pool_timeout": ("DB_POOL_TIMEOUT", 30),
    "pool_recycle": ("DB_POOL_RECYCLE", 1800),
}

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _pool_options() -> dict[str, Any]:
    options: dict[str, Any] = {}
    for option, (env_name, default) in _POOL_DEFAULTS.items():
        raw_value = (os.getenv(env_name) or "").strip()
        options[option] = int(raw_value) if raw_value.isdigit() else default
    return options


def create_db_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        database_url,
        echo=(os.getenv("SQL_ECHO") or "").strip().lower() in {"1", "true", "yes", "on"},
        pool_pre_ping=True,
        **_pool_options(),
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """Open a new session on the shared engine, building both on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


def dispose_engine() -> None:
    """Release pooled connections; the next session builds a fresh engine."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
