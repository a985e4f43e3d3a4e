from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A database URL is mandatory.
    - REDIS_URL is optional; without it uploads validate but cannot be committed.
    - Numeric CSV upload settings, when set, must be positive integers.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    cloud_database_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not (database_url or cloud_database_url or local_database_url):
        errors.append(
            "No database URL configured. Set DATABASE_URL, or configure "
            "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )

    # --- CSV upload limits ----------------------------------------------
    for name in (
        "CSV_UPLOAD_BATCH_SIZE",
        "CSV_UPLOAD_PROGRESS_INTERVAL_ROWS",
        "CSV_UPLOAD_MAX_FILE_BYTES",
    ):
        raw_value = os.getenv(name, "").strip()
        if raw_value and (not raw_value.isdigit() or int(raw_value) <= 0):
            errors.append(f"{name}='{raw_value}' is not a positive integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Fail startup unless the database answers and every upload table exists.

    Tables are created by Alembic only; run 'alembic upgrade head' first.
    """
    from sqlalchemy import inspect as sa_inspect
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    import db.models  # noqa: F401 registers the upload tables on Base.metadata
    from db.base import Base
    from db.session import get_engine

    log = logging.getLogger(__name__)
    engine = get_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            present = set(sa_inspect(connection).get_table_names())
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc
    log.info("Database connectivity confirmed")

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        log.critical(
            "Upload tables missing from the database: %s. Run 'alembic upgrade head' and restart.",
            ", ".join(missing),
        )
        raise RuntimeError(f"Missing upload tables: {', '.join(missing)}. Run migrations and restart.")
    log.info("Upload tables present: %d", len(Base.metadata.tables))


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema and connect Redis on boot; close Redis on exit."""
    from app.config import get_staging_settings
    from app.redis_client import close_redis, init_redis
    from app.services.csv_upload_service import get_csv_upload_service
    from db.session import dispose_engine

    log = logging.getLogger(__name__)
    _verify_database()

    client = init_redis(get_staging_settings())
    # The service captures the staging backend on first build.
    get_csv_upload_service.cache_clear()
    log.info("CSV upload staging backend: %s", "redis" if client is not None else "disabled")
    try:
        yield
    finally:
        await close_redis()
        get_csv_upload_service.cache_clear()
        dispose_engine()
        log.info("Redis and database connections closed")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="CSV Upload Ingestion API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import csv_upload_router, upload_events_router

    application.include_router(csv_upload_router)
    application.include_router(upload_events_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        from app.redis_client import get_redis

        return {
            "status": "ok",
            "staging": "redis" if get_redis() is not None else "disabled",
        }

    return application


app = create_app()
