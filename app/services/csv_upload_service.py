"""
app/services/csv_upload_service.py

Orchestrates the CSV upload lifecycle: submission, background parse and
validation into staging, client review, and commit.

    submit_upload   → stores the data type and schedules process_upload
    process_upload  → parsing (10%) → validating (30-90%) → completed (100%)
    commit_data     → committing (10-90%) → completed (100%)

Any failure is reported to the client as a ``failed`` progress update before
the exception propagates. Refused commits, including ones for unknown or
expired uploads, leave progress untouched.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks

from app.config import CSVUploadSettings, get_csv_upload_settings, get_staging_settings
from app.domain.csv_upload import (
    CommitSummary,
    ProcessingResult,
    StagedUpload,
    UploadHistoryEntry,
    UploadProgress,
    UploadStage,
    UploadStatus,
    build_preview,
)
from app.domain.errors import (
    CommitBatchFailed,
    CommitInProgress,
    EmptyFileError,
    NoDataType,
    NoStagedData,
    UploadNotCommittable,
)
from app.parsing.csv_parser import parse_csv
from app.redis_client import get_redis
from app.repositories.staging_store import StagingStore, build_staging_store
from app.repositories.upload_persistence import SQLAlchemyRecordWriter, SQLAlchemyUploadHistoryStore
from app.services.commit_engine import CommitEngine, RecordWriter, UploadHistoryStore
from app.services.progress_notifier import (
    NullProgressChannel,
    ProgressChannel,
    ProgressNotifier,
    RedisProgressChannel,
)
from app.validators.csv_validator import CSVUploadValidator
from app.validators.schema_registry import resolve_data_type

logger = logging.getLogger(__name__)


class UploadTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class UploadHistoryReader(Protocol):
    def list_uploads(
        self,
        *,
        uploaded_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[UploadHistoryEntry], int]:
        ...


class UploadHistoryBackend(UploadHistoryStore, UploadHistoryReader, Protocol):
    """History store that can both record and list uploads."""


class CSVUploadService:
    """
    Coordinates parsing, validation, staging, and commit of CSV uploads.
    """

    def __init__(
        self,
        *,
        staging_store: StagingStore,
        notifier: ProgressNotifier,
        record_writer: RecordWriter,
        history_store: UploadHistoryBackend,
        settings: CSVUploadSettings | None = None,
        validator: CSVUploadValidator | None = None,
    ) -> None:
        self._settings = settings or get_csv_upload_settings()
        self._staging_store = staging_store
        self._notifier = notifier
        self._history_store = history_store
        self._validator = validator or CSVUploadValidator(
            progress_interval_rows=self._settings.progress_interval_rows,
            log_issues=self._settings.log_validation_errors,
        )
        self._commit_engine = CommitEngine(
            staging_store=staging_store,
            notifier=notifier,
            record_writer=record_writer,
            history_store=history_store,
            batch_size=self._settings.batch_size,
        )

    # ------------------------------------------------------------------
    # Submission and processing
    # ------------------------------------------------------------------

    def submit_upload(
        self,
        *,
        filename: str,
        content: bytes,
        data_type: str,
        user_id: str,
        executor: UploadTaskExecutor,
    ) -> str:
        """
        Register a new upload and schedule background processing.

        Raises UnknownDataType before anything is stored. Returns the upload id.
        """

        resolved = resolve_data_type(data_type)
        upload_id = str(uuid.uuid4())
        self._staging_store.put_data_type(upload_id, resolved.value)

        try:
            executor.submit(
                self._run_processing_job,
                upload_id,
                filename,
                content,
                resolved.value,
                user_id,
            )
        except Exception as exc:
            self._notifier.report(upload_id, user_id, UploadProgress.failed(f"Processing failed: {exc}"))
            raise

        logger.info(
            "CSV upload accepted upload_id=%s filename=%s data_type=%s user_id=%s bytes=%s",
            upload_id,
            filename,
            resolved.value,
            user_id,
            len(content),
        )
        return upload_id

    def process_upload(
        self,
        upload_id: str,
        filename: str,
        content: bytes,
        data_type: str,
        user_id: str,
    ) -> ProcessingResult:
        try:
            self._report(upload_id, user_id, UploadStage.PARSING, 10, "Parsing CSV file...")
            rows = parse_csv(content)
            if not rows:
                raise EmptyFileError()

            total_rows = len(rows) - 1
            self._report(
                upload_id,
                user_id,
                UploadStage.VALIDATING,
                30,
                "Validating data...",
                rows_processed=0,
                total_rows=total_rows,
            )

            def _on_progress(rows_processed: int, total: int, percentage: int) -> None:
                self._report(
                    upload_id,
                    user_id,
                    UploadStage.VALIDATING,
                    percentage,
                    f"Validated {rows_processed} of {total} rows",
                    rows_processed=rows_processed,
                    total_rows=total,
                )

            validation = self._validator.validate(rows, data_type, on_progress=_on_progress)

            result = ProcessingResult(
                upload_id=upload_id,
                filename=filename,
                data_type=data_type,
                total_rows=total_rows,
                valid_rows=validation.valid_rows,
                invalid_rows=validation.invalid_rows,
                errors=validation.errors,
                status=UploadStatus.VALIDATED,
                preview=build_preview(rows, self._settings.preview_rows),
            )
            self._staging_store.put_result(upload_id, StagedUpload(result=result, raw_dataset=rows))

            self._notifier.report(
                upload_id,
                user_id,
                UploadProgress(
                    stage=UploadStage.COMPLETED,
                    percentage=100,
                    message=(
                        f"Validation complete: {validation.valid_rows} valid rows, "
                        f"{validation.invalid_rows} invalid rows"
                    ),
                    rows_processed=total_rows,
                    total_rows=total_rows,
                    errors=validation.errors[: self._settings.progress_error_limit],
                ),
            )
        except Exception as exc:
            self._notifier.report(upload_id, user_id, UploadProgress.failed(f"Processing failed: {exc}"))
            logger.exception("CSV processing failed upload_id=%s filename=%s", upload_id, filename)
            raise

        logger.info(
            "CSV upload validated upload_id=%s total_rows=%s valid_rows=%s invalid_rows=%s",
            upload_id,
            result.total_rows,
            result.valid_rows,
            result.invalid_rows,
        )
        return result

    def _run_processing_job(
        self,
        upload_id: str,
        filename: str,
        content: bytes,
        data_type: str,
        user_id: str,
    ) -> None:
        try:
            self.process_upload(upload_id, filename, content, data_type, user_id)
        except Exception:
            # Already logged and reported to the client by process_upload.
            return

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit_data(self, upload_id: str, user_id: str) -> CommitSummary:
        try:
            return self._commit_engine.commit(upload_id, user_id)
        except (NoStagedData, NoDataType, UploadNotCommittable, CommitInProgress) as exc:
            # Refusals leave progress untouched; unknown ids never gain a snapshot.
            logger.warning("CSV commit refused upload_id=%s: %s", upload_id, exc)
            raise
        except CommitBatchFailed:
            raise
        except Exception as exc:
            self._notifier.report(upload_id, user_id, UploadProgress.failed(f"Commit failed: {exc}"))
            logger.exception("CSV commit failed upload_id=%s", upload_id)
            raise

    # ------------------------------------------------------------------
    # Read / cleanup
    # ------------------------------------------------------------------

    def get_progress(self, upload_id: str) -> UploadProgress | None:
        return self._staging_store.get_progress(upload_id)

    def get_result(self, upload_id: str) -> ProcessingResult | None:
        staged = self._staging_store.get_result(upload_id)
        return staged.result if staged is not None else None

    def delete_upload(self, upload_id: str) -> None:
        self._staging_store.delete(upload_id)
        logger.info("CSV upload staging deleted upload_id=%s", upload_id)

    def list_history(
        self,
        *,
        uploaded_by: str | None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[UploadHistoryEntry], int]:
        offset = (max(1, page) - 1) * page_size
        return self._history_store.list_uploads(uploaded_by=uploaded_by, limit=page_size, offset=offset)

    def _report(
        self,
        upload_id: str,
        user_id: str,
        stage: str,
        percentage: int,
        message: str,
        *,
        rows_processed: int | None = None,
        total_rows: int | None = None,
    ) -> None:
        self._notifier.report(
            upload_id,
            user_id,
            UploadProgress(
                stage=stage,
                percentage=percentage,
                message=message,
                rows_processed=rows_processed,
                total_rows=total_rows,
            ),
        )


@lru_cache(maxsize=1)
def get_csv_upload_service() -> CSVUploadService:
    """
    Build the process-wide upload service from the Redis client created at startup.
    """

    staging_settings = get_staging_settings()
    client = get_redis()
    channel: ProgressChannel = (
        RedisProgressChannel(client, staging_settings.progress_channel)
        if client is not None
        else NullProgressChannel()
    )
    staging_store = build_staging_store(client, staging_settings)
    return CSVUploadService(
        staging_store=staging_store,
        notifier=ProgressNotifier(staging_store=staging_store, channel=channel),
        record_writer=SQLAlchemyRecordWriter(),
        history_store=SQLAlchemyUploadHistoryStore(),
    )
