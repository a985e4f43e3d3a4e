"""
app/services/commit_engine.py

Moves a validated, staged upload into its destination table.

Rows flagged with an error during validation are dropped, the rest are
transformed by the data type's schema and written in fixed-size batches.
Batches are independent transactions: when one fails the engine stops, leaves
earlier batches in place, and reports how many rows were committed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol, Sequence

from app.domain.csv_upload import (
    CommitSummary,
    ParsedRow,
    ProcessingResult,
    StagedUpload,
    UploadHistoryEntry,
    UploadProgress,
    UploadStage,
    UploadStatus,
)
from app.domain.errors import (
    CommitBatchFailed,
    CommitInProgress,
    NoDataType,
    NoStagedData,
    UploadNotCommittable,
)
from app.repositories.staging_store import StagingStore
from app.services.progress_notifier import ProgressNotifier
from app.validators.csv_validator import HEADER_ROW_NUMBER
from app.validators.schema_registry import DataTypeSchema, get_schema

logger = logging.getLogger(__name__)

COMMIT_PROGRESS_START = 10
COMMIT_PROGRESS_SPAN = 80


class RecordWriter(Protocol):
    def write_batch(self, data_type: str, records: Sequence[dict[str, Any]]) -> int:
        ...


class UploadHistoryStore(Protocol):
    def record_upload(self, entry: UploadHistoryEntry) -> None:
        ...


def commit_percentage(batches_done: int, batch_count: int) -> int:
    if batch_count <= 0:
        return COMMIT_PROGRESS_START + COMMIT_PROGRESS_SPAN
    return COMMIT_PROGRESS_START + math.floor(batches_done / batch_count * COMMIT_PROGRESS_SPAN)


def build_committable_rows(
    raw_dataset: Sequence[ParsedRow],
    error_rows: set[int],
) -> list[dict[str, str]]:
    """
    Map each data row without validation errors onto the header.

    Missing trailing cells become empty strings.
    """

    if not raw_dataset:
        return []

    headers = raw_dataset[0]
    rows: list[dict[str, str]] = []
    for index, row in enumerate(raw_dataset[1:]):
        if index + 2 in error_rows:
            continue
        rows.append(
            {
                header: row[position] if position < len(row) else ""
                for position, header in enumerate(headers)
            }
        )
    return rows


class CommitEngine:
    def __init__(
        self,
        *,
        staging_store: StagingStore,
        notifier: ProgressNotifier,
        record_writer: RecordWriter,
        history_store: UploadHistoryStore,
        batch_size: int = 100,
    ) -> None:
        self._staging_store = staging_store
        self._notifier = notifier
        self._record_writer = record_writer
        self._history_store = history_store
        self._batch_size = max(1, batch_size)

    def commit(self, upload_id: str, user_id: str) -> CommitSummary:
        # Fail fast on the unlocked snapshot, then re-check under the lock: a
        # competing commit may have finished between the read and the lock.
        self._load_committable(upload_id)

        if not self._staging_store.acquire_commit_lock(upload_id):
            raise CommitInProgress(upload_id)
        try:
            staged, schema = self._load_committable(upload_id)
            return self._commit_locked(
                upload_id=upload_id,
                user_id=user_id,
                staged=staged,
                schema=schema,
            )
        finally:
            self._staging_store.release_commit_lock(upload_id)

    def _load_committable(self, upload_id: str) -> tuple[StagedUpload, DataTypeSchema]:
        staged = self._staging_store.get_result(upload_id)
        if staged is None:
            raise NoStagedData(upload_id)

        data_type = self._staging_store.get_data_type(upload_id)
        if not data_type:
            raise NoDataType(upload_id)

        result = staged.result
        if result.status != UploadStatus.VALIDATED:
            raise UploadNotCommittable(upload_id, result.status)
        missing_columns = [
            issue.column
            for issue in result.errors
            if issue.row == HEADER_ROW_NUMBER and issue.is_error
        ]
        if missing_columns:
            raise UploadNotCommittable(
                upload_id,
                result.status,
                f"missing required columns: {', '.join(missing_columns)}",
            )
        if staged.raw_dataset is None:
            raise NoStagedData(upload_id)

        return staged, get_schema(data_type)

    def _commit_locked(
        self,
        *,
        upload_id: str,
        user_id: str,
        staged: StagedUpload,
        schema: DataTypeSchema,
    ) -> CommitSummary:
        result = staged.result
        data_type = schema.data_type.value

        self._notifier.report(
            upload_id,
            user_id,
            UploadProgress(
                stage=UploadStage.COMMITTING,
                percentage=COMMIT_PROGRESS_START,
                message="Committing data to database...",
            ),
        )

        committable = build_committable_rows(staged.raw_dataset or [], result.error_rows())
        records = [
            self._tag_record(schema.transform(row), upload_id=upload_id, user_id=user_id)
            for row in committable
        ]
        batches = [
            records[start : start + self._batch_size]
            for start in range(0, len(records), self._batch_size)
        ]
        skipped_rows = result.total_rows - len(records)

        committed_rows = 0
        for batch_index, batch in enumerate(batches):
            try:
                committed_rows += self._record_writer.write_batch(data_type, batch)
            except Exception as exc:
                self._fail_commit(
                    upload_id=upload_id,
                    user_id=user_id,
                    staged=staged,
                    batch_index=batch_index,
                    committed_rows=committed_rows,
                    reason=str(exc),
                )
                raise CommitBatchFailed(batch_index, committed_rows, str(exc)) from exc

            self._notifier.report(
                upload_id,
                user_id,
                UploadProgress(
                    stage=UploadStage.COMMITTING,
                    percentage=commit_percentage(batch_index + 1, len(batches)),
                    message=f"Committed batch {batch_index + 1} of {len(batches)}",
                    rows_processed=committed_rows,
                    total_rows=len(records),
                ),
            )

        self._notifier.report(
            upload_id,
            user_id,
            UploadProgress(
                stage=UploadStage.COMPLETED,
                percentage=100,
                message=f"Successfully committed {committed_rows} rows",
                rows_processed=committed_rows,
                total_rows=result.total_rows,
            ),
        )
        self._staging_store.put_result(
            upload_id,
            StagedUpload(
                result=replace(result, status=UploadStatus.COMMITTED, committed_rows=committed_rows),
                raw_dataset=None,
                staged_at=staged.staged_at,
            ),
        )
        self._record_history(result, committed_rows, UploadStatus.COMMITTED, user_id)

        logger.info(
            "CSV upload committed upload_id=%s data_type=%s committed_rows=%s skipped_rows=%s batches=%s",
            upload_id,
            data_type,
            committed_rows,
            skipped_rows,
            len(batches),
        )
        return CommitSummary(
            upload_id=upload_id,
            data_type=data_type,
            committed_rows=committed_rows,
            skipped_rows=skipped_rows,
            batch_count=len(batches),
        )

    def _fail_commit(
        self,
        *,
        upload_id: str,
        user_id: str,
        staged: StagedUpload,
        batch_index: int,
        committed_rows: int,
        reason: str,
    ) -> None:
        message = f"Database commit failed at batch {batch_index + 1}: {reason}"
        logger.error(
            "CSV commit aborted upload_id=%s batch_index=%s committed_rows=%s reason=%s",
            upload_id,
            batch_index,
            committed_rows,
            reason,
        )
        self._notifier.report(upload_id, user_id, UploadProgress.failed(f"Commit failed: {message}"))
        self._staging_store.put_result(
            upload_id,
            StagedUpload(
                result=replace(staged.result, status=UploadStatus.FAILED, committed_rows=committed_rows),
                raw_dataset=staged.raw_dataset,
                staged_at=staged.staged_at,
            ),
        )
        self._record_history(
            staged.result,
            committed_rows,
            UploadStatus.FAILED,
            user_id,
            error_message=message,
        )

    def _record_history(
        self,
        result: ProcessingResult,
        committed_rows: int,
        status: str,
        user_id: str,
        *,
        error_message: str | None = None,
    ) -> None:
        entry = UploadHistoryEntry(
            upload_id=result.upload_id,
            filename=result.filename,
            data_type=result.data_type,
            total_rows=result.total_rows,
            valid_rows=result.valid_rows,
            invalid_rows=result.invalid_rows,
            committed_rows=committed_rows,
            status=status,
            uploaded_by=user_id,
            error_message=error_message,
        )
        # Destination rows are already written at this point; a history
        # failure is logged and does not change the commit outcome.
        try:
            self._history_store.record_upload(entry)
        except Exception:
            logger.exception(
                "Failed to record upload history upload_id=%s status=%s",
                result.upload_id,
                status,
            )

    @staticmethod
    def _tag_record(record: dict[str, Any], *, upload_id: str, user_id: str) -> dict[str, Any]:
        tagged = dict(record)
        tagged["upload_id"] = upload_id
        tagged["uploaded_by"] = user_id
        tagged["created_at"] = datetime.now(timezone.utc)
        return tagged
