"""
app/repositories/upload_persistence.py

SQLAlchemy-backed destination writer and upload history store.

Each destination batch runs in its own session and transaction, so a failed
batch rolls back alone while earlier batches stay committed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.csv_upload import UploadHistoryEntry
from db.models.csv_upload import CSVUpload
from db.repositories.csv_upload_repository import CSVUploadRepository
from db.repositories.errors import RecordWriteError, UploadHistoryError
from db.repositories.upload_record_repository import UploadRecordRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _default_session_factory() -> SessionFactory:
    from db.session import SessionLocal

    return SessionLocal


def _to_history_entry(upload: CSVUpload) -> UploadHistoryEntry:
    return UploadHistoryEntry(
        upload_id=upload.upload_id,
        filename=upload.filename,
        data_type=upload.data_type,
        total_rows=upload.total_rows,
        valid_rows=upload.valid_rows,
        invalid_rows=upload.invalid_rows,
        committed_rows=upload.committed_rows,
        status=upload.status,
        uploaded_by=upload.uploaded_by,
        error_message=upload.error_message,
        created_at=upload.created_at,
    )


class SQLAlchemyRecordWriter:
    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        self._session_factory = session_factory or _default_session_factory()

    def write_batch(self, data_type: str, records: Sequence[dict[str, Any]]) -> int:
        if not records:
            return 0

        db = self._session_factory()
        try:
            inserted = UploadRecordRepository(db).insert_records(data_type, records)
            db.commit()
            return inserted
        except SQLAlchemyError as exc:
            db.rollback()
            raise RecordWriteError(f"Failed to write {len(records)} {data_type} records: {exc}") from exc
        finally:
            db.close()


class SQLAlchemyUploadHistoryStore:
    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        self._session_factory = session_factory or _default_session_factory()

    def record_upload(self, entry: UploadHistoryEntry) -> None:
        db = self._session_factory()
        try:
            CSVUploadRepository(db).create_upload(
                upload_id=entry.upload_id,
                filename=entry.filename,
                data_type=entry.data_type,
                total_rows=entry.total_rows,
                valid_rows=entry.valid_rows,
                invalid_rows=entry.invalid_rows,
                committed_rows=entry.committed_rows,
                status=entry.status,
                uploaded_by=entry.uploaded_by,
                error_message=entry.error_message,
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise UploadHistoryError(f"Failed to record upload history for {entry.upload_id}") from exc
        finally:
            db.close()

    def list_uploads(
        self,
        *,
        uploaded_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[UploadHistoryEntry], int]:
        """
        Return one page of history (newest first) and the total row count.

        ``uploaded_by=None`` lists every user's uploads.
        """
        db = self._session_factory()
        try:
            repository = CSVUploadRepository(db)
            uploads = repository.list_uploads(uploaded_by=uploaded_by, limit=limit, offset=offset)
            total = repository.count_uploads(uploaded_by=uploaded_by)
            return [_to_history_entry(upload) for upload in uploads], total
        except SQLAlchemyError as exc:
            raise UploadHistoryError("Failed to read upload history") from exc
        finally:
            db.close()
