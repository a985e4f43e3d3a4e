"""
Repository for the permanent CSV upload history.
"""

from __future__ import annotations

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from db.models.csv_upload import CSVUpload


class CSVUploadRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_upload(
        self,
        *,
        upload_id: str,
        filename: str,
        data_type: str,
        total_rows: int,
        valid_rows: int,
        invalid_rows: int,
        committed_rows: int,
        status: str,
        uploaded_by: str,
        error_message: str | None = None,
    ) -> CSVUpload:
        upload = CSVUpload(
            upload_id=upload_id,
            filename=filename,
            data_type=data_type,
            total_rows=total_rows,
            valid_rows=valid_rows,
            invalid_rows=invalid_rows,
            committed_rows=committed_rows,
            status=status,
            uploaded_by=uploaded_by,
            error_message=error_message,
        )
        self._session.add(upload)
        self._session.flush()
        return upload

    def list_uploads(
        self,
        *,
        uploaded_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[CSVUpload]:
        stmt: Select[tuple[CSVUpload]] = select(CSVUpload)
        if uploaded_by is not None:
            stmt = stmt.where(CSVUpload.uploaded_by == uploaded_by)

        stmt = (
            stmt.order_by(CSVUpload.created_at.desc())
            .offset(max(0, offset))
            .limit(max(1, limit))
        )
        return list(self._session.scalars(stmt).all())

    def count_uploads(self, *, uploaded_by: str | None = None) -> int:
        stmt = select(func.count()).select_from(CSVUpload)
        if uploaded_by is not None:
            stmt = stmt.where(CSVUpload.uploaded_by == uploaded_by)
        return int(self._session.scalar(stmt) or 0)
