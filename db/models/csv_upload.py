"""
db/models/csv_upload.py

Permanent history of committed (or failed) CSV uploads.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CSVUploadStatus:
    COMMITTED = "committed"
    FAILED = "failed"


class CSVUpload(Base, TimestampMixin):
    __tablename__ = "csv_uploads"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    upload_id: Mapped[str] = mapped_column(String(64), nullable=False)
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    data_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="kpi_metrics, content_performance, risks, bugs_sprints, infra_metrics",
    )
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    valid_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    invalid_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    committed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="committed, failed",
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_by: Mapped[str] = mapped_column(String(128), nullable=False)

    __table_args__ = (
        Index("ix_csv_uploads_upload_id", "upload_id"),
        Index("ix_csv_uploads_uploaded_by", "uploaded_by"),
        Index("ix_csv_uploads_created_at", "created_at"),
    )
