"""
db/models/infra_metric.py

Infrastructure metric rows committed from CSV uploads.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin


class InfraMetric(Base, UploadedRecordMixin):
    __tablename__ = "infra_metrics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    metric_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    threshold: Mapped[float | None] = mapped_column(Float, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    service: Mapped[str | None] = mapped_column(String(255), nullable=True)
    environment: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="dev, staging, prod",
    )

    __table_args__ = (
        Index("ix_infra_metrics_metric_name_timestamp", "metric_name", "timestamp"),
    )
