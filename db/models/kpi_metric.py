"""
db/models/kpi_metric.py

KPI metric rows committed from CSV uploads.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Float, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin


class KPIMetric(Base, UploadedRecordMixin):
    __tablename__ = "kpi_metrics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    metric_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    target: Mapped[float | None] = mapped_column(Float, nullable=True)
    period: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="YYYY-MM or YYYY-MM-DD",
    )
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_kpi_metrics_metric_name_period", "metric_name", "period"),
    )
