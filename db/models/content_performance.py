"""
db/models/content_performance.py

Content performance rows committed from CSV uploads.
"""

from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, Float, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin


class ContentPerformance(Base, UploadedRecordMixin):
    __tablename__ = "content_performance"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    content_title: Mapped[str] = mapped_column(String(500), nullable=False)
    views: Mapped[int] = mapped_column(BigInteger, nullable=False)
    engagement_rate: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Percentage, 0-100",
    )
    revenue: Mapped[float | None] = mapped_column(Float, nullable=True)
    platform: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="web, mobile, tv, ott",
    )
    duration: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Seconds",
    )

    __table_args__ = (
        Index("ix_content_performance_platform", "platform"),
    )
