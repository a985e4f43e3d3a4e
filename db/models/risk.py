"""
db/models/risk.py

Risk register rows committed from CSV uploads.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin


class Risk(Base, UploadedRecordMixin):
    __tablename__ = "risks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="low, medium, high, critical",
    )
    likelihood: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="very_low, low, medium, high, very_high",
    )
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mitigation: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_risks_severity", "severity"),
    )
