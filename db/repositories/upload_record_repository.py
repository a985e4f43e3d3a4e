"""
db/repositories/upload_record_repository.py

Bulk inserts of committed CSV records into their destination tables.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import insert
from sqlalchemy.orm import Session

from db.base import Base
from db.models.bug_sprint import BugSprint
from db.models.content_performance import ContentPerformance
from db.models.infra_metric import InfraMetric
from db.models.kpi_metric import KPIMetric
from db.models.risk import Risk
from db.repositories.errors import UnsupportedRecordType

RECORD_MODELS: dict[str, type[Base]] = {
    "kpi_metrics": KPIMetric,
    "content_performance": ContentPerformance,
    "risks": Risk,
    "bugs_sprints": BugSprint,
    "infra_metrics": InfraMetric,
}


def get_record_model(data_type: str) -> type[Base]:
    model = RECORD_MODELS.get(data_type)
    if model is None:
        raise UnsupportedRecordType(data_type)
    return model


class UploadRecordRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_records(self, data_type: str, records: Sequence[dict[str, Any]]) -> int:
        """
        Insert one batch of records into the table registered for ``data_type``.

        Returns the number of rows sent to the database.
        """
        if not records:
            return 0

        model = get_record_model(data_type)
        self._session.execute(insert(model), list(records))
        return len(records)
