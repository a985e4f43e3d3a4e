"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.bug_sprint import BugSprint
from db.models.content_performance import ContentPerformance
from db.models.csv_upload import CSVUpload
from db.models.infra_metric import InfraMetric
from db.models.kpi_metric import KPIMetric
from db.models.risk import Risk

__all__ = [
    "BugSprint",
    "ContentPerformance",
    "CSVUpload",
    "InfraMetric",
    "KPIMetric",
    "Risk",
]
