"""
app/services package marker.
"""

from app.services.commit_engine import CommitEngine
from app.services.csv_upload_service import (
    CSVUploadService,
    FastAPIBackgroundTaskExecutor,
    get_csv_upload_service,
)
from app.services.progress_notifier import ProgressNotifier

__all__ = [
    "CommitEngine",
    "CSVUploadService",
    "FastAPIBackgroundTaskExecutor",
    "ProgressNotifier",
    "get_csv_upload_service",
]
