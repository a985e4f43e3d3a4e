"""
Repository layer exports.
"""

from db.repositories.csv_upload_repository import CSVUploadRepository
from db.repositories.errors import (
    RecordWriteError,
    UnsupportedRecordType,
    UploadHistoryError,
    UploadRepositoryError,
)
from db.repositories.upload_record_repository import RECORD_MODELS, UploadRecordRepository

__all__ = [
    "CSVUploadRepository",
    "RECORD_MODELS",
    "RecordWriteError",
    "UnsupportedRecordType",
    "UploadHistoryError",
    "UploadRecordRepository",
    "UploadRepositoryError",
]
