"""
app/domain package marker.
"""

from app.domain.csv_upload import (
    CommitSummary,
    ProcessingResult,
    StagedUpload,
    UploadHistoryEntry,
    UploadProgress,
    UploadStage,
    UploadStatus,
    ValidationIssue,
    ValidationResult,
)
from app.domain.errors import (
    CommitBatchFailed,
    CommitInProgress,
    CSVUploadError,
    EmptyFileError,
    NoDataType,
    NoStagedData,
    ParseError,
    UnknownDataType,
    UploadNotCommittable,
)

__all__ = [
    "CommitBatchFailed",
    "CommitInProgress",
    "CommitSummary",
    "CSVUploadError",
    "EmptyFileError",
    "NoDataType",
    "NoStagedData",
    "ParseError",
    "ProcessingResult",
    "StagedUpload",
    "UnknownDataType",
    "UploadHistoryEntry",
    "UploadNotCommittable",
    "UploadProgress",
    "UploadStage",
    "UploadStatus",
    "ValidationIssue",
    "ValidationResult",
]
