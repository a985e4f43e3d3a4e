"""
app/schemas package marker.
"""

from app.schemas.csv_upload import (
    CommitSummaryResponse,
    CSVUploadAcceptedResponse,
    ProcessingResultResponse,
    UploadHistoryItem,
    UploadHistoryResponse,
    UploadProgressResponse,
    ValidationIssueResponse,
)

__all__ = [
    "CommitSummaryResponse",
    "CSVUploadAcceptedResponse",
    "ProcessingResultResponse",
    "UploadHistoryItem",
    "UploadHistoryResponse",
    "UploadProgressResponse",
    "ValidationIssueResponse",
]
