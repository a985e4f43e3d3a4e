"""
Repository-layer exceptions for CSV upload persistence.
"""

from __future__ import annotations


class UploadRepositoryError(Exception):
    """Base exception for upload repository failures."""


class RecordWriteError(UploadRepositoryError):
    """Raised when a batch of committed CSV records cannot be written."""


class UploadHistoryError(UploadRepositoryError):
    """Raised when an upload history row cannot be written or read."""


class UnsupportedRecordType(UploadRepositoryError):
    """Raised when no destination table is registered for a data type."""

    def __init__(self, data_type: str) -> None:
        super().__init__(f"No destination table registered for data type: {data_type}")
        self.data_type = data_type
