"""
app/domain/errors.py

Exception taxonomy for the CSV upload pipeline.

Every error raised by parsing, validation, staging lookups, and commit derives
from ``CSVUploadError`` so route handlers can translate them in one place.
"""

from __future__ import annotations


class CSVUploadError(Exception):
    """Base exception for CSV upload pipeline failures."""


class ParseError(CSVUploadError):
    """Raised when the uploaded bytes cannot be decoded or parsed as CSV."""


class EmptyFileError(CSVUploadError):
    """Raised when a file parses to zero rows."""

    def __init__(self, message: str = "CSV file is empty or invalid") -> None:
        super().__init__(message)


class UnknownDataType(CSVUploadError):
    """Raised when a data type is not registered in the schema registry."""

    def __init__(self, data_type: str) -> None:
        super().__init__(f"Unknown data type: {data_type}")
        self.data_type = data_type


class NoStagedData(CSVUploadError):
    """Raised when commit is attempted without a staged validation result."""

    def __init__(self, upload_id: str) -> None:
        super().__init__(f"No processing result found for upload {upload_id}")
        self.upload_id = upload_id


class NoDataType(CSVUploadError):
    """Raised when the staged data type of an upload has expired or was never stored."""

    def __init__(self, upload_id: str) -> None:
        super().__init__(f"Data type not found for upload {upload_id}")
        self.upload_id = upload_id


class UploadNotCommittable(CSVUploadError):
    """Raised when a staged upload is not in the ``validated`` state."""

    def __init__(self, upload_id: str, status: str, reason: str | None = None) -> None:
        message = f"Upload {upload_id} cannot be committed from status '{status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.upload_id = upload_id
        self.status = status
        self.reason = reason


class CommitInProgress(CSVUploadError):
    """Raised when another commit already holds the lock for an upload."""

    def __init__(self, upload_id: str) -> None:
        super().__init__(f"A commit is already in progress for upload {upload_id}")
        self.upload_id = upload_id


class CommitBatchFailed(CSVUploadError):
    """
    Raised when a destination batch write fails mid-commit.

    Batches before ``batch_index`` (0-indexed) remain written; there is no
    cross-batch rollback, so ``committed_rows`` tells the caller how much of
    the upload reached the destination table.
    """

    def __init__(self, batch_index: int, committed_rows: int, reason: str) -> None:
        super().__init__(
            f"Database commit failed at batch {batch_index + 1}: {reason}"
        )
        self.batch_index = batch_index
        self.committed_rows = committed_rows
        self.reason = reason
