"""
app/domain/csv_upload.py

Domain models used by the CSV upload pipeline.

These are plain frozen dataclasses; each knows how to round-trip itself
through the JSON documents kept in the staging store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

ParsedRow = tuple[str, ...]


class UploadStage:
    """Progress stages reported to clients, in lifecycle order."""

    PARSING = "parsing"
    VALIDATING = "validating"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadStatus:
    """Lifecycle status of a staged upload: processing → validated → committed | failed."""

    PROCESSING = "processing"
    VALIDATED = "validated"
    COMMITTED = "committed"
    FAILED = "failed"


class Severity:
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """
    One header- or row-level finding.

    ``row`` is 1-based with the header counted as row 1, so the first data
    row is row 2.
    """

    row: int
    column: str
    value: str | None
    message: str
    severity: str = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "column": self.column,
            "value": self.value,
            "message": self.message,
            "severity": self.severity,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ValidationIssue:
        return cls(
            row=int(payload["row"]),
            column=str(payload["column"]),
            value=payload.get("value"),
            message=str(payload["message"]),
            severity=str(payload.get("severity", Severity.ERROR)),
        )


@dataclass(frozen=True)
class ValidationResult:
    """
    Aggregate outcome of validating one parsed dataset.
    """

    valid_rows: int
    invalid_rows: int
    errors: list[ValidationIssue] = field(default_factory=list)


@dataclass(frozen=True)
class UploadProgress:
    """
    Progress snapshot pushed to clients and kept in the staging store.
    """

    stage: str
    percentage: int
    message: str
    rows_processed: int | None = None
    total_rows: int | None = None
    errors: list[ValidationIssue] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape, omitting absent fields."""
        payload: dict[str, Any] = {
            "stage": self.stage,
            "percentage": self.percentage,
            "message": self.message,
        }
        if self.rows_processed is not None:
            payload["rowsProcessed"] = self.rows_processed
        if self.total_rows is not None:
            payload["totalRows"] = self.total_rows
        if self.errors is not None:
            payload["errors"] = [issue.to_dict() for issue in self.errors]
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> UploadProgress:
        errors = payload.get("errors")
        return cls(
            stage=str(payload["stage"]),
            percentage=int(payload["percentage"]),
            message=str(payload.get("message", "")),
            rows_processed=payload.get("rowsProcessed"),
            total_rows=payload.get("totalRows"),
            errors=[ValidationIssue.from_dict(item) for item in errors] if errors is not None else None,
        )

    @classmethod
    def failed(cls, message: str) -> UploadProgress:
        return cls(stage=UploadStage.FAILED, percentage=0, message=message)


@dataclass(frozen=True)
class ProcessingResult:
    """
    Validation outcome kept in staging for client review and later commit.
    """

    upload_id: str
    filename: str
    data_type: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    errors: list[ValidationIssue]
    status: str
    preview: list[dict[str, Any]] = field(default_factory=list)
    committed_rows: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "upload_id": self.upload_id,
            "filename": self.filename,
            "data_type": self.data_type,
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "errors": [issue.to_dict() for issue in self.errors],
            "status": self.status,
            "preview": self.preview,
            "committed_rows": self.committed_rows,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ProcessingResult:
        return cls(
            upload_id=str(payload["upload_id"]),
            filename=str(payload["filename"]),
            data_type=str(payload["data_type"]),
            total_rows=int(payload["total_rows"]),
            valid_rows=int(payload["valid_rows"]),
            invalid_rows=int(payload["invalid_rows"]),
            errors=[ValidationIssue.from_dict(item) for item in payload.get("errors", [])],
            status=str(payload["status"]),
            preview=list(payload.get("preview") or []),
            committed_rows=payload.get("committed_rows"),
        )

    def error_rows(self) -> set[int]:
        """Row numbers carrying at least one error-severity issue."""
        return {issue.row for issue in self.errors if issue.is_error}


@dataclass(frozen=True)
class StagedUpload:
    """
    Staging document: the processing result plus, until commit, the raw dataset.
    """

    result: ProcessingResult
    raw_dataset: list[ParsedRow] | None = None
    staged_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.result.to_dict(),
            "parsed_data": [list(row) for row in self.raw_dataset] if self.raw_dataset is not None else None,
            "timestamp": self.staged_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> StagedUpload:
        raw = payload.get("parsed_data")
        timestamp = payload.get("timestamp")
        return cls(
            result=ProcessingResult.from_dict(payload["result"]),
            raw_dataset=[tuple(str(cell) for cell in row) for row in raw] if raw is not None else None,
            staged_at=datetime.fromisoformat(timestamp) if timestamp else datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class CommitSummary:
    """
    End-of-commit summary returned to the caller.
    """

    upload_id: str
    data_type: str
    committed_rows: int
    skipped_rows: int
    batch_count: int


def build_preview(rows: Sequence[ParsedRow], limit: int) -> list[dict[str, Any]]:
    """
    Map the first ``limit`` data rows onto the header, tagging each with its row number.
    """

    if not rows:
        return []

    headers = rows[0]
    preview: list[dict[str, Any]] = []
    for index, row in enumerate(rows[1 : 1 + limit]):
        record: dict[str, Any] = {"_row_number": index + 2}
        for position, header in enumerate(headers):
            record[header] = row[position] if position < len(row) else ""
        preview.append(record)
    return preview


@dataclass(frozen=True)
class UploadHistoryEntry:
    """
    Permanent record of a finished commit attempt.
    """

    upload_id: str
    filename: str
    data_type: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    committed_rows: int
    status: str
    uploaded_by: str
    error_message: str | None = None
    created_at: datetime | None = None
