"""
Schemas for CSV upload, progress, commit, and history endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CSVUploadAcceptedResponse(BaseModel):
    message: str = "CSV upload accepted for processing"
    upload_id: str
    filename: str
    data_type: str
    status: str = "processing"


class ValidationIssueResponse(BaseModel):
    row: int
    column: str
    value: str | None = None
    message: str
    severity: str


class UploadProgressResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stage: str
    percentage: int
    message: str
    rows_processed: int | None = Field(default=None, alias="rowsProcessed")
    total_rows: int | None = Field(default=None, alias="totalRows")
    errors: list[ValidationIssueResponse] | None = None


class ProcessingResultResponse(BaseModel):
    upload_id: str
    filename: str
    data_type: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    errors: list[ValidationIssueResponse] = Field(default_factory=list)
    status: str
    preview: list[dict[str, Any]] = Field(default_factory=list)
    committed_rows: int | None = None


class CommitSummaryResponse(BaseModel):
    message: str
    upload_id: str
    data_type: str
    committed_rows: int
    skipped_rows: int
    batch_count: int


class UploadHistoryItem(BaseModel):
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


class UploadHistoryResponse(BaseModel):
    items: list[UploadHistoryItem] = Field(default_factory=list)
    total: int
    page: int
    page_size: int
