"""
app/validators/csv_validator.py

Schema-driven validation of parsed CSV uploads.

Header problems are reported on row 1 and never stop validation, so a client
sees every problem in the file from a single pass. Data rows are numbered from
2. A row carrying at least one error-severity issue is invalid; warnings never
invalidate a row.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Sequence

from app.domain.csv_upload import ParsedRow, Severity, ValidationIssue, ValidationResult
from app.validators.schema_registry import DataType, DataTypeSchema, get_schema

logger = logging.getLogger(__name__)

HEADER_ROW_NUMBER = 1
FIRST_DATA_ROW_NUMBER = 2

VALIDATION_PROGRESS_START = 30
VALIDATION_PROGRESS_SPAN = 60

# (rows_processed, total_rows, percentage)
ValidationProgressCallback = Callable[[int, int, int], None]


def validation_percentage(rows_processed: int, total_rows: int) -> int:
    """
    Map validation progress into the 30-90 band of the upload lifecycle.
    """

    if total_rows <= 0:
        return VALIDATION_PROGRESS_START + VALIDATION_PROGRESS_SPAN
    return VALIDATION_PROGRESS_START + math.floor(
        rows_processed / total_rows * VALIDATION_PROGRESS_SPAN
    )


class CSVUploadValidator:
    """
    Validates parsed CSV rows against the registered schema of a data type.
    """

    def __init__(self, *, progress_interval_rows: int = 100, log_issues: bool = False) -> None:
        self.progress_interval_rows = max(1, progress_interval_rows)
        self.log_issues = log_issues

    def validate(
        self,
        rows: Sequence[ParsedRow],
        data_type: str | DataType,
        on_progress: ValidationProgressCallback | None = None,
    ) -> ValidationResult:
        schema = get_schema(data_type)
        if not rows:
            return ValidationResult(valid_rows=0, invalid_rows=0, errors=[])

        headers = rows[0]
        data_rows = rows[1:]
        total_rows = len(data_rows)

        issues: list[ValidationIssue] = []
        issues.extend(self._check_required_columns(schema, headers))
        issues.extend(self._check_unknown_columns(schema, headers))

        column_index = {header: position for position, header in enumerate(headers)}
        valid_rows = 0
        invalid_rows = 0

        for index, row in enumerate(data_rows):
            row_issues = self._validate_row(
                schema=schema,
                row=row,
                column_index=column_index,
                row_number=index + FIRST_DATA_ROW_NUMBER,
            )
            if any(issue.is_error for issue in row_issues):
                invalid_rows += 1
            else:
                valid_rows += 1
            issues.extend(row_issues)

            if on_progress is not None and index % self.progress_interval_rows == 0:
                on_progress(index, total_rows, validation_percentage(index, total_rows))

        if self.log_issues:
            for issue in issues:
                logger.debug(
                    "Validation issue row=%s column=%s severity=%s message=%s",
                    issue.row,
                    issue.column,
                    issue.severity,
                    issue.message,
                )

        logger.info(
            "Validated CSV upload data_type=%s total_rows=%s valid_rows=%s invalid_rows=%s issues=%s",
            schema.data_type.value,
            total_rows,
            valid_rows,
            invalid_rows,
            len(issues),
        )
        return ValidationResult(valid_rows=valid_rows, invalid_rows=invalid_rows, errors=issues)

    def _check_required_columns(
        self,
        schema: DataTypeSchema,
        headers: ParsedRow,
    ) -> list[ValidationIssue]:
        present = set(headers)
        return [
            ValidationIssue(
                row=HEADER_ROW_NUMBER,
                column=field_name,
                value=None,
                message=f"Required column '{field_name}' is missing",
            )
            for field_name in schema.required
            if field_name not in present
        ]

    def _check_unknown_columns(
        self,
        schema: DataTypeSchema,
        headers: ParsedRow,
    ) -> list[ValidationIssue]:
        known = schema.known_fields
        issues: list[ValidationIssue] = []
        seen: set[str] = set()
        for header in headers:
            if header in known or header in seen:
                continue
            seen.add(header)
            issues.append(
                ValidationIssue(
                    row=HEADER_ROW_NUMBER,
                    column=header,
                    value=None,
                    message=f"Unknown column '{header}' will be ignored",
                    severity=Severity.WARNING,
                )
            )
        return issues

    def _validate_row(
        self,
        *,
        schema: DataTypeSchema,
        row: ParsedRow,
        column_index: dict[str, int],
        row_number: int,
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        for field_name in schema.required:
            position = column_index.get(field_name)
            if position is None:
                continue
            if self._is_blank(self._cell(row, position)):
                issues.append(
                    ValidationIssue(
                        row=row_number,
                        column=field_name,
                        value="",
                        message=f"Required field '{field_name}' is empty",
                    )
                )

        for field_name, predicate in schema.validators.items():
            position = column_index.get(field_name)
            if position is None:
                continue
            value = self._cell(row, position)
            if self._is_blank(value):
                continue
            if not predicate(value):
                issues.append(
                    ValidationIssue(
                        row=row_number,
                        column=field_name,
                        value=value,
                        message=f"Invalid value for '{field_name}': {value}",
                    )
                )

        return issues

    @staticmethod
    def _cell(row: ParsedRow, position: int) -> str:
        return row[position] if position < len(row) else ""

    @staticmethod
    def _is_blank(value: str | None) -> bool:
        return value is None or not value.strip()
