"""
tests/test_csv_validator.py

Pytest unit tests for CSVUploadValidator.

All tests are pure Python: parsed rows in, ValidationResult out.
"""

from __future__ import annotations

import pytest

from app.domain.csv_upload import Severity
from app.domain.errors import UnknownDataType
from app.validators.csv_validator import CSVUploadValidator, validation_percentage

KPI_HEADER = ("metric_name", "value", "period")


@pytest.fixture()
def validator() -> CSVUploadValidator:
    return CSVUploadValidator(progress_interval_rows=100)


# ---------------------------------------------------------------------------
# Row-level checks
# ---------------------------------------------------------------------------


class TestRowValidation:
    def test_counts_valid_and_invalid_rows(self, validator: CSVUploadValidator) -> None:
        rows = [
            KPI_HEADER,
            ("Revenue", "100", "2024-01"),
            ("Churn", "abc", "2024-01"),
            ("", "5", "2024-02-01"),
        ]

        result = validator.validate(rows, "kpi_metrics")

        assert result.valid_rows == 1
        assert result.invalid_rows == 2
        assert [(issue.row, issue.column, issue.message) for issue in result.errors] == [
            (3, "value", "Invalid value for 'value': abc"),
            (4, "metric_name", "Required field 'metric_name' is empty"),
        ]

    def test_valid_plus_invalid_equals_data_rows(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER] + [("m", str(i) if i % 3 else "x", "2024-01") for i in range(50)]

        result = validator.validate(rows, "kpi_metrics")

        assert result.valid_rows + result.invalid_rows == 50

    def test_empty_optional_cells_skip_predicates(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER + ("target",), ("Revenue", "100", "2024-01", "")]

        result = validator.validate(rows, "kpi_metrics")

        assert result.valid_rows == 1
        assert result.errors == []

    def test_short_row_reports_missing_required_cell(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER, ("Revenue", "100")]

        result = validator.validate(rows, "kpi_metrics")

        assert result.invalid_rows == 1
        assert result.errors[0].message == "Required field 'period' is empty"
        assert result.errors[0].row == 2

    def test_row_can_carry_multiple_errors(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER, ("", "abc", "2024")]

        result = validator.validate(rows, "kpi_metrics")

        assert result.invalid_rows == 1
        assert {issue.column for issue in result.errors} == {"metric_name", "value", "period"}
        assert {issue.row for issue in result.errors} == {2}

    def test_enumerations_match_case_insensitively(self, validator: CSVUploadValidator) -> None:
        rows = [("title", "severity", "likelihood"), ("Vendor outage", "HIGH", "Very_Low")]

        result = validator.validate(rows, "risks")

        assert result.valid_rows == 1
        assert result.errors == []

    def test_text_longer_than_its_column_is_invalid(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER, ("x" * 255, "1", "2024-01"), ("x" * 300, "1", "2024-01")]

        result = validator.validate(rows, "kpi_metrics")

        assert result.valid_rows == 1
        assert result.invalid_rows == 1
        assert [(issue.row, issue.column) for issue in result.errors] == [(3, "metric_name")]

    def test_integers_outside_their_column_range_are_invalid(self, validator: CSVUploadValidator) -> None:
        rows = [
            ("content_title", "views", "platform", "duration"),
            ("Pilot", "3000000000", "web", "3600"),
            ("Finale", "1000", "tv", "3000000000"),
        ]

        result = validator.validate(rows, "content_performance")

        assert result.valid_rows == 1
        assert [(issue.row, issue.column) for issue in result.errors] == [(3, "duration")]

    def test_header_only_file_has_no_rows(self, validator: CSVUploadValidator) -> None:
        result = validator.validate([KPI_HEADER], "kpi_metrics")

        assert (result.valid_rows, result.invalid_rows, result.errors) == (0, 0, [])


# ---------------------------------------------------------------------------
# Header-level checks
# ---------------------------------------------------------------------------


class TestHeaderValidation:
    def test_missing_required_column_is_reported_on_row_one(self, validator: CSVUploadValidator) -> None:
        rows = [("metric_name", "value"), ("Revenue", "100")]

        result = validator.validate(rows, "kpi_metrics")

        header_errors = [issue for issue in result.errors if issue.row == 1]
        assert len(header_errors) == 1
        assert header_errors[0].message == "Required column 'period' is missing"
        assert header_errors[0].severity == Severity.ERROR
        # Validation continues past header problems.
        assert result.valid_rows == 1

    def test_unknown_column_warns_once(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER + ("owner",)] + [("Revenue", "100", "2024-01", "ana")] * 3

        result = validator.validate(rows, "kpi_metrics")

        warnings = [issue for issue in result.errors if issue.severity == Severity.WARNING]
        assert len(warnings) == 1
        assert warnings[0].row == 1
        assert warnings[0].message == "Unknown column 'owner' will be ignored"

    def test_warnings_do_not_invalidate_rows(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER + ("owner",), ("Revenue", "100", "2024-01", "ana")]

        result = validator.validate(rows, "kpi_metrics")

        assert result.valid_rows == 1
        assert result.invalid_rows == 0
        assert not any(issue.is_error for issue in result.errors)

    def test_unknown_data_type_raises(self, validator: CSVUploadValidator) -> None:
        with pytest.raises(UnknownDataType):
            validator.validate([KPI_HEADER], "sales_leads")


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class TestValidationProgress:
    def test_reports_every_interval_within_30_to_90(self, validator: CSVUploadValidator) -> None:
        rows = [KPI_HEADER] + [("m", "1", "2024-01")] * 250
        calls: list[tuple[int, int, int]] = []

        validator.validate(rows, "kpi_metrics", on_progress=lambda *args: calls.append(args))

        assert calls == [(0, 250, 30), (100, 250, 54), (200, 250, 78)]

    def test_percentage_is_monotonic(self) -> None:
        percentages = [validation_percentage(i, 1000) for i in range(0, 1000, 100)]

        assert percentages == sorted(percentages)
        assert all(30 <= value <= 90 for value in percentages)

    def test_progress_callback_is_optional(self, validator: CSVUploadValidator) -> None:
        result = validator.validate([KPI_HEADER, ("m", "1", "2024-01")], "kpi_metrics")

        assert result.valid_rows == 1
