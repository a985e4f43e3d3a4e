"""
app/mappers/record_mapper.py

Row transforms from validated CSV field values to destination-table payloads.

Each transform receives a ``field -> raw cell`` mapping for one row that has
already passed validation, and returns the column payload for its table
(string → number / datetime parsing, empty optional fields coalesced to None).
Ownership columns (``uploaded_by``, ``created_at``) are added by the commit
engine, not here.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

RowTransform = Callable[[Mapping[str, str]], dict[str, Any]]

TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


# ---------------------------------------------------------------------------
# Scalar parsers shared with the schema validators
# ---------------------------------------------------------------------------


def parse_float(value: str) -> float | None:
    """
    Parse a finite decimal number, returning None when the text is not one.
    """

    try:
        parsed = Decimal(value.strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    number = float(parsed)
    # Out-of-range decimals overflow to inf, which a FLOAT column rejects.
    return number if math.isfinite(number) else None


def parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_timestamp(value: str) -> datetime | None:
    """
    Parse ISO-8601 (with optional trailing ``Z``) or one of TIMESTAMP_FORMATS.

    Naive values are assumed to be UTC.
    """

    raw = value.strip()
    if not raw:
        return None

    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except ValueError:
        pass

    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _optional_text(row: Mapping[str, str], name: str) -> str | None:
    value = (row.get(name) or "").strip()
    return value or None


def _optional_float(row: Mapping[str, str], name: str) -> float | None:
    value = _optional_text(row, name)
    return parse_float(value) if value is not None else None


def _optional_int(row: Mapping[str, str], name: str) -> int | None:
    value = _optional_text(row, name)
    return parse_int(value) if value is not None else None


def _enum_value(row: Mapping[str, str], name: str) -> str:
    return row[name].strip().lower()


def _optional_enum_value(row: Mapping[str, str], name: str) -> str | None:
    value = _optional_text(row, name)
    return value.lower() if value is not None else None


# ---------------------------------------------------------------------------
# Per data-type transforms
# ---------------------------------------------------------------------------


def transform_kpi_metric(row: Mapping[str, str]) -> dict[str, Any]:
    return {
        "metric_name": row["metric_name"].strip(),
        "value": parse_float(row["value"]),
        "target": _optional_float(row, "target"),
        "period": row["period"].strip(),
        "category": _optional_text(row, "category"),
        "description": _optional_text(row, "description"),
    }


def transform_content_performance(row: Mapping[str, str]) -> dict[str, Any]:
    return {
        "content_title": row["content_title"].strip(),
        "views": parse_int(row["views"]),
        "engagement_rate": _optional_float(row, "engagement_rate"),
        "revenue": _optional_float(row, "revenue"),
        "platform": _enum_value(row, "platform"),
        "duration": _optional_int(row, "duration"),
    }


def transform_risk(row: Mapping[str, str]) -> dict[str, Any]:
    return {
        "title": row["title"].strip(),
        "description": _optional_text(row, "description"),
        "severity": _enum_value(row, "severity"),
        "likelihood": _enum_value(row, "likelihood"),
        "category": _optional_enum_value(row, "category"),
        "mitigation": _optional_text(row, "mitigation"),
    }


def transform_bug_sprint(row: Mapping[str, str]) -> dict[str, Any]:
    return {
        "title": row["title"].strip(),
        "description": _optional_text(row, "description"),
        "severity": _enum_value(row, "severity"),
        "status": _enum_value(row, "status"),
        "sprint_name": _optional_text(row, "sprint_name"),
        "assignee": _optional_text(row, "assignee"),
        "priority": _optional_enum_value(row, "priority"),
    }


def transform_infra_metric(row: Mapping[str, str]) -> dict[str, Any]:
    return {
        "metric_name": row["metric_name"].strip(),
        "value": parse_float(row["value"]),
        "threshold": _optional_float(row, "threshold"),
        "timestamp": parse_timestamp(row["timestamp"]),
        "service": _optional_text(row, "service"),
        "environment": _optional_enum_value(row, "environment"),
    }
