"""
app/validators/schema_registry.py

Per data-type schemas: required and optional fields, value predicates, and the
row transform used at commit time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from app.domain.errors import UnknownDataType
from app.mappers.record_mapper import (
    RowTransform,
    parse_float,
    parse_int,
    parse_timestamp,
    transform_bug_sprint,
    transform_content_performance,
    transform_infra_metric,
    transform_kpi_metric,
    transform_risk,
)

FieldPredicate = Callable[[str], bool]

PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}(-\d{2})?$")

SEVERITY_LEVELS: tuple[str, ...] = ("low", "medium", "high", "critical")
LIKELIHOOD_LEVELS: tuple[str, ...] = ("very_low", "low", "medium", "high", "very_high")
RISK_CATEGORIES: tuple[str, ...] = ("technical", "business", "operational", "security")
BUG_STATUSES: tuple[str, ...] = ("open", "in_progress", "resolved", "closed")
BUG_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")
CONTENT_PLATFORMS: tuple[str, ...] = ("web", "mobile", "tv", "ott")
ENVIRONMENTS: tuple[str, ...] = ("dev", "staging", "prod")

INT32_MAX = 2**31 - 1
INT64_MAX = 2**63 - 1


class DataType(str, Enum):
    KPI_METRICS = "kpi_metrics"
    CONTENT_PERFORMANCE = "content_performance"
    RISKS = "risks"
    BUGS_SPRINTS = "bugs_sprints"
    INFRA_METRICS = "infra_metrics"


# ----- Predicates -----


def is_numeric(value: str) -> bool:
    return parse_float(value) is not None


def _int_within(value: str, upper: int) -> bool:
    parsed = parse_int(value)
    return parsed is not None and 0 <= parsed <= upper


def is_non_negative_int(value: str) -> bool:
    """Fits a PostgreSQL INTEGER column."""
    return _int_within(value, INT32_MAX)


def is_non_negative_bigint(value: str) -> bool:
    return _int_within(value, INT64_MAX)


def is_percentage(value: str) -> bool:
    parsed = parse_float(value)
    return parsed is not None and 0 <= parsed <= 100


def is_period(value: str) -> bool:
    return PERIOD_PATTERN.match(value.strip()) is not None


def is_timestamp(value: str) -> bool:
    return parse_timestamp(value) is not None


def one_of(allowed: tuple[str, ...]) -> FieldPredicate:
    """
    Build a case-insensitive membership predicate.
    """

    allowed_set = frozenset(allowed)

    def _predicate(value: str) -> bool:
        return value.strip().lower() in allowed_set

    return _predicate


def max_length(limit: int) -> FieldPredicate:
    """
    Build a predicate rejecting text longer than a VARCHAR(limit) column holds.
    """

    def _predicate(value: str) -> bool:
        return len(value.strip()) <= limit

    return _predicate


@dataclass(frozen=True)
class DataTypeSchema:
    """
    Validation rules and commit-time transform for one data type.

    Predicates only ever see non-empty cells; empty required cells are reported
    by the validator before a predicate is consulted. Length and range
    predicates mirror the destination column types.
    """

    data_type: DataType
    required: tuple[str, ...]
    optional: tuple[str, ...]
    transform: RowTransform
    validators: Mapping[str, FieldPredicate] = field(default_factory=dict)

    @property
    def known_fields(self) -> frozenset[str]:
        return frozenset(self.required) | frozenset(self.optional)


REGISTRY: dict[DataType, DataTypeSchema] = {
    DataType.KPI_METRICS: DataTypeSchema(
        data_type=DataType.KPI_METRICS,
        required=("metric_name", "value", "period"),
        optional=("target", "category", "description"),
        transform=transform_kpi_metric,
        validators={
            "metric_name": max_length(255),
            "category": max_length(100),
            "value": is_numeric,
            "target": is_numeric,
            "period": is_period,
        },
    ),
    DataType.CONTENT_PERFORMANCE: DataTypeSchema(
        data_type=DataType.CONTENT_PERFORMANCE,
        required=("content_title", "views", "platform"),
        optional=("engagement_rate", "revenue", "duration"),
        transform=transform_content_performance,
        validators={
            "content_title": max_length(500),
            "views": is_non_negative_bigint,
            "engagement_rate": is_percentage,
            "revenue": is_numeric,
            "platform": one_of(CONTENT_PLATFORMS),
            "duration": is_non_negative_int,
        },
    ),
    DataType.RISKS: DataTypeSchema(
        data_type=DataType.RISKS,
        required=("title", "severity", "likelihood"),
        optional=("description", "category", "mitigation"),
        transform=transform_risk,
        validators={
            "title": max_length(500),
            "severity": one_of(SEVERITY_LEVELS),
            "likelihood": one_of(LIKELIHOOD_LEVELS),
            "category": one_of(RISK_CATEGORIES),
        },
    ),
    DataType.BUGS_SPRINTS: DataTypeSchema(
        data_type=DataType.BUGS_SPRINTS,
        required=("title", "severity", "status"),
        optional=("description", "sprint_name", "assignee", "priority"),
        transform=transform_bug_sprint,
        validators={
            "title": max_length(500),
            "severity": one_of(SEVERITY_LEVELS),
            "status": one_of(BUG_STATUSES),
            "priority": one_of(BUG_PRIORITIES),
            "sprint_name": max_length(255),
            "assignee": max_length(255),
        },
    ),
    DataType.INFRA_METRICS: DataTypeSchema(
        data_type=DataType.INFRA_METRICS,
        required=("metric_name", "value", "timestamp"),
        optional=("threshold", "service", "environment"),
        transform=transform_infra_metric,
        validators={
            "metric_name": max_length(255),
            "value": is_numeric,
            "threshold": is_numeric,
            "timestamp": is_timestamp,
            "environment": one_of(ENVIRONMENTS),
            "service": max_length(255),
        },
    ),
}


def resolve_data_type(data_type: str | DataType) -> DataType:
    """
    Resolve a raw data type name, raising UnknownDataType when unregistered.
    """

    if isinstance(data_type, DataType):
        return data_type
    try:
        return DataType(str(data_type).strip())
    except ValueError as exc:
        raise UnknownDataType(str(data_type)) from exc


def get_schema(data_type: str | DataType) -> DataTypeSchema:
    return REGISTRY[resolve_data_type(data_type)]
