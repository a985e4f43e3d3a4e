"""
app/mappers package marker.
"""

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

__all__ = [
    "RowTransform",
    "parse_float",
    "parse_int",
    "parse_timestamp",
    "transform_bug_sprint",
    "transform_content_performance",
    "transform_infra_metric",
    "transform_kpi_metric",
    "transform_risk",
]
