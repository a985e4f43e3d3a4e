"""
app/validators package marker.
"""

from app.validators.csv_validator import CSVUploadValidator
from app.validators.schema_registry import REGISTRY, DataType, DataTypeSchema, get_schema

__all__ = [
    "CSVUploadValidator",
    "DataType",
    "DataTypeSchema",
    "REGISTRY",
    "get_schema",
]
