"""
app/repositories package marker.
"""

from app.repositories.staging_store import (
    NullStagingStore,
    RedisStagingStore,
    StagingStore,
    build_staging_store,
)
from app.repositories.upload_persistence import SQLAlchemyRecordWriter, SQLAlchemyUploadHistoryStore

__all__ = [
    "NullStagingStore",
    "RedisStagingStore",
    "SQLAlchemyRecordWriter",
    "SQLAlchemyUploadHistoryStore",
    "StagingStore",
    "build_staging_store",
]
