"""
app/repositories/staging_store.py

TTL-bound staging for in-flight CSV uploads: progress snapshots, validation
results with the raw parsed dataset, and the declared data type.

Staging is best-effort. The Redis implementation logs and swallows every
``RedisError``: reads return None, writes do nothing, and the commit lock is
reported as not acquired.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

from redis import Redis, RedisError

from app.config import StagingSettings
from app.domain.csv_upload import StagedUpload, UploadProgress

logger = logging.getLogger(__name__)

PROGRESS_KEY = "csv:progress:{upload_id}"
RESULT_KEY = "csv:result:{upload_id}"
DATA_TYPE_KEY = "csv:datatype:{upload_id}"
COMMIT_LOCK_KEY = "csv:commit-lock:{upload_id}"


class StagingStore(Protocol):
    def put_progress(self, upload_id: str, progress: UploadProgress) -> None:
        ...

    def get_progress(self, upload_id: str) -> UploadProgress | None:
        ...

    def put_result(self, upload_id: str, staged: StagedUpload) -> None:
        ...

    def get_result(self, upload_id: str) -> StagedUpload | None:
        ...

    def put_data_type(self, upload_id: str, data_type: str) -> None:
        ...

    def get_data_type(self, upload_id: str) -> str | None:
        ...

    def delete(self, upload_id: str) -> None:
        ...

    def acquire_commit_lock(self, upload_id: str) -> bool:
        ...

    def release_commit_lock(self, upload_id: str) -> None:
        ...


class RedisStagingStore:
    """
    Staging store backed by redis-py with JSON values and per-namespace TTLs.
    """

    def __init__(self, client: Redis, settings: StagingSettings) -> None:
        self._client = client
        self._settings = settings

    def put_progress(self, upload_id: str, progress: UploadProgress) -> None:
        self._set(
            PROGRESS_KEY.format(upload_id=upload_id),
            json.dumps(progress.to_payload()),
            self._settings.progress_ttl_seconds,
        )

    def get_progress(self, upload_id: str) -> UploadProgress | None:
        payload = self._get_json(PROGRESS_KEY.format(upload_id=upload_id))
        return UploadProgress.from_payload(payload) if payload is not None else None

    def put_result(self, upload_id: str, staged: StagedUpload) -> None:
        self._set(
            RESULT_KEY.format(upload_id=upload_id),
            json.dumps(staged.to_dict()),
            self._settings.result_ttl_seconds,
        )

    def get_result(self, upload_id: str) -> StagedUpload | None:
        payload = self._get_json(RESULT_KEY.format(upload_id=upload_id))
        return StagedUpload.from_dict(payload) if payload is not None else None

    def put_data_type(self, upload_id: str, data_type: str) -> None:
        self._set(
            DATA_TYPE_KEY.format(upload_id=upload_id),
            data_type,
            self._settings.result_ttl_seconds,
        )

    def get_data_type(self, upload_id: str) -> str | None:
        key = DATA_TYPE_KEY.format(upload_id=upload_id)
        try:
            return self._client.get(key)
        except RedisError:
            logger.exception("Staging read failed key=%s", key)
            return None

    def delete(self, upload_id: str) -> None:
        keys = [
            template.format(upload_id=upload_id)
            for template in (PROGRESS_KEY, RESULT_KEY, DATA_TYPE_KEY)
        ]
        try:
            self._client.delete(*keys)
        except RedisError:
            logger.exception("Staging delete failed upload_id=%s", upload_id)

    def acquire_commit_lock(self, upload_id: str) -> bool:
        key = COMMIT_LOCK_KEY.format(upload_id=upload_id)
        try:
            return bool(
                self._client.set(key, "1", nx=True, ex=self._settings.commit_lock_ttl_seconds)
            )
        except RedisError:
            logger.exception("Commit lock acquisition failed upload_id=%s", upload_id)
            return False

    def release_commit_lock(self, upload_id: str) -> None:
        try:
            self._client.delete(COMMIT_LOCK_KEY.format(upload_id=upload_id))
        except RedisError:
            logger.exception("Commit lock release failed upload_id=%s", upload_id)

    def _set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except RedisError:
            logger.exception("Staging write failed key=%s", key)

    def _get_json(self, key: str) -> dict | None:
        try:
            raw = self._client.get(key)
        except RedisError:
            logger.exception("Staging read failed key=%s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed staging value key=%s", key)
            return None


class NullStagingStore:
    """
    Staging store used when Redis is not configured or unreachable.

    Nothing is kept, so every upload validates but can never be committed.
    """

    def put_progress(self, upload_id: str, progress: UploadProgress) -> None:
        logger.debug("Staging disabled; dropping progress upload_id=%s stage=%s", upload_id, progress.stage)

    def get_progress(self, upload_id: str) -> UploadProgress | None:
        return None

    def put_result(self, upload_id: str, staged: StagedUpload) -> None:
        logger.debug("Staging disabled; dropping result upload_id=%s", upload_id)

    def get_result(self, upload_id: str) -> StagedUpload | None:
        return None

    def put_data_type(self, upload_id: str, data_type: str) -> None:
        logger.debug("Staging disabled; dropping data type upload_id=%s", upload_id)

    def get_data_type(self, upload_id: str) -> str | None:
        return None

    def delete(self, upload_id: str) -> None:
        return None

    def acquire_commit_lock(self, upload_id: str) -> bool:
        return True

    def release_commit_lock(self, upload_id: str) -> None:
        return None


def build_staging_store(client: Redis | None, settings: StagingSettings) -> StagingStore:
    """
    Pick the staging implementation once, at startup.
    """

    if client is None:
        return NullStagingStore()
    return RedisStagingStore(client, settings)
