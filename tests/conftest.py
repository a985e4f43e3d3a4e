"""
tests/conftest.py

In-memory stand-ins for Redis, the staging store, the progress channel, the
destination writer and the history store, shared by the upload test modules.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest
from redis import RedisError

from app.config import CSVUploadSettings, StagingSettings
from app.domain.csv_upload import StagedUpload, UploadHistoryEntry, UploadProgress
from app.repositories.staging_store import StagingStore
from app.services.csv_upload_service import CSVUploadService
from app.services.progress_notifier import ProgressNotifier
from db.repositories.errors import RecordWriteError


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRedis:
    """Minimal synchronous Redis double covering the commands the app uses."""

    def __init__(self, *, fail: bool = False) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.published: list[tuple[str, str]] = []
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise RedisError("connection refused")

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool | None:
        self._check()
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key: str) -> str | None:
        self._check()
        return self.values.get(key)

    def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if key in self.values:
                removed += 1
                self.values.pop(key)
                self.ttls.pop(key, None)
        return removed

    def publish(self, channel: str, message: str) -> int:
        self._check()
        self.published.append((channel, message))
        return 1


class InMemoryStagingStore:
    def __init__(self) -> None:
        self.progress: dict[str, UploadProgress] = {}
        self.progress_log: list[tuple[str, UploadProgress]] = []
        self.results: dict[str, StagedUpload] = {}
        self.data_types: dict[str, str] = {}
        self.locks: set[str] = set()

    def put_progress(self, upload_id: str, progress: UploadProgress) -> None:
        self.progress[upload_id] = progress
        self.progress_log.append((upload_id, progress))

    def get_progress(self, upload_id: str) -> UploadProgress | None:
        return self.progress.get(upload_id)

    def put_result(self, upload_id: str, staged: StagedUpload) -> None:
        self.results[upload_id] = staged

    def get_result(self, upload_id: str) -> StagedUpload | None:
        return self.results.get(upload_id)

    def put_data_type(self, upload_id: str, data_type: str) -> None:
        self.data_types[upload_id] = data_type

    def get_data_type(self, upload_id: str) -> str | None:
        return self.data_types.get(upload_id)

    def delete(self, upload_id: str) -> None:
        self.progress.pop(upload_id, None)
        self.results.pop(upload_id, None)
        self.data_types.pop(upload_id, None)

    def acquire_commit_lock(self, upload_id: str) -> bool:
        if upload_id in self.locks:
            return False
        self.locks.add(upload_id)
        return True

    def release_commit_lock(self, upload_id: str) -> None:
        self.locks.discard(upload_id)

    def stages(self, upload_id: str) -> list[tuple[str, int]]:
        return [
            (progress.stage, progress.percentage)
            for staged_id, progress in self.progress_log
            if staged_id == upload_id
        ]


class RecordingChannel:
    def __init__(self, *, fail: bool = False) -> None:
        self.events: list[dict[str, Any]] = []
        self.fail = fail

    def publish(self, event: dict[str, Any]) -> None:
        if self.fail:
            raise RedisError("publish failed")
        self.events.append(event)


class FakeRecordWriter:
    """Collects written batches; raises on the batch index given by ``fail_on_batch``."""

    def __init__(self, *, fail_on_batch: int | None = None) -> None:
        self.batches: list[tuple[str, list[dict[str, Any]]]] = []
        self.fail_on_batch = fail_on_batch
        self.calls = 0

    def write_batch(self, data_type: str, records: Sequence[dict[str, Any]]) -> int:
        index = self.calls
        self.calls += 1
        if self.fail_on_batch is not None and index == self.fail_on_batch:
            raise RecordWriteError("connection reset by peer")
        self.batches.append((data_type, list(records)))
        return len(records)

    @property
    def records(self) -> list[dict[str, Any]]:
        return [record for _, batch in self.batches for record in batch]


class FakeHistoryStore:
    def __init__(self) -> None:
        self.entries: list[UploadHistoryEntry] = []

    def record_upload(self, entry: UploadHistoryEntry) -> None:
        self.entries.append(entry)

    def list_uploads(
        self,
        *,
        uploaded_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[UploadHistoryEntry], int]:
        matching = [
            entry
            for entry in reversed(self.entries)
            if uploaded_by is None or entry.uploaded_by == uploaded_by
        ]
        return matching[offset : offset + limit], len(matching)


class ImmediateExecutor:
    """Runs submitted tasks inline, standing in for BackgroundTasks."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.submitted += 1
        task(*args, **kwargs)


class FailingExecutor:
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        raise RuntimeError("worker pool unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def staging_settings() -> StagingSettings:
    return StagingSettings(redis_url="redis://localhost:6379/0")


@pytest.fixture()
def upload_settings() -> CSVUploadSettings:
    return CSVUploadSettings(batch_size=2, progress_interval_rows=100, preview_rows=10)


@pytest.fixture()
def staging_store() -> InMemoryStagingStore:
    return InMemoryStagingStore()


@pytest.fixture()
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def notifier(staging_store: StagingStore, channel: RecordingChannel) -> ProgressNotifier:
    return ProgressNotifier(staging_store=staging_store, channel=channel)


@pytest.fixture()
def record_writer() -> FakeRecordWriter:
    return FakeRecordWriter()


@pytest.fixture()
def history_store() -> FakeHistoryStore:
    return FakeHistoryStore()


@pytest.fixture()
def upload_service(
    staging_store: InMemoryStagingStore,
    notifier: ProgressNotifier,
    record_writer: FakeRecordWriter,
    history_store: FakeHistoryStore,
    upload_settings: CSVUploadSettings,
) -> CSVUploadService:
    return CSVUploadService(
        staging_store=staging_store,
        notifier=notifier,
        record_writer=record_writer,
        history_store=history_store,
        settings=upload_settings,
    )
