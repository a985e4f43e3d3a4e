"""
app/services/progress_notifier.py

Progress reporting for CSV uploads.

Each report is stored as the latest snapshot in the staging store and
published on a channel that the WebSocket endpoint relays to the owning user.
Reporting never raises.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from redis import Redis

from app.domain.csv_upload import UploadProgress
from app.repositories.staging_store import StagingStore

logger = logging.getLogger(__name__)

PROGRESS_EVENT = "csv:progress"


class ProgressChannel(Protocol):
    def publish(self, event: dict[str, Any]) -> None:
        ...


class RedisProgressChannel:
    """Publishes progress events as JSON on a Redis pub/sub channel."""

    def __init__(self, client: Redis, channel: str = PROGRESS_EVENT) -> None:
        self._client = client
        self._channel = channel

    def publish(self, event: dict[str, Any]) -> None:
        self._client.publish(self._channel, json.dumps(event))


class NullProgressChannel:
    def publish(self, event: dict[str, Any]) -> None:
        return None


def build_progress_event(upload_id: str, user_id: str, progress: UploadProgress) -> dict[str, Any]:
    return {
        "event": PROGRESS_EVENT,
        "userId": user_id,
        "uploadId": upload_id,
        "progress": progress.to_payload(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class ProgressNotifier:
    def __init__(self, *, staging_store: StagingStore, channel: ProgressChannel | None = None) -> None:
        self._staging_store = staging_store
        self._channel = channel or NullProgressChannel()

    def report(self, upload_id: str, user_id: str, progress: UploadProgress) -> None:
        try:
            self._staging_store.put_progress(upload_id, progress)
        except Exception:
            logger.exception("Failed to store progress upload_id=%s stage=%s", upload_id, progress.stage)

        try:
            self._channel.publish(build_progress_event(upload_id, user_id, progress))
        except Exception:
            logger.exception(
                "Failed to publish progress upload_id=%s user_id=%s stage=%s",
                upload_id,
                user_id,
                progress.stage,
            )

        logger.debug(
            "Upload progress upload_id=%s stage=%s percentage=%s",
            upload_id,
            progress.stage,
            progress.percentage,
        )
