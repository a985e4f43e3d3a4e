"""
WebSocket stream of CSV upload progress.

Progress events are published on a Redis pub/sub channel by whichever worker
runs the upload; every API instance subscribes and relays the events that
belong to each connected user. The caller is identified by the same forwarded
headers as the HTTP routes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from app.api.dependencies import get_current_user
from app.config import get_staging_settings
from app.redis_client import get_async_redis
from app.services.csv_upload_service import get_csv_upload_service
from app.services.progress_notifier import PROGRESS_EVENT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["csv-upload-events"])


async def _relay_published_events(websocket: WebSocket, user_id: str) -> None:
    client = get_async_redis()
    if client is None:
        # No pub/sub available; clients can still poll snapshots over the socket.
        await asyncio.Event().wait()
        return

    pubsub = client.pubsub()
    await pubsub.subscribe(get_staging_settings().progress_channel)
    try:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                event = json.loads(message["data"])
            except (TypeError, ValueError):
                logger.warning("Discarding malformed progress event")
                continue
            if str(event.get("userId")) != user_id:
                continue
            await websocket.send_json(event)
    finally:
        await pubsub.unsubscribe()
        await pubsub.aclose()


async def _answer_snapshot_requests(websocket: WebSocket, user_id: str) -> None:
    service = get_csv_upload_service()
    while True:
        message: Any = await websocket.receive_json()
        if not isinstance(message, dict) or message.get("type") != PROGRESS_EVENT:
            continue
        upload_id = str(message.get("upload_id") or "")
        if not upload_id:
            continue
        progress = await run_in_threadpool(service.get_progress, upload_id)
        await websocket.send_json(
            {
                "event": PROGRESS_EVENT,
                "userId": user_id,
                "uploadId": upload_id,
                "progress": progress.to_payload() if progress is not None else None,
            }
        )


@router.websocket("/ws/uploads")
async def upload_progress_stream(websocket: WebSocket) -> None:
    try:
        user = get_current_user(
            websocket.headers.get("x-user-id"),
            websocket.headers.get("x-user-role"),
        )
    except HTTPException as exc:
        logger.warning("Upload progress stream rejected: %s", exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc.detail))
        return

    user_id = user.user_id
    await websocket.accept()
    logger.info("Upload progress stream connected user_id=%s", user_id)

    tasks = [
        asyncio.create_task(_relay_published_events(websocket, user_id)),
        asyncio.create_task(_answer_snapshot_requests(websocket, user_id)),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Upload progress stream failed user_id=%s error=%s", user_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Upload progress stream closed user_id=%s", user_id)
