"""
tests/test_csv_upload_router.py

HTTP and WebSocket tests for the upload routers, served from a bare FastAPI
app with the upload service swapped for one backed by in-memory fakes.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.api.routers import csv_upload_router, upload_events_router
from app.config import CSVUploadSettings
from app.domain.csv_upload import UploadHistoryEntry, UploadStatus
from app.services.csv_upload_service import CSVUploadService, get_csv_upload_service
from app.services.progress_notifier import ProgressNotifier
from conftest import FakeHistoryStore, FakeRecordWriter, InMemoryStagingStore

KPI_CSV = (
    b"metric_name,value,period\n"
    b"Revenue,100,2024-01\n"
    b"Churn,abc,2024-01\n"
    b"Signups,42,2024-02\n"
)

PM = {"X-User-Id": "user-7", "X-User-Role": "PM"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "Admin"}


def _build_client(service: CSVUploadService) -> TestClient:
    application = FastAPI()
    application.include_router(csv_upload_router)
    application.include_router(upload_events_router)
    application.dependency_overrides[get_csv_upload_service] = lambda: service
    return TestClient(application)


@pytest.fixture()
def client(upload_service: CSVUploadService) -> TestClient:
    return _build_client(upload_service)


def _upload(client: TestClient, *, headers=PM, content: bytes = KPI_CSV, data_type: str = "kpi_metrics",
            filename: str = "kpi.csv", content_type: str = "text/csv"):
    return client.post(
        "/uploads/csv",
        headers=headers,
        data={"data_type": data_type},
        files={"file": (filename, content, content_type)},
    )


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def test_upload_is_accepted_and_processed(client: TestClient) -> None:
    response = _upload(client)

    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "processing"
    assert body["data_type"] == "kpi_metrics"
    assert body["filename"] == "kpi.csv"

    upload_id = body["upload_id"]
    progress = client.get(f"/uploads/{upload_id}/progress", headers=PM)
    assert progress.status_code == 200
    assert progress.json()["stage"] == "completed"
    assert progress.json()["rowsProcessed"] == 3

    result = client.get(f"/uploads/{upload_id}/result", headers=PM)
    assert result.status_code == 200
    assert result.json()["valid_rows"] == 2
    assert result.json()["invalid_rows"] == 1
    assert result.json()["errors"][0]["row"] == 3


def test_upload_requires_identity(client: TestClient) -> None:
    assert _upload(client, headers={}).status_code == 401


def test_upload_rejects_read_only_role(client: TestClient) -> None:
    response = _upload(client, headers={"X-User-Id": "exec-1", "X-User-Role": "Executive"})

    assert response.status_code == 403


def test_upload_rejects_unknown_role(client: TestClient) -> None:
    response = _upload(client, headers={"X-User-Id": "user-7", "X-User-Role": "Intern"})

    assert response.status_code == 403


def test_upload_rejects_non_csv_file(client: TestClient) -> None:
    response = _upload(client, filename="notes.txt", content_type="text/plain")

    assert response.status_code == 400


def test_upload_rejects_unknown_data_type(client: TestClient, staging_store: InMemoryStagingStore) -> None:
    response = _upload(client, data_type="invoices")

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown data type: invoices"
    assert staging_store.data_types == {}


def test_upload_rejects_oversized_file(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "app.api.dependencies.get_csv_upload_settings",
        lambda: CSVUploadSettings(max_file_size_bytes=16),
    )

    response = _upload(client)

    assert response.status_code == 413


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


def test_unknown_upload_returns_404(client: TestClient) -> None:
    assert client.get("/uploads/nope/progress", headers=PM).status_code == 404
    assert client.get("/uploads/nope/result", headers=PM).status_code == 404


def test_failed_progress_omits_row_counters(client: TestClient) -> None:
    upload_id = _upload(client, content=b"").json()["upload_id"]

    body = client.get(f"/uploads/{upload_id}/progress", headers=PM).json()

    assert body == {"stage": "failed", "percentage": 0, "message": "Processing failed: CSV file is empty or invalid"}


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def test_commit_returns_summary(client: TestClient, record_writer: FakeRecordWriter) -> None:
    upload_id = _upload(client).json()["upload_id"]

    response = client.post(f"/uploads/{upload_id}/commit", headers=PM)

    assert response.status_code == 200
    assert response.json() == {
        "message": "Successfully committed 2 rows",
        "upload_id": upload_id,
        "data_type": "kpi_metrics",
        "committed_rows": 2,
        "skipped_rows": 1,
        "batch_count": 1,
    }
    assert len(record_writer.records) == 2


def test_second_commit_conflicts(client: TestClient) -> None:
    upload_id = _upload(client).json()["upload_id"]
    client.post(f"/uploads/{upload_id}/commit", headers=PM)

    response = client.post(f"/uploads/{upload_id}/commit", headers=PM)

    assert response.status_code == 409


def test_commit_unknown_upload_returns_404(client: TestClient) -> None:
    assert client.post("/uploads/nope/commit", headers=PM).status_code == 404
    assert client.get("/uploads/nope/progress", headers=PM).status_code == 404


def test_commit_batch_failure_returns_500(
    staging_store: InMemoryStagingStore,
    notifier: ProgressNotifier,
    history_store: FakeHistoryStore,
    upload_settings: CSVUploadSettings,
) -> None:
    service = CSVUploadService(
        staging_store=staging_store,
        notifier=notifier,
        record_writer=FakeRecordWriter(fail_on_batch=0),
        history_store=history_store,
        settings=upload_settings,
    )
    client = _build_client(service)
    upload_id = _upload(client).json()["upload_id"]

    response = client.post(f"/uploads/{upload_id}/commit", headers=PM)

    assert response.status_code == 500
    assert response.json()["detail"] == {
        "message": "Database commit failed at batch 1: connection reset by peer",
        "batch_index": 0,
        "committed_rows": 0,
    }


# ---------------------------------------------------------------------------
# Delete and history
# ---------------------------------------------------------------------------


def test_delete_clears_upload(client: TestClient) -> None:
    upload_id = _upload(client).json()["upload_id"]

    response = client.delete(f"/uploads/{upload_id}", headers=PM)

    assert response.status_code == 204
    assert client.get(f"/uploads/{upload_id}/progress", headers=PM).status_code == 404


def _seed_history(history_store: FakeHistoryStore) -> None:
    for upload_id, owner in (("u-1", "user-7"), ("u-2", "someone-else"), ("u-3", "user-7")):
        history_store.record_upload(
            UploadHistoryEntry(
                upload_id=upload_id,
                filename="kpi.csv",
                data_type="kpi_metrics",
                total_rows=3,
                valid_rows=2,
                invalid_rows=1,
                committed_rows=2,
                status=UploadStatus.COMMITTED,
                uploaded_by=owner,
            )
        )


def test_history_is_scoped_to_caller(client: TestClient, history_store: FakeHistoryStore) -> None:
    _seed_history(history_store)

    body = client.get("/uploads/history", headers=PM).json()

    assert body["total"] == 2
    assert [item["upload_id"] for item in body["items"]] == ["u-3", "u-1"]


def test_admin_history_sees_everyone(client: TestClient, history_store: FakeHistoryStore) -> None:
    _seed_history(history_store)

    body = client.get("/uploads/history?page=1&page_size=2", headers=ADMIN).json()

    assert body["total"] == 3
    assert body["page_size"] == 2
    assert [item["upload_id"] for item in body["items"]] == ["u-3", "u-2"]


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


def test_websocket_answers_progress_snapshot(
    client: TestClient,
    upload_service: CSVUploadService,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("app.api.routers.upload_events.get_csv_upload_service", lambda: upload_service)
    monkeypatch.setattr("app.api.routers.upload_events.get_async_redis", lambda: None)
    upload_id = _upload(client).json()["upload_id"]

    with client.websocket_connect("/ws/uploads", headers=PM) as websocket:
        websocket.send_json({"type": "csv:progress", "upload_id": upload_id})
        event = websocket.receive_json()

    assert event["event"] == "csv:progress"
    assert event["userId"] == "user-7"
    assert event["uploadId"] == upload_id
    assert event["progress"]["stage"] == "completed"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"X-User-Role": "PM"},
        {"X-User-Id": "user-7", "X-User-Role": "Intern"},
    ],
)
def test_websocket_without_forwarded_identity_is_closed(client: TestClient, headers: dict[str, str]) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws/uploads", headers=headers):
            pass

    assert excinfo.value.code == 1008


def test_websocket_ignores_user_id_query_parameter(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("app.api.routers.upload_events.get_async_redis", lambda: None)

    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws/uploads?user_id=user-7"):
            pass

    assert excinfo.value.code == 1008
