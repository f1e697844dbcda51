"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeEmbeddingService, FakeGenerativeService, RecordingVectorStore
from thought_weaver.api.dependencies import get_insight_service
from thought_weaver.app import app
from thought_weaver.core.config import Settings
from thought_weaver.core.errors import VectorStoreError
from thought_weaver.insights.service import InsightService

NOTE_URL = "/records/app-1/user-1/note/note-1"


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_write_embed_and_find_connections(client: TestClient) -> None:
    text = "Paris is beautiful in spring and the Eiffel Tower glows at night"
    put_resp = client.put(NOTE_URL, json={"text": text, "title": "Eiffel"})
    assert put_resp.status_code == 200
    assert put_resp.json()["documentId"] == "app-1_user-1_note-1"

    record = client.get(NOTE_URL).json()
    assert record["embeddingStatus"] == "completed"
    assert record["embeddingError"] is None

    resp = client.post("/insights", json={"userId": "user-1", "appId": "app-1", "title": "Trip", "content": text})
    assert resp.status_code == 200
    payload = resp.json()
    assert [item["title"] for item in payload["connections"]] == ["Eiffel"]
    assert payload["connections"][0]["documentType"] == "note"
    assert payload["metadata"]["documentsAnalyzed"] == 1
    assert "Eiffel" in payload["insights"]

    again = client.post("/insights", json={"userId": "user-1", "appId": "app-1", "content": text})
    assert again.status_code == 429
    assert again.json() == {"error": "Too many requests. Please wait before trying again."}


def test_no_related_documents(client: TestClient) -> None:
    resp = client.post("/insights", json={"userId": "user-9", "appId": "app-1", "content": "lonely thought"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["connections"] == []
    assert payload["insights"] == "No related documents found to generate insights from."


def test_missing_fields_returns_400(client: TestClient) -> None:
    resp = client.post("/insights", json={"userId": "user-1", "content": "text"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: userId, appId, content"}


def test_search_failure_returns_500(client: TestClient) -> None:
    service = InsightService(
        settings=Settings(),
        embedding_service=FakeEmbeddingService(),
        vector_store=RecordingVectorStore(error=VectorStoreError("connection refused")),
        generative_service=FakeGenerativeService(),
    )
    app.dependency_overrides[get_insight_service] = lambda: service

    resp = client.post("/insights", json={"userId": "user-1", "appId": "app-1", "content": "text"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to search for similar documents", "details": "connection refused"}


def test_stuck_records_and_forced_reprocess(client: TestClient) -> None:
    from thought_weaver.api.dependencies import get_content_store
    from thought_weaver.models.records import RecordKey, RecordType

    client.put(NOTE_URL, json={"text": "hello there"})
    store = get_content_store()
    key = RecordKey("app-1", "user-1", "note-1", RecordType.NOTE)
    assert store.try_mark_processing(key, force=True)

    stuck = client.get("/records/stuck", params={"older_than_s": 0}).json()
    assert [item["recordId"] for item in stuck] == ["note-1"]

    busy = client.post(f"{NOTE_URL}/reprocess")
    assert busy.json()["outcome"] == "skipped_empty_or_busy"
    forced = client.post(f"{NOTE_URL}/reprocess", params={"force": True})
    assert forced.json() == {"documentId": "app-1_user-1_note-1", "outcome": "completed"}
    assert client.get(NOTE_URL).json()["embeddingStatus"] == "completed"


def test_unknown_record_returns_404(client: TestClient) -> None:
    assert client.get("/records/app-1/user-1/file/missing").status_code == 404
    assert client.post("/records/app-1/user-1/file/missing/reprocess").status_code == 404
    assert client.delete("/records/app-1/user-1/file/missing").status_code == 404


def test_delete_record(client: TestClient) -> None:
    client.put(NOTE_URL, json={"text": "bye"})
    assert client.delete(NOTE_URL).status_code == 204
    assert client.get(NOTE_URL).status_code == 404


def test_metrics_endpoint(client: TestClient) -> None:
    client.put(NOTE_URL, json={"text": "counted"})
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "tw_embedding_sync_total" in resp.text


def test_insight_service_shares_rate_limiter_singleton(client: TestClient) -> None:
    from thought_weaver.api.dependencies import get_rate_limiter

    text = {"userId": "user-1", "appId": "app-1", "content": "first draft"}
    assert client.post("/insights", json=text).status_code == 200
    assert client.post("/insights", json=text).status_code == 429

    get_rate_limiter().reset("user-1")
    assert client.post("/insights", json=text).status_code == 200
    assert get_insight_service().rate_limiter is get_rate_limiter()
