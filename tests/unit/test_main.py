"""
Main Application Unit Tests

Tests for the health endpoint and the notes API with the Notion client
replaced by the in-memory store. Runs without network access.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from saa_notes.core.notion import get_notion_client
from saa_notes.main import app


@pytest.fixture
def client(store):
    """TestClient whose note repository talks to the in-memory store."""
    app.dependency_overrides[get_notion_client] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _payload(make_note) -> dict:
    return make_note().model_dump(mode="json")


def test_health_check(client):
    """Verify /health endpoint returns correct response structure."""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "ok"
    assert data["service"] == "saa-notes"
    assert "environment" in data
    assert "notion_database" in data


def test_upsert_then_list(client, store, make_note):
    payload = _payload(make_note)

    first = client.post("/api/v1/notes/", json=payload)
    second = client.post("/api/v1/notes/", json=payload)

    assert first.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert len(store.pages) == 1

    listed = client.get("/api/v1/notes/")
    assert listed.status_code == 200
    [record] = listed.json()
    assert record["id"] == first.json()["id"]
    assert record["note"]["question_text"] == payload["question_text"]
    assert record["note"]["choices"] == payload["choices"]


def test_invalid_note_rejected(client, store, make_note):
    payload = _payload(make_note)
    payload["correct_answer"] = 7

    response = client.post("/api/v1/notes/", json=payload)

    assert response.status_code == 422
    assert store.calls == []


def test_schema_mismatch_reported(client, store, make_note):
    store.fail(
        "create_page",
        "Learning Points is not a property that exists.",
        status_code=400,
        code="validation_error",
    )

    response = client.post("/api/v1/notes/", json=_payload(make_note))

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["error"] == "SchemaMismatchError"
    assert detail["details"]["missing_fields"] == ["Learning Points"]


def test_upstream_failure_is_bad_gateway(client, store):
    store.fail("query_database", "Service unavailable", status_code=503)

    response = client.get("/api/v1/notes/")

    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "TransportError"


def test_lifespan_closes_client(monkeypatch):
    """The shared Notion client is created at startup and closed at shutdown."""
    closed = AsyncMock()
    monkeypatch.setattr("saa_notes.main.NotionClient.aclose", closed)

    with TestClient(app):
        assert app.state.notion_client is not None

    closed.assert_awaited_once()
