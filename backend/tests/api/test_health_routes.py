"""Health Routes — liveness always answers, readiness reflects the database.

Invariants:
    - GET /health → 200 {"status": "ok", "timestamp": ISO-8601}
    - GET /health/ready → 503 without a database, 200 with a reachable one
"""

from datetime import datetime

import app.infrastructure.database as db_module
from app.infrastructure.database import DatabaseSessionManager


async def test_health_returns_ok_with_timestamp(client):
    res = await client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None


async def test_ready_returns_503_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    res = await client.get("/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_ready_returns_200_with_database(
    client, monkeypatch, test_engine, test_session_factory,
):
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    monkeypatch.setattr(db_module, "db_manager", fake_manager)

    res = await client.get("/health/ready")

    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_index_lists_registered_endpoints(client):
    res = await client.get("/")
    assert res.status_code == 200
    body = res.json()
    assert body["version"] == "1.0.0"
    assert body["endpoints"]["GET /health"] == "Health check"
    assert body["endpoints"]["POST /auth/login"] == "User login"
    assert body["endpoints"]["POST /auth/register"] == "User registration"
    assert body["endpoints"]["GET /users/{user_id}"] == "Get user by ID"
    assert body["endpoints"]["GET /tests"] == "List test items"
    assert body["endpoints"]["DELETE /tests/{item_id}"] == "Delete test item"
    assert body["endpoints"]["GET /"] == "API documentation"
    assert not any(key.endswith(" /ui") for key in body["endpoints"])


async def test_openapi_document_served_at_api_doc(client):
    res = await client.get("/api/doc")
    assert res.status_code == 200
    assert "/tests" in res.json()["paths"]


async def test_swagger_ui_served_at_ui(client):
    res = await client.get("/ui")
    assert res.status_code == 200
    assert "swagger" in res.text.lower()
