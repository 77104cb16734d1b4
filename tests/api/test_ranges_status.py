import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.internal.ranges import router
from core.ranges.blocker import RangeBlocker
from core.ranges.snapshot import Snapshot, parse_cidr


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.include_router(router, prefix="/api/v1/internal/ranges")
    return app

def test_status_reports_current_table(app):
    blocker = RangeBlocker()
    blocker.table.replace(Snapshot([parse_cidr("10.0.0.0/8")], sync_token="42", create_date="2024-01-01-00-00-00"))
    app.state.range_blocker = blocker

    response = TestClient(app).get("/api/v1/internal/ranges/status")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Tracking 1 ranges."
    assert body["data"]["range_count"] == 1
    assert body["data"]["sync_token"] == "42"
    assert body["data"]["running"] is False
    assert "last_error" not in body["data"]

def test_status_unavailable_without_blocker(app):
    response = TestClient(app).get("/api/v1/internal/ranges/status")
    assert response.status_code == 503
