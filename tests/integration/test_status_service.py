"""Integration tests for the FastAPI status service."""

import pytest
from fastapi.testclient import TestClient

from forcebuffer.config import ForceBufferConfig
from forcebuffer.di_container import DIContainer
from forcebuffer.main import app
from forcebuffer.simulated_source import SimulatedMediaSource


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def post(client, **event):
    return client.post("/api/events", json=event)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "forcebuffer"}


def test_session_lifecycle(client):
    assert post(client, status="started", source_id="tab-1", quality="720p").status_code == 202
    assert post(client, status="progress", source_id="tab-1", progress=40, speed=3.5).status_code == 202

    sessions = client.get("/api/sessions").json()["active_sessions"]
    assert len(sessions) == 1
    assert sessions[0]["source_id"] == "tab-1"
    assert sessions[0]["progress"] == 40
    assert sessions[0]["video_type"] == "Video"

    post(client, **{"status": "quality_change", "source_id": "tab-1", "from": "720p", "to": "1080p"})
    sessions = client.get("/api/sessions").json()["active_sessions"]
    assert sessions[0]["quality"] == "1080p"

    post(client, status="complete", source_id="tab-1", attempts=17)
    snapshot = client.get("/api/sessions").json()
    assert snapshot["active_sessions"] == []
    assert snapshot["completed_sessions"] == 1

    metrics = client.get("/api/metrics").json()
    assert metrics["sessions_started"] == 1
    assert metrics["total_attempts"] == 17
    assert metrics["quality_changes"] == 1


def test_delete_session(client):
    post(client, status="started", source_id="tab-2", is_short=True)
    assert client.delete("/api/sessions/tab-2").status_code == 200
    assert client.delete("/api/sessions/tab-2").status_code == 404


def test_rejects_unknown_status(client):
    response = post(client, status="paused", source_id="tab-3")
    assert response.status_code == 422


def test_rejects_out_of_range_progress(client):
    response = post(client, status="progress", source_id="tab-3", progress=140)
    assert response.status_code == 422


def test_status_lists_controllers(client):
    from forcebuffer.di_container import get_container

    get_container().create_controller()
    status = client.get("/api/status").json()
    assert status["active_sessions"] == 0
    assert status["controllers"][0]["phase"] == "idle"
    assert status["controllers"][0]["bound"] is False


@pytest.mark.asyncio
async def test_embedded_controller_reports_to_shared_sinks():
    container = DIContainer(
        config=ForceBufferConfig(_env_file=None, settle_delay_ms=0, retry_delay_increment_ms=0)
    )
    controller = container.create_controller()
    controller.on_source_available(
        SimulatedMediaSource(duration=600.0, quality="720p"), source_id="player-1", monitor=False
    )
    await controller.tick()

    record = container.get_session_tracker().get_session("player-1")
    assert record is not None
    assert record.quality == "720p"
    assert container.get_metrics().get_snapshot()["sessions_started"] == 1

    container.cleanup()
    assert container.get_controllers() == []
