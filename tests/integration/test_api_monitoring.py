"""
Integration tests for monitoring API endpoints.
Uses TestClient with a container wired to fake camera/analyzer/alarm adapters.
Note: Runs full app lifespan (slower). Use: pytest tests/unit/ for fast unit-only runs.
"""
from unittest.mock import patch

import httpx
import pytest

pytestmark = pytest.mark.integration
from fastapi.testclient import TestClient

from sentinel.application.services.monitoring_state_machine import MonitoringStateMachine
from sentinel.application.use_cases.monitoring import (
    GetMonitoringStatusUseCase,
    StartMonitoringUseCase,
    StopMonitoringUseCase,
)
from sentinel.di.base_container import BaseContainer
from sentinel.di.container import get_container, reset_container
from sentinel.domain.constants.monitoring_constants import CAMERA_ERROR_MESSAGE
from sentinel.domain.exceptions import CameraAcquisitionError
from sentinel.infrastructure.notifications import WebSocketManager


@pytest.fixture
def test_container(state_machine):
    container = BaseContainer()
    container.register_singleton(MonitoringStateMachine, state_machine)
    container.register_singleton(WebSocketManager, WebSocketManager())
    container.register_singleton(httpx.AsyncClient, httpx.AsyncClient())
    container.register_factory(StartMonitoringUseCase, lambda: StartMonitoringUseCase(state_machine))
    container.register_factory(StopMonitoringUseCase, lambda: StopMonitoringUseCase(state_machine))
    container.register_factory(GetMonitoringStatusUseCase, lambda: GetMonitoringStatusUseCase(state_machine))
    return container


@pytest.fixture
def client(test_container):
    """Create test client with the fake-backed container."""
    from sentinel.main import app

    with patch("sentinel.main.get_container", return_value=test_container), patch(
        "sentinel.api.v1.monitoring_controller.get_container", return_value=test_container
    ):
        with TestClient(app) as c:
            yield c


class TestMonitoringAPI:
    """Tests for /api/v1/monitoring endpoints"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_initial_status_is_idle(self, client):
        response = client.get("/api/v1/monitoring/status")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "IDLE"
        assert data["isActive"] is False
        assert data["lastVerdict"] is None
        assert data["cooldownRemaining"] == 0
        assert data["statusText"] == "Waiting for activation..."

    def test_start_then_stop(self, client, camera_source):
        response = client.post("/api/v1/monitoring/start")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "SCANNING"
        assert data["isActive"] is True
        assert data["statusText"] == "Initializing..."

        response = client.post("/api/v1/monitoring/stop")
        assert response.status_code == 200
        assert response.json()["state"] == "IDLE"
        assert camera_source.handles[0].released

    def test_start_is_idempotent(self, client, camera_source):
        client.post("/api/v1/monitoring/start")
        response = client.post("/api/v1/monitoring/start")
        assert response.json()["state"] == "SCANNING"
        assert camera_source.acquire_count == 1

    def test_camera_failure_is_reported_in_status(self, client, camera_source):
        camera_source.fail_with = CameraAcquisitionError(CAMERA_ERROR_MESSAGE)

        response = client.post("/api/v1/monitoring/start")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "ERROR"
        assert data["isActive"] is False
        assert data["errorMessage"] == CAMERA_ERROR_MESSAGE
        assert data["statusText"] == "Camera Error"

    def test_shutdown_releases_camera(self, test_container, camera_source):
        from sentinel.main import app

        with patch("sentinel.main.get_container", return_value=test_container), patch(
            "sentinel.api.v1.monitoring_controller.get_container", return_value=test_container
        ):
            with TestClient(app) as c:
                c.post("/api/v1/monitoring/start")

        assert camera_source.handles[0].released


class TestMonitoringWebSocket:
    """Tests for /api/v1/monitoring/ws"""

    def test_sends_status_on_connect(self, client):
        with client.websocket_connect("/api/v1/monitoring/ws") as websocket:
            message = websocket.receive_json()
        assert message["state"] == "IDLE"
        assert message["statusText"] == "Waiting for activation..."

    def test_ping_pong(self, client):
        with client.websocket_connect("/api/v1/monitoring/ws") as websocket:
            websocket.receive_json()
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

    def test_pushes_state_changes(self, client):
        with client.websocket_connect("/api/v1/monitoring/ws") as websocket:
            websocket.receive_json()

            client.post("/api/v1/monitoring/start")
            started = websocket.receive_json()
            client.post("/api/v1/monitoring/stop")
            stopped = websocket.receive_json()

        assert started["state"] == "SCANNING"
        assert started["isActive"] is True
        assert stopped["state"] == "IDLE"


class TestApplicationRestart:
    """Tests for the lifespan across shutdown and a second startup"""

    def test_restart_builds_fresh_http_client(self, mock_env):
        from sentinel.main import app

        reset_container()
        try:
            with TestClient(app) as first:
                assert first.get("/api/v1/monitoring/status").status_code == 200
                first_http_client = get_container().get(httpx.AsyncClient)
            assert first_http_client.is_closed is True

            with TestClient(app) as second:
                assert second.get("/api/v1/monitoring/status").status_code == 200
                second_http_client = get_container().get(httpx.AsyncClient)
                assert second_http_client is not first_http_client
                assert second_http_client.is_closed is False
        finally:
            reset_container()
