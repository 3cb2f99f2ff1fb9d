"""Monitoring provider for dependency injection."""
import logging
from typing import TYPE_CHECKING

import httpx

from ...application.services.monitoring_state_machine import MonitoringStateMachine
from ...application.use_cases.monitoring import (
    GetMonitoringStatusUseCase,
    StartMonitoringUseCase,
    StopMonitoringUseCase,
)
from ...core.config import get_settings
from ...domain.contracts.audio_alert import AudioAlert
from ...domain.contracts.camera import CameraSource
from ...domain.contracts.frame_analyzer import FrameAnalyzer
from ...infrastructure.audio.alarm_emitter import AudioAlertEmitter
from ...infrastructure.camera.opencv_camera import OpenCVCameraSource
from ...infrastructure.external.drowsiness_analyzer import GroqDrowsinessAnalyzer
from ...infrastructure.external.groq_vlm_service import GroqVLMService
from ...infrastructure.notifications.websocket_manager import WebSocketManager

if TYPE_CHECKING:
    from ..base_container import BaseContainer

logger = logging.getLogger(__name__)


def build_http_client() -> httpx.AsyncClient:
    """Pooled async HTTP client owned by the container and closed on application shutdown"""
    return httpx.AsyncClient(
        timeout=30.0,
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        http2=True,
    )


class MonitoringProvider:
    """Registers the monitoring adapters, the single state machine and its use cases"""

    @staticmethod
    def register(container: "BaseContainer") -> None:
        """
        Register monitoring services.
        Adapters and the state machine are singletons: one camera, one session per process.
        Use cases are created on-demand via factories.
        """
        settings = get_settings()

        # Pooled client shared by every VLM call
        http_client = build_http_client()
        container.register_singleton(httpx.AsyncClient, http_client)

        camera_source = OpenCVCameraSource(camera_index=settings.camera_index)
        container.register_singleton(CameraSource, camera_source)

        vlm_service = GroqVLMService(http_client=http_client)
        container.register_singleton(GroqVLMService, vlm_service)

        analyzer = GroqDrowsinessAnalyzer(vlm_service)
        container.register_singleton(FrameAnalyzer, analyzer)

        alarm = AudioAlertEmitter()
        container.register_singleton(AudioAlert, alarm)

        state_machine = MonitoringStateMachine(
            camera_source=camera_source,
            analyzer=analyzer,
            alarm=alarm,
            analyzer_timeout_seconds=settings.analyzer_timeout_seconds,
        )
        container.register_singleton(MonitoringStateMachine, state_machine)

        container.register_singleton(WebSocketManager, WebSocketManager())

        container.register_factory(
            StartMonitoringUseCase,
            lambda: StartMonitoringUseCase(state_machine=container.get(MonitoringStateMachine)),
        )
        container.register_factory(
            StopMonitoringUseCase,
            lambda: StopMonitoringUseCase(state_machine=container.get(MonitoringStateMachine)),
        )
        container.register_factory(
            GetMonitoringStatusUseCase,
            lambda: GetMonitoringStatusUseCase(state_machine=container.get(MonitoringStateMachine)),
        )

        logger.info(f"Registered monitoring services (camera index {settings.camera_index}, model {vlm_service.model})")
