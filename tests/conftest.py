"""
Shared pytest fixtures and fakes for sentinel tests.
"""
import asyncio
import os
import time
from typing import List, Optional
from unittest.mock import patch

import pytest

from sentinel.application.services.monitoring_state_machine import MonitoringStateMachine
from sentinel.core.config import reset_settings
from sentinel.domain.contracts.audio_alert import AudioAlert
from sentinel.domain.contracts.camera import CameraConstraints, CameraHandle, CameraSource
from sentinel.domain.contracts.frame_analyzer import FrameAnalyzer
from sentinel.domain.models.detection import AnalysisVerdict


class FakeCameraHandle(CameraHandle):
    def __init__(self, image: Optional[bytes] = b"\xff\xd8fake-jpeg\xff\xd9"):
        self.image = image
        self.delay = 0.0
        self.release_count = 0
        self.qualities: List[int] = []

    @property
    def released(self) -> bool:
        return self.release_count > 0

    def capture_still(self, quality: int) -> Optional[bytes]:
        self.qualities.append(quality)
        if self.delay:
            time.sleep(self.delay)
        return self.image

    def release(self) -> None:
        self.release_count += 1


class FakeCameraSource(CameraSource):
    """Hands out FakeCameraHandles. Can be told to fail or to block until released."""

    def __init__(self):
        self.handles: List[FakeCameraHandle] = []
        self.constraints: List[CameraConstraints] = []
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.entered = 0

    @property
    def acquire_count(self) -> int:
        return len(self.constraints)

    async def acquire(self, constraints: CameraConstraints) -> CameraHandle:
        self.constraints.append(constraints)
        self.entered += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        handle = FakeCameraHandle()
        self.handles.append(handle)
        return handle


class FakeAnalyzer(FrameAnalyzer):
    """
    Returns queued verdicts (or raises queued exceptions) in order.

    With hold=True every call parks until release() so tests can interleave
    commands with an analysis in flight.
    """

    def __init__(self, default: Optional[AnalysisVerdict] = None):
        self.default = default or AnalysisVerdict(is_drowsy=False, reason="Driver is alert", confidence=0.9)
        self.results: List[object] = []
        self.calls: List[bytes] = []
        self.hold = False
        self._gate = asyncio.Event()

    def queue(self, *results: object) -> None:
        self.results.extend(results)

    def release(self) -> None:
        self._gate.set()

    async def analyze(self, image: bytes) -> AnalysisVerdict:
        self.calls.append(image)
        if self.hold:
            await self._gate.wait()
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, Exception):
            raise result
        return result


class FakeAlarm(AudioAlert):
    def __init__(self):
        self.start_count = 0
        self.stop_count = 0
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    def start(self) -> None:
        self.start_count += 1
        self._playing = True

    def stop(self) -> None:
        self.stop_count += 1
        self._playing = False


@pytest.fixture
def camera_source():
    return FakeCameraSource()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def alarm():
    return FakeAlarm()


@pytest.fixture
def state_machine(camera_source, analyzer, alarm):
    """
    State machine with timers slowed down so they never fire on their own.
    Tests drive sampling and cooldown through on_sampling_tick/on_cooldown_tick.
    """
    return MonitoringStateMachine(
        camera_source=camera_source,
        analyzer=analyzer,
        alarm=alarm,
        scan_interval_seconds=3600,
        cooldown_seconds=3,
        cooldown_tick_seconds=3600,
        analyzer_timeout_seconds=5.0,
    )


@pytest.fixture
def mock_env():
    """Fixture to set common test environment variables."""
    env_vars = {
        "GROQ_API_KEY": "test_groq_key_placeholder",
        "VLM_MODEL": "test-vision-model",
        "CAMERA_INDEX": "0",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        reset_settings()
        yield env_vars
    reset_settings()

