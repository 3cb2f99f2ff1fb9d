"""
Monitoring State Machine
------------------------

Owns one monitoring session: camera lifecycle, the periodic sample-and-analyze
loop, and the alert/cooldown sequence.

    IDLE/ERROR --start--> SCANNING --drowsy verdict--> ALERT --cooldown--> SCANNING
    any --stop--> IDLE            acquisition failure --> ERROR

Timers are asyncio tasks. Only _transition() creates or cancels them, so the
armed timer always matches the current state: sampling while SCANNING,
cooldown while ALERT, nothing otherwise.

Every transition bumps a generation counter. A sample remembers the generation
it was taken in, and its verdict is applied only if the machine is still
SCANNING in that same generation. Capture runs in a worker thread inside the
sample task, so a slow camera read never stalls the event loop.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Set

from ...domain.constants.monitoring_constants import (
    ALERT_COOLDOWN_SECONDS,
    ANALYZER_TIMEOUT_SECONDS,
    CAMERA_ERROR_MESSAGE,
    COOLDOWN_TICK_SECONDS,
    JPEG_QUALITY,
    SCAN_INTERVAL_MS,
)
from ...domain.contracts.audio_alert import AudioAlert
from ...domain.contracts.camera import CameraConstraints, CameraHandle, CameraSource
from ...domain.contracts.frame_analyzer import FrameAnalyzer
from ...domain.exceptions import CameraAcquisitionError
from ...domain.models.detection import (
    AnalysisVerdict,
    DetectionState,
    MonitoringSnapshot,
    Session,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[MonitoringSnapshot], None]


class MonitoringStateMachine:
    """Drowsiness monitoring session driven by start/stop commands and timers"""

    def __init__(
        self,
        camera_source: CameraSource,
        analyzer: FrameAnalyzer,
        alarm: AudioAlert,
        scan_interval_seconds: float = SCAN_INTERVAL_MS / 1000.0,
        cooldown_seconds: int = ALERT_COOLDOWN_SECONDS,
        cooldown_tick_seconds: float = COOLDOWN_TICK_SECONDS,
        analyzer_timeout_seconds: Optional[float] = ANALYZER_TIMEOUT_SECONDS,
        jpeg_quality: int = JPEG_QUALITY,
        constraints: Optional[CameraConstraints] = None,
    ):
        """
        Args:
            camera_source: Opens the user-facing camera
            analyzer: Classifies one JPEG still
            alarm: Audible alert played while ALERT
            scan_interval_seconds: Time between the start of consecutive samples
            cooldown_seconds: Alert length before sampling resumes
            cooldown_tick_seconds: Countdown granularity
            analyzer_timeout_seconds: Per-call analyzer bound; 0 or None disables it
            jpeg_quality: Quality of the captured still
            constraints: Capture constraints requested from the camera
        """
        self._camera_source = camera_source
        self._analyzer = analyzer
        self._alarm = alarm
        self.scan_interval_seconds = scan_interval_seconds
        self.cooldown_seconds = cooldown_seconds
        self.cooldown_tick_seconds = cooldown_tick_seconds
        self.analyzer_timeout_seconds = analyzer_timeout_seconds
        self.jpeg_quality = jpeg_quality
        self.constraints = constraints or CameraConstraints()

        self._session = Session()
        self._generation = 0
        self._sampling_task: Optional[asyncio.Task] = None
        self._cooldown_task: Optional[asyncio.Task] = None
        self._acquisition: Optional[asyncio.Task] = None
        self._acquisition_generation = -1
        self._pending_analyses: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------
    # Observable outputs
    # ------------------------------------------------------------------

    @property
    def state(self) -> DetectionState:
        return self._session.state

    @property
    def is_active(self) -> bool:
        return self._session.state.is_active

    @property
    def last_verdict(self) -> Optional[AnalysisVerdict]:
        return self._session.last_verdict

    @property
    def cooldown_remaining(self) -> int:
        return self._session.cooldown_remaining

    @property
    def error_message(self) -> Optional[str]:
        return self._session.error_message

    @property
    def has_camera(self) -> bool:
        return self._session.camera_handle is not None

    @property
    def sampling_armed(self) -> bool:
        return self._sampling_task is not None and not self._sampling_task.done()

    @property
    def cooldown_armed(self) -> bool:
        return self._cooldown_task is not None and not self._cooldown_task.done()

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> MonitoringSnapshot:
        return MonitoringSnapshot.of(self._session)

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with a snapshot after every observable change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------

    async def start(self) -> DetectionState:
        """
        Start monitoring: acquire the camera and arm the sampling timer.

        No-op while already SCANNING or ALERT. A start issued while another
        start is still acquiring the camera waits for that acquisition instead
        of opening the device a second time.

        Returns:
            The state after the command (SCANNING, or ERROR if acquisition failed)
        """
        requested_generation = self._generation
        while True:
            if self.is_active:
                logger.debug(f"start ignored: already {self.state.value}")
                return self.state
            pending = self._acquisition
            if pending is None:
                break
            if self._acquisition_generation == self._generation:
                await asyncio.shield(pending)
                return self.state
            # Acquisition left over from before a stop: let it finish and release the device
            await asyncio.shield(pending)
            if self._generation != requested_generation:
                # A later stop supersedes this start
                logger.debug("start superseded by stop while waiting for the camera")
                return self.state

        logger.info("Starting monitoring: acquiring camera")
        self._acquisition_generation = self._generation
        self._acquisition = asyncio.create_task(self._acquire_camera(self._generation))
        await asyncio.shield(self._acquisition)
        return self.state

    def stop(self) -> DetectionState:
        """
        Stop monitoring. Synchronously disarms timers, releases the camera and
        silences the alarm. Analyses still in flight finish on their own and
        their verdicts are discarded.
        """
        if self.state is DetectionState.IDLE and self._acquisition is None:
            logger.debug("stop ignored: already IDLE")
            return self.state
        logger.info(f"Stopping monitoring from {self.state.value}")
        self._transition(DetectionState.IDLE)
        return self.state

    async def shutdown(self) -> None:
        """Stop and cancel every task still owned by the machine (application shutdown)."""
        self.stop()
        tasks = list(self._pending_analyses)
        if self._acquisition is not None:
            tasks.append(self._acquisition)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending_analyses.clear()

    # ------------------------------------------------------------------
    # Camera acquisition
    # ------------------------------------------------------------------

    async def _acquire_camera(self, generation: int) -> None:
        try:
            handle = await self._camera_source.acquire(self.constraints)
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Camera acquisition failed after stop; ignoring: {e}")
                return
            message = str(e) if isinstance(e, CameraAcquisitionError) and str(e) else CAMERA_ERROR_MESSAGE
            logger.error(f"Camera error: {e}", exc_info=not isinstance(e, CameraAcquisitionError))
            self._transition(DetectionState.ERROR, error_message=message)
            return
        finally:
            if self._acquisition_generation == generation:
                self._acquisition = None

        if generation != self._generation:
            # stop() arrived while the device was opening
            logger.info("Camera acquired after stop; releasing it")
            handle.release()
            return

        self._session.camera_handle = handle
        self._transition(DetectionState.SCANNING)

    def _release_camera(self) -> None:
        handle, self._session.camera_handle = self._session.camera_handle, None
        if handle is None:
            return
        try:
            handle.release()
        except Exception as e:
            logger.warning(f"Error releasing camera: {e}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, new_state: DetectionState, error_message: Optional[str] = None) -> None:
        """
        Single entry point for state changes. Disarms every timer, applies the
        side effects of entering new_state and arms that state's timer.
        """
        previous = self._session.state
        self._generation += 1
        self._cancel_timers()
        self._session.cooldown_remaining = 0

        if new_state is DetectionState.IDLE:
            self._alarm.stop()
            self._release_camera()
            self._session.error_message = None

        elif new_state is DetectionState.ERROR:
            self._alarm.stop()
            self._release_camera()
            self._session.error_message = error_message or CAMERA_ERROR_MESSAGE

        elif new_state is DetectionState.SCANNING:
            if previous is DetectionState.ALERT:
                self._alarm.stop()
            # Fresh session or post-cooldown: no stale warning on screen
            self._session.last_verdict = None
            self._session.error_message = None
            self._sampling_task = asyncio.create_task(self._run_sampling_timer())

        elif new_state is DetectionState.ALERT:
            self._session.cooldown_remaining = self.cooldown_seconds
            self._start_alarm()
            self._cooldown_task = asyncio.create_task(self._run_cooldown_timer())

        self._session.state = new_state
        logger.info(f"State {previous.value} -> {new_state.value} (generation {self._generation})")
        self._notify()

    def _cancel_timers(self) -> None:
        for task in (self._sampling_task, self._cooldown_task):
            if task is not None and not task.done():
                task.cancel()
        self._sampling_task = None
        self._cooldown_task = None

    def _start_alarm(self) -> None:
        try:
            self._alarm.start()
        except Exception as e:
            logger.warning(f"Audio alert failed, visual alert only: {e}")

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    async def _run_sampling_timer(self) -> None:
        while True:
            await asyncio.sleep(self.scan_interval_seconds)
            self.on_sampling_tick()

    def on_sampling_tick(self) -> Optional[asyncio.Task]:
        """
        Handle one sampling timer tick: launch exactly one sample task (capture
        a still off the event loop, then one analyzer call) without waiting
        for the result.

        Returns:
            The sample task, or None if the machine is not sampling
        """
        if self.state is not DetectionState.SCANNING:
            return None
        handle = self._session.camera_handle
        if handle is None:
            return None

        task = asyncio.create_task(self._analyze_sample(handle, self._generation))
        self._pending_analyses.add(task)
        task.add_done_callback(self._pending_analyses.discard)
        return task

    async def _analyze_sample(self, handle: CameraHandle, generation: int) -> None:
        try:
            image = await asyncio.to_thread(handle.capture_still, self.jpeg_quality)
        except Exception as e:
            logger.warning(f"Frame capture failed: {e}")
            return
        if not image:
            logger.debug("No camera frame available; skipping sample")
            return
        if generation != self._generation:
            logger.debug(f"Discarding frame captured in generation {generation}")
            return

        verdict = await self._analyze_with_fallback(image)

        if generation != self._generation or self.state is not DetectionState.SCANNING:
            logger.debug(f"Discarding stale verdict from generation {generation}")
            return

        self._session.last_verdict = verdict
        if verdict.is_drowsy:
            logger.warning(
                f"Drowsiness detected: {verdict.reason} "
                f"(confidence {verdict.confidence:.2f}, signs {list(verdict.detected_signs)})"
            )
            self._transition(DetectionState.ALERT)
        else:
            self._notify()

    async def _analyze_with_fallback(self, image: bytes) -> AnalysisVerdict:
        """Call the analyzer; any failure or timeout yields the fail-open verdict."""
        try:
            if self.analyzer_timeout_seconds:
                return await asyncio.wait_for(
                    self._analyzer.analyze(image),
                    timeout=self.analyzer_timeout_seconds,
                )
            return await self._analyzer.analyze(image)
        except asyncio.TimeoutError:
            logger.warning(f"Frame analysis timed out after {self.analyzer_timeout_seconds}s")
        except Exception as e:
            logger.warning(f"Frame analysis failed: {e}")
        return AnalysisVerdict.analysis_failed()

    # ------------------------------------------------------------------
    # Cooldown
    # ------------------------------------------------------------------

    async def _run_cooldown_timer(self) -> None:
        while True:
            await asyncio.sleep(self.cooldown_tick_seconds)
            self.on_cooldown_tick()

    def on_cooldown_tick(self) -> None:
        """Handle one cooldown tick: count down, and resume scanning at zero."""
        if self.state is not DetectionState.ALERT:
            return
        if self._session.cooldown_remaining > 1:
            self._session.cooldown_remaining -= 1
            self._notify()
            return
        self._session.cooldown_remaining = 0
        self._transition(DetectionState.SCANNING)
