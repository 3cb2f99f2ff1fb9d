"""
Audio alert emitter.

Synthesizes a short attention-getting alarm (three square-wave pulses whose
pitch sweeps between two tones an octave apart) and plays it through the
pygame mixer. No sound assets are needed.

Playback is bounded: the rendered buffer never exceeds the hard stop, the
mixer is asked to stop at the hard stop (maxtime), and the emitter releases
its playback handle at the hard stop on its own timer.
"""
import asyncio
import logging
import os
import time
from typing import Any, Callable, Optional

import numpy as np

from ...domain.constants.monitoring_constants import ALARM_HARD_STOP_SECONDS
from ...domain.contracts.audio_alert import AudioAlert

logger = logging.getLogger(__name__)

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

# pygame is optional at runtime: without it the alert is visual only
try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    pygame = None  # type: ignore[assignment]
    PYGAME_AVAILABLE = False
    logger.warning("pygame not available. Audio alerts are disabled (visual alert only).")


SAMPLE_RATE = 22050
LOW_TONE_HZ = 880.0    # A5
HIGH_TONE_HZ = 1760.0  # A6
SWEEP_STEP_SECONDS = 0.1
PULSE_STARTS_SECONDS = (0.0, 0.3, 0.6)
PULSE_SECONDS = 0.18
ATTACK_SECONDS = 0.05
PEAK_VOLUME = 0.5


def build_alarm_pattern(
    sample_rate: int = SAMPLE_RATE,
    channels: int = 1,
    hard_stop_seconds: float = ALARM_HARD_STOP_SECONDS,
) -> np.ndarray:
    """
    Render the three-pulse alarm as signed 16-bit samples.

    Args:
        sample_rate: Output sample rate (Hz)
        channels: 1 for mono, 2 for stereo (samples duplicated per channel)
        hard_stop_seconds: The rendered buffer is truncated to this length

    Returns:
        int16 array of shape (N,) for mono or (N, channels)
    """
    duration = PULSE_STARTS_SECONDS[-1] + PULSE_SECONDS
    sample_count = int(round(duration * sample_rate))
    t = np.arange(sample_count) / sample_rate

    # Swept square wave: alternate between the two pitches every sweep step
    step = (t // SWEEP_STEP_SECONDS).astype(int)
    frequency = np.where(step % 2 == 0, LOW_TONE_HZ, HIGH_TONE_HZ)
    phase = 2.0 * np.pi * np.cumsum(frequency) / sample_rate
    square = np.where(np.sin(phase) >= 0.0, 1.0, -1.0)

    # Gain envelope: linear attack then linear release per pulse, silence between pulses
    envelope = np.zeros(sample_count)
    attack = int(ATTACK_SECONDS * sample_rate)
    pulse_length = int(PULSE_SECONDS * sample_rate)
    for start_seconds in PULSE_STARTS_SECONDS:
        start = int(start_seconds * sample_rate)
        end = min(start + pulse_length, sample_count)
        rise_end = min(start + attack, end)
        envelope[start:rise_end] = np.linspace(0.0, PEAK_VOLUME, rise_end - start, endpoint=False)
        envelope[rise_end:end] = np.linspace(PEAK_VOLUME, 0.0, end - rise_end)

    samples = (square * envelope * np.iinfo(np.int16).max).astype(np.int16)
    samples = samples[: int(hard_stop_seconds * sample_rate)]
    if channels > 1:
        samples = np.repeat(samples[:, np.newaxis], channels, axis=1)
    return np.ascontiguousarray(samples)


class AudioAlertEmitter(AudioAlert):
    """
    Bounded, non-overlapping audible alarm.

    The emitter owns at most one playback handle (a mixer channel) between
    start() and the earlier of stop() or the hard stop. While it owns one,
    start() is a no-op. Audio failures are logged and never raised.
    """

    def __init__(
        self,
        mixer: Optional[Any] = None,
        hard_stop_seconds: float = ALARM_HARD_STOP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            mixer: pygame.mixer compatible object (defaults to pygame.mixer)
            hard_stop_seconds: Absolute playback bound from start()
            clock: Monotonic clock used for the hard stop when no event loop runs
        """
        self._mixer = mixer
        self.hard_stop_seconds = hard_stop_seconds
        self._clock = clock
        self._channel: Optional[Any] = None
        self._sound: Optional[Any] = None
        self._started_at: Optional[float] = None
        self._hard_stop_handle: Optional[asyncio.TimerHandle] = None

    @property
    def is_playing(self) -> bool:
        self._expire_if_due()
        return self._channel is not None

    def _ensure_mixer(self) -> Optional[Any]:
        if self._mixer is None:
            if pygame is None:
                return None
            self._mixer = pygame.mixer
        if not self._mixer.get_init():
            self._mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
        return self._mixer

    def start(self) -> None:
        self._expire_if_due()
        if self._channel is not None:
            logger.debug("Alarm already playing; ignoring start()")
            return

        try:
            mixer = self._ensure_mixer()
            if mixer is None:
                return
            frequency, _size, channels = mixer.get_init()
            pattern = build_alarm_pattern(frequency, channels, self.hard_stop_seconds)
            sound = mixer.Sound(buffer=pattern.tobytes())
            channel = sound.play(maxtime=int(self.hard_stop_seconds * 1000))
        except Exception as e:
            logger.warning(f"Audio alert unavailable, continuing with visual alert only: {e}")
            return

        if channel is None:
            logger.warning("No free mixer channel for the audio alert")
            return

        self._channel = channel
        self._sound = sound
        self._started_at = self._clock()
        self._arm_hard_stop()
        logger.info("Audio alert started")

    def stop(self) -> None:
        self._cancel_hard_stop()
        channel, self._channel = self._channel, None
        self._sound = None
        self._started_at = None
        if channel is None:
            return
        try:
            channel.stop()
        except Exception as e:
            logger.warning(f"Error stopping audio alert: {e}")
        logger.info("Audio alert stopped")

    def _arm_hard_stop(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: is_playing/start fall back to the clock check
            return
        self._hard_stop_handle = loop.call_later(self.hard_stop_seconds, self._on_hard_stop)

    def _cancel_hard_stop(self) -> None:
        handle, self._hard_stop_handle = self._hard_stop_handle, None
        if handle is not None:
            handle.cancel()

    def _on_hard_stop(self) -> None:
        self._hard_stop_handle = None
        logger.debug("Audio alert reached hard stop")
        self.stop()

    def _expire_if_due(self) -> None:
        if self._started_at is None:
            return
        if self._clock() - self._started_at >= self.hard_stop_seconds:
            self.stop()
