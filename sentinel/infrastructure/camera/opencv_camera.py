"""
OpenCV Camera
-------------

Opens the user-facing webcam with cv2.VideoCapture and turns the current frame
into a compressed still for the analyzer.

Acquisition (device negotiation) is blocking, so acquire() runs it in a worker
thread. capture_still() blocks on the next frame and is called from a worker
thread by the monitoring core; release() may arrive from the event loop while
a read is in progress, in which case the reader releases the device.
"""

import asyncio
import logging
from threading import Lock
from io import BytesIO
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from ...domain.constants.monitoring_constants import CAMERA_ERROR_MESSAGE
from ...domain.contracts.camera import CameraConstraints, CameraHandle, CameraSource
from ...domain.exceptions import CameraAcquisitionError

logger = logging.getLogger(__name__)


def encode_jpeg(frame: np.ndarray, quality: int) -> bytes:
    """
    Encode a BGR frame as JPEG bytes.

    Args:
        frame: numpy array of shape (H, W, 3) in BGR format
        quality: JPEG quality (1-95)

    Returns:
        JPEG-encoded bytes
    """
    rgb_image = frame[:, :, ::-1]
    pil_image = Image.fromarray(np.ascontiguousarray(rgb_image).astype(np.uint8))
    buffer = BytesIO()
    pil_image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


class OpenCVCameraHandle(CameraHandle):
    """An opened cv2.VideoCapture. Released exactly once."""

    def __init__(self, capture: "cv2.VideoCapture", resolution: Tuple[int, int]):
        self._capture: Optional["cv2.VideoCapture"] = capture
        self.resolution = resolution
        self._lock = Lock()
        self._reading = False

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def capture_still(self, quality: int) -> Optional[bytes]:
        with self._lock:
            capture = self._capture
            if capture is None:
                return None
            self._reading = True
        try:
            ret, frame = capture.read()
        finally:
            with self._lock:
                self._reading = False
                released_during_read = self._capture is None
            if released_during_read:
                self._release_capture(capture)
        if released_during_read:
            return None

        if not ret or frame is None:
            logger.debug("No camera frame available")
            return None
        if frame.ndim != 3:
            return None
        if frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)

        width, height = self.resolution
        if width > 0 and height > 0 and (frame.shape[1], frame.shape[0]) != (width, height):
            frame = cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)
        return encode_jpeg(frame, quality)

    def release(self) -> None:
        with self._lock:
            capture, self._capture = self._capture, None
            reading = self._reading
        if capture is None:
            return
        if reading:
            logger.debug("Camera read in progress; release deferred to the reader")
            return
        self._release_capture(capture)

    @staticmethod
    def _release_capture(capture: "cv2.VideoCapture") -> None:
        try:
            capture.release()
            logger.info("Camera released")
        except Exception as e:
            logger.warning(f"Error releasing camera: {e}")


class OpenCVCameraSource(CameraSource):
    """
    Camera source for a local webcam.

    facing_mode is advisory: a laptop/dashboard webcam is the user-facing one,
    selected through CAMERA_INDEX.
    """

    def __init__(self, camera_index: int = 0, backend: Optional[int] = None):
        self.camera_index = camera_index
        self.backend = backend

    def _open(self, constraints: CameraConstraints) -> OpenCVCameraHandle:
        if self.backend is None:
            capture = cv2.VideoCapture(self.camera_index)
        else:
            capture = cv2.VideoCapture(self.camera_index, self.backend)

        if not capture.isOpened():
            capture.release()
            raise CameraAcquisitionError(CAMERA_ERROR_MESSAGE)

        # Ideal resolution; the driver may negotiate something else
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)) or constraints.ideal_width
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)) or constraints.ideal_height
        logger.info(
            f"Camera {self.camera_index} opened ({constraints.facing_mode}-facing) "
            f"at {width}x{height}"
        )
        return OpenCVCameraHandle(capture, (width, height))

    async def acquire(self, constraints: CameraConstraints) -> CameraHandle:
        try:
            return await asyncio.to_thread(self._open, constraints)
        except CameraAcquisitionError:
            raise
        except cv2.error as e:
            raise CameraAcquisitionError(CAMERA_ERROR_MESSAGE) from e
