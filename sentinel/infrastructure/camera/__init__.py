"""Camera infrastructure"""

from .opencv_camera import OpenCVCameraHandle, OpenCVCameraSource, encode_jpeg

__all__ = [
    "OpenCVCameraHandle",
    "OpenCVCameraSource",
    "encode_jpeg",
]
