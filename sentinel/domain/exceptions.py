"""Domain exceptions raised at the boundaries of the monitoring core"""


class CameraAcquisitionError(Exception):
    """The camera could not be opened (permission denied, no device, busy)."""


class AnalyzerError(Exception):
    """The frame analyzer failed or returned a malformed verdict."""
