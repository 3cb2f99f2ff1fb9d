"""Fixed timing and capture constants of the drowsiness monitor"""

# Sampling cadence: time between the start of consecutive samples
SCAN_INTERVAL_MS = 2000

# Alert cooldown before sampling resumes (seconds, counted down once per tick)
ALERT_COOLDOWN_SECONDS = 3
COOLDOWN_TICK_SECONDS = 1.0

# Still capture
JPEG_QUALITY = 70
IMAGE_MIME_TYPE = "image/jpeg"
IDEAL_CAPTURE_WIDTH = 640
IDEAL_CAPTURE_HEIGHT = 480
FACING_MODE_USER = "user"

# Analyzer call bound (seconds); 0 disables the timeout
ANALYZER_TIMEOUT_SECONDS = 10.0

# Audio alarm
ALARM_HARD_STOP_SECONDS = 3.0

# User-facing texts
CAMERA_ERROR_MESSAGE = "Could not access camera. Please allow permissions."
ANALYSIS_FAILED_REASON = "analysis failed"
DEFAULT_ALERT_REASON = "Drowsiness Detected"
