"""CLI utility functions."""

import logging
import os
import sys

BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"

_NOISY_LOGGERS = ("absl", "mediapipe", "urllib3", "matplotlib")


def suppress_thirdparty_noise():
    """Quiet OpenCV/MediaPipe native logging for cleaner CLI output."""
    os.environ.setdefault("OPENCV_LOG_LEVEL", "ERROR")
    os.environ.setdefault("GLOG_minloglevel", "2")
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
    os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")


def configure_log_levels():
    """Raise third-party loggers to WARNING."""
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class StderrFilter:
    """Filter stderr to suppress native library warnings."""

    SUPPRESS_PATTERNS = (
        "WARNING: All log messages before absl::InitializeLog()",
        "INFO: Created TensorFlow Lite",
        "inference_feedback_manager",
        "landmark_projection_calculator",
        "qt.qpa.",
    )

    def __init__(self, stream=None):
        self._stream = stream or sys.stderr

    def install(self):
        sys.stderr = self
        return self

    def write(self, text):
        if not any(p in text for p in self.SUPPRESS_PATTERNS):
            self._stream.write(text)

    def flush(self):
        self._stream.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)
