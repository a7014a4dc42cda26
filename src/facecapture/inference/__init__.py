"""Landmark/angle inference: interfaces, input contract and workers.

The MediaPipe backend is imported lazily so the core runs without it.
"""

from facecapture.inference.base import (
    AngleDetector,
    Detector,
    InferenceError,
    InferenceResult,
    LandmarkAngleDetector,
    LandmarkDetector,
)
from facecapture.inference.keypoints import parse_detection, parse_keypoints
from facecapture.inference.worker import InferenceWorker

__all__ = [
    "AngleDetector",
    "Detector",
    "InferenceError",
    "InferenceResult",
    "LandmarkAngleDetector",
    "LandmarkDetector",
    "parse_detection",
    "parse_keypoints",
    "InferenceWorker",
]
