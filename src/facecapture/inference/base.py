"""Inference service interfaces.

The landmark service is a black box mapping one BGR frame to a list of
faces, each a 468-point payload (see ``parse_keypoints``). Angle
detectors map a frame straight to fine pose angles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

import numpy as np

from facecapture.algorithm.geometry import fine_pose
from facecapture.inference.keypoints import parse_detection
from facecapture.types import PoseAngles


class InferenceError(RuntimeError):
    """Backend could not be initialized or was used before ``initialize()``."""


@dataclass
class InferenceResult:
    """Outcome of one worker request.

    Attributes:
        value: Detector return value (None on failure).
        error: Error message if the detector raised.
        timing_ms: Time spent in ``detect``.
    """

    value: Any = None
    error: Optional[str] = None
    timing_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class Detector(ABC):
    """Lifecycle shared by every inference backend."""

    def initialize(self) -> None:
        """Load models/resources. Called once from the owning worker."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> Any:
        ...

    def cleanup(self) -> None:
        """Release resources."""


class LandmarkDetector(Detector):
    """Frame -> list of face keypoint payloads."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[Any]:
        """Detect faces.

        Args:
            image: BGR image (H, W, 3).

        Returns:
            One keypoint payload per detected face (empty if none).
        """
        ...


class AngleDetector(Detector):
    """Frame -> fine pose angles (None when no usable face)."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> Optional[PoseAngles]:
        ...


class LandmarkAngleDetector(AngleDetector):
    """Angle detector running the fine estimator over a landmark detector.

    Lets the fine angle path run on its own model instance and thread.
    """

    def __init__(self, landmarks: LandmarkDetector):
        self._landmarks = landmarks

    def initialize(self) -> None:
        self._landmarks.initialize()

    def detect(self, image: np.ndarray) -> Optional[PoseAngles]:
        return fine_pose(parse_detection(self._landmarks.detect(image)))

    def cleanup(self) -> None:
        self._landmarks.cleanup()


__all__ = [
    "InferenceError",
    "InferenceResult",
    "Detector",
    "LandmarkDetector",
    "AngleDetector",
    "LandmarkAngleDetector",
]
