"""Core data types shared by the capture engine.

Coordinate conventions:
- Keypoints are normalized to the frame (x, y in 0-1, z relative depth).
- FaceBounds are in pixels for the frame the keypoints came from.
- Angles are in degrees.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np

EXPECTED_KEYPOINTS = 468


class CaptureTargetAngle(str, Enum):
    """Desired head orientation for a capture step."""

    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"


class CaptureStage(str, Enum):
    """Lifecycle of one capture run."""

    IDLE = "idle"
    SCANNING = "scanning"
    PROCESSING = "processing"
    COMPLETE = "complete"


class GuideColor(str, Enum):
    """Severity color for the on-screen guidance message."""

    NEUTRAL = "neutral"
    CAUTION = "caution"
    SUCCESS = "success"


class KeypointSet:
    """Immutable set of 468 face mesh keypoints for one detected face.

    Build through ``facecapture.inference.parse_keypoints`` so the
    structural contract is checked before geometry sees the points.

    Attributes:
        points: Read-only float64 array of shape (468, 3).
        has_depth: True when the source carried a z coordinate.
    """

    __slots__ = ("_points", "_has_depth")

    def __init__(self, points: np.ndarray, has_depth: bool):
        arr = np.array(points, dtype=np.float64, copy=True)
        if arr.shape != (EXPECTED_KEYPOINTS, 3):
            raise ValueError(
                f"KeypointSet needs shape ({EXPECTED_KEYPOINTS}, 3), got {arr.shape}"
            )
        arr.setflags(write=False)
        self._points = arr
        self._has_depth = bool(has_depth)

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def has_depth(self) -> bool:
        return self._has_depth

    def __len__(self) -> int:
        return len(self._points)

    def x(self, index: int) -> float:
        return float(self._points[index, 0])

    def y(self, index: int) -> float:
        return float(self._points[index, 1])

    def z(self, index: int) -> Optional[float]:
        if not self._has_depth:
            return None
        return float(self._points[index, 2])

    def __repr__(self) -> str:
        return f"KeypointSet(n={len(self)}, has_depth={self._has_depth})"


@dataclass(frozen=True)
class FaceBounds:
    """Axis-aligned face box in pixel space."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    center_x: float = 0.0
    center_y: float = 0.0

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class PoseAngles:
    """Head pose angles in degrees.

    - yaw: left(-) / right(+) head turn
    - pitch: up(-) / down(+) head tilt
    - roll: in-plane head tilt
    """

    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    def max_delta(self, other: "PoseAngles") -> float:
        """Largest per-axis absolute difference to another pose."""
        return max(
            abs(self.yaw - other.yaw),
            abs(self.pitch - other.pitch),
            abs(self.roll - other.roll),
        )


@dataclass(frozen=True)
class PoseCheck:
    """Coarse (guidance) pose verdict.

    ``reason`` names the first failing axis ("yaw", "roll", "pitch") or
    is empty when the pose passes.
    """

    ok: bool
    message: str = ""
    reason: str = ""
    yaw_ratio: float = 1.0
    pitch_value: float = 0.0
    roll_angle: float = 0.0


@dataclass(frozen=True)
class AlignmentResult:
    """Per-frame guidance verdict surfaced to the UI layer."""

    aligned: bool
    message: str
    color: GuideColor = GuideColor.NEUTRAL
    reason: str = ""


@dataclass
class CaptureStep:
    """One slot in the multi-angle sequence.

    Mutated in place as the step completes or is retaken.
    """

    angle: CaptureTargetAngle
    label: str
    instruction: str
    completed: bool = False
    image: Optional[Any] = field(default=None, repr=False)


__all__ = [
    "EXPECTED_KEYPOINTS",
    "CaptureTargetAngle",
    "CaptureStage",
    "GuideColor",
    "KeypointSet",
    "FaceBounds",
    "PoseAngles",
    "PoseCheck",
    "AlignmentResult",
    "CaptureStep",
]
