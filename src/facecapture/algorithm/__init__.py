"""Frame-level decision algorithms (pure state, no I/O)."""

from facecapture.algorithm.alignment import AlignmentClassifier, GuideBox
from facecapture.algorithm.angle import AngleValidator, is_angle_valid
from facecapture.algorithm.geometry import (
    LightingMonitor,
    coarse_pose,
    face_bounds,
    fine_pose,
    measure_brightness,
)
from facecapture.algorithm.sampling import AdaptiveSampler, SamplingDecision
from facecapture.algorithm.stability import StabilityState, StabilityTimer
from facecapture.algorithm.stage import CaptureStageMachine

__all__ = [
    "AlignmentClassifier",
    "GuideBox",
    "AngleValidator",
    "is_angle_valid",
    "LightingMonitor",
    "coarse_pose",
    "face_bounds",
    "fine_pose",
    "measure_brightness",
    "AdaptiveSampler",
    "SamplingDecision",
    "StabilityState",
    "StabilityTimer",
    "CaptureStageMachine",
]
