"""facecapture - guided face alignment and adaptive auto-capture.

Quick Start:
    >>> import facecapture as fc
    >>> result = fc.run(0, target="front", output_dir="./captures")
    >>> print(result.completed, result.saved_paths)

Three-angle sequence:
    >>> result = fc.run("clip.mp4", multi=True)
    >>> front, left, right = (result.images[k] for k in ("front", "left", "right"))

Driving a session yourself:
    >>> from facecapture import CaptureSession, parse_keypoints
    >>> session = CaptureSession(target="front", on_captured=save)
    >>> verdict = session.observe(frame, parse_keypoints(landmarks), t_ns)
    >>> print(verdict.alignment.message, verdict.progress)
"""

from facecapture.config import CaptureConfig, ConfigError
from facecapture.inference import InferenceError, parse_detection, parse_keypoints
from facecapture.main import Result, run
from facecapture.sequencer import MultiAngleSequencer
from facecapture.session import CaptureSession, FrameVerdict
from facecapture.types import (
    AlignmentResult,
    CaptureStage,
    CaptureStep,
    CaptureTargetAngle,
    GuideColor,
    KeypointSet,
    PoseAngles,
)

__all__ = [
    # Configuration
    "CaptureConfig",
    "ConfigError",
    # High-level API
    "run",
    "Result",
    "CaptureSession",
    "FrameVerdict",
    "MultiAngleSequencer",
    # Input contract
    "InferenceError",
    "parse_keypoints",
    "parse_detection",
    # Types
    "AlignmentResult",
    "CaptureStage",
    "CaptureStep",
    "CaptureTargetAngle",
    "GuideColor",
    "KeypointSet",
    "PoseAngles",
]
