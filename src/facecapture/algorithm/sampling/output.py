"""Output types for the adaptive sampling controller."""

from dataclasses import dataclass
from typing import Optional

from facecapture.types import PoseAngles


@dataclass(frozen=True)
class SamplingDecision:
    """What to do about fine angle inference on one frame.

    Attributes:
        request_angle: Caller should run (or submit) a fine angle computation
            and report it back through ``AdaptiveSampler.on_angle``.
        angle_valid: Target-angle validity to use for this frame.
        used_cache: The validity came from the cached angle.
        skip_interval: Current detect-every-N-frames interval.
        mean_motion: Mean normalized face-center displacement.
        angle: Cached angle backing ``angle_valid`` (None if no cache).
    """

    request_angle: bool = False
    angle_valid: bool = False
    used_cache: bool = False
    skip_interval: int = 3
    mean_motion: float = 0.0
    angle: Optional[PoseAngles] = None


__all__ = ["SamplingDecision"]
