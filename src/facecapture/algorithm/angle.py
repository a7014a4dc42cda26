"""Target-angle validation over fine pose angles."""

from typing import Optional, Union

from facecapture.config import AngleConfig
from facecapture.types import CaptureTargetAngle, PoseAngles


def is_angle_valid(
    angle: Optional[PoseAngles],
    target: Union[CaptureTargetAngle, str],
    tolerance: float = 15.0,
    side_pitch_factor: float = 1.5,
    side_yaw_limit: float = 60.0,
) -> bool:
    """Whether ``angle`` matches ``target`` within tolerance.

    - roll: ``|roll| <= tolerance`` for every target
    - pitch: ``tolerance`` for front, ``tolerance * side_pitch_factor`` for sides
    - yaw: front ``|yaw| < tolerance``; left ``-limit < yaw < -tolerance``;
      right ``tolerance < yaw < limit``

    A missing angle is always invalid.
    """
    if angle is None:
        return False

    target = CaptureTargetAngle(target)

    if abs(angle.roll) > tolerance:
        return False

    if target is CaptureTargetAngle.FRONT:
        return abs(angle.pitch) <= tolerance and abs(angle.yaw) < tolerance

    if abs(angle.pitch) > tolerance * side_pitch_factor:
        return False

    if target is CaptureTargetAngle.LEFT:
        return -side_yaw_limit < angle.yaw < -tolerance
    return tolerance < angle.yaw < side_yaw_limit


class AngleValidator:
    """``is_angle_valid`` bound to a target and an ``AngleConfig``."""

    def __init__(self, target: Union[CaptureTargetAngle, str],
                 config: Optional[AngleConfig] = None):
        self.target = CaptureTargetAngle(target)
        self.config = config or AngleConfig()

    def __call__(self, angle: Optional[PoseAngles]) -> bool:
        return is_angle_valid(
            angle,
            self.target,
            tolerance=self.config.tolerance_deg,
            side_pitch_factor=self.config.side_pitch_factor,
            side_yaw_limit=self.config.side_yaw_limit_deg,
        )

    def __repr__(self) -> str:
        return f"AngleValidator({self.target.value}, tolerance={self.config.tolerance_deg})"


__all__ = ["is_angle_valid", "AngleValidator"]
