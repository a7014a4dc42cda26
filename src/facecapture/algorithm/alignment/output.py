"""Input/output types for the alignment classifier."""

from dataclasses import dataclass
from typing import Optional

from facecapture.types import FaceBounds, GuideColor, PoseCheck


@dataclass(frozen=True)
class GuideBox:
    """On-screen guide rectangle in pixels."""

    center_x: float
    width: float
    height: float

    @classmethod
    def default_for(cls, frame_width: int, frame_height: int,
                    width_ratio: float = 0.70, height_ratio: float = 0.55) -> "GuideBox":
        return cls(
            center_x=frame_width / 2,
            width=frame_width * width_ratio,
            height=frame_height * height_ratio,
        )


@dataclass(frozen=True)
class CheckFailure:
    """Typed failure from one named check."""

    check: str                        # "presence", "lighting", "vertical", ...
    reason: str                       # e.g. "too_dark", "too_far", "yaw"
    message: str
    color: GuideColor = GuideColor.NEUTRAL


@dataclass(frozen=True)
class AlignmentInputs:
    """Everything one classification needs for a single frame."""

    frame_width: int
    frame_height: int
    bounds: FaceBounds
    pose: PoseCheck
    guide: GuideBox
    glabella: Optional[tuple] = None  # normalized (x, y)
    lighting_ok: bool = True
    lighting_message: str = ""
    screen_light: bool = False
    brightness: float = 0.0

    @property
    def face_area_ratio(self) -> float:
        frame_area = self.frame_width * self.frame_height
        if frame_area <= 0:
            return 0.0
        return self.bounds.area / frame_area

    @property
    def width_ratio(self) -> float:
        return self.bounds.width / self.guide.width if self.guide.width > 0 else 0.0

    @property
    def height_ratio(self) -> float:
        return self.bounds.height / self.guide.height if self.guide.height > 0 else 0.0


@dataclass(frozen=True)
class GuidanceDebug:
    """Measured values behind a verdict (for a debug overlay)."""

    pose_ok: bool = False
    yaw_ratio: float = 1.0
    pitch_value: float = 0.0
    roll_angle: float = 0.0
    face_width_ratio: float = 0.0
    face_height_ratio: float = 0.0
    center_offset_x: float = 0.0
    center_offset_y: float = 0.0
    glabella_y: float = 0.0
    brightness: float = 0.0
    face_area_ratio: float = 0.0


__all__ = ["GuideBox", "CheckFailure", "AlignmentInputs", "GuidanceDebug"]
