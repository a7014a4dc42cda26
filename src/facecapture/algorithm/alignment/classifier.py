"""Alignment classifier: ordered named checks over one frame's geometry.

Checks run in a fixed priority order and the first failure wins, so the
user only ever sees one corrective instruction:

    presence -> lighting -> vertical -> horizontal -> distance -> pose

The order is data (``DEFAULT_CHECKS``); each check is a plain function
returning ``None`` on pass or a ``CheckFailure``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from facecapture.algorithm import geometry
from facecapture.algorithm.alignment.output import (
    AlignmentInputs,
    CheckFailure,
    GuideBox,
    GuidanceDebug,
)
from facecapture.config import FramingConfig, GuidanceConfig
from facecapture.types import AlignmentResult, GuideColor, KeypointSet

logger = logging.getLogger(__name__)

MSG_SHOW_FACE = "Show your face to the camera"
MSG_HOLD_HIGHER = "Hold the phone higher"
MSG_RAISE_PHONE = "Raise the phone a little"
MSG_LOWER_PHONE = "Lower the phone a little"
MSG_MOVE_LEFT = "Move left to center your face"
MSG_MOVE_RIGHT = "Move right to center your face"
MSG_CLOSER = "Come a little closer"
MSG_FARTHER = "Move back a little"
MSG_PERFECT = "Perfect!"

CheckFn = Callable[[AlignmentInputs, FramingConfig], Optional[CheckFailure]]


def check_presence(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    if inputs.glabella is None or inputs.face_area_ratio < cfg.min_face_area_ratio:
        return CheckFailure("presence", "no_face", MSG_SHOW_FACE)
    return None


def check_lighting(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    if not inputs.lighting_ok and not inputs.screen_light:
        return CheckFailure("lighting", "too_dark", inputs.lighting_message, GuideColor.CAUTION)
    return None


def check_vertical(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    if inputs.glabella is None:
        return None
    _, gy = inputs.glabella
    if gy > cfg.glabella_y_max:
        return CheckFailure("vertical", "too_low", MSG_HOLD_HIGHER)

    offset = gy - cfg.glabella_y_ideal
    if abs(offset) > cfg.y_tolerance:
        if offset > 0:
            return CheckFailure("vertical", "low", MSG_RAISE_PHONE)
        return CheckFailure("vertical", "high", MSG_LOWER_PHONE)
    return None


def check_horizontal(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    offset = _center_offset_x(inputs)
    if abs(offset) > cfg.x_tolerance:
        if offset > 0:
            return CheckFailure("horizontal", "right_of_center", MSG_MOVE_LEFT)
        return CheckFailure("horizontal", "left_of_center", MSG_MOVE_RIGHT)
    return None


def check_distance(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    ratio = inputs.width_ratio
    if ratio < cfg.size_ratio_min:
        return CheckFailure("distance", "too_far", MSG_CLOSER)
    if ratio > cfg.size_ratio_max:
        return CheckFailure("distance", "too_close", MSG_FARTHER)
    return None


def check_pose(inputs: AlignmentInputs, cfg: FramingConfig) -> Optional[CheckFailure]:
    if not inputs.pose.ok:
        return CheckFailure("pose", inputs.pose.reason, inputs.pose.message, GuideColor.CAUTION)
    return None


DEFAULT_CHECKS: Tuple[Tuple[str, CheckFn], ...] = (
    ("presence", check_presence),
    ("lighting", check_lighting),
    ("vertical", check_vertical),
    ("horizontal", check_horizontal),
    ("distance", check_distance),
    ("pose", check_pose),
)


def _center_offset_x(inputs: AlignmentInputs) -> float:
    if inputs.glabella is None or inputs.frame_width <= 0:
        return 0.0
    gx, _ = inputs.glabella
    return (gx * inputs.frame_width - inputs.guide.center_x) / inputs.frame_width


def build_inputs(
    keypoints: Optional[KeypointSet],
    frame_width: int,
    frame_height: int,
    guide: Optional[GuideBox] = None,
    guidance: Optional[GuidanceConfig] = None,
    framing: Optional[FramingConfig] = None,
    lighting_ok: bool = True,
    lighting_message: str = "",
    screen_light: bool = False,
    brightness: float = 0.0,
) -> AlignmentInputs:
    """Run the geometry layer and bundle the results for ``classify``."""
    framing = framing or FramingConfig()
    if guide is None:
        guide = GuideBox.default_for(
            frame_width, frame_height,
            framing.guide_width_ratio, framing.guide_height_ratio,
        )
    return AlignmentInputs(
        frame_width=frame_width,
        frame_height=frame_height,
        bounds=geometry.face_bounds(keypoints, frame_width, frame_height),
        pose=geometry.coarse_pose(keypoints, guidance),
        guide=guide,
        glabella=geometry.glabella_position(keypoints),
        lighting_ok=lighting_ok,
        lighting_message=lighting_message,
        screen_light=screen_light,
        brightness=brightness,
    )


class AlignmentClassifier:
    """Multi-criterion alignment verdict.

    Args:
        config: Framing tolerances.
        checks: Ordered ``(name, fn)`` pairs; defaults to ``DEFAULT_CHECKS``.
    """

    def __init__(
        self,
        config: Optional[FramingConfig] = None,
        checks: Optional[Sequence[Tuple[str, CheckFn]]] = None,
    ):
        self.config = config or FramingConfig()
        self.checks = tuple(checks) if checks is not None else DEFAULT_CHECKS
        self._stats_total = 0
        self._stats_aligned = 0
        self._stats_reasons: Dict[str, int] = {}

    @property
    def check_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.checks)

    def first_failure(self, inputs: AlignmentInputs) -> Optional[CheckFailure]:
        for name, fn in self.checks:
            failure = fn(inputs, self.config)
            if failure is not None:
                return failure
        return None

    def classify(self, inputs: AlignmentInputs) -> AlignmentResult:
        self._stats_total += 1
        failure = self.first_failure(inputs)
        if failure is None:
            self._stats_aligned += 1
            return AlignmentResult(aligned=True, message=MSG_PERFECT, color=GuideColor.SUCCESS)

        self._stats_reasons[failure.check] = self._stats_reasons.get(failure.check, 0) + 1
        logger.debug("alignment rejected: %s/%s", failure.check, failure.reason)
        return AlignmentResult(
            aligned=False,
            message=failure.message,
            color=failure.color,
            reason=failure.check,
        )

    def debug_info(self, inputs: AlignmentInputs) -> GuidanceDebug:
        gy = inputs.glabella[1] if inputs.glabella is not None else 0.0
        return GuidanceDebug(
            pose_ok=inputs.pose.ok,
            yaw_ratio=round(inputs.pose.yaw_ratio, 2),
            pitch_value=round(inputs.pose.pitch_value, 1),
            roll_angle=round(inputs.pose.roll_angle, 1),
            face_width_ratio=round(inputs.width_ratio, 2),
            face_height_ratio=round(inputs.height_ratio, 2),
            center_offset_x=round(_center_offset_x(inputs), 2),
            center_offset_y=round(gy - self.config.glabella_y_ideal, 2) if inputs.glabella else 0.0,
            glabella_y=round(gy, 2),
            brightness=round(inputs.brightness, 1),
            face_area_ratio=round(inputs.face_area_ratio, 3),
        )

    def log_summary(self) -> None:
        if self._stats_total > 0:
            logger.info(
                "alignment summary: %d/%d aligned (%.0f%%), fail reasons: %s",
                self._stats_aligned, self._stats_total,
                100.0 * self._stats_aligned / self._stats_total,
                dict(self._stats_reasons) if self._stats_reasons else "none",
            )


__all__ = [
    "AlignmentClassifier",
    "DEFAULT_CHECKS",
    "build_inputs",
    "check_presence",
    "check_lighting",
    "check_vertical",
    "check_horizontal",
    "check_distance",
    "check_pose",
]
