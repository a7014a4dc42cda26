"""Pure geometry over a face mesh keypoint set.

Two pose estimators live here on purpose:

- ``coarse_pose``: symmetry ratios used for live guidance text.
- ``fine_pose``: trigonometric yaw/pitch/roll used for target-angle gating.

Every function accepts ``None`` for "no usable face" and returns its
invalid result in that case instead of a numeric angle.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from facecapture.config import GuidanceConfig, LightingConfig
from facecapture.types import FaceBounds, KeypointSet, PoseAngles, PoseCheck

# MediaPipe Face Mesh indices
NOSE_TIP = 1
NOSE_TIP_FINE = 4
LEFT_EAR = 234
RIGHT_EAR = 454
LEFT_EYE_OUTER = 33
RIGHT_EYE_OUTER = 263
LEFT_EYE_INNER = 133
RIGHT_EYE_INNER = 362
CHIN = 18
FOREHEAD = 10
GLABELLA = 168

MSG_NO_LANDMARKS = "Not enough face landmarks"
MSG_TURN_LEFT = "Turn your face slightly to the left"
MSG_TURN_RIGHT = "Turn your face slightly to the right"
MSG_TILT_LEFT = "Tilt your head slightly to the left"
MSG_TILT_RIGHT = "Tilt your head slightly to the right"
MSG_CHIN_DOWN = "Lower your chin slightly"
MSG_HEAD_UP = "Raise your head slightly"

_LUMA = np.array([0.114, 0.587, 0.299])  # BGR order


def face_bounds(keypoints: Optional[KeypointSet], width: int, height: int) -> FaceBounds:
    """Pixel-space bounding box over all keypoints.

    Returns an all-zero box when there is no face.
    """
    if keypoints is None or len(keypoints) == 0:
        return FaceBounds()

    pts = keypoints.points
    xs = pts[:, 0] * width
    ys = pts[:, 1] * height
    min_x, max_x = float(xs.min()), float(xs.max())
    min_y, max_y = float(ys.min()), float(ys.max())

    return FaceBounds(
        x=min_x,
        y=min_y,
        width=max_x - min_x,
        height=max_y - min_y,
        center_x=(min_x + max_x) / 2,
        center_y=(min_y + max_y) / 2,
    )


def measure_brightness(
    image: Optional[np.ndarray],
    sample_ratio: float = 0.3,
    stride: int = 10,
) -> float:
    """Mean luma of a centered crop of a BGR (or grayscale) frame.

    The crop is ``sample_ratio`` of each side; every ``stride``-th pixel
    of the flattened crop is sampled. Returns 0.0 for an empty frame.
    """
    if image is None or image.size == 0:
        return 0.0

    h, w = image.shape[:2]
    crop_w = max(1, int(w * sample_ratio))
    crop_h = max(1, int(h * sample_ratio))
    x0 = (w - crop_w) // 2
    y0 = (h - crop_h) // 2
    crop = image[y0:y0 + crop_h, x0:x0 + crop_w]

    if crop.ndim == 2:
        samples = crop.reshape(-1)[::stride].astype(np.float64)
    else:
        pixels = crop[..., :3].reshape(-1, 3)[::stride].astype(np.float64)
        samples = pixels @ _LUMA

    if samples.size == 0:
        return 0.0
    return float(samples.mean())


def coarse_pose(
    keypoints: Optional[KeypointSet],
    config: Optional[GuidanceConfig] = None,
) -> PoseCheck:
    """Ratio-based pose check for on-screen guidance.

    Checks run yaw, roll, pitch; the first failure's message wins.
    """
    cfg = config or GuidanceConfig()
    if keypoints is None:
        return PoseCheck(ok=False, message=MSG_NO_LANDMARKS, reason="landmarks")

    nose_x, nose_y = keypoints.x(NOSE_TIP), keypoints.y(NOSE_TIP)

    # Yaw: horizontal nose-to-ear symmetry
    left_dist = abs(nose_x - keypoints.x(LEFT_EAR))
    right_dist = abs(nose_x - keypoints.x(RIGHT_EAR))
    yaw_ratio = left_dist / right_dist if right_dist > 0 else math.inf

    if yaw_ratio < cfg.yaw_ratio_min or yaw_ratio > cfg.yaw_ratio_max:
        message = MSG_TURN_LEFT if yaw_ratio < 1 else MSG_TURN_RIGHT
        return PoseCheck(ok=False, message=message, reason="yaw", yaw_ratio=yaw_ratio)

    # Roll: outer eye corner slope
    eye_dx = abs(keypoints.x(RIGHT_EYE_OUTER) - keypoints.x(LEFT_EYE_OUTER))
    eye_dy = keypoints.y(RIGHT_EYE_OUTER) - keypoints.y(LEFT_EYE_OUTER)
    roll_angle = math.degrees(math.atan2(abs(eye_dy), eye_dx))

    if roll_angle > cfg.roll_max_deg:
        message = MSG_TILT_LEFT if eye_dy > 0 else MSG_TILT_RIGHT
        return PoseCheck(
            ok=False, message=message, reason="roll",
            yaw_ratio=yaw_ratio, roll_angle=roll_angle,
        )

    # Pitch: nose height against the ear line
    ear_center_y = (keypoints.y(LEFT_EAR) + keypoints.y(RIGHT_EAR)) / 2
    pitch_value = (nose_y - ear_center_y) * 100

    if pitch_value < cfg.pitch_min or pitch_value > cfg.pitch_max:
        message = MSG_CHIN_DOWN if pitch_value < cfg.pitch_min else MSG_HEAD_UP
        return PoseCheck(
            ok=False, message=message, reason="pitch",
            yaw_ratio=yaw_ratio, pitch_value=pitch_value, roll_angle=roll_angle,
        )

    return PoseCheck(
        ok=True, yaw_ratio=yaw_ratio, pitch_value=pitch_value, roll_angle=roll_angle,
    )


def fine_pose(keypoints: Optional[KeypointSet]) -> Optional[PoseAngles]:
    """Trigonometric yaw/pitch/roll in degrees, rounded to 0.1.

    Depth is folded in only when the keypoint set carries z.
    Returns None when there is no face.
    """
    if keypoints is None:
        return None

    kp = keypoints.points
    use_z = keypoints.has_depth

    nose = kp[NOSE_TIP_FINE]
    left_inner = kp[LEFT_EYE_INNER]
    right_inner = kp[RIGHT_EYE_INNER]
    left_outer = kp[LEFT_EYE_OUTER]
    right_outer = kp[RIGHT_EYE_OUTER]
    chin = kp[CHIN]
    forehead = kp[FOREHEAD]

    eye_center = (left_inner + right_inner) / 2
    nose_dz = (nose[2] - eye_center[2]) if use_z else 0.0

    # Yaw
    nose_dx = nose[0] - eye_center[0]
    eye_dist_sq = (right_inner[0] - left_inner[0]) ** 2
    if use_z:
        eye_dist_sq += (right_inner[2] - left_inner[2]) ** 2
    yaw = math.degrees(math.atan2(nose_dx, math.sqrt(eye_dist_sq) + abs(nose_dz)))

    # Pitch
    nose_dy = nose[1] - eye_center[1]
    face_height_sq = (chin[1] - forehead[1]) ** 2
    if use_z:
        face_height_sq += (chin[2] - forehead[2]) ** 2
    pitch = math.degrees(math.atan2(nose_dy, math.sqrt(face_height_sq) + abs(nose_dz)))

    # Roll
    roll = math.degrees(math.atan2(
        right_outer[1] - left_outer[1],
        right_outer[0] - left_outer[0],
    ))

    return PoseAngles(
        yaw=round(yaw, 1),
        pitch=round(pitch, 1),
        roll=round(roll, 1),
    )


def glabella_position(keypoints: Optional[KeypointSet]) -> Optional[tuple]:
    """Normalized (x, y) of the between-the-eyebrows anchor."""
    if keypoints is None:
        return None
    return keypoints.x(GLABELLA), keypoints.y(GLABELLA)


class LightingMonitor:
    """Throttled brightness gate.

    Brightness is measured at most once per ``check_interval_sec``;
    between measurements the previous verdict is reused. An active
    supplemental light skips the measurement and passes.
    """

    def __init__(self, config: Optional[LightingConfig] = None):
        self.config = config or LightingConfig()
        self._interval_ns = int(self.config.check_interval_sec * 1e9)
        self._last_check_ns: Optional[int] = None
        self._brightness = 0.0
        self._ok = True

    @property
    def brightness(self) -> float:
        return self._brightness

    @property
    def ok(self) -> bool:
        return self._ok

    @property
    def message(self) -> str:
        if self._ok:
            return ""
        return (
            f"Too dark ({self._brightness:.0f} < {self.config.brightness_min:.0f}). "
            "Move somewhere brighter"
        )

    def update(self, image: Optional[np.ndarray], t_ns: int, screen_light: bool = False) -> bool:
        """Re-measure if due and return the current verdict."""
        if screen_light:
            self._ok = True
            return True

        due = (
            self._last_check_ns is None
            or t_ns - self._last_check_ns >= self._interval_ns
        )
        if due and image is not None:
            self._brightness = measure_brightness(
                image, self.config.sample_ratio, self.config.sample_stride,
            )
            self._ok = self._brightness >= self.config.brightness_min
            self._last_check_ns = t_ns
        return self._ok

    def reset(self) -> None:
        self._last_check_ns = None
        self._brightness = 0.0
        self._ok = True
