"""Shared test fixtures and synthetic face mesh helpers.

No ML models are needed: faces are laid out by hand on a 640x480 frame
using the same mesh indices the engine reads.

Default layout (normalized):
    ears 234/454 at x = cx -/+ 0.225, y = 0.42
    outer eyes 33/263 at x = cx -/+ 0.12, y = 0.40
    inner eyes 133/362 at x = cx -/+ 0.05, y = 0.40
    forehead 10 at y = 0.20, chin 18 at y = 0.62, 152 at y = 0.70
    coarse nose 1 at y = 0.47, fine nose 4 at y = 0.46
    glabella 168 at y = 0.40

which gives: face/guide width ratio 0.64, coarse yaw ratio 1.0,
coarse pitch 5, fine yaw 0, fine pitch 8.1, roll 0.
"""

import math

import numpy as np
import pytest

from facecapture.inference import parse_keypoints

FRAME_W = 640
FRAME_H = 480
NS_PER_MS = 1_000_000


def make_points(
    cx: float = 0.5,
    half_width: float = 0.225,
    yaw_deg: float = 0.0,
    glabella_y: float = 0.40,
    nose_y: float = 0.47,
    roll_dy: float = 0.0,
) -> np.ndarray:
    """(468, 3) synthetic mesh; see module docstring for the layout."""
    pts = np.zeros((468, 3), dtype=np.float64)
    pts[:, 0] = cx
    pts[:, 1] = 0.45

    def put(i, x, y):
        pts[i, 0] = x
        pts[i, 1] = y

    put(234, cx - half_width, 0.42)
    put(454, cx + half_width, 0.42)
    put(33, cx - 0.12, 0.40)
    put(263, cx + 0.12, 0.40 + roll_dy)
    put(133, cx - 0.05, 0.40)
    put(362, cx + 0.05, 0.40)
    put(10, cx, 0.20)
    put(18, cx, 0.62)
    put(152, cx, 0.70)
    put(1, cx, nose_y)
    put(4, cx + math.tan(math.radians(yaw_deg)) * 0.10, 0.46)
    put(168, cx, glabella_y)
    return pts


def make_keypoints(**kwargs):
    return parse_keypoints(make_points(**kwargs))


def make_frame(value: int = 128, width: int = FRAME_W, height: int = FRAME_H) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


def ms(value: float) -> int:
    return int(value * NS_PER_MS)


class SteppingClock:
    """Nanosecond clock advancing a fixed step on every call."""

    def __init__(self, step_ms: float = 50.0, start_ms: float = 0.0):
        self.now = ms(start_ms)
        self.step = ms(step_ms)

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def dark_frame():
    return make_frame(40)


@pytest.fixture
def front_keypoints():
    return make_keypoints()


@pytest.fixture
def left_keypoints():
    return make_keypoints(yaw_deg=-30.0)


@pytest.fixture
def right_keypoints():
    return make_keypoints(yaw_deg=30.0)
