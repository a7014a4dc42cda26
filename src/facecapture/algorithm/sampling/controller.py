"""Adaptive sampling controller for fine angle inference.

Fine angle inference is too expensive to run on every frame. The
controller tracks how fast the face is moving and picks a
detect-every-N-frames interval:

    mean motion > fast_motion  -> fast_interval   (2)
    mean motion < slow_motion  -> slow_interval   (5)
    otherwise                  -> normal_interval (3)

Between detections the last computed angle (and its validity) is reused
while the face stays within ``cache_distance_ratio`` of its previous
position. A larger jump without a fresh detection, or a frame with no
face, drops the cache and the motion window.

One instance per session; nothing is shared across instances.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Callable, Deque, Optional, Tuple

from facecapture.algorithm.sampling.output import SamplingDecision
from facecapture.config import SamplingConfig
from facecapture.types import PoseAngles

logger = logging.getLogger(__name__)

AngleCheck = Callable[[Optional[PoseAngles]], bool]


class AdaptiveSampler:
    """Per-frame detect-or-reuse decisions.

    Args:
        validator: Maps a fine angle to target validity.
        config: Sampling thresholds.

    Protocol per frame:
        1. ``decide(center, width, height)`` with the face center in pixels
           (``None`` when there is no usable face).
        2. If ``request_angle`` is set, compute or submit the fine angle and
           later report it with ``on_angle()``; call ``cancel_request()``
           if the request could not be issued.
    """

    def __init__(self, validator: AngleCheck, config: Optional[SamplingConfig] = None):
        self.config = config or SamplingConfig()
        self._validator = validator
        self._history: Deque[float] = deque(maxlen=self.config.history_size)
        self._last_position: Optional[Tuple[float, float]] = None
        self._frame_count = 0
        self._interval = self.config.normal_interval
        self._pending = False
        self._angle: Optional[PoseAngles] = None
        self._valid = False

    @property
    def skip_interval(self) -> int:
        return self._interval

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def cached_angle(self) -> Optional[PoseAngles]:
        return self._angle

    @property
    def angle_valid(self) -> bool:
        return self._valid

    @property
    def mean_motion(self) -> float:
        if not self._history:
            return 0.0
        return sum(self._history) / len(self._history)

    def interval_for(self, mean_motion: float) -> int:
        cfg = self.config
        if mean_motion > cfg.fast_motion:
            return cfg.fast_interval
        if mean_motion < cfg.slow_motion:
            return cfg.slow_interval
        return cfg.normal_interval

    def decide(
        self,
        center: Optional[Tuple[float, float]],
        width: int,
        height: int,
    ) -> SamplingDecision:
        if center is None:
            self.invalidate()
            return SamplingDecision(skip_interval=self._interval)

        previous = self._last_position
        if previous is not None:
            displacement = math.hypot(
                center[0] - previous[0], center[1] - previous[1],
            ) / max(width, height)
        else:
            displacement = 0.0
        self._last_position = center

        self._history.append(displacement)
        mean_motion = self.mean_motion
        interval = self.interval_for(mean_motion)
        if interval != self._interval:
            logger.debug(
                "skip interval %d -> %d (mean motion %.4f)",
                self._interval, interval, mean_motion,
            )
            self._interval = interval

        self._frame_count += 1
        due = self._frame_count % self._interval == 0

        # A jump invalidates the cache even on a detect frame; the fresh
        # angle is not available until on_angle().
        if self._angle is not None and not (
            previous is not None and self._is_near(previous, center, width, height)
        ):
            logger.debug("face jumped without a fresh angle; dropping cache")
            self._drop_cache()
            self._history.clear()
            mean_motion = 0.0

        if due and not self._pending:
            self._pending = True
            return SamplingDecision(
                request_angle=True,
                angle_valid=self._valid,
                skip_interval=self._interval,
                mean_motion=mean_motion,
                angle=self._angle,
            )

        if self._angle is None:
            return SamplingDecision(skip_interval=self._interval, mean_motion=mean_motion)

        return SamplingDecision(
            angle_valid=self._valid,
            used_cache=True,
            skip_interval=self._interval,
            mean_motion=mean_motion,
            angle=self._angle,
        )

    def on_angle(self, angle: Optional[PoseAngles]) -> bool:
        """Report a finished fine angle computation; returns current validity."""
        self._pending = False
        if angle is None:
            self.invalidate()
            return False

        if self._angle is None or angle.max_delta(self._angle) > self.config.angle_change_deg:
            self._angle = angle
            self._valid = bool(self._validator(angle))
            logger.debug("adopted angle %s (valid=%s)", angle, self._valid)
        return self._valid

    def cancel_request(self) -> None:
        self._pending = False

    def invalidate(self) -> None:
        """Drop cache, motion window and counters (no usable face)."""
        self._drop_cache()
        self._history.clear()
        self._last_position = None
        self._frame_count = 0
        self._pending = False

    def _drop_cache(self) -> None:
        self._angle = None
        self._valid = False

    def _is_near(self, a: Tuple[float, float], b: Tuple[float, float],
                 width: int, height: int) -> bool:
        ratio = self.config.cache_distance_ratio
        return abs(a[0] - b[0]) < width * ratio and abs(a[1] - b[1]) < height * ratio


__all__ = ["AdaptiveSampler"]
