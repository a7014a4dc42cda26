"""Three-shot (front/left/right) capture sequence."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np

from facecapture.config import CaptureConfig
from facecapture.session import (
    TARGET_INSTRUCTIONS,
    TARGET_LABELS,
    CaptureSession,
    FrameVerdict,
)
from facecapture.types import CaptureStage, CaptureStep, CaptureTargetAngle, KeypointSet

logger = logging.getLogger(__name__)

STEP_ORDER = (CaptureTargetAngle.FRONT, CaptureTargetAngle.LEFT, CaptureTargetAngle.RIGHT)

SessionFactory = Callable[[CaptureTargetAngle, Callable[[Any], None]], CaptureSession]


def default_steps() -> List[CaptureStep]:
    return [
        CaptureStep(angle=angle, label=TARGET_LABELS[angle], instruction=TARGET_INSTRUCTIONS[angle])
        for angle in STEP_ORDER
    ]


class MultiAngleSequencer:
    """Runs one capture session per step until every step has an image.

    Steps complete in any order (retakes can reorder them), but
    ``images()`` and ``on_all_complete`` always use front, left, right.

    Args:
        config: Engine configuration for every step's session.
        on_all_complete: Called with ``[front, left, right]`` each time the
            sequence becomes complete.
        on_step_complete: Called with the completed ``CaptureStep``.
        session_factory: ``(angle, on_captured) -> CaptureSession``; the
            default builds a plain ``CaptureSession``.
        screen_light: A supplemental light is active for every step.
    """

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        on_all_complete: Optional[Callable[[List[Any]], None]] = None,
        on_step_complete: Optional[Callable[[CaptureStep], None]] = None,
        session_factory: Optional[SessionFactory] = None,
        screen_light: bool = False,
    ):
        self.config = config or CaptureConfig()
        self.on_all_complete = on_all_complete
        self.on_step_complete = on_step_complete
        self.screen_light = screen_light
        self._factory = session_factory or self._default_factory
        self._steps = default_steps()
        self._active: Optional[CaptureStep] = None
        self._session: Optional[CaptureSession] = None
        self._started = False
        self._advance_pending = False
        self._activate(self._steps[0])

    # -- properties ------------------------------------------------------

    @property
    def steps(self) -> Sequence[CaptureStep]:
        return tuple(self._steps)

    @property
    def current_step(self) -> Optional[CaptureStep]:
        return self._active

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def is_complete(self) -> bool:
        return all(step.completed for step in self._steps)

    @property
    def is_done(self) -> bool:
        return self.is_complete

    @property
    def stage(self) -> CaptureStage:
        if self._session is None:
            return CaptureStage.COMPLETE
        return self._session.stage

    def images(self) -> List[Any]:
        """Captured images in front, left, right order (None if missing)."""
        by_angle = {step.angle: step.image for step in self._steps}
        return [by_angle[angle] for angle in STEP_ORDER]

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        self._started = True
        if self._session is not None:
            self._session.start()

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
        self._started = False

    def reset(self) -> None:
        """Discard every capture and start over at the front step."""
        for step in self._steps:
            step.completed = False
            step.image = None
        self._activate(self._steps[0])

    def retake(self, angle: Union[CaptureTargetAngle, str]) -> None:
        """Clear one step and make it the active one.

        Raises:
            ValueError: If ``angle`` is not a step of this sequence.
        """
        angle = CaptureTargetAngle(angle)
        step = self._step_for(angle)
        logger.info("retake %s", angle.value)
        step.completed = False
        step.image = None
        self._activate(step)

    # -- per frame -------------------------------------------------------

    def observe(
        self,
        image: np.ndarray,
        keypoints: Optional[KeypointSet],
        t_ns: int,
    ) -> Optional[FrameVerdict]:
        """Feed a frame to the active step; None once every step is done."""
        if self._session is None:
            return None
        verdict = self._session.observe(image, keypoints, t_ns)
        self._advance_if_needed()
        return verdict

    def tick(self, t_ns: int) -> CaptureStage:
        if self._session is None:
            return CaptureStage.COMPLETE
        stage = self._session.tick(t_ns)
        self._advance_if_needed()
        return stage

    def capture_now(self, t_ns: int) -> bool:
        if self._session is None:
            return False
        return self._session.capture_now(t_ns)

    # -- internals -------------------------------------------------------

    def _default_factory(self, angle: CaptureTargetAngle,
                         on_captured: Callable[[Any], None]) -> CaptureSession:
        return CaptureSession(
            target=angle, config=self.config, on_captured=on_captured,
            screen_light=self.screen_light,
        )

    def _step_for(self, angle: CaptureTargetAngle) -> CaptureStep:
        for step in self._steps:
            if step.angle is angle:
                return step
        raise ValueError(f"No capture step for angle {angle.value!r}")

    def _activate(self, step: Optional[CaptureStep]) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        self._active = step
        self._advance_pending = False
        if step is None:
            return

        angle = step.angle
        self._session = self._factory(angle, lambda image: self._on_captured(angle, image))
        if self._started:
            self._session.start()
        logger.info("step %s active: %s", angle.value, step.instruction)

    def _on_captured(self, angle: CaptureTargetAngle, image: Any) -> None:
        step = self._step_for(angle)
        step.completed = True
        step.image = image
        logger.info("step %s complete", angle.value)
        if self.on_step_complete is not None:
            self.on_step_complete(step)
        self._advance_pending = True

    def _advance_if_needed(self) -> None:
        if not self._advance_pending:
            return

        next_step = next((step for step in self._steps if not step.completed), None)
        self._activate(next_step)

        if next_step is None:
            logger.info("all %d steps complete", len(self._steps))
            if self.on_all_complete is not None:
                self.on_all_complete(self.images())


__all__ = ["MultiAngleSequencer", "default_steps", "STEP_ORDER"]
