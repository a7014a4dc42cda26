"""Capture stage machine: idle -> scanning -> processing -> complete.

Transitions after ``start`` are driven by wall-clock deadlines checked in
``tick``, not by frame count, so a stalled frame feed cannot shorten or
skip a stage. A late tick catches up through every deadline it passed;
each stage's deadline is chained off the previous one, so no stage is
ever shorter than its configured duration.
"""

import logging
from typing import Any, Callable, Optional

from facecapture.algorithm.stability import NS_PER_SECOND
from facecapture.config import StageConfig
from facecapture.types import CaptureStage

logger = logging.getLogger(__name__)


class CaptureStageMachine:
    """One capture run for one target.

    Args:
        config: Stage durations.
        on_complete: Called exactly once per run with the frozen frame.
        on_stage_change: Called with the new stage on every transition.
    """

    def __init__(
        self,
        config: Optional[StageConfig] = None,
        on_complete: Optional[Callable[[Any], None]] = None,
        on_stage_change: Optional[Callable[[CaptureStage], None]] = None,
    ):
        self.config = config or StageConfig()
        self.on_complete = on_complete
        self.on_stage_change = on_stage_change
        self._scanning_ns = int(self.config.scanning_sec * NS_PER_SECOND)
        self._processing_ns = int(self.config.processing_sec * NS_PER_SECOND)
        self._stage = CaptureStage.IDLE
        self._deadline_ns: Optional[int] = None
        self._image: Any = None
        self._reason = ""

    @property
    def stage(self) -> CaptureStage:
        return self._stage

    @property
    def is_idle(self) -> bool:
        return self._stage is CaptureStage.IDLE

    @property
    def is_complete(self) -> bool:
        return self._stage is CaptureStage.COMPLETE

    @property
    def frozen_image(self) -> Any:
        return self._image

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def deadline_ns(self) -> Optional[int]:
        return self._deadline_ns

    def start(self, t_ns: int, image: Any, reason: str = "auto") -> bool:
        """Begin scanning with ``image`` frozen. No-op unless idle."""
        if self._stage is not CaptureStage.IDLE:
            logger.debug("start(%s) ignored in stage %s", reason, self._stage.value)
            return False

        self._image = image
        self._reason = reason
        self._deadline_ns = t_ns + self._scanning_ns
        logger.info("capture started (%s)", reason)
        self._set_stage(CaptureStage.SCANNING)
        return True

    def tick(self, t_ns: int) -> CaptureStage:
        if self._stage is CaptureStage.SCANNING and t_ns >= self._deadline_ns:
            self._deadline_ns += self._processing_ns
            self._set_stage(CaptureStage.PROCESSING)

        if self._stage is CaptureStage.PROCESSING and t_ns >= self._deadline_ns:
            self._deadline_ns = None
            self._set_stage(CaptureStage.COMPLETE)
            if self.on_complete is not None:
                self.on_complete(self._image)

        return self._stage

    def reset(self) -> None:
        if self._stage is not CaptureStage.IDLE:
            logger.debug("stage machine reset from %s", self._stage.value)
        self._deadline_ns = None
        self._image = None
        self._reason = ""
        self._set_stage(CaptureStage.IDLE)

    def _set_stage(self, stage: CaptureStage) -> None:
        if stage is self._stage:
            return
        logger.info("stage %s -> %s", self._stage.value, stage.value)
        self._stage = stage
        if self.on_stage_change is not None:
            self.on_stage_change(stage)


__all__ = ["CaptureStageMachine"]
