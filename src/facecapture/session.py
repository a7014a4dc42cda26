"""Per-target capture session.

Glues the algorithm layer together for one capture target:

    keypoints -> alignment classifier ─┐
              -> adaptive sampler ──────┴-> stability timer -> stage machine

Each session owns its own classifier stats, lighting monitor, sampler,
timer and stage machine; nothing is shared between sessions.

Example:
    >>> session = CaptureSession(target="front", on_captured=save)
    >>> session.start()
    >>> verdict = session.observe(frame, keypoints, time.monotonic_ns())
    >>> verdict.alignment.message, verdict.progress, verdict.stage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import numpy as np

from facecapture.algorithm.alignment import (
    AlignmentClassifier,
    DEFAULT_CHECKS,
    GuideBox,
    GuidanceDebug,
    build_inputs,
)
from facecapture.algorithm.angle import AngleValidator
from facecapture.algorithm.geometry import LightingMonitor, fine_pose
from facecapture.algorithm.sampling import AdaptiveSampler, SamplingDecision
from facecapture.algorithm.stability import StabilityTimer
from facecapture.algorithm.stage import CaptureStageMachine
from facecapture.config import CaptureConfig
from facecapture.inference.base import AngleDetector
from facecapture.inference.worker import InferenceWorker
from facecapture.types import (
    AlignmentResult,
    CaptureStage,
    CaptureTargetAngle,
    GuideColor,
    KeypointSet,
    PoseAngles,
)

logger = logging.getLogger(__name__)

TARGET_LABELS = {
    CaptureTargetAngle.FRONT: "Front",
    CaptureTargetAngle.LEFT: "Left",
    CaptureTargetAngle.RIGHT: "Right",
}

TARGET_INSTRUCTIONS = {
    CaptureTargetAngle.FRONT: "Face the camera and center your face",
    CaptureTargetAngle.LEFT: "Turn your face to the left (about 45°)",
    CaptureTargetAngle.RIGHT: "Turn your face to the right (about 45°)",
}

# Side targets are turned on purpose, so the frontal guidance pose
# check is replaced by the target-angle validator.
SIDE_CHECKS = tuple((name, fn) for name, fn in DEFAULT_CHECKS if name != "pose")


@dataclass(frozen=True)
class FrameVerdict:
    """Everything the UI layer needs about one frame.

    Attributes:
        alignment: Guidance text/color for this frame.
        valid: Combined validity fed to the stability timer.
        progress: Lock-on progress in [0, 1].
        countdown: Seconds left in the final countdown window, else None.
        stage: Current capture stage.
        triggered: The automatic capture fired on this frame.
        angle: Fine angle backing ``angle_valid`` (target sessions only).
        angle_valid: Target-angle validity (True when no target is set).
        sampling: Sampler decision (target sessions only).
        debug: Measured values behind ``alignment``.
    """

    alignment: AlignmentResult
    valid: bool = False
    progress: float = 0.0
    countdown: Optional[int] = None
    stage: CaptureStage = CaptureStage.IDLE
    triggered: bool = False
    angle: Optional[PoseAngles] = None
    angle_valid: bool = False
    sampling: Optional[SamplingDecision] = None
    debug: Optional[GuidanceDebug] = None


class CaptureSession:
    """One capture run (and its retries) for one target angle.

    Args:
        target: Target pose, or None for a guidance-only capture.
        config: Engine configuration.
        on_captured: Called exactly once per completed run with the image.
        guide: Guide box; defaults to a box derived from each frame's size.
        angle_detector: Separate fine-angle backend. When given, fine
            angles are computed asynchronously on a worker thread; when
            None they are computed inline from the frame's keypoints.
        screen_light: A supplemental light is active (skips the dark check).
        on_stage_change: Called on every stage transition.
    """

    def __init__(
        self,
        target: Optional[Union[CaptureTargetAngle, str]] = None,
        config: Optional[CaptureConfig] = None,
        on_captured: Optional[Callable[[Any], None]] = None,
        guide: Optional[GuideBox] = None,
        angle_detector: Optional[AngleDetector] = None,
        screen_light: bool = False,
        on_stage_change: Optional[Callable[[CaptureStage], None]] = None,
    ):
        self.config = config or CaptureConfig()
        self.target = CaptureTargetAngle(target) if target is not None else None
        self.on_captured = on_captured
        self.guide = guide
        self.screen_light = screen_light

        side = self.target in (CaptureTargetAngle.LEFT, CaptureTargetAngle.RIGHT)
        self._classifier = AlignmentClassifier(
            self.config.framing, checks=SIDE_CHECKS if side else DEFAULT_CHECKS,
        )
        self._lighting = LightingMonitor(self.config.lighting)
        self._timer = StabilityTimer(self.config.stability)
        self._stage = CaptureStageMachine(
            self.config.stage,
            on_complete=self._handle_complete,
            on_stage_change=on_stage_change,
        )
        self._sampler: Optional[AdaptiveSampler] = None
        if self.target is not None:
            self._sampler = AdaptiveSampler(
                AngleValidator(self.target, self.config.angle), self.config.sampling,
            )
        self._angle_worker: Optional[InferenceWorker] = None
        if angle_detector is not None:
            self._angle_worker = InferenceWorker(angle_detector, name="angle")

        self._last_image: Optional[np.ndarray] = None
        self._captured: Any = None
        self._capture_count = 0

    # -- properties ------------------------------------------------------

    @property
    def stage(self) -> CaptureStage:
        return self._stage.stage

    @property
    def progress(self) -> float:
        return self._timer.progress

    @property
    def is_done(self) -> bool:
        return self._stage.is_complete

    @property
    def captured_image(self) -> Any:
        return self._captured

    @property
    def instruction(self) -> str:
        if self.target is None:
            return ""
        return TARGET_INSTRUCTIONS[self.target]

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self._angle_worker is not None:
            self._angle_worker.start()
        logger.info("capture session started (target=%s)",
                    self.target.value if self.target else "none")

    def close(self) -> None:
        """Tear down: discard in-flight angle work and release the backend."""
        if self._angle_worker is not None:
            self._angle_worker.close()
        self._classifier.log_summary()

    def reset(self) -> None:
        """Back to idle with all tracking state cleared."""
        self._stage.reset()
        self._reset_tracking()
        self._lighting.reset()
        self._captured = None

    # -- per frame -------------------------------------------------------

    def tick(self, t_ns: int) -> CaptureStage:
        return self._stage.tick(t_ns)

    def capture_now(self, t_ns: int) -> bool:
        """Manual shutter: start the stage machine with the latest frame."""
        if self._last_image is None or not self._stage.is_idle:
            return False
        self._timer.reset()
        return self._stage.start(t_ns, self._last_image.copy(), reason="manual")

    def observe(
        self,
        image: np.ndarray,
        keypoints: Optional[KeypointSet],
        t_ns: int,
    ) -> FrameVerdict:
        """Process one frame and its (validated) keypoints."""
        self._last_image = image
        stage = self._stage.tick(t_ns)
        height, width = image.shape[:2]

        if stage is not CaptureStage.IDLE:
            inputs = self._build_inputs(keypoints, width, height, image, t_ns)
            return FrameVerdict(
                alignment=self._classifier.classify(inputs),
                progress=1.0,
                stage=stage,
                debug=self._classifier.debug_info(inputs),
            )

        if keypoints is None:
            self._reset_tracking()

        inputs = self._build_inputs(keypoints, width, height, image, t_ns)
        alignment = self._classifier.classify(inputs)
        debug = self._classifier.debug_info(inputs)

        if keypoints is None:
            return FrameVerdict(alignment=alignment, debug=debug)

        angle = None
        angle_valid = True
        decision = None
        if self._sampler is not None:
            center = (inputs.bounds.center_x, inputs.bounds.center_y)
            decision, angle_valid = self._sample_angle(image, keypoints, center, width, height)
            angle = self._sampler.cached_angle
            if alignment.aligned and not angle_valid:
                alignment = AlignmentResult(
                    aligned=False,
                    message=self.instruction,
                    color=GuideColor.CAUTION,
                    reason="angle",
                )

        valid = alignment.aligned and angle_valid
        state = self._timer.update(valid, t_ns)
        if state.triggered:
            self._stage.start(t_ns, image.copy(), reason="auto")

        return FrameVerdict(
            alignment=alignment,
            valid=valid,
            progress=state.progress,
            countdown=state.countdown,
            stage=self._stage.stage,
            triggered=state.triggered,
            angle=angle,
            angle_valid=angle_valid,
            sampling=decision,
            debug=debug,
        )

    # -- internals -------------------------------------------------------

    def _build_inputs(self, keypoints, width, height, image, t_ns):
        self._lighting.update(image, t_ns, self.screen_light)
        return build_inputs(
            keypoints,
            width,
            height,
            guide=self.guide,
            guidance=self.config.guidance,
            framing=self.config.framing,
            lighting_ok=self._lighting.ok,
            lighting_message=self._lighting.message,
            screen_light=self.screen_light,
            brightness=self._lighting.brightness,
        )

    def _sample_angle(self, image, keypoints, center, width, height):
        sampler = self._sampler
        worker = self._angle_worker

        if worker is not None:
            result = worker.poll()
            if result is not None:
                sampler.on_angle(result.value if result.ok else None)

        decision = sampler.decide(center, width, height)
        angle_valid = decision.angle_valid
        if decision.request_angle:
            if worker is None:
                angle_valid = sampler.on_angle(fine_pose(keypoints))
            elif not worker.submit(image):
                sampler.cancel_request()
        return decision, angle_valid

    def _reset_tracking(self) -> None:
        self._timer.reset()
        if self._sampler is not None:
            self._sampler.invalidate()
        if self._angle_worker is not None and self._angle_worker.is_running:
            self._angle_worker.invalidate()

    def _handle_complete(self, image: Any) -> None:
        self._captured = image
        self._capture_count += 1
        logger.info("capture complete (target=%s, run %d)",
                    self.target.value if self.target else "none", self._capture_count)
        if self.on_captured is not None:
            self.on_captured(image)


__all__ = ["CaptureSession", "FrameVerdict", "TARGET_LABELS", "TARGET_INSTRUCTIONS"]
