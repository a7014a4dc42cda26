"""Cooperative frame pump.

``step()`` is the display-refresh callback: it never blocks on inference
(unless asked to). Landmark inference runs on an ``InferenceWorker``;
a frame is submitted only while the worker is idle, and each resolved
result is fed to the target together with the frame it was computed on.
Stage deadlines are ticked from the wall clock every step, so stages keep
progressing while inference is slow.
"""

import logging
import time
from typing import Callable, Optional, Union

import numpy as np

from facecapture.inference.base import LandmarkDetector
from facecapture.inference.keypoints import parse_detection
from facecapture.inference.worker import InferenceWorker
from facecapture.sequencer import MultiAngleSequencer
from facecapture.session import CaptureSession, FrameVerdict
from facecapture.sources import FrameSource

logger = logging.getLogger(__name__)

CaptureTarget = Union[CaptureSession, MultiAngleSequencer]


class FramePump:
    """Drives frames from a source through landmark inference into a target.

    Args:
        source: Frame provider.
        detector: Landmark backend (owned: released on ``close()``).
        target: Capture session or multi-angle sequencer.
        clock: Nanosecond clock, ``time.monotonic_ns`` by default.
        on_verdict: Called with ``(frame, verdict)`` for every observed frame.
        block: Wait for each inference result before returning from
            ``step()`` (offline video / tests).
    """

    def __init__(
        self,
        source: FrameSource,
        detector: LandmarkDetector,
        target: CaptureTarget,
        clock: Callable[[], int] = time.monotonic_ns,
        on_verdict: Optional[Callable[[np.ndarray, Optional[FrameVerdict]], None]] = None,
        block: bool = False,
    ):
        self.source = source
        self.target = target
        self.clock = clock
        self.on_verdict = on_verdict
        self.block = block
        self._worker = InferenceWorker(detector, name="landmarks")
        self._inflight: Optional[np.ndarray] = None
        self._session_seen: Optional[CaptureSession] = None
        self._running = False
        self._stopped = False
        self._exhausted = False
        self._frames_read = 0
        self._frames_observed = 0

    @property
    def frames_read(self) -> int:
        return self._frames_read

    @property
    def frames_observed(self) -> int:
        return self._frames_observed

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def start(self) -> None:
        if self._running:
            return
        self._worker.start()
        self.target.start()
        self._session_seen = self._active_session()
        self._running = True
        self._stopped = False

    def stop(self) -> None:
        """Ask ``run()`` to return after the current step."""
        self._stopped = True

    def step(self) -> bool:
        """One refresh tick; False once there is nothing left to do."""
        if not self._running:
            self.start()

        self.target.tick(self.clock())
        if self.target.is_done or self._stopped:
            return False

        session = self._active_session()
        if session is not self._session_seen:
            # Landmarks computed for the previous step must not reach the new one.
            self._worker.invalidate()
            self._inflight = None
            self._session_seen = session
            logger.debug("active session changed; discarding in-flight landmarks")

        frame = self.source.read()
        if frame is None:
            self._exhausted = True
            logger.debug("source exhausted after %d frames", self._frames_read)
            return False
        self._frames_read += 1

        if not self._worker.pending and self._worker.submit(frame):
            self._inflight = frame

        if self.block:
            self._worker.wait()

        result = self._worker.poll()
        if result is not None and self._inflight is not None:
            image, self._inflight = self._inflight, None
            keypoints = parse_detection(result.value) if result.ok else None
            verdict = self.target.observe(image, keypoints, self.clock())
            self._frames_observed += 1
            if self.on_verdict is not None:
                self.on_verdict(image, verdict)

        return not self.target.is_done

    def run(self, max_frames: Optional[int] = None) -> int:
        """Loop ``step()`` until done, stopped, exhausted or ``max_frames``."""
        self.start()
        while self.step():
            if max_frames is not None and self._frames_read >= max_frames:
                logger.info("stopping after max_frames=%d", max_frames)
                break
        return self._frames_read

    def close(self) -> None:
        """Stop, discard in-flight inference and release everything."""
        self._stopped = True
        self._inflight = None
        self._worker.close()
        self.target.close()
        self.source.release()
        self._running = False
        logger.info("pump closed: %d frames read, %d observed",
                    self._frames_read, self._frames_observed)

    def _active_session(self) -> Optional[CaptureSession]:
        return getattr(self.target, "session", self.target)

    def __enter__(self) -> "FramePump":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["FramePump", "CaptureTarget"]
