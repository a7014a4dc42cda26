"""Single-slot background worker for inference calls.

The frame pump must never block on inference. Each worker owns one
``ThreadPoolExecutor(max_workers=1)`` and keeps at most one request in
flight; ``submit`` refuses while one is pending and the caller falls
back to cached state.

Staleness is tracked with an epoch counter. Every request remembers the
epoch it was submitted under; ``invalidate()`` and ``close()`` bump the
epoch, so a result that resolves afterwards is dropped by ``poll()``
and never overwrites newer state.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional

import numpy as np

from facecapture.inference.base import Detector, InferenceError, InferenceResult

logger = logging.getLogger(__name__)


class InferenceWorker:
    """Runs ``detector.detect`` off the caller's thread.

    Args:
        detector: Backend to run. Initialized on ``start()``, cleaned up
            on ``close()``.
        name: Label used in log messages.

    Example:
        >>> worker = InferenceWorker(MediaPipeFaceMeshBackend())
        >>> worker.start()
        >>> worker.submit(frame)
        >>> result = worker.poll()  # None until resolved
        >>> worker.close()
    """

    def __init__(self, detector: Detector, name: str = "landmarks"):
        self._detector = detector
        self._name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None
        self._future_epoch = 0
        self._epoch = 0
        self._running = False
        self._stats_submitted = 0
        self._stats_failed = 0
        self._stats_stale = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> bool:
        return self._future is not None

    @property
    def epoch(self) -> int:
        return self._epoch

    def start(self) -> None:
        if self._running:
            return
        self._detector.initialize()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"facecapture-{self._name}",
        )
        self._running = True
        logger.debug("%s worker started", self._name)

    def submit(self, image: np.ndarray) -> bool:
        """Queue ``image``; returns False if a request is already in flight."""
        if not self._running or self._executor is None:
            raise InferenceError(f"{self._name} worker not running")
        if self._future is not None:
            return False

        self._future = self._executor.submit(self._run, image)
        self._future_epoch = self._epoch
        self._stats_submitted += 1
        return True

    def poll(self) -> Optional[InferenceResult]:
        """Non-blocking: the resolved result, or None if nothing new."""
        future = self._future
        if future is None or not future.done():
            return None

        self._future = None
        if future.cancelled():
            return None

        if self._future_epoch != self._epoch:
            self._stats_stale += 1
            logger.debug("%s: discarding stale result (epoch %d < %d)",
                         self._name, self._future_epoch, self._epoch)
            return None

        exc = future.exception()
        if exc is not None:
            self._stats_failed += 1
            logger.warning("%s inference failed: %s", self._name, exc)
            return InferenceResult(error=str(exc))

        value, timing_ms = future.result()
        return InferenceResult(value=value, timing_ms=timing_ms)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the in-flight request resolves; False on timeout."""
        future = self._future
        if future is None:
            return True
        done, _ = wait([future], timeout=timeout)
        return bool(done)

    def invalidate(self) -> None:
        """Mark any in-flight request stale."""
        self._epoch += 1
        if self._future is not None and self._future.cancel():
            self._future = None

    def close(self) -> None:
        """Discard in-flight work, stop the thread and release the detector."""
        if not self._running:
            return
        self.invalidate()
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        self._future = None
        self._detector.cleanup()
        logger.debug(
            "%s worker closed: %d submitted, %d failed, %d stale",
            self._name, self._stats_submitted, self._stats_failed, self._stats_stale,
        )

    def _run(self, image: np.ndarray):
        start = time.perf_counter()
        value = self._detector.detect(image)
        return value, (time.perf_counter() - start) * 1000

    def __enter__(self) -> "InferenceWorker":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["InferenceWorker"]
