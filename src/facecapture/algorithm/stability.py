"""Lock-on timer: debounce per-frame validity into one capture trigger."""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from facecapture.config import StabilityConfig

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class StabilityState:
    """Timer snapshot after one update.

    Attributes:
        progress: ``min(elapsed / dwell, 1)``.
        elapsed_ns: Continuous-validity time so far.
        countdown: Whole seconds left, only within the final countdown
            window (None otherwise).
        triggered: True on exactly the frame that fired.
    """

    progress: float = 0.0
    elapsed_ns: int = 0
    countdown: Optional[int] = None
    triggered: bool = False


class StabilityTimer:
    """Fires once after ``dwell_sec`` of uninterrupted valid frames.

    Any invalid frame resets it immediately; there is no grace period.
    After firing the timer starts over from the next valid frame.
    """

    def __init__(self, config: Optional[StabilityConfig] = None):
        self.config = config or StabilityConfig()
        self._dwell_ns = int(self.config.dwell_sec * NS_PER_SECOND)
        self._countdown_ns = int(self.config.countdown_sec * NS_PER_SECOND)
        self._start_ns: Optional[int] = None
        self._state = StabilityState()

    @property
    def started(self) -> bool:
        return self._start_ns is not None

    @property
    def progress(self) -> float:
        return self._state.progress

    @property
    def state(self) -> StabilityState:
        return self._state

    def update(self, valid: bool, t_ns: int) -> StabilityState:
        if not valid:
            if self._start_ns is not None:
                logger.debug("stability reset after %.2fs", self._state.elapsed_ns / NS_PER_SECOND)
            self.reset()
            return self._state

        if self._start_ns is None:
            self._start_ns = t_ns

        elapsed = max(0, t_ns - self._start_ns)
        if elapsed >= self._dwell_ns:
            logger.info("stability reached (%.2fs)", elapsed / NS_PER_SECOND)
            self._start_ns = None
            self._state = StabilityState(progress=1.0, elapsed_ns=elapsed, triggered=True)
            return self._state

        remaining = self._dwell_ns - elapsed
        countdown = None
        if remaining <= self._countdown_ns:
            countdown = math.ceil(remaining / NS_PER_SECOND)

        self._state = StabilityState(
            progress=min(elapsed / self._dwell_ns, 1.0),
            elapsed_ns=elapsed,
            countdown=countdown,
        )
        return self._state

    def reset(self) -> None:
        self._start_ns = None
        self._state = StabilityState()


__all__ = ["StabilityTimer", "StabilityState", "NS_PER_SECOND"]
