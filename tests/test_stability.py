"""Tests for the lock-on stability timer."""

from conftest import ms
from facecapture.algorithm.stability import StabilityTimer
from facecapture.config import StabilityConfig


def _run(validity, step_ms=100):
    """Feed a validity sequence at a fixed frame interval; return fire indices."""
    timer = StabilityTimer()
    fired = []
    for i, valid in enumerate(validity):
        if timer.update(valid, ms(i * step_ms)).triggered:
            fired.append(i)
    return fired


class TestStabilityTimer:
    def test_fires_after_dwell(self):
        assert _run([True] * 31) == [30]

    def test_not_before_dwell(self):
        """Elapsed time counts from the first valid frame: 30 frames span 2900ms."""
        assert _run([True] * 30) == []

    def test_invalid_frame_resets(self):
        """One bad frame restarts the full dwell from the next valid frame."""
        validity = [True] * 61
        validity[20] = False
        assert _run(validity) == [51]

    def test_restarts_after_firing(self):
        assert _run([True] * 62) == [30, 61]

    def test_countdown_window(self):
        timer = StabilityTimer()
        assert timer.update(True, ms(0)).countdown is None
        assert timer.update(True, ms(500)).countdown is None
        assert timer.update(True, ms(1000)).countdown == 2
        assert timer.update(True, ms(1500)).countdown == 2
        assert timer.update(True, ms(2500)).countdown == 1

    def test_progress(self):
        timer = StabilityTimer()
        timer.update(True, ms(0))
        state = timer.update(True, ms(1500))
        assert state.progress == 0.5
        assert state.triggered is False
        assert timer.progress == 0.5

    def test_trigger_state(self):
        timer = StabilityTimer(StabilityConfig(dwell_sec=1.0))
        timer.update(True, ms(0))
        state = timer.update(True, ms(1000))
        assert state.triggered is True
        assert state.progress == 1.0
        assert timer.started is False

    def test_reset(self):
        timer = StabilityTimer()
        timer.update(True, ms(0))
        timer.update(True, ms(1000))
        assert timer.started is True
        timer.reset()
        assert timer.started is False
        assert timer.progress == 0.0

    def test_invalid_state_is_empty(self):
        timer = StabilityTimer()
        timer.update(True, ms(0))
        state = timer.update(False, ms(100))
        assert state.progress == 0.0
        assert state.countdown is None
        assert state.triggered is False
