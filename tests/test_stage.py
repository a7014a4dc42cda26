"""Tests for the capture stage machine."""

from conftest import ms
from facecapture.algorithm.stage import CaptureStageMachine
from facecapture.types import CaptureStage


class _Recorder:
    def __init__(self):
        self.completed = []
        self.stages = []

    def machine(self, **kw):
        return CaptureStageMachine(
            on_complete=self.completed.append,
            on_stage_change=self.stages.append,
            **kw,
        )


class TestCaptureStageMachine:
    def test_starts_idle(self):
        machine = CaptureStageMachine()
        assert machine.stage is CaptureStage.IDLE
        assert machine.is_idle
        assert machine.tick(ms(10_000)) is CaptureStage.IDLE

    def test_stage_deadlines(self):
        rec = _Recorder()
        machine = rec.machine()
        assert machine.start(0, "frame") is True
        assert machine.stage is CaptureStage.SCANNING
        assert machine.tick(ms(3499.9)) is CaptureStage.SCANNING
        assert machine.tick(ms(3500)) is CaptureStage.PROCESSING
        assert machine.tick(ms(4999)) is CaptureStage.PROCESSING
        assert machine.tick(ms(5000)) is CaptureStage.COMPLETE
        assert rec.completed == ["frame"]

    def test_on_complete_once(self):
        rec = _Recorder()
        machine = rec.machine()
        machine.start(0, "frame")
        for t in range(0, 20_000, 500):
            machine.tick(ms(t))
        assert rec.completed == ["frame"]
        assert machine.is_complete

    def test_late_tick_catches_up(self):
        """A stalled loop passes through every stage in order."""
        rec = _Recorder()
        machine = rec.machine()
        machine.start(0, "frame")
        assert machine.tick(ms(100_000)) is CaptureStage.COMPLETE
        assert rec.stages == [
            CaptureStage.SCANNING,
            CaptureStage.PROCESSING,
            CaptureStage.COMPLETE,
        ]
        assert rec.completed == ["frame"]

    def test_processing_chained_off_scanning_deadline(self):
        """A late scanning tick does not shorten processing."""
        machine = CaptureStageMachine()
        machine.start(0, "frame")
        machine.tick(ms(4000))
        assert machine.stage is CaptureStage.PROCESSING
        assert machine.deadline_ns == ms(5000)
        assert machine.tick(ms(4999)) is CaptureStage.PROCESSING

    def test_start_ignored_when_busy(self):
        machine = CaptureStageMachine()
        assert machine.start(0, "first", reason="auto") is True
        assert machine.start(ms(100), "second", reason="manual") is False
        assert machine.frozen_image == "first"
        assert machine.reason == "auto"

    def test_start_ignored_when_complete(self):
        machine = CaptureStageMachine()
        machine.start(0, "first")
        machine.tick(ms(10_000))
        assert machine.start(ms(10_000), "second") is False

    def test_reset_allows_new_run(self):
        rec = _Recorder()
        machine = rec.machine()
        machine.start(0, "first")
        machine.tick(ms(10_000))
        machine.reset()
        assert machine.is_idle
        assert machine.frozen_image is None
        assert machine.start(ms(20_000), "second") is True
        machine.tick(ms(25_000))
        assert rec.completed == ["first", "second"]
