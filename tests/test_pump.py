"""Tests for the frame pump and the fc.run() entry point."""

import threading

from conftest import SteppingClock, make_frame, make_points
from facecapture.inference.base import LandmarkDetector
from facecapture.main import Result, _save_images, run
from facecapture.pump import FramePump
from facecapture.session import CaptureSession
from facecapture.sequencer import MultiAngleSequencer
from facecapture.sources import ArraySource


class _FakeMesh(LandmarkDetector):
    """Landmark backend returning a fixed list of faces."""

    def __init__(self, faces=None, error=None, gate=None):
        self.faces = faces if faces is not None else [make_points()]
        self.error = error
        self.gate = gate
        self.initialized = False
        self.cleaned = False
        self.calls = 0

    def initialize(self):
        self.initialized = True

    def detect(self, image):
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        return self.faces

    def cleanup(self):
        self.cleaned = True


def _frames(count, value=128):
    return [make_frame(value)] * count


class TestFramePump:
    def test_runs_to_capture(self):
        captured = []
        session = CaptureSession(target="front", on_captured=captured.append)
        detector = _FakeMesh()
        source = ArraySource(_frames(200))
        pump = FramePump(source, detector, session, clock=SteppingClock(50), block=True)

        frames = pump.run()
        pump.close()

        assert session.is_done
        assert len(captured) == 1
        assert frames < 200
        assert pump.frames_observed == frames
        assert detector.initialized and detector.cleaned

    def test_verdict_callback(self):
        seen = []
        session = CaptureSession(target="front")
        pump = FramePump(
            ArraySource(_frames(5)), _FakeMesh(), session,
            clock=SteppingClock(50), block=True,
            on_verdict=lambda frame, verdict: seen.append(verdict),
        )
        with pump:
            pump.run()
        assert len(seen) == 5
        assert all(v.alignment.aligned or v.alignment.reason == "angle" for v in seen)

    def test_two_faces_never_align(self):
        seen = []
        session = CaptureSession(target="front")
        detector = _FakeMesh(faces=[make_points(), make_points(cx=0.3)])
        pump = FramePump(
            ArraySource(_frames(50)), detector, session,
            clock=SteppingClock(50), block=True,
            on_verdict=lambda frame, verdict: seen.append(verdict),
        )
        with pump:
            pump.run()
        assert pump.exhausted
        assert not session.is_done
        assert all(v.alignment.reason == "presence" for v in seen)

    def test_detector_error_is_no_face(self):
        seen = []
        session = CaptureSession(target="front")
        pump = FramePump(
            ArraySource(_frames(10)), _FakeMesh(error=RuntimeError("model crashed")), session,
            clock=SteppingClock(50), block=True,
            on_verdict=lambda frame, verdict: seen.append(verdict),
        )
        with pump:
            pump.run()
        assert len(seen) == 10
        assert all(not v.valid for v in seen)

    def test_max_frames(self):
        session = CaptureSession(target="front")
        pump = FramePump(ArraySource(_frames(100)), _FakeMesh(), session,
                         clock=SteppingClock(50), block=True)
        with pump:
            assert pump.run(max_frames=10) == 10

    def test_stop(self):
        session = CaptureSession(target="front")
        pump = FramePump(ArraySource(_frames(100)), _FakeMesh(), session,
                         clock=SteppingClock(50), block=True)
        with pump:
            assert pump.step() is True
            pump.stop()
            assert pump.step() is False
        assert pump.frames_read == 1

    def test_close_releases_source(self):
        source = ArraySource(_frames(10))
        pump = FramePump(source, _FakeMesh(), CaptureSession(target="front"),
                         clock=SteppingClock(50), block=True)
        pump.start()
        pump.close()
        assert source.read() is None

    def test_multi_angle_target(self):
        """A front-facing stream completes the front step only."""
        seq = MultiAngleSequencer()
        pump = FramePump(ArraySource(_frames(150)), _FakeMesh(), seq,
                         clock=SteppingClock(50), block=True)
        with pump:
            pump.run()
        images = seq.images()
        assert images[0] is not None
        assert images[1] is None and images[2] is None
        assert not seq.is_complete

    def test_multi_angle_screen_light_accepts_dark_frames(self):
        seen = []
        seq = MultiAngleSequencer(screen_light=True)
        pump = FramePump(
            ArraySource(_frames(150, value=40)), _FakeMesh(), seq,
            clock=SteppingClock(50), block=True,
            on_verdict=lambda frame, verdict: seen.append(verdict),
        )
        with pump:
            pump.run()
        assert seen
        assert not any(v.alignment.reason == "lighting" for v in seen if v is not None)
        assert seq.images()[0] is not None

    def test_retake_discards_inflight_landmarks(self):
        """A result computed for the previous step is never observed by the new one."""
        gate = threading.Event()
        seq = MultiAngleSequencer()
        pump = FramePump(ArraySource(_frames(10)), _FakeMesh(gate=gate), seq,
                         clock=SteppingClock(50))
        pump.start()
        try:
            assert pump.step() is True
            seq.retake("left")
            gate.set()
            assert pump._worker.wait(timeout=5.0)
            pump.step()
            assert pump.frames_observed == 0
            assert seq.current_step.angle.value == "left"
        finally:
            pump.close()


class TestSources:
    def test_array_source_iterates(self):
        with ArraySource(_frames(3)) as source:
            assert len(list(source)) == 3
            assert source.read() is None


class TestRun:
    def test_run_returns_result(self):
        result = run(ArraySource(_frames(5)), detector=_FakeMesh(), max_frames=5)
        assert isinstance(result, Result)
        assert result.frame_count == 5
        assert result.completed is False
        assert result.images == {}
        assert result.saved_paths == []

    def test_save_images(self, tmp_path):
        paths = _save_images({"front": make_frame(), "left": None}, tmp_path / "out")
        assert [p.name for p in paths] == ["capture_front.jpg"]
        assert paths[0].exists()
