"""Tests for the single-slot inference worker."""

import logging
import threading

import pytest

from conftest import make_frame
from facecapture.inference.base import Detector, InferenceError
from facecapture.inference.worker import InferenceWorker


class _Detector(Detector):
    """Records lifecycle calls; optionally blocks or raises in detect()."""

    def __init__(self, gate=None, error=None):
        self.gate = gate
        self.error = error
        self.initialized = 0
        self.cleaned = 0

    def initialize(self):
        self.initialized += 1

    def detect(self, image):
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        return int(image[0, 0, 0])

    def cleanup(self):
        self.cleaned += 1


class TestInferenceWorker:
    def test_submit_wait_poll(self):
        detector = _Detector()
        with InferenceWorker(detector) as worker:
            assert worker.poll() is None
            assert worker.submit(make_frame(42)) is True
            assert worker.wait(timeout=5.0)
            result = worker.poll()
        assert result.ok
        assert result.value == 42
        assert result.timing_ms >= 0.0
        assert detector.initialized == 1
        assert detector.cleaned == 1

    def test_busy_refuses_second_request(self):
        gate = threading.Event()
        worker = InferenceWorker(_Detector(gate=gate))
        worker.start()
        try:
            assert worker.submit(make_frame(1)) is True
            assert worker.pending
            assert worker.submit(make_frame(2)) is False
            assert worker.poll() is None

            gate.set()
            worker.wait(timeout=5.0)
            assert worker.poll().value == 1
            assert not worker.pending
        finally:
            worker.close()

    def test_invalidated_result_is_dropped(self):
        gate = threading.Event()
        worker = InferenceWorker(_Detector(gate=gate))
        worker.start()
        try:
            worker.submit(make_frame(1))
            epoch = worker.epoch
            worker.invalidate()
            assert worker.epoch == epoch + 1

            gate.set()
            worker.wait(timeout=5.0)
            assert worker.poll() is None
            assert worker.submit(make_frame(2)) is True
            worker.wait(timeout=5.0)
            assert worker.poll().value == 2
        finally:
            worker.close()

    def test_detector_error_becomes_result(self, caplog):
        worker = InferenceWorker(_Detector(error=RuntimeError("boom")), name="angle")
        worker.start()
        try:
            with caplog.at_level(logging.WARNING, logger="facecapture.inference.worker"):
                worker.submit(make_frame())
                worker.wait(timeout=5.0)
                result = worker.poll()
        finally:
            worker.close()
        assert result.ok is False
        assert result.value is None
        assert "boom" in result.error
        assert "angle inference failed" in caplog.text

    def test_submit_requires_start(self):
        worker = InferenceWorker(_Detector())
        with pytest.raises(InferenceError):
            worker.submit(make_frame())

    def test_close_releases_and_stops(self):
        detector = _Detector()
        worker = InferenceWorker(detector)
        worker.start()
        worker.close()
        assert detector.cleaned == 1
        assert worker.is_running is False
        with pytest.raises(InferenceError):
            worker.submit(make_frame())
        worker.close()
        assert detector.cleaned == 1

    def test_start_is_idempotent(self):
        detector = _Detector()
        worker = InferenceWorker(detector)
        worker.start()
        worker.start()
        worker.close()
        assert detector.initialized == 1


class TestMediaPipeBackend:
    def test_detect_requires_initialize(self):
        from facecapture.inference.mediapipe_mesh import MediaPipeFaceMeshBackend

        backend = MediaPipeFaceMeshBackend()
        with pytest.raises(InferenceError):
            backend.detect(make_frame())
        backend.cleanup()
