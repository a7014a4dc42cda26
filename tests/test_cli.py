"""Tests for the facecapture CLI."""

import io
import sys

import pytest

from facecapture.cli import build_parser, main
from facecapture.cli.utils import StderrFilter


class TestParser:
    def test_capture_defaults(self):
        args = build_parser().parse_args(["capture"])
        assert args.command == "capture"
        assert args.camera == 0
        assert args.video is None
        assert args.target == "front"
        assert args.multi is False
        assert args.output_dir == "./captures"
        assert args.max_frames is None

    def test_capture_options(self):
        args = build_parser().parse_args([
            "capture", "--video", "clip.mp4", "--target", "left",
            "-o", "shots", "--max-frames", "100", "--screen-light",
        ])
        assert args.video == "clip.mp4"
        assert args.target == "left"
        assert args.output_dir == "shots"
        assert args.max_frames == 100
        assert args.screen_light is True

    def test_camera_and_video_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["capture", "--camera", "1", "--video", "a.mp4"])

    def test_invalid_target(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["capture", "--target", "up"])

    @pytest.mark.parametrize("argv,verbose", [
        (["-v", "capture"], True),
        (["capture", "-v"], True),
        (["-v", "capture", "-v"], True),
        (["capture"], False),
    ])
    def test_verbose_either_position(self, argv, verbose):
        assert build_parser().parse_args(argv).verbose is verbose


class TestInfo:
    def test_defaults(self, capsys):
        assert main(["-v", "info"]) == 0
        out = capsys.readouterr().out
        assert "source: defaults" in out
        assert "stability" in out
        assert "dwell_sec" in out
        assert "3.0" in out

    def test_from_yaml(self, tmp_path, capsys):
        path = tmp_path / "capture.yaml"
        path.write_text("stability:\n  dwell_sec: 4.5\n")
        assert main(["-v", "info", "--config", str(path)]) == 0
        out = capsys.readouterr().out
        assert "4.5" in out

    def test_invalid_yaml_exits(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("stability:\n  dwell_sec: -1\n")
        with pytest.raises(SystemExit) as exc:
            main(["-v", "info", "--config", str(path)])
        assert exc.value.code == 1
        assert "dwell_sec" in capsys.readouterr().err

    def test_no_command_prints_help(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stderr", sys.stderr)
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        assert "usage" in capsys.readouterr().out


class TestStderrFilter:
    def test_suppresses_native_noise(self):
        stream = io.StringIO()
        filt = StderrFilter(stream)
        filt.write("INFO: Created TensorFlow Lite XNNPACK delegate for CPU.\n")
        filt.write("real problem\n")
        assert stream.getvalue() == "real problem\n"
