"""Tests for CaptureConfig loading and validation."""

from dataclasses import FrozenInstanceError

import pytest

from facecapture.config import (
    AngleConfig,
    CaptureConfig,
    ConfigError,
    FramingConfig,
    GuidanceConfig,
    LightingConfig,
    SamplingConfig,
    StabilityConfig,
    StageConfig,
)


class TestDefaults:
    def test_default_thresholds(self):
        config = CaptureConfig()
        assert config.lighting.brightness_min == 80.0
        assert config.guidance.yaw_ratio_min == 0.7
        assert config.guidance.yaw_ratio_max == 1.4
        assert config.guidance.pitch_max == 22.0
        assert config.framing.size_ratio_min == 0.5
        assert config.framing.size_ratio_max == 0.9
        assert config.angle.tolerance_deg == 15.0
        assert config.sampling.slow_interval == 5
        assert config.stability.dwell_sec == 3.0
        assert config.stage.scanning_sec == 3.5
        assert config.stage.processing_sec == 1.5

    def test_frozen(self):
        config = CaptureConfig()
        with pytest.raises(FrozenInstanceError):
            config.stability.dwell_sec = 1.0


class TestValidation:
    @pytest.mark.parametrize("factory", [
        lambda: LightingConfig(brightness_min=0),
        lambda: LightingConfig(sample_ratio=1.5),
        lambda: LightingConfig(check_interval_sec=-1),
        lambda: GuidanceConfig(yaw_ratio_min=1.5, yaw_ratio_max=1.4),
        lambda: GuidanceConfig(pitch_min=30),
        lambda: FramingConfig(size_ratio_min=0.9, size_ratio_max=0.5),
        lambda: FramingConfig(min_face_area_ratio=-0.1),
        lambda: AngleConfig(tolerance_deg=0),
        lambda: AngleConfig(tolerance_deg=70),
        lambda: SamplingConfig(slow_interval=0),
        lambda: SamplingConfig(slow_motion=0.1, fast_motion=0.05),
        lambda: StabilityConfig(dwell_sec=0),
        lambda: StabilityConfig(countdown_sec=-1),
        lambda: StageConfig(scanning_sec=0),
    ])
    def test_out_of_range_rejected(self, factory):
        with pytest.raises(ConfigError):
            factory()

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestFromDict:
    def test_partial_override(self):
        config = CaptureConfig.from_dict({"stability": {"dwell_sec": 2.0}})
        assert config.stability.dwell_sec == 2.0
        assert config.stability.countdown_sec == 2.0
        assert config.stage == StageConfig()

    def test_empty(self):
        assert CaptureConfig.from_dict({}) == CaptureConfig()
        assert CaptureConfig.from_dict(None) == CaptureConfig()

    def test_unknown_group(self):
        with pytest.raises(ConfigError, match="bogus"):
            CaptureConfig.from_dict({"bogus": {}})

    def test_unknown_option(self):
        with pytest.raises(ConfigError, match="dwell"):
            CaptureConfig.from_dict({"stability": {"dwell": 2.0}})

    def test_group_must_be_mapping(self):
        with pytest.raises(ConfigError):
            CaptureConfig.from_dict({"stage": 3})

    def test_to_dict_round_trip(self):
        config = CaptureConfig(angle=AngleConfig(tolerance_deg=20))
        data = config.to_dict()
        assert data["angle"]["tolerance_deg"] == 20
        assert CaptureConfig.from_dict(data) == config


class TestFromYaml:
    def test_load(self, tmp_path):
        path = tmp_path / "capture.yaml"
        path.write_text(
            "stability:\n"
            "  dwell_sec: 2.5\n"
            "sampling:\n"
            "  slow_interval: 6\n"
        )
        config = CaptureConfig.from_yaml(str(path))
        assert config.stability.dwell_sec == 2.5
        assert config.sampling.slow_interval == 6

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert CaptureConfig.from_yaml(str(path)) == CaptureConfig()

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            CaptureConfig.from_yaml(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CaptureConfig.from_yaml(str(tmp_path / "missing.yaml"))
