"""Configuration for the capture engine.

Every threshold the engine uses lives here so it can be tuned without
touching the algorithms. Groups are frozen dataclasses validated at
construction; a bad value raises ``ConfigError`` immediately instead of
surfacing while frames are being processed.

Example:
    >>> from facecapture.config import CaptureConfig, StabilityConfig
    >>> config = CaptureConfig(stability=StabilityConfig(dwell_sec=2.0))
    >>>
    >>> config = CaptureConfig.from_yaml("capture.yaml")
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


def _require_positive(group: str, **values: float) -> None:
    for name, value in values.items():
        if value <= 0:
            raise ConfigError(f"{group}.{name} must be > 0, got {value!r}")


def _require_range(group: str, low_name: str, low: float, high_name: str, high: float) -> None:
    if low >= high:
        raise ConfigError(
            f"{group}.{low_name} ({low!r}) must be below {group}.{high_name} ({high!r})"
        )


@dataclass(frozen=True)
class LightingConfig:
    """Brightness gate.

    Attributes:
        brightness_min: Luma floor on a 0-255 scale.
        sample_ratio: Side of the centered crop, as a fraction of the frame.
        sample_stride: Take every Nth pixel of the crop.
        check_interval_sec: Minimum time between two measurements.
    """

    brightness_min: float = 80.0
    sample_ratio: float = 0.3
    sample_stride: int = 10
    check_interval_sec: float = 0.5

    def __post_init__(self) -> None:
        _require_positive(
            "lighting",
            brightness_min=self.brightness_min,
            sample_ratio=self.sample_ratio,
            sample_stride=self.sample_stride,
        )
        if self.sample_ratio > 1.0:
            raise ConfigError(f"lighting.sample_ratio must be <= 1, got {self.sample_ratio!r}")
        if self.check_interval_sec < 0:
            raise ConfigError(
                f"lighting.check_interval_sec must be >= 0, got {self.check_interval_sec!r}"
            )


@dataclass(frozen=True)
class GuidanceConfig:
    """Coarse pose bounds used for on-screen guidance."""

    yaw_ratio_min: float = 0.7
    yaw_ratio_max: float = 1.4
    roll_max_deg: float = 10.0
    pitch_min: float = -10.0
    pitch_max: float = 22.0

    def __post_init__(self) -> None:
        _require_positive(
            "guidance",
            yaw_ratio_min=self.yaw_ratio_min,
            roll_max_deg=self.roll_max_deg,
        )
        _require_range("guidance", "yaw_ratio_min", self.yaw_ratio_min,
                       "yaw_ratio_max", self.yaw_ratio_max)
        _require_range("guidance", "pitch_min", self.pitch_min,
                       "pitch_max", self.pitch_max)


@dataclass(frozen=True)
class FramingConfig:
    """Position and distance tolerances relative to the guide box."""

    min_face_area_ratio: float = 0.05
    glabella_y_max: float = 0.50
    glabella_y_ideal: float = 0.40
    y_tolerance: float = 0.12
    x_tolerance: float = 0.12
    size_ratio_min: float = 0.50
    size_ratio_max: float = 0.90
    guide_width_ratio: float = 0.70
    guide_height_ratio: float = 0.55

    def __post_init__(self) -> None:
        _require_positive(
            "framing",
            glabella_y_max=self.glabella_y_max,
            y_tolerance=self.y_tolerance,
            x_tolerance=self.x_tolerance,
            size_ratio_min=self.size_ratio_min,
            guide_width_ratio=self.guide_width_ratio,
            guide_height_ratio=self.guide_height_ratio,
        )
        if self.min_face_area_ratio < 0:
            raise ConfigError(
                f"framing.min_face_area_ratio must be >= 0, got {self.min_face_area_ratio!r}"
            )
        _require_range("framing", "size_ratio_min", self.size_ratio_min,
                       "size_ratio_max", self.size_ratio_max)


@dataclass(frozen=True)
class AngleConfig:
    """Target-angle validation bands."""

    tolerance_deg: float = 15.0
    side_pitch_factor: float = 1.5
    side_yaw_limit_deg: float = 60.0

    def __post_init__(self) -> None:
        _require_positive(
            "angle",
            tolerance_deg=self.tolerance_deg,
            side_pitch_factor=self.side_pitch_factor,
        )
        _require_range("angle", "tolerance_deg", self.tolerance_deg,
                       "side_yaw_limit_deg", self.side_yaw_limit_deg)


@dataclass(frozen=True)
class SamplingConfig:
    """Motion-to-skip-rate mapping and cache reuse deltas.

    Attributes:
        history_size: Rolling window of face-center displacements.
        fast_motion: Mean displacement above which ``fast_interval`` applies.
        slow_motion: Mean displacement below which ``slow_interval`` applies.
        cache_distance_ratio: Max per-axis move (fraction of frame) to reuse the cache.
        angle_change_deg: Per-axis change that counts as a genuine new angle.
    """

    history_size: int = 10
    fast_motion: float = 0.05
    slow_motion: float = 0.01
    fast_interval: int = 2
    normal_interval: int = 3
    slow_interval: int = 5
    cache_distance_ratio: float = 0.02
    angle_change_deg: float = 5.0

    def __post_init__(self) -> None:
        _require_positive(
            "sampling",
            history_size=self.history_size,
            fast_motion=self.fast_motion,
            slow_motion=self.slow_motion,
            fast_interval=self.fast_interval,
            normal_interval=self.normal_interval,
            slow_interval=self.slow_interval,
            cache_distance_ratio=self.cache_distance_ratio,
            angle_change_deg=self.angle_change_deg,
        )
        _require_range("sampling", "slow_motion", self.slow_motion,
                       "fast_motion", self.fast_motion)


@dataclass(frozen=True)
class StabilityConfig:
    """Lock-on dwell before an automatic capture."""

    dwell_sec: float = 3.0
    countdown_sec: float = 2.0

    def __post_init__(self) -> None:
        _require_positive("stability", dwell_sec=self.dwell_sec)
        if self.countdown_sec < 0:
            raise ConfigError(
                f"stability.countdown_sec must be >= 0, got {self.countdown_sec!r}"
            )


@dataclass(frozen=True)
class StageConfig:
    """Fixed stage durations of the capture stage machine."""

    scanning_sec: float = 3.5
    processing_sec: float = 1.5

    def __post_init__(self) -> None:
        _require_positive(
            "stage",
            scanning_sec=self.scanning_sec,
            processing_sec=self.processing_sec,
        )


_GROUPS = {
    "lighting": LightingConfig,
    "guidance": GuidanceConfig,
    "framing": FramingConfig,
    "angle": AngleConfig,
    "sampling": SamplingConfig,
    "stability": StabilityConfig,
    "stage": StageConfig,
}


def _build_group(name: str, data: Any):
    cls = _GROUPS[name]
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"{name} must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown {name} option(s): {', '.join(unknown)}")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigError(f"Invalid {name} options: {e}") from e


@dataclass(frozen=True)
class CaptureConfig:
    """Complete configuration for a capture session.

    Attributes:
        lighting: Brightness gate.
        guidance: Coarse pose bounds.
        framing: Position/distance tolerances.
        angle: Target-angle validation.
        sampling: Adaptive sampling controller.
        stability: Lock-on timer.
        stage: Stage machine durations.
    """

    lighting: LightingConfig = field(default_factory=LightingConfig)
    guidance: GuidanceConfig = field(default_factory=GuidanceConfig)
    framing: FramingConfig = field(default_factory=FramingConfig)
    angle: AngleConfig = field(default_factory=AngleConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    stage: StageConfig = field(default_factory=StageConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptureConfig":
        """Create CaptureConfig from a dictionary (e.g., loaded from YAML).

        Missing groups and options keep their defaults.

        Raises:
            ConfigError: On unknown groups/options or out-of-range values.
        """
        data = data or {}
        unknown = sorted(set(data) - set(_GROUPS))
        if unknown:
            raise ConfigError(f"Unknown config group(s): {', '.join(unknown)}")
        return cls(**{name: _build_group(name, data.get(name)) for name in _GROUPS})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "CaptureConfig":
        """Load CaptureConfig from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the content is invalid.
        """
        import yaml

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"{yaml_path}: top level must be a mapping")
        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (YAML/JSON friendly)."""
        return asdict(self)


__all__ = [
    "ConfigError",
    "LightingConfig",
    "GuidanceConfig",
    "FramingConfig",
    "AngleConfig",
    "SamplingConfig",
    "StabilityConfig",
    "StageConfig",
    "CaptureConfig",
]
