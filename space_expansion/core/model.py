from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


Mode = Literal["lcdm", "desitter", "linear"]

ALLOWED_MODES: tuple[str, ...] = ("lcdm", "desitter", "linear")


@dataclass(frozen=True)
class PhysicsParameters:
    h0_km_s_mpc: float
    omega_matter: float
    omega_radiation: float
    omega_lambda: float
    a_min: float
    a_start: float

    linear_timeline_gyr: float = 12.0
    timeline_sample_count: int = 2600


@dataclass(frozen=True)
class NumericSafety:
    """Floors applied before every division, log and power in the engine."""

    min_scale_factor: float = 1e-9
    min_denominator: float = 1e-24
    min_segment_duration: float = 1e-9
    min_segment_range: float = 1e-12
    min_ratio: float = 1e-12
    min_max_time: float = 1e-9
    min_positive_speed_gyr_per_second: float = 1e-4


@dataclass(frozen=True)
class Units:
    seconds_per_gyr: float = 3.15576e16


@dataclass(frozen=True)
class SpeedControl:
    min: float = 0.0
    max: float = 100.0
    default_value: float = 55.0
    min_gyr_per_second: float = 0.01
    max_gyr_per_second: float = 5.0


@dataclass(frozen=True)
class SliderRange:
    min: float = 0.0
    max: float = 1000.0
    default_value: float = 0.0


@dataclass(frozen=True)
class EngineConfig:
    parameters: PhysicsParameters
    numeric_safety: NumericSafety
    units: Units
    default_mode: Mode
    default_a_max: float

    a_max_options: list[tuple[float, str]] = field(default_factory=list)
    mode_labels: dict[str, str] = field(default_factory=dict)
    speed: SpeedControl = field(default_factory=SpeedControl)
    timeline_slider: SliderRange = field(default_factory=SliderRange)


@dataclass(frozen=True)
class TimelinePoint:
    normalized: float
    time_seconds: float
    time_gyr: float
    scale_factor: float
