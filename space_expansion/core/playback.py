from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from space_expansion.core.cosmology.expansion_engine import ExpansionEngine
from space_expansion.core.model import NumericSafety, SliderRange, SpeedControl
from space_expansion.core.numbers import clamp_number, is_finite_number, lerp_number


@dataclass(frozen=True)
class PlaybackFrame:
    index: int
    time_gyr: float
    scale_factor: float
    scale_relative_to_start: float
    timeline_normalized: float


def speed_gyr_per_second(
    slider_value: float, speed: SpeedControl, numeric_safety: NumericSafety
) -> float:
    """Map a speed slider value to simulated Gyr per real second.

    Exponential interpolation between the configured bounds gives finer
    control at low speeds: value 0 maps to the minimum speed.
    """
    max_slider_value = max(1.0, speed.max)
    value = slider_value if is_finite_number(slider_value) else 0.0
    t = clamp_number(value / max_slider_value, 0.0, 1.0)

    minimum = max(numeric_safety.min_positive_speed_gyr_per_second, speed.min_gyr_per_second)
    maximum = max(minimum, speed.max_gyr_per_second)
    return minimum * (maximum / minimum) ** t


def cosmic_delta_seconds(
    real_delta_seconds: float, gyr_per_second: float, seconds_per_gyr: float
) -> float:
    """Convert elapsed wall-clock seconds into simulated cosmic seconds."""
    if not is_finite_number(real_delta_seconds) or real_delta_seconds < 0.0:
        return 0.0
    return real_delta_seconds * gyr_per_second * seconds_per_gyr


def timeline_slider_position(engine: ExpansionEngine, slider: SliderRange) -> float:
    """Slider value matching the engine's normalized timeline position."""
    return lerp_number(slider.min, slider.max, engine.get_timeline_normalized())


def apply_timeline_slider(engine: ExpansionEngine, value: float, slider: SliderRange) -> None:
    span = max(1.0, slider.max - slider.min)
    position = value if is_finite_number(value) else slider.min
    engine.set_timeline_normalized((position - slider.min) / span)


def run_playback(
    engine: ExpansionEngine,
    frames: int,
    frame_seconds: float,
    gyr_per_second: float,
) -> Iterator[PlaybackFrame]:
    """Step the engine once per frame and yield its state after each step.

    Pausing is the caller's concern: stop iterating.
    """
    delta = cosmic_delta_seconds(frame_seconds, gyr_per_second, engine.seconds_per_gyr)
    for index in range(frames):
        engine.step_by_seconds(delta)
        yield PlaybackFrame(
            index=index,
            time_gyr=engine.get_time_gyr(),
            scale_factor=engine.get_scale_factor(),
            scale_relative_to_start=engine.get_scale_relative_to_start(),
            timeline_normalized=engine.get_timeline_normalized(),
        )
