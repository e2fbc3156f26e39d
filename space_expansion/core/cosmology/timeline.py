from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from space_expansion.core.model import NumericSafety, PhysicsParameters
from space_expansion.core.numbers import clamp_number, lerp_number


METERS_PER_MEGAPARSEC = 3.085677581e22
MIN_TIMELINE_SAMPLES = 16

ArrayOrFloat = Union[float, np.ndarray]


def km_s_mpc_to_per_second(h0_km_s_mpc: float) -> float:
    """Convert H0 from km/s/Mpc to 1/s. 70 becomes about 2.27e-18."""
    return h0_km_s_mpc * 1000.0 / METERS_PER_MEGAPARSEC


@dataclass(frozen=True)
class HubbleRate:
    """H(a) for a flat Friedmann universe, in 1/s.

    Accepts scalars or numpy arrays. A negative density sum (misconfigured
    omegas) yields H = 0 rather than a complex rate.
    """

    h0_per_second: float
    omega_matter: float
    omega_radiation: float
    omega_lambda: float
    min_scale_factor: float

    def __call__(self, a: ArrayOrFloat) -> ArrayOrFloat:
        a_safe = np.maximum(self.min_scale_factor, a)
        total = (
            self.omega_radiation / a_safe**4
            + self.omega_matter / a_safe**3
            + self.omega_lambda
        )
        return self.h0_per_second * np.sqrt(np.maximum(0.0, total))


class LinearTimeline:
    """Toy model: a grows linearly from a_min to a_max over a fixed duration."""

    mode = "linear"

    def __init__(
        self,
        a_min: float,
        a_max: float,
        anchor: float,
        seconds_max: float,
        safety: NumericSafety,
    ):
        self.a_min = a_min
        self.a_max = a_max
        self.anchor = anchor
        self.seconds_max = max(0.0, seconds_max)
        self.safety = safety

    @classmethod
    def build(
        cls,
        parameters: PhysicsParameters,
        safety: NumericSafety,
        seconds_per_gyr: float,
        a_max: float,
        anchor: float,
    ) -> "LinearTimeline":
        seconds_max = parameters.linear_timeline_gyr * seconds_per_gyr
        return cls(parameters.a_min, a_max, anchor, seconds_max, safety)

    def scale_factor_at(self, time_seconds: float) -> float:
        if self.seconds_max <= 0.0:
            return self.anchor
        t = clamp_number(time_seconds, 0.0, self.seconds_max)
        duration = max(self.safety.min_max_time, self.seconds_max)
        return lerp_number(self.a_min, self.a_max, t / duration)

    def time_at(self, a: float) -> float:
        a_clamped = clamp_number(a, self.a_min, self.a_max)
        a_range = max(self.safety.min_segment_range, self.a_max - self.a_min)
        t_normalized = (a_clamped - self.a_min) / a_range
        return clamp_number(t_normalized, 0.0, 1.0) * self.seconds_max


class DeSitterTimeline:
    """Pure Lambda expansion: a(t) = a_min * exp(H t) with H = H0 * sqrt(omega_lambda)."""

    mode = "desitter"

    def __init__(
        self,
        a_min: float,
        a_max: float,
        anchor: float,
        hubble: float,
        safety: NumericSafety,
    ):
        self.a_min = a_min
        self.a_max = a_max
        self.anchor = anchor
        self.hubble = hubble
        self.safety = safety
        self.a_floor = max(safety.min_scale_factor, a_min)

        if hubble <= 0.0:
            self.seconds_max = 0.0
        else:
            ratio = max(safety.min_ratio, a_max / self.a_floor)
            self.seconds_max = max(0.0, math.log(ratio) / hubble)

    @classmethod
    def build(
        cls,
        parameters: PhysicsParameters,
        safety: NumericSafety,
        h0_per_second: float,
        a_max: float,
        anchor: float,
    ) -> "DeSitterTimeline":
        hubble = h0_per_second * math.sqrt(max(0.0, parameters.omega_lambda))
        return cls(parameters.a_min, a_max, anchor, hubble, safety)

    def scale_factor_at(self, time_seconds: float) -> float:
        if self.seconds_max <= 0.0:
            return self.anchor
        t = clamp_number(time_seconds, 0.0, self.seconds_max)
        a_value = self.a_floor * math.exp(self.hubble * t)
        return clamp_number(a_value, self.a_floor, self.a_max)

    def time_at(self, a: float) -> float:
        if self.hubble <= 0.0:
            return 0.0
        a_clamped = clamp_number(a, self.a_min, self.a_max)
        ratio = max(self.safety.min_ratio, a_clamped / self.a_floor)
        return clamp_number(math.log(ratio) / self.hubble, 0.0, self.seconds_max)


class LcdmTimeline:
    """Flat LambdaCDM lookup table built by integrating dt = da / (a H(a)).

    The table holds N + 1 samples (N midpoint-rule segments of equal width in
    scale factor), strictly increasing in both time and scale factor. Both
    conversions bracket the target with a binary search and interpolate
    linearly inside the segment.
    """

    mode = "lcdm"

    def __init__(
        self,
        a_min: float,
        a_max: float,
        anchor: float,
        times: np.ndarray,
        scale_factors: np.ndarray,
        safety: NumericSafety,
    ):
        self.a_min = a_min
        self.a_max = a_max
        self.anchor = anchor
        self.safety = safety

        times.setflags(write=False)
        scale_factors.setflags(write=False)
        self._times = times
        self._scale_factors = scale_factors

        self.seconds_max = float(times[-1]) if times.size >= 2 else 0.0

    @classmethod
    def build(
        cls,
        parameters: PhysicsParameters,
        safety: NumericSafety,
        hubble: HubbleRate,
        a_max: float,
        anchor: float,
    ) -> "LcdmTimeline":
        step_count = max(MIN_TIMELINE_SAMPLES, int(math.floor(parameters.timeline_sample_count)))
        a_lo = max(safety.min_scale_factor, min(parameters.a_min, parameters.a_start, a_max))
        a_hi = a_max

        empty = np.empty(0, dtype=np.float64)
        if not a_hi > a_lo:
            return cls(parameters.a_min, a_max, anchor, empty, empty.copy(), safety)

        fractions = np.arange(step_count + 1, dtype=np.float64) / step_count
        edges = a_lo + (a_hi - a_lo) * fractions
        edges[-1] = a_hi

        a_mid = 0.5 * (edges[:-1] + edges[1:])
        da = np.diff(edges)
        rates = a_mid * hubble(a_mid)

        # H(a) == 0 everywhere: the universe is static and has no timeline.
        if not np.any(rates > 0.0):
            return cls(parameters.a_min, a_max, anchor, empty, empty.copy(), safety)

        dt = da / np.maximum(safety.min_denominator, rates)
        times = np.concatenate(([0.0], np.cumsum(dt)))
        return cls(parameters.a_min, a_max, anchor, times, edges, safety)

    @property
    def sample_times(self) -> np.ndarray:
        return self._times

    @property
    def sample_scale_factors(self) -> np.ndarray:
        return self._scale_factors

    def scale_factor_at(self, time_seconds: float) -> float:
        times = self._times
        scale_factors = self._scale_factors

        if times.size < 2 or self.seconds_max <= 0.0:
            return self.anchor

        target = clamp_number(time_seconds, 0.0, self.seconds_max)
        low, high = _bracket(times, target)

        t0 = float(times[low])
        t1 = float(times[high])
        segment_duration = max(self.safety.min_segment_duration, t1 - t0)
        segment_t = (target - t0) / segment_duration

        return lerp_number(float(scale_factors[low]), float(scale_factors[high]), segment_t)

    def time_at(self, a: float) -> float:
        times = self._times
        scale_factors = self._scale_factors

        if times.size < 2:
            return 0.0

        a_clamped = clamp_number(a, self.a_min, self.a_max)
        target = clamp_number(a_clamped, float(scale_factors[0]), float(scale_factors[-1]))
        low, high = _bracket(scale_factors, target)

        a0 = float(scale_factors[low])
        a1 = float(scale_factors[high])
        segment_range = max(self.safety.min_segment_range, a1 - a0)
        segment_t = (target - a0) / segment_range

        return lerp_number(float(times[low]), float(times[high]), segment_t)


Timeline = Union[LinearTimeline, DeSitterTimeline, LcdmTimeline]


def _bracket(values: np.ndarray, target: float) -> tuple[int, int]:
    """Binary search for the segment (low, low + 1) with values[low] <= target."""
    low = int(np.searchsorted(values, target, side="right")) - 1
    low = min(max(low, 0), values.size - 2)
    return low, low + 1
