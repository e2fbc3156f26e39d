from __future__ import annotations

import logging
import math
from dataclasses import fields

from space_expansion.core.cosmology.timeline import (
    DeSitterTimeline,
    HubbleRate,
    LcdmTimeline,
    LinearTimeline,
    Timeline,
    km_s_mpc_to_per_second,
)
from space_expansion.core.errors import ConfigurationError
from space_expansion.core.model import (
    ALLOWED_MODES,
    EngineConfig,
    Mode,
    NumericSafety,
    PhysicsParameters,
    TimelinePoint,
)
from space_expansion.core.numbers import clamp_number, is_finite_number


logger = logging.getLogger(__name__)


class ExpansionEngine:
    """Maps elapsed cosmic time to scale factor a(t) and back.

    One engine owns its parameters, its current (time, a) state and the
    timeline of the active mode. Mode or range changes rebuild the timeline
    wholesale and swap it in with a single assignment.

    State invariant: after every mutation, ``a`` equals
    ``scale_factor_from_time(time_seconds)`` (up to interpolation error for
    lcdm), ``time_seconds`` lies in ``[0, timeline_seconds_max]`` and ``a``
    lies in ``[a_min, a_max]``.

    Usage:
        engine = ExpansionEngine(parameters, NumericSafety(), 3.15576e16, "lcdm", 3.0)
        engine.step_by_seconds(1e15)
        print(engine.get_time_gyr(), engine.get_scale_factor())
    """

    def __init__(
        self,
        parameters: PhysicsParameters,
        numeric_safety: NumericSafety,
        seconds_per_gyr: float,
        mode: Mode = "lcdm",
        a_max: float = 3.0,
    ):
        """
        Build the initial timeline and reset to a_start.

        Raises:
            ConfigurationError: a required number is non-finite, a safety
                floor or seconds_per_gyr is not positive, or mode is unknown.
        """
        _check_parameters(parameters, numeric_safety, seconds_per_gyr, a_max)
        _check_mode(mode)

        self._parameters = parameters
        self._safety = numeric_safety
        self._seconds_per_gyr = float(seconds_per_gyr)

        self.h0_per_second = km_s_mpc_to_per_second(parameters.h0_km_s_mpc)
        self._hubble = HubbleRate(
            h0_per_second=self.h0_per_second,
            omega_matter=parameters.omega_matter,
            omega_radiation=parameters.omega_radiation,
            omega_lambda=parameters.omega_lambda,
            min_scale_factor=numeric_safety.min_scale_factor,
        )

        self._mode: Mode = mode
        self._a_max = max(parameters.a_start, float(a_max))
        self._timeline: Timeline = self._build_timeline()

        self._time_seconds = 0.0
        self._a = self._reset_anchor()
        self.reset()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "ExpansionEngine":
        return cls(
            config.parameters,
            config.numeric_safety,
            config.units.seconds_per_gyr,
            config.default_mode,
            config.default_a_max,
        )

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def parameters(self) -> PhysicsParameters:
        return self._parameters

    @property
    def numeric_safety(self) -> NumericSafety:
        return self._safety

    @property
    def seconds_per_gyr(self) -> float:
        return self._seconds_per_gyr

    @property
    def a_min(self) -> float:
        return self._parameters.a_min

    @property
    def a_start(self) -> float:
        return self._parameters.a_start

    @property
    def a_max(self) -> float:
        return self._a_max

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def timeline_seconds_max(self) -> float:
        return self._timeline.seconds_max

    # ------------------------------------------------------------------
    # Mutators

    def reset(self) -> None:
        """Return to a_start (present day when a_start == 1)."""
        a_reset = self._reset_anchor()
        self._time_seconds = self._timeline.time_at(a_reset)
        self._a = a_reset

    def set_mode(self, mode: Mode) -> None:
        """Switch strategy, rebuild the timeline and reset to a_start."""
        _check_mode(mode)
        self._mode = mode
        self._timeline = self._build_timeline()
        self.reset()

    def set_max_scale(self, a_max: float) -> None:
        """Change the upper scale-factor bound, keeping the current a where possible.

        a_max is coerced to at least a_start. A non-finite a_max is treated
        as 0 and therefore collapses the range to a_start.
        """
        a_max_safe = float(a_max) if is_finite_number(a_max) else 0.0
        self._a_max = max(self._parameters.a_start, a_max_safe)
        self._timeline = self._build_timeline()
        self._a = clamp_number(self._a, self._parameters.a_min, self._a_max)
        self._time_seconds = self._timeline.time_at(self._a)

    def step_by_seconds(self, delta_seconds: float) -> None:
        """Advance simulated time. Non-finite deltas are treated as 0."""
        delta_safe = float(delta_seconds) if is_finite_number(delta_seconds) else 0.0
        self._time_seconds = clamp_number(
            self._time_seconds + delta_safe, 0.0, max(0.0, self.timeline_seconds_max)
        )
        self._a = self._timeline.scale_factor_at(self._time_seconds)

    def set_timeline_normalized(self, timeline_normalized: float) -> None:
        """Jump to a position in [0, 1] of the timeline. NaN is treated as 0."""
        position = float(timeline_normalized)
        if math.isnan(position):
            position = 0.0
        position = clamp_number(position, 0.0, 1.0)
        self._time_seconds = position * max(0.0, self.timeline_seconds_max)
        self._a = self._timeline.scale_factor_at(self._time_seconds)

    # ------------------------------------------------------------------
    # Accessors

    def get_timeline_normalized(self) -> float:
        denominator = max(self._safety.min_max_time, self.timeline_seconds_max)
        return clamp_number(self._time_seconds / denominator, 0.0, 1.0)

    def get_time_seconds(self) -> float:
        return self._time_seconds

    def get_time_gyr(self) -> float:
        return self._time_seconds / self._seconds_per_gyr

    def get_timeline_max_gyr(self) -> float:
        return self.timeline_seconds_max / self._seconds_per_gyr

    def get_scale_factor(self) -> float:
        return self._a

    def get_scale_relative_to_start(self) -> float:
        """a / a_start; 2.0 means twice the starting size."""
        return self._a / max(self._safety.min_scale_factor, self._parameters.a_start)

    # ------------------------------------------------------------------
    # Conversions and diagnostics

    def scale_factor_from_time(self, time_seconds: float) -> float:
        t = float(time_seconds)
        if math.isnan(t):
            t = 0.0
        return self._timeline.scale_factor_at(t)

    def time_from_scale_factor(self, a: float) -> float:
        a_value = float(a)
        if math.isnan(a_value):
            a_value = self._parameters.a_min
        return self._timeline.time_at(a_value)

    def hubble_at(self, a: float) -> float:
        return float(self._hubble(a))

    def derivative_a(self, a: float) -> float:
        """da/dt at a, in 1/s."""
        return a * self.hubble_at(a)

    def sample_timeline(self, num_points: int = 20) -> list[TimelinePoint]:
        """
        Sample the active timeline at evenly spaced positions.

        Does not touch the engine's current state.

        Args:
            num_points: Number of samples over [0, 1], at least 2

        Returns:
            List of TimelinePoint snapshots
        """
        if num_points < 2:
            raise ValueError("num_points must be >= 2")

        seconds_max = max(0.0, self.timeline_seconds_max)
        samples = []
        for i in range(num_points):
            normalized = i / (num_points - 1)
            time_seconds = normalized * seconds_max
            samples.append(
                TimelinePoint(
                    normalized=normalized,
                    time_seconds=time_seconds,
                    time_gyr=time_seconds / self._seconds_per_gyr,
                    scale_factor=self._timeline.scale_factor_at(time_seconds),
                )
            )
        return samples

    # ------------------------------------------------------------------

    def _reset_anchor(self) -> float:
        return clamp_number(self._parameters.a_start, self._parameters.a_min, self._a_max)

    def _build_timeline(self) -> Timeline:
        parameters = self._parameters
        anchor = self._reset_anchor()

        timeline: Timeline
        if self._mode == "linear":
            timeline = LinearTimeline.build(
                parameters, self._safety, self._seconds_per_gyr, self._a_max, anchor
            )
        elif self._mode == "desitter":
            timeline = DeSitterTimeline.build(
                parameters, self._safety, self.h0_per_second, self._a_max, anchor
            )
        else:
            timeline = LcdmTimeline.build(parameters, self._safety, self._hubble, self._a_max, anchor)

        if timeline.seconds_max <= 0.0:
            logger.info(
                "%s timeline has zero duration (H0=%s, omega_lambda=%s, a_max=%s); state pinned at a=%s",
                self._mode,
                parameters.h0_km_s_mpc,
                parameters.omega_lambda,
                self._a_max,
                anchor,
            )
        else:
            logger.debug(
                "rebuilt %s timeline: a_max=%s, %.3f Gyr",
                self._mode,
                self._a_max,
                timeline.seconds_max / self._seconds_per_gyr,
            )
        return timeline


def _check_mode(mode: str) -> None:
    if mode not in ALLOWED_MODES:
        raise ConfigurationError(
            code="E_UNKNOWN_MODE",
            message=f"unknown mode: {mode} (choose one of: {', '.join(ALLOWED_MODES)})",
            path="mode",
        )


def _check_parameters(
    parameters: PhysicsParameters,
    numeric_safety: NumericSafety,
    seconds_per_gyr: float,
    a_max: float,
) -> None:
    for f in fields(parameters):
        value = getattr(parameters, f.name)
        if not is_finite_number(value):
            raise ConfigurationError(
                code="E_NON_FINITE",
                message=f"{f.name} must be a finite number, got {value!r}",
                path=f"physics.parameters.{f.name}",
            )

    for f in fields(numeric_safety):
        value = getattr(numeric_safety, f.name)
        if not is_finite_number(value):
            raise ConfigurationError(
                code="E_NON_FINITE",
                message=f"{f.name} must be a finite number, got {value!r}",
                path=f"numeric_safety.{f.name}",
            )
        if value <= 0.0:
            raise ConfigurationError(
                code="E_INVALID_FLOOR",
                message=f"{f.name} must be positive, got {value!r}",
                path=f"numeric_safety.{f.name}",
            )

    if not is_finite_number(seconds_per_gyr):
        raise ConfigurationError(
            code="E_NON_FINITE",
            message=f"seconds_per_gyr must be a finite number, got {seconds_per_gyr!r}",
            path="units.seconds_per_gyr",
        )
    if seconds_per_gyr <= 0.0:
        raise ConfigurationError(
            code="E_INVALID_RANGE",
            message=f"seconds_per_gyr must be positive, got {seconds_per_gyr!r}",
            path="units.seconds_per_gyr",
        )

    if not is_finite_number(a_max):
        raise ConfigurationError(
            code="E_NON_FINITE",
            message=f"a_max must be a finite number, got {a_max!r}",
            path="physics.default_a_max",
        )
