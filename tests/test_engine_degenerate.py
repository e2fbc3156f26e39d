import math

import pytest

from space_expansion.core.config.defaults import load_and_merge
from space_expansion.core.cosmology.expansion_engine import ExpansionEngine
from space_expansion.core.model import NumericSafety, PhysicsParameters
from space_expansion.core.validate.validate_config import validate_config


SECONDS_PER_GYR = 3.15576e16


def _accessors(engine: ExpansionEngine) -> list[float]:
    return [
        engine.get_time_seconds(),
        engine.get_time_gyr(),
        engine.get_timeline_max_gyr(),
        engine.get_timeline_normalized(),
        engine.get_scale_factor(),
        engine.get_scale_relative_to_start(),
    ]


def _static_engine(mode: str, a_start: float = 0.5) -> ExpansionEngine:
    parameters = PhysicsParameters(
        h0_km_s_mpc=67.4,
        omega_matter=0.0,
        omega_radiation=0.0,
        omega_lambda=0.0,
        a_min=0.5,
        a_start=a_start,
    )
    return ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, mode, 3.0)


@pytest.mark.parametrize("mode", ["lcdm", "desitter"])
def test_static_universe_has_zero_duration(mode):
    engine = _static_engine(mode)
    assert engine.timeline_seconds_max == 0.0
    assert engine.get_scale_factor() == 0.5

    engine.step_by_seconds(5 * SECONDS_PER_GYR)
    engine.set_timeline_normalized(0.7)
    assert engine.get_time_seconds() == 0.0
    assert engine.get_scale_factor() == 0.5
    assert all(math.isfinite(v) for v in _accessors(engine))


@pytest.mark.parametrize("mode", ["lcdm", "desitter"])
def test_static_universe_pins_a_at_a_start(mode):
    engine = _static_engine(mode, a_start=1.0)
    engine.step_by_seconds(SECONDS_PER_GYR)
    assert engine.get_scale_factor() == 1.0
    assert engine.scale_factor_from_time(1e30) == 1.0
    assert engine.time_from_scale_factor(2.0) == 0.0


def test_static_universe_linear_mode_stays_finite():
    engine = _static_engine("linear")
    engine.step_by_seconds(SECONDS_PER_GYR)
    assert all(math.isfinite(v) for v in _accessors(engine))
    assert engine.get_timeline_max_gyr() == pytest.approx(12.0)


def test_static_universe_from_config_file():
    config, errors = validate_config(load_and_merge("examples/static-universe.yaml"))
    assert errors == []
    assert config is not None
    engine = ExpansionEngine.from_config(config)
    assert engine.get_timeline_max_gyr() == 0.0
    assert engine.get_scale_factor() == 0.5


def test_zero_hubble_constant_is_static():
    parameters = PhysicsParameters(
        h0_km_s_mpc=0.0,
        omega_matter=0.315,
        omega_radiation=0.0,
        omega_lambda=0.685,
        a_min=0.01,
        a_start=1.0,
    )
    engine = ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, "lcdm", 3.0)
    assert engine.timeline_seconds_max == 0.0
    assert engine.get_scale_factor() == 1.0


def test_negative_density_sum_degrades_without_nan():
    parameters = PhysicsParameters(
        h0_km_s_mpc=67.4,
        omega_matter=0.3,
        omega_radiation=0.0,
        omega_lambda=-1.0,
        a_min=0.01,
        a_start=1.0,
    )
    engine = ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, "lcdm", 3.0)
    assert engine.hubble_at(3.0) == 0.0
    assert math.isfinite(engine.timeline_seconds_max)
    engine.set_timeline_normalized(0.5)
    assert all(math.isfinite(v) for v in _accessors(engine))
    assert 0.01 <= engine.get_scale_factor() <= 3.0


@pytest.mark.parametrize("mode", ["lcdm", "desitter", "linear"])
def test_zero_width_range_is_safe(mode):
    parameters = PhysicsParameters(
        h0_km_s_mpc=67.4,
        omega_matter=0.315,
        omega_radiation=0.0,
        omega_lambda=0.685,
        a_min=1.0,
        a_start=1.0,
    )
    engine = ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, mode, 1.0)
    engine.step_by_seconds(SECONDS_PER_GYR)
    engine.set_timeline_normalized(0.5)
    assert all(math.isfinite(v) for v in _accessors(engine))
    assert engine.get_scale_factor() == pytest.approx(1.0)
    assert math.isfinite(engine.time_from_scale_factor(1.0))


def test_a_min_below_floor_is_floored():
    parameters = PhysicsParameters(
        h0_km_s_mpc=67.4,
        omega_matter=0.315,
        omega_radiation=9e-5,
        omega_lambda=0.685,
        a_min=0.0,
        a_start=1.0,
        timeline_sample_count=64,
    )
    for mode in ("lcdm", "desitter", "linear"):
        engine = ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, mode, 3.0)  # type: ignore[arg-type]
        assert all(math.isfinite(v) for v in _accessors(engine))
        assert math.isfinite(engine.scale_factor_from_time(0.0))
        assert math.isfinite(engine.hubble_at(0.0))


def _empty_universe(mode: str) -> ExpansionEngine:
    parameters = PhysicsParameters(
        h0_km_s_mpc=67.4,
        omega_matter=0.0,
        omega_radiation=0.0,
        omega_lambda=0.0,
        a_min=0.01,
        a_start=1.0,
    )
    return ExpansionEngine(parameters, NumericSafety(), SECONDS_PER_GYR, mode, 3.0)


@pytest.mark.parametrize("mode", ["lcdm", "desitter"])
def test_empty_universe_with_default_range_pins_at_reset_scale(mode):
    # With a_start above a_min the pinned value is clamp(a_start, a_min, a_max).
    engine = _empty_universe(mode)
    assert engine.timeline_seconds_max == 0.0
    assert engine.get_scale_factor() == 1.0

    for action in (
        lambda: engine.step_by_seconds(10 * SECONDS_PER_GYR),
        lambda: engine.set_timeline_normalized(1.0),
        lambda: engine.set_max_scale(6.0),
        engine.reset,
    ):
        action()
        assert engine.get_time_seconds() == 0.0
        assert engine.get_scale_factor() == 1.0
        assert engine.get_timeline_normalized() == 0.0
        assert all(math.isfinite(v) for v in _accessors(engine))
    assert engine.hubble_at(1.0) == 0.0


def test_empty_universe_with_default_range_linear_still_runs():
    engine = _empty_universe("linear")
    assert engine.get_timeline_max_gyr() == pytest.approx(12.0)
    engine.set_timeline_normalized(1.0)
    assert engine.get_scale_factor() == pytest.approx(3.0)
    engine.set_timeline_normalized(0.0)
    assert engine.get_scale_factor() == pytest.approx(0.01)
    assert all(math.isfinite(v) for v in _accessors(engine))
