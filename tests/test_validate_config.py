from space_expansion.core.config.defaults import DEFAULT_CONFIG, load_and_merge, merge_config
from space_expansion.core.validate.validate_config import summarize_config, validate_config


def test_validate_happy_path():
    config, errors = validate_config(load_and_merge("examples/space-expansion.yaml"))
    assert errors == []
    assert config is not None
    assert config.default_mode == "lcdm"
    assert config.default_a_max == 3.0
    assert config.parameters.timeline_sample_count == 2600
    assert config.numeric_safety.min_denominator == 1e-24
    assert config.units.seconds_per_gyr == 3.15576e16
    assert config.mode_labels["desitter"] == "Pure Lambda de Sitter model"
    assert (6.0, "1 to 6 times") in config.a_max_options
    assert config.speed.max_gyr_per_second == 5.0
    assert config.timeline_slider.max == 1000.0


def test_validate_defaults_are_valid():
    config, errors = validate_config(merge_config(DEFAULT_CONFIG, None))
    assert errors == []
    assert config is not None


def test_validate_partial_override():
    config, errors = validate_config(load_and_merge("examples/partial-override.yaml"))
    assert errors == []
    assert config is not None
    assert config.default_mode == "linear"
    assert config.default_a_max == 6.0
    assert config.parameters.h0_km_s_mpc == 73.0


def test_validate_non_finite_and_bad_floor():
    config, errors = validate_config(load_and_merge("examples/invalid-non-finite.yaml"))
    assert config is None
    by_path = {e.path: e.code for e in errors}
    assert by_path["physics.parameters.h0_km_s_mpc"] == "E_NON_FINITE"
    assert by_path["physics.parameters.omega_lambda"] == "E_NON_FINITE"
    assert by_path["numeric_safety.min_ratio"] == "E_INVALID_FLOOR"
    assert all(e.file and e.file.endswith("invalid-non-finite.yaml") for e in errors)


def test_validate_bad_types_and_ranges():
    config, errors = validate_config(load_and_merge("examples/invalid-bad-type.yaml"))
    assert config is None
    by_path = {e.path: e.code for e in errors}
    assert by_path["physics.default_mode"] == "E_UNKNOWN_MODE"
    assert by_path["physics.parameters.omega_matter"] == "E_INVALID_TYPE"
    assert by_path["physics.timeline_sample_count"] == "E_INVALID_RANGE"
    assert by_path["physics.parameters.a_start"] == "E_INVALID_RANGE"


def test_validate_errors_are_sorted():
    _, errors = validate_config(load_and_merge("examples/invalid-bad-type.yaml"))
    keys = [(e.file or "", e.path or "", e.code) for e in errors]
    assert keys == sorted(keys)


def test_validate_missing_sections():
    config, errors = validate_config({"physics": {}})
    assert config is None
    codes = {(e.path, e.code) for e in errors}
    assert ("numeric_safety", "E_REQUIRED_FIELD") in codes
    assert ("units", "E_REQUIRED_FIELD") in codes


def test_validate_rejects_bool_as_number():
    merged = merge_config(DEFAULT_CONFIG, {"physics": {"parameters": {"omega_matter": True}}})
    config, errors = validate_config(merged)
    assert config is None
    assert [e.code for e in errors] == ["E_INVALID_TYPE"]


def test_validate_rejects_bad_speed_range():
    merged = merge_config(
        DEFAULT_CONFIG,
        {"ui": {"speed_slider": {"min_gyr_per_second": 2.0, "max_gyr_per_second": 1.0}}},
    )
    config, errors = validate_config(merged)
    assert config is None
    assert any(e.path == "ui.speed_slider" and e.code == "E_INVALID_RANGE" for e in errors)


def test_summarize_config():
    config, _ = validate_config(load_and_merge("examples/space-expansion.yaml"))
    assert config is not None
    text = summarize_config(config)
    assert text.startswith("OK: mode=lcdm a_max=3")
    assert "H0=67.4 km/s/Mpc" in text
    assert "samples=2600" in text


def test_validate_reports_malformed_sections():
    config, errors = validate_config(load_and_merge("examples/invalid-bad-section.yaml"))
    assert config is None
    by_path = {e.path: e.code for e in errors}
    assert by_path["numeric_safety"] == "E_INVALID_TYPE"
    assert by_path["physics.parameters"] == "E_INVALID_TYPE"
    assert by_path["physics.modes"] == "E_INVALID_TYPE"


def test_validate_reports_empty_required_section():
    config, errors = validate_config(merge_config(DEFAULT_CONFIG, {"units": None}))
    assert config is None
    assert [(e.path, e.code) for e in errors] == [("units", "E_REQUIRED_FIELD")]
