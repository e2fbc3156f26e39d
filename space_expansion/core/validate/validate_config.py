from __future__ import annotations

import math
from typing import Any, Iterable, Optional, cast

from space_expansion.core.errors import ConfigurationError
from space_expansion.core.model import (
    ALLOWED_MODES,
    EngineConfig,
    Mode,
    NumericSafety,
    PhysicsParameters,
    SliderRange,
    SpeedControl,
    Units,
)


PARAMETER_KEYS: tuple[str, ...] = (
    "h0_km_s_mpc",
    "omega_matter",
    "omega_radiation",
    "omega_lambda",
    "a_min",
    "a_start",
)

SAFETY_KEYS: tuple[str, ...] = (
    "min_scale_factor",
    "min_denominator",
    "min_segment_duration",
    "min_segment_range",
    "min_ratio",
    "min_max_time",
    "min_positive_speed_gyr_per_second",
)

MIN_SAMPLE_COUNT = 16


def validate_config(
    config: dict[str, Any],
) -> tuple[Optional[EngineConfig], list[ConfigurationError]]:
    """Validate a (usually merged) config mapping.

    Returns (engine_config, errors). engine_config is None when errors exist.
    Never fills in defaults; merge_config / sanitize_config own that.
    """

    file = cast(Optional[str], config.get("__file__"))
    errors: list[ConfigurationError] = []

    physics = _mapping(config, "physics", "physics", file, errors)
    numeric_safety = _mapping(config, "numeric_safety", "numeric_safety", file, errors)
    units = _mapping(config, "units", "units", file, errors)
    ui = _mapping(config, "ui", "ui", file, errors, required=False)
    if physics is None:
        return None, _sorted(errors)

    parameters = _mapping(physics, "parameters", "physics.parameters", file, errors)

    values: dict[str, Optional[float]] = {}
    if parameters is not None:
        for key in PARAMETER_KEYS:
            values[key] = _number(parameters, key, f"physics.parameters.{key}", file, errors)

    linear_timeline_gyr = _number(
        physics, "linear_timeline_gyr", "physics.linear_timeline_gyr", file, errors
    )
    if linear_timeline_gyr is not None and linear_timeline_gyr < 0.0:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message="linear_timeline_gyr must be >= 0",
                file=file,
                path="physics.linear_timeline_gyr",
            )
        )

    sample_count = _number(
        physics, "timeline_sample_count", "physics.timeline_sample_count", file, errors
    )
    if sample_count is not None and sample_count < MIN_SAMPLE_COUNT:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message=f"timeline_sample_count must be >= {MIN_SAMPLE_COUNT}",
                file=file,
                path="physics.timeline_sample_count",
            )
        )

    default_a_max = _number(physics, "default_a_max", "physics.default_a_max", file, errors)

    default_mode = physics.get("default_mode")
    if default_mode not in ALLOWED_MODES:
        errors.append(
            ConfigurationError(
                code="E_UNKNOWN_MODE",
                message=f"default_mode must be one of {list(ALLOWED_MODES)}, got {default_mode!r}",
                file=file,
                path="physics.default_mode",
            )
        )

    floors: dict[str, Optional[float]] = {}
    if numeric_safety is not None:
        for key in SAFETY_KEYS:
            floors[key] = _number(
                numeric_safety, key, f"numeric_safety.{key}", file, errors, positive=True
            )

    seconds_per_gyr = None
    if units is not None:
        seconds_per_gyr = _number(
            units, "seconds_per_gyr", "units.seconds_per_gyr", file, errors, positive=True
        )

    a_min = values.get("a_min")
    a_start = values.get("a_start")
    if a_min is not None and a_start is not None and a_start < a_min:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message=f"a_start ({a_start}) must be >= a_min ({a_min})",
                file=file,
                path="physics.parameters.a_start",
            )
        )

    mode_labels = _mode_labels(physics.get("modes"), file, errors)
    a_max_options = _a_max_options(physics.get("a_max_options"), file, errors)

    speed = SpeedControl()
    timeline_slider = SliderRange()
    if ui is not None:
        speed_raw = _mapping(ui, "speed_slider", "ui.speed_slider", file, errors, required=False)
        if speed_raw is not None:
            speed = cast(SpeedControl, _speed_control(speed_raw, file, errors))
        slider_raw = _mapping(
            ui, "timeline_slider", "ui.timeline_slider", file, errors, required=False
        )
        if slider_raw is not None:
            timeline_slider = cast(SliderRange, _slider_range(slider_raw, file, errors))

    if errors:
        return None, _sorted(errors)

    engine_config = EngineConfig(
        parameters=PhysicsParameters(
            h0_km_s_mpc=cast(float, values["h0_km_s_mpc"]),
            omega_matter=cast(float, values["omega_matter"]),
            omega_radiation=cast(float, values["omega_radiation"]),
            omega_lambda=cast(float, values["omega_lambda"]),
            a_min=cast(float, a_min),
            a_start=cast(float, a_start),
            linear_timeline_gyr=cast(float, linear_timeline_gyr),
            timeline_sample_count=int(math.floor(cast(float, sample_count))),
        ),
        numeric_safety=NumericSafety(**{k: cast(float, v) for k, v in floors.items()}),
        units=Units(seconds_per_gyr=cast(float, seconds_per_gyr)),
        default_mode=cast(Mode, default_mode),
        default_a_max=cast(float, default_a_max),
        a_max_options=a_max_options,
        mode_labels=mode_labels,
        speed=speed,
        timeline_slider=timeline_slider,
    )
    return engine_config, []


def summarize_config(config: EngineConfig) -> str:
    p = config.parameters
    return (
        f"OK: mode={config.default_mode} a_max={config.default_a_max:g}\n"
        f"H0={p.h0_km_s_mpc:g} km/s/Mpc "
        f"omega_m={p.omega_matter:g} omega_r={p.omega_radiation:g} omega_lambda={p.omega_lambda:g}\n"
        f"a_min={p.a_min:g} a_start={p.a_start:g} samples={p.timeline_sample_count} "
        f"linear={p.linear_timeline_gyr:g} Gyr"
    )


def _mapping(
    parent: dict[str, Any],
    key: str,
    path: str,
    file: Optional[str],
    errors: list[ConfigurationError],
    *,
    required: bool = True,
) -> Optional[dict[str, Any]]:
    value = parent.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, dict):
        errors.append(
            ConfigurationError(
                code="E_REQUIRED_FIELD" if value is None else "E_INVALID_TYPE",
                message=f"{key} is required and must be a mapping",
                file=file,
                path=path,
            )
        )
        return None
    return value


def _number(
    parent: dict[str, Any],
    key: str,
    path: str,
    file: Optional[str],
    errors: list[ConfigurationError],
    *,
    positive: bool = False,
) -> Optional[float]:
    value = parent.get(key)
    if value is None:
        errors.append(
            ConfigurationError(
                code="E_REQUIRED_FIELD",
                message=f"{key} is required",
                file=file,
                path=path,
            )
        )
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(
            ConfigurationError(
                code="E_INVALID_TYPE",
                message=f"{key} must be a number",
                file=file,
                path=path,
            )
        )
        return None
    if not math.isfinite(value):
        errors.append(
            ConfigurationError(
                code="E_NON_FINITE",
                message=f"{key} must be finite, got {value}",
                file=file,
                path=path,
            )
        )
        return None
    if positive and value <= 0.0:
        errors.append(
            ConfigurationError(
                code="E_INVALID_FLOOR",
                message=f"{key} must be positive, got {value}",
                file=file,
                path=path,
            )
        )
        return None
    return float(value)


def _mode_labels(
    raw: Any, file: Optional[str], errors: list[ConfigurationError]
) -> dict[str, str]:
    if raw is None:
        return {m: m for m in ALLOWED_MODES}
    if not isinstance(raw, list):
        errors.append(
            ConfigurationError(
                code="E_INVALID_TYPE",
                message="modes must be an array of {value, label}",
                file=file,
                path="physics.modes",
            )
        )
        return {}

    labels: dict[str, str] = {}
    for i, item in enumerate(raw):
        value = item.get("value") if isinstance(item, dict) else None
        label = item.get("label") if isinstance(item, dict) else None
        if value not in ALLOWED_MODES:
            errors.append(
                ConfigurationError(
                    code="E_UNKNOWN_MODE",
                    message=f"modes[{i}].value must be one of {list(ALLOWED_MODES)}",
                    file=file,
                    path=f"physics.modes[{i}].value",
                )
            )
            continue
        if not isinstance(label, str) or not label.strip():
            errors.append(
                ConfigurationError(
                    code="E_REQUIRED_FIELD",
                    message="label is required and must be a non-empty string",
                    file=file,
                    path=f"physics.modes[{i}].label",
                )
            )
            continue
        labels[cast(str, value)] = label.strip()
    return labels


def _a_max_options(
    raw: Any, file: Optional[str], errors: list[ConfigurationError]
) -> list[tuple[float, str]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.append(
            ConfigurationError(
                code="E_INVALID_TYPE",
                message="a_max_options must be an array of {value, label}",
                file=file,
                path="physics.a_max_options",
            )
        )
        return []

    options: list[tuple[float, str]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.append(
                ConfigurationError(
                    code="E_INVALID_TYPE",
                    message="option must be an object",
                    file=file,
                    path=f"physics.a_max_options[{i}]",
                )
            )
            continue
        value = _number(item, "value", f"physics.a_max_options[{i}].value", file, errors)
        label = item.get("label")
        if not isinstance(label, str):
            errors.append(
                ConfigurationError(
                    code="E_REQUIRED_FIELD",
                    message="label is required and must be a string",
                    file=file,
                    path=f"physics.a_max_options[{i}].label",
                )
            )
            continue
        if value is not None:
            options.append((value, label))
    return options


def _speed_control(
    raw: dict[str, Any], file: Optional[str], errors: list[ConfigurationError]
) -> Optional[SpeedControl]:
    defaults = SpeedControl()
    picked: dict[str, float] = {}
    for key in ("min", "max", "default_value", "min_gyr_per_second", "max_gyr_per_second"):
        if raw.get(key) is None:
            picked[key] = getattr(defaults, key)
            continue
        value = _number(raw, key, f"ui.speed_slider.{key}", file, errors)
        if value is not None:
            picked[key] = value
    if len(picked) < 5:
        return None

    if picked["min_gyr_per_second"] <= 0.0 or picked["max_gyr_per_second"] < picked["min_gyr_per_second"]:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message="speed must satisfy 0 < min_gyr_per_second <= max_gyr_per_second",
                file=file,
                path="ui.speed_slider",
            )
        )
    if picked["max"] < picked["min"]:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message="speed slider max must be >= min",
                file=file,
                path="ui.speed_slider.max",
            )
        )
    return SpeedControl(**picked)


def _slider_range(
    raw: dict[str, Any], file: Optional[str], errors: list[ConfigurationError]
) -> Optional[SliderRange]:
    defaults = SliderRange()
    picked: dict[str, float] = {}
    for key in ("min", "max", "default_value"):
        if raw.get(key) is None:
            picked[key] = getattr(defaults, key)
            continue
        value = _number(raw, key, f"ui.timeline_slider.{key}", file, errors)
        if value is not None:
            picked[key] = value
    if len(picked) < 3:
        return None

    if picked["max"] < picked["min"]:
        errors.append(
            ConfigurationError(
                code="E_INVALID_RANGE",
                message="timeline slider max must be >= min",
                file=file,
                path="ui.timeline_slider.max",
            )
        )
    return SliderRange(**picked)


def _sorted(errors: Iterable[ConfigurationError]) -> list[ConfigurationError]:
    return sorted(errors, key=ConfigurationError.sort_key)
