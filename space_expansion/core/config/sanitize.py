from __future__ import annotations

import copy
import math
from typing import Any

from space_expansion.core.config.defaults import DEFAULT_CONFIG, merge_config
from space_expansion.core.model import ALLOWED_MODES
from space_expansion.core.numbers import clamp_number, finite_or, is_finite_number


def sanitize_config(
    config: dict[str, Any] | None, fallback: dict[str, Any] = DEFAULT_CONFIG
) -> dict[str, Any]:
    """Lenient caller-side defaulting for user-edited configs.

    Merges config over fallback, then replaces every non-finite number with
    its fallback value and repairs ordering constraints (a_start >= a_min,
    slider max >= min, ...). The result always passes validate_config.
    Use validate_config directly when bad input should be reported instead.
    """
    result = merge_config(fallback, config if isinstance(config, dict) else {})

    physics = _section(result, "physics")
    physics_fallback = fallback["physics"]
    parameters = _section(physics, "parameters")
    parameters_fallback = physics_fallback["parameters"]
    numeric_safety = _section(result, "numeric_safety")
    safety_fallback = fallback["numeric_safety"]
    units = _section(result, "units")
    ui = _section(result, "ui")
    speed = _section(ui, "speed_slider")
    speed_fallback = fallback["ui"]["speed_slider"]
    timeline = _section(ui, "timeline_slider")
    timeline_fallback = fallback["ui"]["timeline_slider"]

    for key, fallback_value in safety_fallback.items():
        value = numeric_safety.get(key)
        numeric_safety[key] = float(value) if _is_positive(value) else fallback_value

    seconds_per_gyr = units.get("seconds_per_gyr")
    units["seconds_per_gyr"] = (
        float(seconds_per_gyr)
        if _is_positive(seconds_per_gyr)
        else fallback["units"]["seconds_per_gyr"]
    )

    physics["timeline_sample_count"] = max(
        16,
        int(
            math.floor(
                finite_or(
                    physics.get("timeline_sample_count"),
                    physics_fallback["timeline_sample_count"],
                )
            )
        ),
    )
    physics["linear_timeline_gyr"] = max(
        0.0,
        finite_or(physics.get("linear_timeline_gyr"), physics_fallback["linear_timeline_gyr"]),
    )
    physics["default_a_max"] = finite_or(
        physics.get("default_a_max"), physics_fallback["default_a_max"]
    )
    if physics.get("default_mode") not in ALLOWED_MODES:
        physics["default_mode"] = physics_fallback["default_mode"]

    modes = [
        m
        for m in _list(physics.get("modes"))
        if isinstance(m, dict)
        and m.get("value") in ALLOWED_MODES
        and isinstance(m.get("label"), str)
        and m["label"].strip()
    ]
    physics["modes"] = modes or copy.deepcopy(physics_fallback["modes"])

    a_max_options = [
        o
        for o in _list(physics.get("a_max_options"))
        if isinstance(o, dict) and is_finite_number(o.get("value")) and isinstance(o.get("label"), str)
    ]
    physics["a_max_options"] = a_max_options or copy.deepcopy(physics_fallback["a_max_options"])

    for key in ("h0_km_s_mpc", "omega_matter", "omega_radiation", "omega_lambda"):
        parameters[key] = finite_or(parameters.get(key), parameters_fallback[key])

    min_scale = numeric_safety["min_scale_factor"]
    parameters["a_min"] = max(min_scale, finite_or(parameters.get("a_min"), parameters_fallback["a_min"]))
    parameters["a_start"] = max(
        parameters["a_min"], finite_or(parameters.get("a_start"), parameters_fallback["a_start"])
    )

    speed_min = finite_or(speed.get("min"), speed_fallback["min"])
    speed_max = max(speed_min, finite_or(speed.get("max"), speed_fallback["max"]))
    speed["min"] = speed_min
    speed["max"] = speed_max
    speed["default_value"] = clamp_number(
        finite_or(speed.get("default_value"), speed_fallback["default_value"]), speed_min, speed_max
    )
    min_positive_speed = numeric_safety["min_positive_speed_gyr_per_second"]
    min_gyr = max(
        min_positive_speed,
        finite_or(speed.get("min_gyr_per_second"), speed_fallback["min_gyr_per_second"]),
    )
    speed["min_gyr_per_second"] = min_gyr
    speed["max_gyr_per_second"] = max(
        min_gyr, finite_or(speed.get("max_gyr_per_second"), speed_fallback["max_gyr_per_second"])
    )

    timeline_min = finite_or(timeline.get("min"), timeline_fallback["min"])
    timeline_max = max(timeline_min, finite_or(timeline.get("max"), timeline_fallback["max"]))
    timeline["min"] = timeline_min
    timeline["max"] = timeline_max
    timeline["default_value"] = clamp_number(
        finite_or(timeline.get("default_value"), timeline_fallback["default_value"]),
        timeline_min,
        timeline_max,
    )

    return result


def _section(parent: dict[str, Any], key: str) -> dict[str, Any]:
    value = parent.get(key)
    if not isinstance(value, dict):
        value = {}
        parent[key] = value
    return value


def _is_positive(value: Any) -> bool:
    return is_finite_number(value) and value > 0.0


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
