from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from space_expansion.core.io.load_config import load_config


DEFAULT_CONFIG: dict[str, Any] = {
    "physics": {
        "default_mode": "lcdm",
        "modes": [
            {"value": "lcdm", "label": "Flat LambdaCDM Friedmann model"},
            {"value": "desitter", "label": "Pure Lambda de Sitter model"},
            {"value": "linear", "label": "Linear a of t toy model"},
        ],
        # Planck 2018-like flat universe, a = 1 today.
        "parameters": {
            "h0_km_s_mpc": 67.4,
            "omega_matter": 0.315,
            "omega_radiation": 0.0,
            "omega_lambda": 0.685,
            "a_min": 0.01,
            "a_start": 1.0,
        },
        "linear_timeline_gyr": 12.0,
        "timeline_sample_count": 2600,
        "a_max_options": [
            {"value": 2, "label": "1 to 2 times"},
            {"value": 3, "label": "1 to 3 times"},
            {"value": 4, "label": "1 to 4 times"},
            {"value": 6, "label": "1 to 6 times"},
        ],
        "default_a_max": 3,
    },
    "ui": {
        "speed_slider": {
            "min": 0,
            "max": 100,
            "default_value": 55,
            "min_gyr_per_second": 0.01,
            "max_gyr_per_second": 5.0,
        },
        "timeline_slider": {
            "min": 0,
            "max": 1000,
            "default_value": 0,
        },
    },
    "units": {
        "seconds_per_gyr": 3.15576e16,
    },
    "numeric_safety": {
        "min_scale_factor": 1e-9,
        "min_denominator": 1e-24,
        "min_segment_duration": 1e-9,
        "min_segment_range": 1e-12,
        "min_ratio": 1e-12,
        "min_max_time": 1e-9,
        "min_positive_speed_gyr_per_second": 1e-4,
    },
}


def merge_config(base: dict[str, Any], overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Deep-merge overrides into a copy of base.

    Mappings merge recursively, lists are replaced wholesale, and keys that
    only exist in overrides are kept. An override whose type does not match
    the base (a scalar where a section is expected, ...) is kept as-is so
    validate_config can report it.
    """
    result: dict[str, Any] = {}
    overrides = overrides if isinstance(overrides, dict) else {}

    for key, base_value in base.items():
        if key not in overrides:
            result[key] = copy.deepcopy(base_value)
            continue
        override_value = overrides[key]
        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = merge_config(base_value, override_value)
        else:
            result[key] = copy.deepcopy(override_value)

    for key, override_value in overrides.items():
        if key not in result:
            result[key] = copy.deepcopy(override_value)

    return result


def load_and_merge(config_file: str | Path | None) -> dict[str, Any]:
    if not config_file:
        return merge_config(DEFAULT_CONFIG, None)
    return merge_config(DEFAULT_CONFIG, load_config(config_file))
