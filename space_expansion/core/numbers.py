from __future__ import annotations

import math
import numbers
from typing import Any


def clamp_number(value: float, min_value: float, max_value: float) -> float:
    """Clamp value into [min_value, max_value]. clamp_number(5, 0, 3) == 3."""
    return max(min_value, min(max_value, value))


def lerp_number(start: float, end: float, t: float) -> float:
    """Linear interpolation. lerp_number(0, 10, 0.5) == 5."""
    return start + (end - start) * t


def round_to_precision(value: float, precision: int) -> float:
    factor = 10 ** max(0, int(math.floor(precision)))
    return round(value * factor) / factor


def is_finite_number(value: Any) -> bool:
    """True for finite real numbers, numpy scalars included.

    bool is an int subclass; a YAML `true` is never a physical quantity.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value))


def finite_or(value: Any, fallback: float) -> float:
    return float(value) if is_finite_number(value) else fallback
