"""Numeric guard helpers shared by every engine module.

Values computed here end up rendered directly in the UI, so nothing in this
module raises: division by zero, empty sequences, NaN and Infinity all
resolve to a caller-supplied fallback.

Rounding follows the UI convention (half rounds toward +inf), which differs
from Python's built-in ``round`` (half to even).
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Iterable, List, TypeVar

T = TypeVar("T")


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers. Bools, strings and ``None`` are not numbers."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def safe_divide(a: Any, b: Any, fallback: T = 0) -> float | T:
    if not is_finite_number(a) or not is_finite_number(b) or b == 0:
        return fallback
    try:
        result = a / b
    except (OverflowError, ZeroDivisionError):
        return fallback
    return result if is_finite_number(result) else fallback


def safe_average(values: Iterable[Any], fallback: T = None) -> float | T:
    """Arithmetic mean of the finite entries of ``values``."""
    valid = [v for v in (values or ()) if is_finite_number(v)]
    if not valid:
        return fallback
    try:
        mean = sum(valid) / len(valid)
    except OverflowError:
        return fallback
    return mean if is_finite_number(mean) else fallback


def safe_percentage(part: Any, total: Any, fallback: T = 0) -> float | T:
    ratio = safe_divide(part, total, None)
    if ratio is None:
        # fallback is scaled like a ratio; non-numeric fallbacks pass through
        return fallback * 100 if is_finite_number(fallback) else fallback
    return ratio * 100


def safe_delta(current: Any, previous: Any, fallback: T = 0) -> float | T:
    """Percent change from ``previous`` to ``current``.

    A zero baseline cannot express a relative change: any growth from zero is
    reported as +100, anything else falls back.
    """
    if not is_finite_number(previous):
        return fallback
    if previous == 0:
        # +inf growth from zero still counts as growth; NaN does not
        grows = isinstance(current, Real) and not isinstance(current, bool) and current > 0
        return 100 if grows else fallback
    if not is_finite_number(current):
        return fallback
    ratio = safe_divide(current - previous, previous, None)
    if ratio is None:
        return fallback
    return ratio * 100


def safe_round(value: Any, decimals: int = 0, fallback: T = 0) -> float | T:
    if not is_finite_number(value):
        return fallback
    try:
        factor = 10.0**decimals
        if not is_finite_number(factor) or factor == 0:
            return fallback
        scaled = value * factor
        if not is_finite_number(scaled):
            return fallback
        rounded = math.floor(scaled + 0.5) / factor
    except (OverflowError, ZeroDivisionError):
        return fallback
    return rounded if is_finite_number(rounded) else fallback


def round_half_up(value: Any, fallback: int = 0) -> int:
    """Integer rounding with halves going toward +inf (2.5 -> 3, -2.5 -> -2)."""
    rounded = safe_round(value, 0, None)
    if rounded is None:
        return fallback
    return int(rounded)


def safe_sum(values: Iterable[Any]) -> float:
    total = sum(v for v in (values or ()) if is_finite_number(v))
    return total if is_finite_number(total) else 0


def clamp(value: Any, lo: float, hi: float) -> float:
    if not is_finite_number(value):
        return lo
    return max(lo, min(hi, value))


def positive_values(values: Iterable[Any]) -> List[float]:
    """Finite, strictly positive entries of ``values`` in their original order."""
    return [v for v in (values or ()) if is_finite_number(v) and v > 0]


__all__ = [
    "is_finite_number",
    "safe_divide",
    "safe_average",
    "safe_percentage",
    "safe_delta",
    "safe_round",
    "round_half_up",
    "safe_sum",
    "clamp",
    "positive_values",
]
