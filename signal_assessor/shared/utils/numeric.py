"""
Numeric guards for scores and ratios.

Every ratio, flow or score returned by the analysis components passes through
these helpers so that NaN/Infinity never leaves the core.
"""

import math
from typing import Any, Optional


def finite_or_zero(value: Any) -> float:
    """Return ``value`` as float, or 0.0 when it is None, NaN or infinite."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_finite_number(value: Any) -> bool:
    """True when ``value`` is a real, finite number (bools excluded)."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp a finite value into [lower, upper]; non-finite values become 0 first."""
    return max(lower, min(upper, finite_or_zero(value)))


def safe_ratio(numerator: float, denominator: Optional[float]) -> float:
    """numerator / denominator, 0.0 when the denominator is zero or the result is not finite."""
    if not denominator:
        return 0.0
    return finite_or_zero(numerator / denominator)
