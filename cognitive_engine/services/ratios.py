"""
Zero-safe ratio and rounding helpers shared by every stage of the engine.

Every derived ratio in the cube and in the analyzers goes through safe_div so
that a zero denominator yields exactly 0.0 instead of NaN, inf or an exception.
"""

from typing import Iterable


def safe_div(numerator: float, denominator: float) -> float:
    """
    Divide, returning 0.0 when the denominator is zero.

    Args:
        numerator: Dividend
        denominator: Divisor; 0 (or negative zero) short-circuits to 0.0

    Returns:
        numerator / denominator, or 0.0
    """
    if not denominator:
        return 0.0
    return numerator / denominator


def pct(part: float, whole: float) -> float:
    """Percentage of part over whole, 0.0 when whole is zero."""
    return safe_div(part, whole) * 100


def round2(value: float) -> float:
    """Round a money or ratio value to 2 decimal places."""
    return round(value, 2)


def share(part: float, whole: float) -> float:
    """Share-of-total in percent, rounded to 2 decimals."""
    return round2(pct(part, whole))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0.0 for an empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)
