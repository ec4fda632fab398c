"""
Error handling utilities.

Analysis components never raise for thin or degenerate data; they fall back
to neutral values through these helpers. Exceptions are reserved for
malformed configuration and payloads.
"""

import math


class RulebookError(ValueError):
    """Raised when the hazard rulebook is malformed."""


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Divide, returning ``default`` for zero or non-finite denominators.

    Examples:
        >>> safe_divide(1.0, 4.0)
        0.25
        >>> safe_divide(1.0, 0.0, default=1.0)
        1.0
    """
    if not denominator or not math.isfinite(denominator):
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
