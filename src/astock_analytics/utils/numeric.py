"""Numeric helpers shared by the calculation engines."""
from __future__ import annotations

import math


def ieee_div(numerator: float, denominator: float) -> float:
    """Float division that yields inf/nan for a zero denominator instead of raising."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return float("nan")
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator
