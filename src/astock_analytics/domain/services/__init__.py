"""Convenience re-exports for the calculation engines."""
from __future__ import annotations

from . import cash_flow, forecast, insider, ratios, valuation

__all__ = [
    "cash_flow",
    "forecast",
    "insider",
    "ratios",
    "valuation",
]
