"""Discounted cash flow valuation with CAPM-based WACC.

The engine does not enforce its preconditions (``wacc > terminal_growth_rate``
and ``shares_outstanding > 0``). Violations surface as negative, infinite or
NaN values following IEEE float semantics; callers that need a hard stop
should run :func:`validate_dcf_inputs` first.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np

from astock_analytics.domain.models.financials import (
    FORECAST_YEARS,
    DCFInputs,
    DCFResult,
    MarginOfSafety,
    SensitivityAnalysis,
)
from astock_analytics.utils.numeric import ieee_div

logger = logging.getLogger(__name__)

Range = Tuple[float, float, float]

# Float tolerance when deciding whether the upper bound of a range is reached.
_RANGE_EPSILON = 1e-9
_RANGE_DECIMALS = 10


def calculate_wacc(inputs: DCFInputs) -> float:
    """WACC = E/V * Re + D/V * Rd * (1 - Tc), with Re from CAPM.

    Weights are used as given; they are not checked to sum to one.
    """
    cost_of_equity = inputs.risk_free_rate + inputs.beta * (inputs.market_return - inputs.risk_free_rate)
    after_tax_cost_of_debt = inputs.cost_of_debt * (1 - inputs.tax_rate)
    return inputs.equity_weight * cost_of_equity + inputs.debt_weight * after_tax_cost_of_debt


def calculate_dcf(inputs: DCFInputs) -> DCFResult:
    """Run the five-year FCF projection and Gordon-growth terminal value at the CAPM WACC."""
    wacc = calculate_wacc(inputs)
    result = _dcf_at(inputs, wacc, inputs.terminal_growth_rate)
    logger.debug(
        "DCF wacc=%.4f ev=%.2f equity=%.2f per_share=%.4f",
        wacc,
        result.enterprise_value,
        result.equity_value,
        result.fair_value_per_share,
    )
    return result


def perform_sensitivity_analysis(
    inputs: DCFInputs,
    wacc_range: Range,
    terminal_growth_range: Range,
) -> SensitivityAnalysis:
    """Fair value per share for every (WACC, terminal growth) pair of two inclusive ranges.

    Each range is ``(min, max, step)``. Rows of the matrix follow WACC, columns
    follow terminal growth. Cells are computed with the same routine as
    :func:`calculate_dcf`, substituting the grid WACC for the CAPM one.
    """
    wacc_values = _inclusive_range(*wacc_range)
    growth_values = _inclusive_range(*terminal_growth_range)

    matrix: List[List[float]] = []
    for wacc in wacc_values:
        row = [_dcf_at(inputs, wacc, growth).fair_value_per_share for growth in growth_values]
        matrix.append(row)

    logger.debug("Sensitivity grid %dx%d", len(wacc_values), len(growth_values))
    return SensitivityAnalysis(wacc=wacc_values, terminal_growth_rate=growth_values, matrix=matrix)


def calculate_margin_of_safety(fair_value: float, current_price: float) -> MarginOfSafety:
    """Upside vs. price and discount vs. fair value, both in percent, plus a recommendation.

    Thresholds on margin of safety are strict: >30 strong_buy, >15 buy,
    >-10 hold, otherwise sell.
    """
    upside = ieee_div(fair_value - current_price, current_price) * 100
    margin_of_safety = ieee_div(fair_value - current_price, fair_value) * 100

    if margin_of_safety > 30:
        recommendation = "strong_buy"
    elif margin_of_safety > 15:
        recommendation = "buy"
    elif margin_of_safety > -10:
        recommendation = "hold"
    else:
        recommendation = "sell"

    return MarginOfSafety(upside=upside, margin_of_safety=margin_of_safety, recommendation=recommendation)


def apply_market_price(result: DCFResult, current_price: float) -> DCFResult:
    """Return a copy of ``result`` carrying price, upside, margin of safety and recommendation."""
    mos = calculate_margin_of_safety(result.fair_value_per_share, current_price)
    return replace(
        result,
        current_price=current_price,
        upside=mos.upside,
        margin_of_safety=mos.margin_of_safety,
        recommendation=mos.recommendation,
    )


def validate_dcf_inputs(inputs: DCFInputs) -> List[str]:
    """List violated preconditions; an empty list means the inputs are safe to value."""
    issues: List[str] = []
    if len(inputs.fcf_growth_rates) != FORECAST_YEARS:
        issues.append(
            f"fcf_growth_rates must contain {FORECAST_YEARS} values, got {len(inputs.fcf_growth_rates)}"
        )
    if inputs.shares_outstanding <= 0:
        issues.append("shares_outstanding must be positive")
    wacc = calculate_wacc(inputs)
    if wacc <= inputs.terminal_growth_rate:
        issues.append(
            f"WACC ({wacc:.4f}) must exceed terminal growth rate ({inputs.terminal_growth_rate:.4f})"
        )
    return issues


# ----------------------------
# Internal helpers
# ----------------------------

def _dcf_at(inputs: DCFInputs, wacc: float, terminal_growth: float) -> DCFResult:
    projected_fcf = _project_fcf(inputs.current_fcf, inputs.fcf_growth_rates)

    terminal_value = ieee_div(projected_fcf[-1] * (1 + terminal_growth), wacc - terminal_growth)

    discounted_fcf = [fcf / math.pow(1 + wacc, year + 1) for year, fcf in enumerate(projected_fcf)]
    discounted_terminal_value = terminal_value / math.pow(1 + wacc, FORECAST_YEARS)

    enterprise_value = sum(discounted_fcf) + discounted_terminal_value
    equity_value = enterprise_value + inputs.cash_and_equivalents - inputs.total_debt
    fair_value_per_share = ieee_div(equity_value, inputs.shares_outstanding)

    return DCFResult(
        projected_fcf=projected_fcf,
        terminal_value=terminal_value,
        wacc=wacc,
        discounted_fcf=discounted_fcf,
        discounted_terminal_value=discounted_terminal_value,
        enterprise_value=enterprise_value,
        equity_value=equity_value,
        fair_value_per_share=fair_value_per_share,
    )


def _project_fcf(current_fcf: float, growth_rates: Sequence[float]) -> List[float]:
    """Compound year by year: each rate applies to the prior year's projection."""
    if len(growth_rates) < FORECAST_YEARS:
        raise ValueError(f"Expected {FORECAST_YEARS} FCF growth rates, got {len(growth_rates)}")
    projected: List[float] = []
    fcf = current_fcf
    for rate in growth_rates[:FORECAST_YEARS]:
        fcf = fcf * (1 + rate)
        projected.append(fcf)
    return projected


def _inclusive_range(start: float, stop: float, step: float) -> List[float]:
    if step <= 0:
        raise ValueError(f"Range step must be positive, got {step}")
    if stop < start:
        return []
    count = int(math.floor((stop - start) / step + _RANGE_EPSILON)) + 1
    values = np.round(start + np.arange(count) * step, _RANGE_DECIMALS)
    return [float(v) for v in values]
