from __future__ import annotations

import math

import pytest

from astock_analytics.domain.models.financials import DCFInputs
from astock_analytics.domain.services.valuation import (
    apply_market_price,
    calculate_dcf,
    calculate_margin_of_safety,
    calculate_wacc,
    perform_sensitivity_analysis,
    validate_dcf_inputs,
)


def make_inputs(**overrides) -> DCFInputs:
    params = dict(
        current_fcf=100.0,
        fcf_growth_rates=(0.10, 0.10, 0.08, 0.06, 0.05),
        terminal_growth_rate=0.03,
        risk_free_rate=0.03,
        market_return=0.08,
        beta=1.2,
        debt_weight=0.3,
        equity_weight=0.7,
        cost_of_debt=0.05,
        tax_rate=0.25,
        shares_outstanding=10.0,
        cash_and_equivalents=50.0,
        total_debt=30.0,
    )
    params.update(overrides)
    return DCFInputs(**params)


def test_wacc_example():
    assert math.isclose(calculate_wacc(make_inputs()), 0.07425, rel_tol=1e-12)


def test_wacc_bounded_by_component_costs():
    inputs = make_inputs()
    wacc = calculate_wacc(inputs)
    cost_of_equity = 0.09
    after_tax_debt = 0.0375
    assert min(cost_of_equity, after_tax_debt) <= wacc <= max(cost_of_equity, after_tax_debt)


def test_dcf_invariants():
    inputs = make_inputs()
    r = calculate_dcf(inputs)

    expected = []
    fcf = 100.0
    for rate in inputs.fcf_growth_rates:
        fcf *= 1 + rate
        expected.append(fcf)
    assert len(r.projected_fcf) == 5
    for got, want in zip(r.projected_fcf, expected):
        assert math.isclose(got, want, rel_tol=1e-12)

    for year, (projected, discounted) in enumerate(zip(r.projected_fcf, r.discounted_fcf), start=1):
        assert math.isclose(discounted, projected / (1 + r.wacc) ** year, rel_tol=1e-12)

    assert math.isclose(
        r.terminal_value, r.projected_fcf[-1] * 1.03 / (r.wacc - 0.03), rel_tol=1e-12
    )
    assert math.isclose(r.discounted_terminal_value, r.terminal_value / (1 + r.wacc) ** 5, rel_tol=1e-12)
    assert math.isclose(r.enterprise_value, sum(r.discounted_fcf) + r.discounted_terminal_value, rel_tol=1e-12)
    assert math.isclose(r.equity_value, r.enterprise_value + 50.0 - 30.0, rel_tol=1e-12)
    assert math.isclose(r.fair_value_per_share, r.equity_value / 10.0, rel_tol=1e-12)
    assert r.current_price is None
    assert r.recommendation is None


def test_dcf_is_idempotent():
    inputs = make_inputs()
    assert calculate_dcf(inputs) == calculate_dcf(inputs)


def test_dcf_requires_five_growth_rates():
    with pytest.raises(ValueError):
        calculate_dcf(make_inputs(fcf_growth_rates=(0.1, 0.1, 0.1, 0.1)))


def test_dcf_with_zero_shares_is_infinite():
    r = calculate_dcf(make_inputs(shares_outstanding=0.0))
    assert math.isinf(r.fair_value_per_share)
    assert r.fair_value_per_share > 0


def test_validate_dcf_inputs():
    assert validate_dcf_inputs(make_inputs()) == []
    issues = validate_dcf_inputs(make_inputs(terminal_growth_rate=0.08, shares_outstanding=0.0))
    assert len(issues) == 2
    assert any("shares_outstanding" in issue for issue in issues)
    assert any("WACC" in issue for issue in issues)


def test_sensitivity_matches_dcf():
    inputs = make_inputs()
    base = calculate_dcf(inputs)
    grid = perform_sensitivity_analysis(inputs, (0.06, 0.10, 0.01), (0.01, 0.04, 0.005))

    assert grid.wacc == [0.06, 0.07, 0.08, 0.09, 0.1]
    assert grid.terminal_growth_rate == [0.01, 0.015, 0.02, 0.025, 0.03, 0.035, 0.04]
    assert len(grid.matrix) == 5
    assert all(len(row) == 7 for row in grid.matrix)

    # Cell at the base WACC and terminal growth reproduces the headline valuation.
    single = perform_sensitivity_analysis(
        inputs, (base.wacc, base.wacc, 0.01), (inputs.terminal_growth_rate, inputs.terminal_growth_rate, 0.01)
    )
    assert math.isclose(single.matrix[0][0], base.fair_value_per_share, rel_tol=1e-9)

    # Higher discount rate lowers value; higher terminal growth raises it.
    assert grid.matrix[0][0] > grid.matrix[-1][0]
    assert grid.matrix[0][-1] > grid.matrix[0][0]

    frame = grid.to_frame()
    assert frame.shape == (5, 7)
    assert frame.index.name == "wacc"


def test_sensitivity_rejects_non_positive_step():
    with pytest.raises(ValueError):
        perform_sensitivity_analysis(make_inputs(), (0.06, 0.10, 0.0), (0.01, 0.04, 0.005))


def test_sensitivity_empty_when_range_reversed():
    grid = perform_sensitivity_analysis(make_inputs(), (0.10, 0.06, 0.01), (0.01, 0.04, 0.005))
    assert grid.wacc == []
    assert grid.matrix == []


def test_margin_of_safety_boundary_is_strict():
    m = calculate_margin_of_safety(fair_value=100, current_price=70)
    assert math.isclose(m.upside, 30.0 / 70.0 * 100)
    assert math.isclose(m.margin_of_safety, 30.0)
    # Exactly 30% is not above the strong-buy threshold.
    assert m.recommendation == "buy"

    assert calculate_margin_of_safety(100, 69).recommendation == "strong_buy"


@pytest.mark.parametrize(
    "price, expected",
    [(60, "strong_buy"), (80, "buy"), (100, "hold"), (105, "hold"), (120, "sell")],
)
def test_margin_of_safety_recommendations(price, expected):
    assert calculate_margin_of_safety(100, price).recommendation == expected


def test_apply_market_price():
    r = apply_market_price(calculate_dcf(make_inputs()), 10.0)
    assert r.current_price == 10.0
    assert math.isclose(r.upside, (r.fair_value_per_share - 10.0) / 10.0 * 100)
    assert r.recommendation in {"strong_buy", "buy", "hold", "sell"}
