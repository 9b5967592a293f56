"""Financial ratio derivation, DuPont decomposition and health scoring.

Every ratio degrades to ``0.0`` when its denominator is zero or negative rather
than raising. A zero therefore means either a genuinely zero ratio or an
undefined one; consumers that need to tell the two apart should inspect the
underlying snapshot.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from astock_analytics.domain.labels import HEALTH_TAGS, lookup
from astock_analytics.domain.models.financials import (
    ComparisonResult,
    DupontAnalysis,
    DupontBreakdown,
    EfficiencyRatios,
    FinancialStatementSnapshot,
    GrowthRatios,
    HealthScore,
    ProfitabilityRatios,
    RatioSet,
    SolvencyRatios,
    ValuationRatios,
)
from astock_analytics.utils.numeric import ieee_div

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0
INDUSTRY_EQUAL_BAND = 0.05
INDUSTRY_METRICS = ("roe", "roa", "net_profit_margin", "debt_to_equity", "current_ratio")


def calculate_ratios(
    current: FinancialStatementSnapshot,
    previous: Optional[FinancialStatementSnapshot] = None,
) -> RatioSet:
    """Derive the full ratio set for ``current``; growth needs the prior period."""
    s = current
    ebitda = s.operating_income + s.depreciation_amortization
    eps = _sdiv(s.net_income, s.shares_outstanding)
    book_per_share = _sdiv(s.equity, s.shares_outstanding)
    market_cap = s.market_cap
    enterprise_value = market_cap + s.total_debt - s.cash_and_equivalents

    profitability = ProfitabilityRatios(
        roe=_sdiv(s.net_income, s.equity) * 100,
        roa=_sdiv(s.net_income, s.total_assets) * 100,
        gross_profit_margin=_sdiv(s.revenue - s.cost_of_revenue, s.revenue) * 100,
        net_profit_margin=_sdiv(s.net_income, s.revenue) * 100,
        operating_profit_margin=_sdiv(s.operating_income, s.revenue) * 100,
        ebitda_margin=_sdiv(ebitda, s.revenue) * 100,
        roic=_sdiv(s.net_income, s.equity + s.total_debt) * 100,
    )

    solvency = SolvencyRatios(
        current_ratio=_sdiv(s.current_assets, s.current_liabilities),
        quick_ratio=_sdiv(s.current_assets - s.inventory, s.current_liabilities),
        cash_ratio=_sdiv(s.cash_and_equivalents, s.current_liabilities),
        debt_to_equity=_sdiv(s.total_liabilities, s.equity),
        debt_to_assets=_sdiv(s.total_liabilities, s.total_assets),
        interest_coverage=_sdiv(s.operating_income, s.interest_expense),
        equity_multiplier=_sdiv(s.total_assets, s.equity),
    )

    inventory_turnover = _sdiv(s.cost_of_revenue, s.inventory)
    receivables_turnover = _sdiv(s.revenue, s.accounts_receivable)
    payables_turnover = _sdiv(s.cost_of_revenue, s.accounts_payable)
    dio = _sdiv(DAYS_PER_YEAR, inventory_turnover)
    dso = _sdiv(DAYS_PER_YEAR, receivables_turnover)
    dpo = _sdiv(DAYS_PER_YEAR, payables_turnover)
    efficiency = EfficiencyRatios(
        asset_turnover=_sdiv(s.revenue, s.total_assets),
        inventory_turnover=inventory_turnover,
        receivables_turnover=receivables_turnover,
        payables_turnover=payables_turnover,
        working_capital_turnover=_sdiv(s.revenue, s.current_assets - s.current_liabilities),
        fixed_asset_turnover=_sdiv(s.revenue, s.fixed_assets),
        days_inventory_outstanding=dio,
        days_sales_outstanding=dso,
        days_payable_outstanding=dpo,
        cash_conversion_cycle=dio + dso - dpo,
    )

    growth = _growth_ratios(current, previous)

    pe = _sdiv(s.market_price, eps)
    valuation = ValuationRatios(
        pe=pe,
        pb=_sdiv(s.market_price, book_per_share),
        ps=_sdiv(market_cap, s.revenue),
        pcf=_sdiv(market_cap, s.operating_cash_flow),
        peg=_sdiv(pe, growth.eps_growth),
        ev_to_ebitda=_sdiv(enterprise_value, ebitda),
        ev_to_sales=_sdiv(enterprise_value, s.revenue),
        dividend_yield=_sdiv(_sdiv(s.dividends_paid, s.shares_outstanding), s.market_price) * 100,
        payout_ratio=_sdiv(s.dividends_paid, s.net_income) * 100,
    )

    dupont = calculate_dupont_analysis(s.net_income, s.revenue, s.total_assets, s.equity)
    logger.debug("Derived ratio set for %s @ %s", s.stock_code, s.report_date)
    return RatioSet(
        stock_code=s.stock_code,
        report_date=s.report_date,
        profitability=profitability,
        solvency=solvency,
        efficiency=efficiency,
        growth=growth,
        valuation=valuation,
        dupont=dupont,
    )


def calculate_dupont_analysis(
    net_income: float,
    revenue: float,
    total_assets: float,
    equity: float,
) -> DupontAnalysis:
    """Split ROE into net margin x asset turnover x equity multiplier."""
    net_profit_margin = net_income / revenue * 100 if revenue > 0 else 0.0
    asset_turnover = revenue / total_assets if total_assets > 0 else 0.0
    equity_multiplier = total_assets / equity if equity > 0 else 0.0
    roe = net_income / equity * 100 if equity > 0 else 0.0

    return DupontAnalysis(
        roe=roe,
        net_profit_margin=net_profit_margin,
        asset_turnover=asset_turnover,
        equity_multiplier=equity_multiplier,
        breakdown=DupontBreakdown(
            profitability=net_profit_margin,
            efficiency=asset_turnover * 100,
            leverage=(equity_multiplier - 1) * 100,
        ),
    )


# (value, strong_threshold, weak_threshold, full_points, middle_points, tag, higher_is_better)
_Check = Tuple[float, float, float, float, float, str, bool]


def calculate_financial_health_score(ratios: RatioSet, locale: Optional[str] = None) -> HealthScore:
    """Score ``ratios`` on a fixed 100-point rubric and map the total to a letter grade.

    Categories and maximum points: profitability 30, solvency 25, efficiency 20,
    growth 15, valuation 10.
    """
    p, sv, e, g, v = ratios.profitability, ratios.solvency, ratios.efficiency, ratios.growth, ratios.valuation
    checks: List[_Check] = [
        (p.roe, 15, 5, 10, 5, "roe", True),
        (p.net_profit_margin, 10, 3, 10, 5, "net_margin", True),
        (p.gross_profit_margin, 30, 15, 10, 5, "gross_margin", True),
        (sv.current_ratio, 2, 1, 8, 4, "current_ratio", True),
        (sv.debt_to_equity, 0.5, 1.5, 8, 4, "debt_to_equity", False),
        (sv.interest_coverage, 5, 2, 9, 4, "interest_coverage", True),
        (e.asset_turnover, 1, 0.5, 10, 5, "asset_turnover", True),
        (e.cash_conversion_cycle, 60, 120, 10, 5, "cash_cycle", False),
        (g.revenue_growth, 20, 0, 8, 4, "revenue_growth", True),
        (g.net_income_growth, 20, 0, 7, 3, "net_income_growth", True),
    ]

    score = 0.0
    strengths: List[str] = []
    weaknesses: List[str] = []
    for value, strong, weak, full, middle, tag, higher_is_better in checks:
        if higher_is_better:
            is_strong, is_weak = value > strong, value < weak
        else:
            is_strong, is_weak = value < strong, value > weak
        if is_strong:
            score += full
            strengths.append(lookup(HEALTH_TAGS, f"{tag}_strong", locale))
        elif is_weak:
            weaknesses.append(lookup(HEALTH_TAGS, f"{tag}_weak", locale))
        else:
            score += middle

    # Valuation: PE carries tags, PB only points.
    if 0 < v.pe < 20:
        score += 5
        strengths.append(lookup(HEALTH_TAGS, "pe_strong", locale))
    elif v.pe > 50:
        weaknesses.append(lookup(HEALTH_TAGS, "pe_weak", locale))
    else:
        score += 2
    score += 5 if 0 < v.pb < 3 else 2

    return HealthScore(score=score, grade=_grade(score), strengths=strengths, weaknesses=weaknesses)


def compare_with_industry(stock: RatioSet, industry: RatioSet) -> ComparisonResult:
    """Classify each headline metric as above, below or equal (within 5%) to the industry."""
    comparison: Dict[str, str] = {}
    for metric in INDUSTRY_METRICS:
        stock_value = _headline_metric(stock, metric)
        industry_value = _headline_metric(industry, metric)
        if industry_value == 0:
            logger.warning("Industry baseline for %s is zero; relative difference is undefined", metric)
        diff = ieee_div(abs(stock_value - industry_value), industry_value)
        if diff < INDUSTRY_EQUAL_BAND:
            comparison[metric] = "equal"
        else:
            comparison[metric] = "above" if stock_value > industry_value else "below"
    return comparison


# ----------------------------
# Internal helpers
# ----------------------------

def _sdiv(a: float, b: float) -> float:
    """Divide, returning 0.0 for zero or negative denominators."""
    if b <= 0:
        return 0.0
    return float(a) / float(b)


def _growth(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / abs(previous) * 100


def _growth_ratios(
    current: FinancialStatementSnapshot,
    previous: Optional[FinancialStatementSnapshot],
) -> GrowthRatios:
    if previous is None:
        return GrowthRatios(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    return GrowthRatios(
        revenue_growth=_growth(current.revenue, previous.revenue),
        net_income_growth=_growth(current.net_income, previous.net_income),
        eps_growth=_growth(
            _sdiv(current.net_income, current.shares_outstanding),
            _sdiv(previous.net_income, previous.shares_outstanding),
        ),
        asset_growth=_growth(current.total_assets, previous.total_assets),
        equity_growth=_growth(current.equity, previous.equity),
        operating_cash_flow_growth=_growth(current.operating_cash_flow, previous.operating_cash_flow),
    )


def _headline_metric(ratios: RatioSet, metric: str) -> float:
    if metric in ("roe", "roa", "net_profit_margin"):
        return getattr(ratios.profitability, metric)
    return getattr(ratios.solvency, metric)


def _grade(score: float) -> str:
    if score >= 85:
        return "A"
    if score >= 70:
        return "B"
    if score >= 55:
        return "C"
    if score >= 40:
        return "D"
    return "F"
