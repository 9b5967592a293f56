"""Domain models describing financial statements, ratios and DCF valuations."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

import pandas as pd

FORECAST_YEARS = 5


@dataclass(frozen=True)
class FinancialStatementSnapshot:
    """One reporting period's figures for a single stock."""

    stock_code: str
    report_date: date
    # Income statement
    revenue: float = 0.0
    cost_of_revenue: float = 0.0
    operating_income: float = 0.0
    net_income: float = 0.0
    interest_expense: float = 0.0
    depreciation_amortization: float = 0.0
    # Balance sheet
    total_assets: float = 0.0
    current_assets: float = 0.0
    inventory: float = 0.0
    accounts_receivable: float = 0.0
    accounts_payable: float = 0.0
    cash_and_equivalents: float = 0.0
    fixed_assets: float = 0.0
    total_liabilities: float = 0.0
    current_liabilities: float = 0.0
    total_debt: float = 0.0
    equity: float = 0.0
    # Cash flow statement
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0
    capital_expenditure: float = 0.0
    dividends_paid: float = 0.0
    # Market data
    shares_outstanding: float = 0.0
    market_price: float = 0.0

    @property
    def key(self) -> Tuple[str, date]:
        return (self.stock_code, self.report_date)

    @property
    def net_cash_flow(self) -> float:
        return self.operating_cash_flow + self.investing_cash_flow + self.financing_cash_flow

    @property
    def market_cap(self) -> float:
        return self.market_price * self.shares_outstanding


@dataclass(frozen=True)
class ProfitabilityRatios:
    """Return and margin ratios, all expressed in percent."""

    roe: float
    roa: float
    gross_profit_margin: float
    net_profit_margin: float
    operating_profit_margin: float
    ebitda_margin: float
    roic: float


@dataclass(frozen=True)
class SolvencyRatios:
    current_ratio: float
    quick_ratio: float
    cash_ratio: float
    debt_to_equity: float
    debt_to_assets: float
    interest_coverage: float
    equity_multiplier: float


@dataclass(frozen=True)
class EfficiencyRatios:
    """Turnover multiples plus working-capital cycle measured in days."""

    asset_turnover: float
    inventory_turnover: float
    receivables_turnover: float
    payables_turnover: float
    working_capital_turnover: float
    fixed_asset_turnover: float
    days_inventory_outstanding: float
    days_sales_outstanding: float
    days_payable_outstanding: float
    cash_conversion_cycle: float


@dataclass(frozen=True)
class GrowthRatios:
    """Period-over-period growth in percent; zero when no prior period exists."""

    revenue_growth: float
    net_income_growth: float
    eps_growth: float
    asset_growth: float
    equity_growth: float
    operating_cash_flow_growth: float


@dataclass(frozen=True)
class ValuationRatios:
    pe: float
    pb: float
    ps: float
    pcf: float
    peg: float
    ev_to_ebitda: float
    ev_to_sales: float
    dividend_yield: float
    payout_ratio: float


@dataclass(frozen=True)
class DupontBreakdown:
    profitability: float
    efficiency: float
    leverage: float


@dataclass(frozen=True)
class DupontAnalysis:
    """ROE decomposed into margin, turnover and leverage.

    ``breakdown`` is a heuristic attribution and is not guaranteed to
    reconcile with ``roe``.
    """

    roe: float
    net_profit_margin: float
    asset_turnover: float
    equity_multiplier: float
    breakdown: DupontBreakdown


@dataclass(frozen=True)
class RatioSet:
    """All ratio groups derived from one (or two consecutive) snapshots."""

    stock_code: str
    report_date: Optional[date]
    profitability: ProfitabilityRatios
    solvency: SolvencyRatios
    efficiency: EfficiencyRatios
    growth: GrowthRatios
    valuation: ValuationRatios
    dupont: DupontAnalysis


@dataclass(frozen=True)
class HealthScore:
    score: float
    grade: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DCFInputs:
    """Parameter bundle for a five-year free-cash-flow valuation."""

    current_fcf: float
    fcf_growth_rates: Tuple[float, ...]
    terminal_growth_rate: float
    risk_free_rate: float
    market_return: float
    beta: float
    debt_weight: float
    equity_weight: float
    cost_of_debt: float
    tax_rate: float
    shares_outstanding: float
    cash_and_equivalents: float = 0.0
    total_debt: float = 0.0


@dataclass(frozen=True)
class MarginOfSafety:
    upside: float
    margin_of_safety: float
    recommendation: str


@dataclass(frozen=True)
class DCFResult:
    """Outputs of a DCF run; price fields stay empty until a market price is applied."""

    projected_fcf: List[float]
    terminal_value: float
    wacc: float
    discounted_fcf: List[float]
    discounted_terminal_value: float
    enterprise_value: float
    equity_value: float
    fair_value_per_share: float
    current_price: Optional[float] = None
    upside: Optional[float] = None
    margin_of_safety: Optional[float] = None
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class SensitivityAnalysis:
    """Fair value per share on a WACC x terminal growth grid."""

    wacc: List[float]
    terminal_growth_rate: List[float]
    matrix: List[List[float]]

    def to_frame(self) -> pd.DataFrame:
        """Rows indexed by WACC, columns by terminal growth rate."""
        frame = pd.DataFrame(self.matrix, index=self.wacc, columns=self.terminal_growth_rate)
        frame.index.name = "wacc"
        frame.columns.name = "terminal_growth_rate"
        return frame


@dataclass(frozen=True)
class CashFlowTrend:
    trend: str
    growth: float


ComparisonResult = Dict[str, str]
