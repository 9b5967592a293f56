"""Cash-flow statement helpers: free cash flow, quality grading and trend."""
from __future__ import annotations

from typing import Iterable

import pandas as pd

from astock_analytics.domain.models.financials import CashFlowTrend, FinancialStatementSnapshot

TREND_WINDOW = 3
TREND_THRESHOLD = 0.1


def calculate_free_cash_flow(snapshot: FinancialStatementSnapshot) -> float:
    """FCF = operating cash flow - capital expenditure (capex sign is ignored)."""
    return snapshot.operating_cash_flow - abs(snapshot.capital_expenditure)


def calculate_operating_cash_flow_margin(operating_cash_flow: float, revenue: float) -> float:
    if revenue == 0:
        return 0.0
    return operating_cash_flow / revenue * 100


def assess_cash_flow_quality(snapshot: FinancialStatementSnapshot) -> str:
    """Grade the cash-flow mix as excellent, good, fair or poor.

    excellent: operations generate cash while the company both invests and
    returns capital (investing and financing outflows); good: operations
    generate cash; fair: operations burn cash but total cash flow is positive.
    """
    if (
        snapshot.operating_cash_flow > 0
        and snapshot.investing_cash_flow < 0
        and snapshot.financing_cash_flow < 0
    ):
        return "excellent"
    if snapshot.operating_cash_flow > 0:
        return "good"
    if snapshot.net_cash_flow > 0:
        return "fair"
    return "poor"


def calculate_cash_flow_trend(snapshots: Iterable[FinancialStatementSnapshot]) -> CashFlowTrend:
    """Average operating-cash-flow growth over the last three periods.

    Growth is measured against ``|previous|`` so a shrinking loss reads as
    improvement; periods following a zero OCF contribute 0.
    """
    frame = pd.DataFrame(
        [{"report_date": s.report_date, "ocf": s.operating_cash_flow} for s in snapshots]
    )
    if len(frame) < 2:
        return CashFlowTrend(trend="stable", growth=0.0)

    recent = frame.sort_values("report_date").tail(TREND_WINDOW).reset_index(drop=True)
    previous = recent["ocf"].shift(1)
    rates = ((recent["ocf"] - previous) / previous.abs()).where(previous != 0, 0.0).iloc[1:]
    avg_growth = float(rates.mean())

    if avg_growth > TREND_THRESHOLD:
        trend = "improving"
    elif avg_growth < -TREND_THRESHOLD:
        trend = "declining"
    else:
        trend = "stable"
    return CashFlowTrend(trend=trend, growth=avg_growth * 100)
