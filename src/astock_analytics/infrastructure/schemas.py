"""Pydantic request schemas validated at the service boundary.

Payloads arrive as loosely typed JSON (camelCase from the dashboard, or
snake_case from scripts). The schemas reject malformed shapes up front and
convert into the frozen domain dataclasses the engines consume.
"""
from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from astock_analytics.domain.models.financials import (
    FORECAST_YEARS,
    DCFInputs,
    FinancialStatementSnapshot,
)
from astock_analytics.domain.models.forecast import (
    AnalystAccuracy,
    AnalystConsensus,
    AnalystRating,
    RatingDistribution,
)
from astock_analytics.domain.models.insider import InsiderTransaction


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _calendar_day(value):
    # Filings often carry ISO timestamps; only the calendar day matters.
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class SnapshotPayload(_Payload):
    """One reporting period as delivered by the statements endpoint."""

    stock_code: str
    report_date: dt.date
    revenue: float = 0.0
    cost_of_revenue: float = 0.0
    operating_income: float = 0.0
    net_income: float = 0.0
    interest_expense: float = 0.0
    depreciation_amortization: float = 0.0
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
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0
    capital_expenditure: float = 0.0
    dividends_paid: float = 0.0
    shares_outstanding: float = 0.0
    market_price: float = 0.0

    def to_domain(self) -> FinancialStatementSnapshot:
        return FinancialStatementSnapshot(**self.model_dump())


class DCFInputsPayload(_Payload):
    """User-edited DCF form values."""

    current_fcf: float = Field(alias="currentFCF")
    fcf_growth_rate: List[float] = Field(alias="fcfGrowthRate")
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

    @field_validator("fcf_growth_rate")
    @classmethod
    def _five_years(cls, value: List[float]) -> List[float]:
        if len(value) != FORECAST_YEARS:
            raise ValueError(f"expected {FORECAST_YEARS} annual growth rates, got {len(value)}")
        return value

    def to_domain(self) -> DCFInputs:
        data = self.model_dump()
        data["fcf_growth_rates"] = tuple(data.pop("fcf_growth_rate"))
        return DCFInputs(**data)


class InsiderTransactionPayload(_Payload):
    insider_name: str
    position: Literal["chairman", "ceo", "cfo", "director", "supervisor", "senior_manager"]
    transaction_type: Literal["buy", "sell", "grant", "exercise"]
    shares: float
    price: float
    value: Optional[float] = None
    date: dt.date
    stock_code: str = ""
    stock_name: str = ""
    filing_date: Optional[dt.date] = None
    reason: str = ""

    @field_validator("date", "filing_date", mode="before")
    @classmethod
    def _strip_time(cls, value):
        return _calendar_day(value)

    def to_domain(self) -> InsiderTransaction:
        data = self.model_dump()
        if data["value"] is None:
            data["value"] = self.shares * self.price
        return InsiderTransaction(**data)


AnalystRatingLiteral = Literal["strong_buy", "buy", "hold", "sell", "strong_sell"]


class RatingDistributionPayload(_Payload):
    strong_buy: int = Field(default=0, ge=0)
    buy: int = Field(default=0, ge=0)
    hold: int = Field(default=0, ge=0)
    sell: int = Field(default=0, ge=0)
    strong_sell: int = Field(default=0, ge=0)

    def to_domain(self) -> RatingDistribution:
        return RatingDistribution(**self.model_dump())


class AnalystRatingPayload(_Payload):
    analyst_id: str
    analyst_name: str
    firm_name: str = ""
    date: dt.date
    rating: AnalystRatingLiteral
    target_price: float
    previous_target_price: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value):
        return _calendar_day(value)

    def to_domain(self) -> AnalystRating:
        return AnalystRating(**self.model_dump())


class AnalystConsensusPayload(_Payload):
    stock_code: str
    date: dt.date
    average_target_price: float
    high_target_price: float
    low_target_price: float
    number_of_analysts: int = Field(ge=0)
    rating_distribution: RatingDistributionPayload = Field(default_factory=RatingDistributionPayload)
    consensus_rating: AnalystRatingLiteral = "hold"

    def to_domain(self) -> AnalystConsensus:
        return AnalystConsensus(
            stock_code=self.stock_code,
            date=self.date,
            average_target_price=self.average_target_price,
            high_target_price=self.high_target_price,
            low_target_price=self.low_target_price,
            number_of_analysts=self.number_of_analysts,
            rating_distribution=self.rating_distribution.to_domain(),
            consensus_rating=self.consensus_rating,
        )


class AnalystAccuracyPayload(_Payload):
    analyst_id: str
    analyst_name: str
    firm_name: str = ""
    total_predictions: int = 0
    accurate_within_10_percent: int = Field(default=0, alias="accurateWithin10Percent")
    average_error: float = 0.0
    success_rate: float = Field(ge=0.0, le=1.0)
    rank: int = 0

    def to_domain(self) -> AnalystAccuracy:
        return AnalystAccuracy(**self.model_dump())


class ForecastPayload(_Payload):
    """Consensus, individual ratings and analyst track records for one stock."""

    consensus: Optional[AnalystConsensusPayload] = None
    ratings: List[AnalystRatingPayload] = Field(default_factory=list)
    accuracy: List[AnalystAccuracyPayload] = Field(default_factory=list)
