"""Domain models for sell-side analyst ratings and consensus forecasts."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Literal, Optional

AnalystRatingType = Literal["strong_buy", "buy", "hold", "sell", "strong_sell"]
RatingTrendType = Literal["upgrading", "downgrading", "stable"]

ANALYST_RATINGS = ("strong_buy", "buy", "hold", "sell", "strong_sell")


@dataclass(frozen=True)
class RatingDistribution:
    """Count of analysts per rating bucket."""

    strong_buy: int = 0
    buy: int = 0
    hold: int = 0
    sell: int = 0
    strong_sell: int = 0

    @property
    def total(self) -> int:
        return self.strong_buy + self.buy + self.hold + self.sell + self.strong_sell

    def counts(self) -> List[int]:
        return [self.strong_buy, self.buy, self.hold, self.sell, self.strong_sell]


@dataclass(frozen=True)
class AnalystRating:
    analyst_id: str
    analyst_name: str
    firm_name: str
    date: date
    rating: AnalystRatingType
    target_price: float
    previous_target_price: Optional[float] = None


@dataclass(frozen=True)
class AnalystConsensus:
    """Aggregated target prices and rating spread for one stock."""

    stock_code: str
    date: date
    average_target_price: float
    high_target_price: float
    low_target_price: float
    number_of_analysts: int
    rating_distribution: RatingDistribution = field(default_factory=RatingDistribution)
    consensus_rating: AnalystRatingType = "hold"


@dataclass(frozen=True)
class AnalystAccuracy:
    """Track record of one analyst; ``success_rate`` is a 0-1 fraction."""

    analyst_id: str
    analyst_name: str
    firm_name: str
    total_predictions: int
    accurate_within_10_percent: int
    average_error: float
    success_rate: float
    rank: int = 0


@dataclass(frozen=True)
class RatingTrend:
    trend: RatingTrendType
    recent_changes: int
    momentum: float


@dataclass(frozen=True)
class CredibilityFactors:
    """Four 0-25 sub-scores behind the credibility total."""

    analyst_count: float = 0.0
    average_accuracy: float = 0.0
    target_price_range: float = 0.0
    consensus_strength: float = 0.0


@dataclass(frozen=True)
class PredictionCredibility:
    credibility_score: float
    factors: CredibilityFactors
