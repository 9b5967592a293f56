"""Analyst consensus rating, rating-change momentum and forecast credibility."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from astock_analytics.domain.labels import ANALYST_RATING_LABELS, RATING_TREND_LABELS, lookup
from astock_analytics.domain.models.forecast import (
    AnalystAccuracy,
    AnalystConsensus,
    AnalystRating,
    CredibilityFactors,
    PredictionCredibility,
    RatingDistribution,
    RatingTrend,
)

logger = logging.getLogger(__name__)

RATING_SCORES: Dict[str, int] = {
    "strong_buy": 5,
    "buy": 4,
    "hold": 3,
    "sell": 2,
    "strong_sell": 1,
}

TREND_WINDOW = 10
MOMENTUM_BAND = 0.3
FULL_COVERAGE_ANALYSTS = 20
FACTOR_CAP = 25.0


def calculate_consensus_rating(distribution: RatingDistribution) -> str:
    """Map the count-weighted average score (5 = strong_buy .. 1 = strong_sell) to a rating.

    Cut-offs are inclusive: >=4.5 strong_buy, >=3.5 buy, >=2.5 hold,
    >=1.5 sell, otherwise strong_sell. No ratings at all reads as hold.
    """
    total = distribution.total
    if total == 0:
        return "hold"

    weighted = (
        distribution.strong_buy * 5
        + distribution.buy * 4
        + distribution.hold * 3
        + distribution.sell * 2
        + distribution.strong_sell * 1
    ) / total

    if weighted >= 4.5:
        return "strong_buy"
    if weighted >= 3.5:
        return "buy"
    if weighted >= 2.5:
        return "hold"
    if weighted >= 1.5:
        return "sell"
    return "strong_sell"


def analyze_rating_trend(ratings: Sequence[AnalystRating]) -> RatingTrend:
    """Compare each of the latest ten ratings with the one issued just before it.

    momentum = (upgrades - downgrades) / (n - 1); above +0.3 is upgrading,
    below -0.3 downgrading. Fewer than two ratings is stable with no momentum.
    """
    if len(ratings) < 2:
        return RatingTrend(trend="stable", recent_changes=0, momentum=0.0)

    recent = sorted(ratings, key=lambda r: r.date, reverse=True)[:TREND_WINDOW]

    upgrades = 0
    downgrades = 0
    for newer, older in zip(recent, recent[1:]):
        newer_score = RATING_SCORES[newer.rating]
        older_score = RATING_SCORES[older.rating]
        if newer_score > older_score:
            upgrades += 1
        elif newer_score < older_score:
            downgrades += 1

    momentum = (upgrades - downgrades) / (len(recent) - 1)
    if momentum > MOMENTUM_BAND:
        trend = "upgrading"
    elif momentum < -MOMENTUM_BAND:
        trend = "downgrading"
    else:
        trend = "stable"

    logger.debug("Rating trend over %d ratings: %s momentum=%.2f", len(recent), trend, momentum)
    return RatingTrend(trend=trend, recent_changes=upgrades + downgrades, momentum=momentum)


def calculate_prediction_credibility(
    consensus: AnalystConsensus,
    accuracy: Sequence[AnalystAccuracy],
) -> PredictionCredibility:
    """Score how far a consensus can be trusted, 0-100 as the sum of four 0-25 factors.

    - analyst count: full marks at 20 or more covering analysts
    - accuracy: mean ``success_rate`` of the covering analysts
    - target price range: 25 minus the high-low spread in percent of the average target
    - consensus strength: share of analysts in the most popular rating bucket
    """
    analyst_count = min(consensus.number_of_analysts / FULL_COVERAGE_ANALYSTS, 1.0) * FACTOR_CAP

    average_accuracy = 0.0
    if accuracy:
        average_accuracy = sum(a.success_rate for a in accuracy) / len(accuracy) * FACTOR_CAP

    if consensus.average_target_price > 0:
        spread = (
            (consensus.high_target_price - consensus.low_target_price)
            / consensus.average_target_price
            * 100
        )
        target_price_range = max(0.0, FACTOR_CAP - spread)
    else:
        logger.warning("Average target price for %s is not positive; range factor scored 0", consensus.stock_code)
        target_price_range = 0.0

    distribution = consensus.rating_distribution
    total = distribution.total
    consensus_strength = max(distribution.counts()) / total * FACTOR_CAP if total > 0 else 0.0

    factors = CredibilityFactors(
        analyst_count=analyst_count,
        average_accuracy=average_accuracy,
        target_price_range=target_price_range,
        consensus_strength=consensus_strength,
    )
    score = analyst_count + average_accuracy + target_price_range + consensus_strength
    return PredictionCredibility(credibility_score=score, factors=factors)


def format_rating(rating: str, locale: Optional[str] = None) -> str:
    return lookup(ANALYST_RATING_LABELS, rating, locale)


def format_rating_trend(trend: str, locale: Optional[str] = None) -> str:
    return lookup(RATING_TREND_LABELS, trend, locale)


def rating_histogram(ratings: Sequence[AnalystRating]) -> RatingDistribution:
    """Bucket individual ratings into a distribution."""
    counts: Dict[str, int] = {key: 0 for key in RATING_SCORES}
    for r in ratings:
        counts[r.rating] += 1
    return RatingDistribution(**counts)
