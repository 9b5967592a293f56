"""Insider-trading signal scoring and same-day cluster detection."""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from astock_analytics.domain.labels import (
    POSITION_LABELS,
    SIGNAL_SUMMARIES,
    TRANSACTION_TYPE_LABELS,
    lookup,
)
from astock_analytics.domain.models.insider import (
    InsiderCluster,
    InsiderProfile,
    InsiderSignal,
    InsiderTransaction,
    SignalFactors,
)

logger = logging.getLogger(__name__)

# Factor scores on a 0-100 scale.
POSITION_SCORES: Dict[str, float] = {
    "chairman": 100,
    "ceo": 90,
    "cfo": 80,
    "director": 70,
    "supervisor": 60,
    "senior_manager": 50,
}

# Relative weights on a 0-1 scale for display and ranking.
POSITION_WEIGHTS: Dict[str, float] = {
    "chairman": 1.0,
    "ceo": 0.9,
    "cfo": 0.8,
    "director": 0.7,
    "supervisor": 0.6,
    "senior_manager": 0.5,
}

FACTOR_WEIGHTS: Dict[str, float] = {
    "transaction_size": 0.3,
    "frequency": 0.15,
    "consistency": 0.25,
    "position_weight": 0.2,
    "timing": 0.1,
}

VALUE_UNIT = 1_000_000  # CNY
DEFAULT_SPAN_DAYS = 365
DEFAULT_RECENT_LIMIT = 10


def calculate_signal_strength(
    transactions: Sequence[InsiderTransaction],
    as_of: Optional[date] = None,
) -> SignalFactors:
    """Score size, frequency, directional consistency, role weight and recency (each 0-100).

    ``as_of`` is the reference date for the recency factor and defaults to today.
    """
    if not transactions:
        return SignalFactors()

    count = len(transactions)
    reference = as_of or date.today()

    # 10 points per CNY 1M of average transaction value
    avg_value = sum(t.value for t in transactions) / count
    transaction_size = min(avg_value / VALUE_UNIT * 10, 100.0)

    if count > 1:
        dates = [_as_date(t.date) for t in transactions]
        span_days = (max(dates) - min(dates)).days
    else:
        span_days = DEFAULT_SPAN_DAYS
    if span_days == 0:
        # Several trades on one day: the annualised rate is unbounded.
        frequency = 100.0
    else:
        frequency = min(count / span_days * 365 * 10, 100.0)

    buy_count = sum(1 for t in transactions if t.transaction_type == "buy")
    sell_count = sum(1 for t in transactions if t.transaction_type == "sell")
    consistency = abs(buy_count - sell_count) / count * 100

    position_weight = sum(POSITION_SCORES.get(t.position, 0) for t in transactions) / count

    recent_weight = 0.0
    for t in transactions:
        age = (reference - _as_date(t.date)).days
        if age < 90:
            recent_weight += 1.0
        elif age < 180:
            recent_weight += 0.5
        else:
            recent_weight += 0.25
    timing = min(recent_weight / count * 100, 100.0)

    return SignalFactors(
        transaction_size=transaction_size,
        frequency=frequency,
        consistency=consistency,
        position_weight=position_weight,
        timing=timing,
    )


def generate_insider_signal(
    stock_code: str,
    stock_name: str,
    transactions: Sequence[InsiderTransaction],
    as_of: Optional[date] = None,
    *,
    locale: Optional[str] = None,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> InsiderSignal:
    """Combine the five factors into a 0-100 strength and classify by buy/sell value balance."""
    factors = calculate_signal_strength(transactions, as_of=as_of)
    strength = (
        factors.transaction_size * FACTOR_WEIGHTS["transaction_size"]
        + factors.frequency * FACTOR_WEIGHTS["frequency"]
        + factors.consistency * FACTOR_WEIGHTS["consistency"]
        + factors.position_weight * FACTOR_WEIGHTS["position_weight"]
        + factors.timing * FACTOR_WEIGHTS["timing"]
    )

    buy_value, sell_value = _directional_values(transactions)
    if buy_value > sell_value * 2 and strength > 70:
        signal_type = "strong_buy"
    elif buy_value > sell_value and strength > 50:
        signal_type = "buy"
    elif sell_value > buy_value * 2 and strength > 70:
        signal_type = "strong_sell"
    elif sell_value > buy_value and strength > 50:
        signal_type = "sell"
    else:
        signal_type = "neutral"

    logger.debug(
        "Insider signal %s: %s strength=%.2f buy=%.0f sell=%.0f",
        stock_code,
        signal_type,
        strength,
        buy_value,
        sell_value,
    )
    recent = sorted(transactions, key=lambda t: _as_date(t.date), reverse=True)[:recent_limit]
    return InsiderSignal(
        stock_code=stock_code,
        stock_name=stock_name,
        signal_type=signal_type,
        signal_strength=strength,
        factors=factors,
        recent_transactions=recent,
        summary=lookup(SIGNAL_SUMMARIES, signal_type, locale),
    )


def detect_insider_cluster(transactions: Iterable[InsiderTransaction]) -> List[InsiderCluster]:
    """Group trades by calendar day and keep days where at least two distinct insiders traded.

    Results are ordered by cluster score, strongest first.
    """
    grouped: "OrderedDict[date, List[InsiderTransaction]]" = OrderedDict()
    for t in transactions:
        grouped.setdefault(_as_date(t.date), []).append(t)

    clusters: List[InsiderCluster] = []
    for day, txs in grouped.items():
        insiders = {t.insider_name for t in txs}
        if len(insiders) < 2:
            continue
        buy_value, sell_value = _directional_values(txs)
        clusters.append(
            InsiderCluster(
                date=day,
                stock_code=txs[0].stock_code,
                stock_name=txs[0].stock_name,
                insider_count=len(insiders),
                total_shares=sum(t.shares for t in txs),
                total_value=sum(t.value for t in txs),
                net_direction="buy" if buy_value > sell_value else "sell",
                cluster_score=min(len(txs) * 10 + abs(buy_value - sell_value) / VALUE_UNIT, 100.0),
            )
        )

    clusters.sort(key=lambda c: c.cluster_score, reverse=True)
    return clusters


def build_insider_profiles(transactions: Iterable[InsiderTransaction]) -> List[InsiderProfile]:
    """Aggregate trades per insider: net share change and total buy/sell value."""
    by_name: "OrderedDict[str, List[InsiderTransaction]]" = OrderedDict()
    for t in transactions:
        by_name.setdefault(t.insider_name, []).append(t)

    profiles: List[InsiderProfile] = []
    for name, txs in by_name.items():
        ordered = sorted(txs, key=lambda t: _as_date(t.date), reverse=True)
        bought = sum(t.shares for t in txs if t.transaction_type == "buy")
        sold = sum(t.shares for t in txs if t.transaction_type == "sell")
        buy_value, sell_value = _directional_values(txs)
        profiles.append(
            InsiderProfile(
                name=name,
                position=ordered[0].position,
                transactions=ordered,
                net_change=bought - sold,
                total_buy_value=buy_value,
                total_sell_value=sell_value,
            )
        )
    return profiles


def get_position_weight(position: str) -> float:
    return POSITION_WEIGHTS.get(position, 0.5)


def format_transaction_type(transaction_type: str, locale: Optional[str] = None) -> str:
    return lookup(TRANSACTION_TYPE_LABELS, transaction_type, locale)


def format_position(position: str, locale: Optional[str] = None) -> str:
    return lookup(POSITION_LABELS, position, locale)


# ----------------------------
# Internal helpers
# ----------------------------

def _directional_values(transactions: Iterable[InsiderTransaction]) -> Tuple[float, float]:
    buy_value = 0.0
    sell_value = 0.0
    for t in transactions:
        if t.transaction_type == "buy":
            buy_value += t.value
        elif t.transaction_type == "sell":
            sell_value += t.value
    return buy_value, sell_value


def _as_date(value: date) -> date:
    """Drop any time component so trades compare by calendar day."""
    return value.date() if isinstance(value, datetime) else value
