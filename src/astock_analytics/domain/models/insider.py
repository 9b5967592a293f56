"""Domain models for director/supervisor/senior-manager (董监高) trading activity."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Literal, Optional

TransactionType = Literal["buy", "sell", "grant", "exercise"]
InsiderPosition = Literal["chairman", "ceo", "cfo", "director", "supervisor", "senior_manager"]
SignalType = Literal["strong_buy", "buy", "neutral", "sell", "strong_sell"]
Direction = Literal["buy", "sell"]

TRANSACTION_TYPES = ("buy", "sell", "grant", "exercise")
POSITIONS = ("chairman", "ceo", "cfo", "director", "supervisor", "senior_manager")
SIGNAL_TYPES = ("strong_buy", "buy", "neutral", "sell", "strong_sell")


@dataclass(frozen=True)
class InsiderTransaction:
    """A single filed insider transaction. ``value`` is in CNY."""

    insider_name: str
    position: InsiderPosition
    transaction_type: TransactionType
    shares: float
    price: float
    value: float
    date: date
    stock_code: str = ""
    stock_name: str = ""
    filing_date: Optional[date] = None
    reason: str = ""


@dataclass(frozen=True)
class SignalFactors:
    """Five 0-100 sub-scores feeding the composite insider signal."""

    transaction_size: float = 0.0
    frequency: float = 0.0
    consistency: float = 0.0
    position_weight: float = 0.0
    timing: float = 0.0


@dataclass(frozen=True)
class InsiderSignal:
    stock_code: str
    stock_name: str
    signal_type: SignalType
    signal_strength: float
    factors: SignalFactors
    recent_transactions: List[InsiderTransaction] = field(default_factory=list)
    summary: str = ""


@dataclass(frozen=True)
class InsiderCluster:
    """Several insiders trading the same stock on the same day."""

    date: date
    stock_code: str
    stock_name: str
    insider_count: int
    total_shares: float
    total_value: float
    net_direction: Direction
    cluster_score: float


@dataclass(frozen=True)
class InsiderProfile:
    name: str
    position: InsiderPosition
    transactions: List[InsiderTransaction]
    net_change: float
    total_buy_value: float
    total_sell_value: float
