"""Load JSON exports into validated domain objects."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import TypeAdapter

from astock_analytics.domain.models.financials import DCFInputs, FinancialStatementSnapshot
from astock_analytics.domain.models.forecast import AnalystAccuracy, AnalystConsensus, AnalystRating
from astock_analytics.domain.models.insider import InsiderTransaction
from astock_analytics.infrastructure.schemas import (
    DCFInputsPayload,
    ForecastPayload,
    InsiderTransactionPayload,
    SnapshotPayload,
)

logger = logging.getLogger(__name__)

_SNAPSHOTS = TypeAdapter(List[SnapshotPayload])
_TRANSACTIONS = TypeAdapter(List[InsiderTransactionPayload])


@dataclass(frozen=True)
class ForecastBundle:
    """Everything the analyst-forecast calculations need for one stock."""

    consensus: Optional[AnalystConsensus] = None
    ratings: List[AnalystRating] = field(default_factory=list)
    accuracy: List[AnalystAccuracy] = field(default_factory=list)


def read_payload(path: Path) -> Any:
    """Read a JSON document, unwrapping the ``{"data": ...}`` response envelope if present."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Input file not found: {path}") from exc
    except OSError as exc:
        raise ValueError(f"Input file could not be read: {path} ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Input file is not valid JSON: {path} ({exc})") from exc
    if isinstance(raw, dict) and "data" in raw:
        return raw["data"]
    return raw


def read_records(path: Path) -> List[Any]:
    """Read a payload that holds a list of records; a lone object counts as one record."""
    payload = read_payload(path)
    if isinstance(payload, dict):
        return [payload]
    return payload


def load_snapshots(path: Path) -> List[FinancialStatementSnapshot]:
    """Snapshots sorted by report date, oldest first."""
    snapshots = [item.to_domain() for item in _SNAPSHOTS.validate_python(read_records(path))]
    snapshots.sort(key=lambda s: s.report_date)
    logger.debug("Loaded %d snapshots from %s", len(snapshots), path)
    return snapshots


def latest_pair(
    snapshots: List[FinancialStatementSnapshot],
) -> Tuple[FinancialStatementSnapshot, Optional[FinancialStatementSnapshot]]:
    """Return (latest, previous) from date-sorted snapshots; previous may be None."""
    if not snapshots:
        raise ValueError("At least one financial snapshot is required.")
    ordered = sorted(snapshots, key=lambda s: s.report_date)
    previous = ordered[-2] if len(ordered) > 1 else None
    return ordered[-1], previous


def load_dcf_inputs(path: Path) -> DCFInputs:
    return DCFInputsPayload.model_validate(read_payload(path)).to_domain()


def load_transactions(path: Path) -> List[InsiderTransaction]:
    transactions = [item.to_domain() for item in _TRANSACTIONS.validate_python(read_records(path))]
    logger.debug("Loaded %d insider transactions from %s", len(transactions), path)
    return transactions


def load_forecast(path: Path) -> ForecastBundle:
    payload = ForecastPayload.model_validate(read_payload(path))
    bundle = ForecastBundle(
        consensus=payload.consensus.to_domain() if payload.consensus is not None else None,
        ratings=[item.to_domain() for item in payload.ratings],
        accuracy=[item.to_domain() for item in payload.accuracy],
    )
    logger.debug("Loaded %d analyst ratings from %s", len(bundle.ratings), path)
    return bundle
