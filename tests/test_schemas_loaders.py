from __future__ import annotations

import json
from datetime import date

import pytest
from pydantic import ValidationError

from astock_analytics.infrastructure.loaders import (
    latest_pair,
    load_dcf_inputs,
    load_forecast,
    load_snapshots,
    load_transactions,
    read_payload,
)
from astock_analytics.infrastructure.schemas import DCFInputsPayload, ForecastPayload, InsiderTransactionPayload

DCF_PAYLOAD = {
    "currentFCF": 100.0,
    "fcfGrowthRate": [0.1, 0.1, 0.08, 0.06, 0.05],
    "terminalGrowthRate": 0.03,
    "riskFreeRate": 0.03,
    "marketReturn": 0.08,
    "beta": 1.2,
    "debtWeight": 0.3,
    "equityWeight": 0.7,
    "costOfDebt": 0.05,
    "taxRate": 0.25,
    "sharesOutstanding": 10.0,
}


def write_json(path, payload):
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def test_dcf_payload_camel_case():
    inputs = DCFInputsPayload.model_validate(DCF_PAYLOAD).to_domain()
    assert inputs.current_fcf == 100.0
    assert inputs.fcf_growth_rates == (0.1, 0.1, 0.08, 0.06, 0.05)
    assert inputs.cash_and_equivalents == 0.0


def test_dcf_payload_snake_case():
    payload = {
        "current_fcf": 50.0,
        "fcf_growth_rate": [0.05] * 5,
        "terminal_growth_rate": 0.02,
        "risk_free_rate": 0.03,
        "market_return": 0.08,
        "beta": 1.0,
        "debt_weight": 0.0,
        "equity_weight": 1.0,
        "cost_of_debt": 0.0,
        "tax_rate": 0.25,
        "shares_outstanding": 5.0,
    }
    assert DCFInputsPayload.model_validate(payload).to_domain().current_fcf == 50.0


def test_dcf_payload_requires_five_rates():
    bad = dict(DCF_PAYLOAD, fcfGrowthRate=[0.1, 0.1])
    with pytest.raises(ValidationError):
        DCFInputsPayload.model_validate(bad)


def test_transaction_payload_defaults_value_and_strips_time():
    tx = InsiderTransactionPayload.model_validate(
        {
            "insiderName": "张三",
            "position": "chairman",
            "transactionType": "buy",
            "shares": 1000,
            "price": 12.5,
            "date": "2024-03-01T09:30:00",
        }
    ).to_domain()
    assert tx.value == 12500.0
    assert tx.date == date(2024, 3, 1)


def test_transaction_payload_rejects_unknown_position():
    with pytest.raises(ValidationError):
        InsiderTransactionPayload.model_validate(
            {
                "insiderName": "张三",
                "position": "intern",
                "transactionType": "buy",
                "shares": 1,
                "price": 1,
                "date": "2024-03-01",
            }
        )


def test_load_snapshots_unwraps_envelope_and_sorts(tmp_path):
    path = write_json(
        tmp_path / "financials.json",
        {
            "data": [
                {"stockCode": "600519.SH", "reportDate": "2023-12-31", "revenue": 1100, "netIncome": 132},
                {"stockCode": "600519.SH", "reportDate": "2022-12-31", "revenue": 1000, "netIncome": 120},
            ]
        },
    )
    snapshots = load_snapshots(path)
    assert [s.report_date for s in snapshots] == [date(2022, 12, 31), date(2023, 12, 31)]
    current, previous = latest_pair(snapshots)
    assert current.revenue == 1100
    assert previous.net_income == 120


def test_latest_pair_requires_snapshots():
    with pytest.raises(ValueError):
        latest_pair([])


def test_load_dcf_and_transactions(tmp_path):
    inputs = load_dcf_inputs(write_json(tmp_path / "dcf.json", DCF_PAYLOAD))
    assert inputs.shares_outstanding == 10.0

    txs = load_transactions(
        write_json(
            tmp_path / "insider.json",
            [
                {
                    "insiderName": "李四",
                    "position": "cfo",
                    "transactionType": "sell",
                    "shares": 100,
                    "price": 10,
                    "value": 1000,
                    "date": "2024-01-02",
                    "stockCode": "600519.SH",
                }
            ],
        )
    )
    assert len(txs) == 1
    assert txs[0].transaction_type == "sell"
    assert txs[0].stock_code == "600519.SH"


def test_read_payload_errors(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        read_payload(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        read_payload(broken)


def test_read_payload_directory_is_value_error(tmp_path):
    with pytest.raises(ValueError, match="could not be read"):
        read_payload(tmp_path)


def test_load_transactions_accepts_single_object(tmp_path):
    path = write_json(
        tmp_path / "one.json",
        {
            "data": {
                "insiderName": "王五",
                "position": "director",
                "transactionType": "buy",
                "shares": 200,
                "price": 10,
                "date": "2024-02-02",
            }
        },
    )
    txs = load_transactions(path)
    assert len(txs) == 1
    assert txs[0].value == 2000.0


def test_load_forecast(tmp_path):
    path = write_json(
        tmp_path / "forecast.json",
        {
            "consensus": {
                "stockCode": "600519.SH",
                "date": "2024-03-31",
                "averageTargetPrice": 2000,
                "highTargetPrice": 2200,
                "lowTargetPrice": 1900,
                "numberOfAnalysts": 10,
                "ratingDistribution": {"strongBuy": 6, "buy": 3, "hold": 1},
                "consensusRating": "strong_buy",
            },
            "ratings": [
                {"analystId": "a1", "analystName": "张三", "date": "2024-03-01T08:00:00", "rating": "buy", "targetPrice": 1950},
            ],
            "accuracy": [
                {"analystId": "a1", "analystName": "张三", "accurateWithin10Percent": 7, "successRate": 0.7},
            ],
        },
    )
    bundle = load_forecast(path)
    assert bundle.consensus.rating_distribution.strong_buy == 6
    assert bundle.consensus.rating_distribution.total == 10
    assert bundle.ratings[0].date == date(2024, 3, 1)
    assert bundle.accuracy[0].accurate_within_10_percent == 7


def test_forecast_payload_rejects_unknown_rating():
    with pytest.raises(ValidationError):
        ForecastPayload.model_validate(
            {"ratings": [{"analystId": "a1", "analystName": "x", "date": "2024-01-01", "rating": "outperform", "targetPrice": 1}]}
        )
