from __future__ import annotations

import json

from typer.testing import CliRunner

from astock_analytics.cli.commands import app

runner = CliRunner()

SNAPSHOTS = [
    {
        "stockCode": "600519.SH",
        "reportDate": "2022-12-31",
        "revenue": 1000,
        "costOfRevenue": 600,
        "netIncome": 120,
        "totalAssets": 1500,
        "equity": 800,
        "currentAssets": 700,
        "currentLiabilities": 300,
        "operatingCashFlow": 180,
        "sharesOutstanding": 100,
        "marketPrice": 12,
    },
    {
        "stockCode": "600519.SH",
        "reportDate": "2023-12-31",
        "revenue": 1100,
        "costOfRevenue": 660,
        "netIncome": 132,
        "totalAssets": 1600,
        "equity": 820,
        "currentAssets": 740,
        "currentLiabilities": 320,
        "operatingCashFlow": 198,
        "sharesOutstanding": 100,
        "marketPrice": 15,
    },
]

DCF = {
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

TRANSACTIONS = [
    {"insiderName": "张三", "position": "chairman", "transactionType": "buy", "shares": 100000, "price": 20, "date": "2024-03-01"},
    {"insiderName": "李四", "position": "ceo", "transactionType": "buy", "shares": 100000, "price": 20, "date": "2024-03-01"},
]


def write_json(path, payload):
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def test_ratios_command(tmp_path):
    path = write_json(tmp_path / "fin.json", SNAPSHOTS)
    result = runner.invoke(app, ["ratios", str(path), "--industry", str(path)])
    assert result.exit_code == 0, result.output
    assert "Health score" in result.output
    assert "Industry comparison" in result.output


def test_dcf_command_with_price_and_grid(tmp_path):
    path = write_json(tmp_path / "dcf.json", DCF)
    result = runner.invoke(app, ["dcf", str(path), "--price", "150", "--sensitivity"])
    assert result.exit_code == 0, result.output
    assert "Fair value per share" in result.output
    assert "Recommendation" in result.output


def test_dcf_command_refuses_violated_preconditions(tmp_path):
    path = write_json(tmp_path / "dcf.json", dict(DCF, terminalGrowthRate=0.09))
    result = runner.invoke(app, ["dcf", str(path)])
    assert result.exit_code == 3
    forced = runner.invoke(app, ["dcf", str(path), "--force"])
    assert forced.exit_code == 0, forced.output


def test_dcf_command_rejects_bad_payload(tmp_path):
    path = write_json(tmp_path / "dcf.json", dict(DCF, fcfGrowthRate=[0.1]))
    result = runner.invoke(app, ["dcf", str(path)])
    assert result.exit_code == 2


def test_insider_command(tmp_path):
    path = write_json(tmp_path / "insider.json", TRANSACTIONS)
    result = runner.invoke(
        app, ["insider", str(path), "--code", "600519.SH", "--name", "贵州茅台", "--as-of", "2024-03-31"]
    )
    assert result.exit_code == 0, result.output
    assert "Insider clusters" in result.output


def test_report_command_writes_markdown(tmp_path, monkeypatch):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "reports"))
    fin = write_json(tmp_path / "fin.json", SNAPSHOTS)
    dcf = write_json(tmp_path / "dcf.json", DCF)
    txs = write_json(tmp_path / "insider.json", TRANSACTIONS)
    result = runner.invoke(
        app,
        [
            "report",
            "--code",
            "600519.SH",
            "--name",
            "贵州茅台",
            "--financials",
            str(fin),
            "--dcf",
            str(dcf),
            "--insider",
            str(txs),
        ],
    )
    assert result.exit_code == 0, result.output
    target = tmp_path / "reports" / "600519.SH_analysis.md"
    markdown = target.read_text(encoding="utf-8")
    assert "DCF 估值" in markdown
    assert "董监高交易信号" in markdown


FORECAST = {
    "consensus": {
        "stockCode": "600519.SH",
        "date": "2024-03-31",
        "averageTargetPrice": 2000,
        "highTargetPrice": 2200,
        "lowTargetPrice": 1900,
        "numberOfAnalysts": 10,
        "ratingDistribution": {"strongBuy": 6, "buy": 3, "hold": 1},
    },
    "ratings": [
        {"analystId": "a1", "analystName": "张三", "date": "2024-01-05", "rating": "hold", "targetPrice": 1800},
        {"analystId": "a2", "analystName": "李四", "date": "2024-02-05", "rating": "buy", "targetPrice": 1950},
        {"analystId": "a3", "analystName": "王五", "date": "2024-03-05", "rating": "strong_buy", "targetPrice": 2200},
    ],
    "accuracy": [{"analystId": "a1", "analystName": "张三", "successRate": 0.6}],
}


def test_forecast_command(tmp_path):
    path = write_json(tmp_path / "forecast.json", FORECAST)
    result = runner.invoke(app, ["forecast", str(path)])
    assert result.exit_code == 0, result.output
    assert "Consensus rating" in result.output
    assert "Credibility" in result.output


def test_directory_input_is_a_clean_error(tmp_path):
    result = runner.invoke(app, ["ratios", str(tmp_path)])
    assert result.exit_code == 2
    assert "could not be read" in result.output


def test_report_includes_forecast(tmp_path, monkeypatch):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "reports"))
    path = write_json(tmp_path / "forecast.json", FORECAST)
    result = runner.invoke(app, ["report", "--code", "600519.SH", "--forecast", str(path)])
    assert result.exit_code == 0, result.output
    markdown = (tmp_path / "reports" / "600519.SH_analysis.md").read_text(encoding="utf-8")
    assert "## 分析师预测" in markdown
    assert "评级上调" in markdown
