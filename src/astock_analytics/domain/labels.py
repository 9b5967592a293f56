"""Locale-keyed lookup tables for the canned strings emitted by the engines.

Engines only ever produce tag keys; the text shown to users is resolved here so
that adding a language never touches calculation code.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "zh_CN"

HEALTH_TAGS: Dict[str, Dict[str, str]] = {
    "zh_CN": {
        "roe_strong": "ROE优秀",
        "roe_weak": "ROE较低",
        "net_margin_strong": "净利率优秀",
        "net_margin_weak": "净利率较低",
        "gross_margin_strong": "毛利率优秀",
        "gross_margin_weak": "毛利率较低",
        "current_ratio_strong": "流动性充足",
        "current_ratio_weak": "流动性不足",
        "debt_to_equity_strong": "负债率健康",
        "debt_to_equity_weak": "负债率偏高",
        "interest_coverage_strong": "利息保障充足",
        "interest_coverage_weak": "利息保障不足",
        "asset_turnover_strong": "资产周转率优秀",
        "asset_turnover_weak": "资产周转率较低",
        "cash_cycle_strong": "现金周转快",
        "cash_cycle_weak": "现金周转慢",
        "revenue_growth_strong": "营收高增长",
        "revenue_growth_weak": "营收负增长",
        "net_income_growth_strong": "利润高增长",
        "net_income_growth_weak": "利润负增长",
        "pe_strong": "估值合理",
        "pe_weak": "估值偏高",
    },
    "en_US": {
        "roe_strong": "Excellent ROE",
        "roe_weak": "Low ROE",
        "net_margin_strong": "Excellent net margin",
        "net_margin_weak": "Low net margin",
        "gross_margin_strong": "Excellent gross margin",
        "gross_margin_weak": "Low gross margin",
        "current_ratio_strong": "Ample liquidity",
        "current_ratio_weak": "Insufficient liquidity",
        "debt_to_equity_strong": "Healthy leverage",
        "debt_to_equity_weak": "High leverage",
        "interest_coverage_strong": "Ample interest coverage",
        "interest_coverage_weak": "Weak interest coverage",
        "asset_turnover_strong": "Excellent asset turnover",
        "asset_turnover_weak": "Low asset turnover",
        "cash_cycle_strong": "Fast cash conversion",
        "cash_cycle_weak": "Slow cash conversion",
        "revenue_growth_strong": "High revenue growth",
        "revenue_growth_weak": "Revenue decline",
        "net_income_growth_strong": "High profit growth",
        "net_income_growth_weak": "Profit decline",
        "pe_strong": "Reasonable valuation",
        "pe_weak": "Rich valuation",
    },
}

SIGNAL_SUMMARIES: Dict[str, Dict[str, str]] = {
    "zh_CN": {
        "strong_buy": "内部人大量增持，强烈买入信号",
        "buy": "内部人持续增持，买入信号",
        "strong_sell": "内部人大量减持，强烈卖出信号",
        "sell": "内部人持续减持，卖出信号",
        "neutral": "内部交易无明显方向性",
    },
    "en_US": {
        "strong_buy": "Heavy insider accumulation, strong buy signal",
        "buy": "Sustained insider buying, buy signal",
        "strong_sell": "Heavy insider disposal, strong sell signal",
        "sell": "Sustained insider selling, sell signal",
        "neutral": "Insider trading shows no clear direction",
    },
}

POSITION_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {
        "chairman": "董事长",
        "ceo": "总经理",
        "cfo": "财务总监",
        "director": "董事",
        "supervisor": "监事",
        "senior_manager": "高级管理人员",
    },
    "en_US": {
        "chairman": "Chairman",
        "ceo": "CEO",
        "cfo": "CFO",
        "director": "Director",
        "supervisor": "Supervisor",
        "senior_manager": "Senior manager",
    },
}

TRANSACTION_TYPE_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {"buy": "增持", "sell": "减持", "grant": "授予", "exercise": "行权"},
    "en_US": {"buy": "Buy", "sell": "Sell", "grant": "Grant", "exercise": "Exercise"},
}

RECOMMENDATION_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {"strong_buy": "强烈买入", "buy": "买入", "hold": "持有", "sell": "卖出"},
    "en_US": {"strong_buy": "Strong buy", "buy": "Buy", "hold": "Hold", "sell": "Sell"},
}

ANALYST_RATING_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {
        "strong_buy": "强烈买入",
        "buy": "买入",
        "hold": "持有",
        "sell": "卖出",
        "strong_sell": "强烈卖出",
    },
    "en_US": {
        "strong_buy": "Strong buy",
        "buy": "Buy",
        "hold": "Hold",
        "sell": "Sell",
        "strong_sell": "Strong sell",
    },
}

RATING_TREND_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {"upgrading": "评级上调", "downgrading": "评级下调", "stable": "评级稳定"},
    "en_US": {"upgrading": "Upgrading", "downgrading": "Downgrading", "stable": "Stable"},
}

CASH_FLOW_QUALITY_LABELS: Dict[str, Dict[str, str]] = {
    "zh_CN": {"excellent": "优秀", "good": "良好", "fair": "一般", "poor": "较差"},
    "en_US": {"excellent": "Excellent", "good": "Good", "fair": "Fair", "poor": "Poor"},
}


def lookup(table: Dict[str, Dict[str, str]], key: str, locale: Optional[str] = None) -> str:
    """Resolve ``key`` in ``table`` for ``locale``, falling back to the default locale, then the key."""
    resolved = locale or DEFAULT_LOCALE
    entries = table.get(resolved)
    if entries is None:
        logger.debug("Unknown locale %s; falling back to %s", resolved, DEFAULT_LOCALE)
        entries = table[DEFAULT_LOCALE]
    if key in entries:
        return entries[key]
    return table[DEFAULT_LOCALE].get(key, key)
