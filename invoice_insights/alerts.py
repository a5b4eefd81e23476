"""Benchmarks, alert rules, heuristic recommendations and the dashboard payload."""

from __future__ import annotations

import math
from datetime import date
from typing import Literal, TypedDict

import numpy as np
import structlog

from . import features, insights, risk, utils

LOGGER = structlog.get_logger(__name__)

BENCHMARK_PERCENTILES = {"percentile75": 0.75, "percentile90": 0.90, "percentile95": 0.95}

MONTHLY_SPEND_MULTIPLIER = 1.2
NEGATIVE_RATE_THRESHOLD_PCT = 15.0

SERVICE_SAVINGS_SHARE = 0.10
COLLECTION_GAP_MULTIPLIER = 100.0
NEGATIVE_RATE_SAVINGS_SHARE = 0.50

AlertStatus = Literal["triggered", "clear", "not_implemented"]
Severity = Literal["low", "medium", "high"]
Priority = Literal["High", "Medium", "Low"]


class DynamicBenchmarks(TypedDict):
    percentile75: float
    percentile90: float
    percentile95: float
    year_over_year_growth: float
    transactions_above_p75: int


class AlertRule(TypedDict):
    id: str
    title: str
    condition: str
    threshold: float
    status: AlertStatus
    is_triggered: bool
    severity: Severity
    value: float | None


class AgentRecommendation(TypedDict):
    category: str
    recommendation: str
    priority: Priority
    potential_savings: float


class InsightsPayload(TypedDict):
    kpis: insights.KPISummary
    monthly_trends: list[insights.ChartPoint]
    top_service_codes: list[insights.ChartPoint]
    top_event_descriptions: list[insights.ChartPoint]
    currency_distribution: list[insights.ChartPoint]
    scheme_analytics: list[insights.SchemeAnalytics]
    negative_rate_analysis: insights.NegativeRateAnalysis
    geo_analytics: list[risk.GeoAnalytics]
    volume_analytics: list[risk.VolumeAnalytics]
    currency_volatility: list[risk.CurrencyVolatility]
    collection_method_analysis: list[insights.CollectionMethodAnalysis]
    uom_analysis: list[insights.UOMAnalysis]
    lifecycle_analysis: list[risk.LifecycleStage]
    agent_recommendations: list[AgentRecommendation]
    dynamic_benchmarks: DynamicBenchmarks
    alert_rules: list[AlertRule]


def nearest_rank(sorted_values: list[float], fraction: float) -> float:
    """Return ``sorted_values[floor(n * fraction)]`` without interpolation."""

    if not sorted_values:
        return 0.0
    index = min(int(math.floor(len(sorted_values) * fraction)), len(sorted_values) - 1)
    return float(sorted_values[index])


def _year_over_year_growth(trends: list[insights.ChartPoint], today: date) -> float:
    if not trends:
        return 0.0
    prior_suffix = f"{(today.year - 1) % 100:02d}"
    prior = next((point for point in trends if point["name"].endswith(prior_suffix)), None)
    if prior is None:
        return 0.0
    latest = trends[-1]
    return utils.safe_ratio(latest["value"] - prior["value"], prior["value"]) * 100.0


def get_dynamic_benchmarks(records, *, today: date | None = None) -> DynamicBenchmarks:
    """Nearest-rank percentiles of ``total_charge`` plus year-over-year growth."""

    df = features.prepare_invoices(records)
    values = sorted(float(value) for value in df["total_charge"])

    benchmarks = {name: nearest_rank(values, fraction) for name, fraction in BENCHMARK_PERCENTILES.items()}
    above = int(sum(1 for value in values if value > benchmarks["percentile75"])) if values else 0

    return {
        "percentile75": benchmarks["percentile75"],
        "percentile90": benchmarks["percentile90"],
        "percentile95": benchmarks["percentile95"],
        "year_over_year_growth": _year_over_year_growth(
            insights.get_monthly_trends(df),
            today if today is not None else date.today(),
        ),
        "transactions_above_p75": above,
    }


def _rule(
    rule_id: str,
    title: str,
    condition: str,
    threshold: float,
    severity: Severity,
    value: float | None,
    triggered: bool,
) -> AlertRule:
    return {
        "id": rule_id,
        "title": title,
        "condition": condition,
        "threshold": float(threshold),
        "status": "triggered" if triggered else "clear",
        "is_triggered": bool(triggered),
        "severity": severity,
        "value": None if value is None else float(value),
    }


def generate_alert_rules(records, *, today: date | None = None) -> list[AlertRule]:
    """Evaluate the fixed alert rule set against the current aggregates."""

    df = features.prepare_invoices(records)
    benchmarks = get_dynamic_benchmarks(df, today=today)
    current_total, _ = insights.current_and_previous_month_totals(df, today=today)
    spend_threshold = benchmarks["percentile75"] * MONTHLY_SPEND_MULTIPLIER
    negative_pct = insights.get_negative_rate_analysis(df)["percentage_of_negative_rates"]
    volatility = risk.get_currency_volatility(df)
    max_volatility = max((row["volatility_score"] for row in volatility), default=0.0)

    rules = [
        _rule(
            "high-monthly-spend",
            "High monthly spend",
            "Current month fees exceed 120% of the 75th percentile charge",
            spend_threshold,
            "high",
            current_total,
            bool(df.shape[0]) and current_total > spend_threshold,
        ),
        _rule(
            "negative-rate-share",
            "Negative rate exposure",
            "Negative-rate charges exceed 15% of total charge volume",
            NEGATIVE_RATE_THRESHOLD_PCT,
            "medium",
            negative_pct,
            negative_pct > NEGATIVE_RATE_THRESHOLD_PCT,
        ),
        {
            "id": "volume-spike",
            "title": "Invoice volume spike",
            "condition": "Monthly invoice volume deviates sharply from its average",
            "threshold": risk.VOLUME_ANOMALY_THRESHOLD,
            "status": "not_implemented",
            "is_triggered": False,
            "severity": "medium",
            "value": None,
        },
        _rule(
            "currency-volatility",
            "Currency volatility",
            "Any currency's volatility score exceeds 0.8",
            risk.HIGH_VOLATILITY_THRESHOLD,
            "high",
            max_volatility,
            max_volatility > risk.HIGH_VOLATILITY_THRESHOLD,
        ),
    ]

    LOGGER.debug("alert_rules_evaluated", triggered=[rule["id"] for rule in rules if rule["is_triggered"]])
    return rules


def get_agent_recommendations(records) -> list[AgentRecommendation]:
    """Template-driven suggestions with rough savings estimates.

    The savings are fixed-percentage heuristics for prioritising work, not
    forecasts.
    """

    df = features.prepare_invoices(records)
    if df.empty:
        return []

    recommendations: list[AgentRecommendation] = []

    top_services = insights.get_top_service_codes(df, limit=1)
    if top_services:
        top = top_services[0]
        recommendations.append(
            {
                "category": "Service Optimization",
                "recommendation": (
                    f"Review pricing for '{top['name']}', the largest fee driver at "
                    f"{utils.format_currency(top['value'])}. Negotiate volume tiers or bundle events."
                ),
                "priority": "High",
                "potential_savings": round(max(top["value"], 0.0) * SERVICE_SAVINGS_SHARE, 2),
            }
        )

    methods = {row["method"]: row for row in insights.get_collection_method_analysis(df)}
    if "AUTO" in methods and "MANUAL" in methods:
        auto_fee = methods["AUTO"]["average_fee"]
        manual_fee = methods["MANUAL"]["average_fee"]
        cheaper, dearer = ("AUTO", "MANUAL") if auto_fee <= manual_fee else ("MANUAL", "AUTO")
        gap = abs(auto_fee - manual_fee)
        recommendations.append(
            {
                "category": "Collection Method",
                "recommendation": (
                    f"{cheaper} collection averages {utils.format_currency(gap)} less per invoice than "
                    f"{dearer}. Migrate eligible accounts to {cheaper} collection."
                ),
                "priority": "Medium",
                "potential_savings": round(gap * COLLECTION_GAP_MULTIPLIER, 2),
            }
        )

    negative = insights.get_negative_rate_analysis(df)
    if negative["top_negative_services"]:
        worst = negative["top_negative_services"][0]
        recommendations.append(
            {
                "category": "Negative Rate Management",
                "recommendation": (
                    f"Investigate penalty rates on '{worst['name']}' "
                    f"({utils.format_currency(worst['value'])} at negative rates) and dispute avoidable charges."
                ),
                "priority": "High",
                "potential_savings": round(negative["total_negative_charges"] * NEGATIVE_RATE_SAVINGS_SHARE, 2),
            }
        )

    return recommendations


def calculate_insights(
    records,
    *,
    today: date | None = None,
    rng: np.random.Generator | None = None,
) -> InsightsPayload:
    """Compute every aggregate the dashboard renders."""

    df = features.prepare_invoices(records)
    LOGGER.info("insights_calculation_start", records=int(len(df)))

    payload: InsightsPayload = {
        "kpis": insights.calculate_kpis(df, today=today),
        "monthly_trends": insights.get_monthly_trends(df),
        "top_service_codes": insights.get_top_service_codes(df),
        "top_event_descriptions": insights.get_top_event_descriptions(df),
        "currency_distribution": insights.get_currency_distribution(df),
        "scheme_analytics": insights.get_scheme_analytics(df, rng=rng),
        "negative_rate_analysis": insights.get_negative_rate_analysis(df),
        "geo_analytics": risk.get_geo_analytics(df),
        "volume_analytics": risk.get_volume_analytics(df),
        "currency_volatility": risk.get_currency_volatility(df),
        "collection_method_analysis": insights.get_collection_method_analysis(df),
        "uom_analysis": insights.get_uom_analysis(df),
        "lifecycle_analysis": risk.get_lifecycle_analysis(df),
        "agent_recommendations": get_agent_recommendations(df),
        "dynamic_benchmarks": get_dynamic_benchmarks(df, today=today),
        "alert_rules": generate_alert_rules(df, today=today),
    }

    LOGGER.info(
        "insights_calculation_complete",
        records=int(len(df)),
        alerts_triggered=sum(1 for rule in payload["alert_rules"] if rule["is_triggered"]),
    )
    return payload
