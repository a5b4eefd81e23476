"""Risk-oriented aggregations: geography, volume anomalies, currency volatility, lifecycle."""

from __future__ import annotations

from typing import TypedDict

import numpy as np
import pandas as pd
import structlog

from . import features, utils

LOGGER = structlog.get_logger(__name__)

VOLUME_ANOMALY_THRESHOLD = 0.3
HIGH_VOLATILITY_THRESHOLD = 0.8
HEDGING_VOLATILITY_THRESHOLD = 0.5

ACTION_HIGH_RISK = "High risk - review currency exposure"
ACTION_HEDGE = "Consider hedging strategy"
ACTION_MONITOR = "Monitor"

STAGE_TOTAL = "Total Transactions"
STAGE_CHARGED = "Charged Transactions"
STAGE_REVERSED = "Reversed Transactions"
STAGE_FINAL_PAID = "Final Paid Fees"


class GeoAnalytics(TypedDict):
    region: str
    country: str
    total_fees: float
    transaction_count: int
    risk_score: float
    negative_rate_frequency: int


class VolumeAnalytics(TypedDict):
    month: str
    file_count: int
    invoice_count: int
    is_anomaly: bool
    anomaly_score: float


class CurrencyVolatility(TypedDict):
    currency: str
    total_fees: float
    volatility_score: float
    monthly_variance: float
    recommended_action: str


class LifecycleStage(TypedDict):
    stage: str
    count: int
    percentage: float
    drop_off_rate: float


def _has_text(series: pd.Series) -> pd.Series:
    return series.notna() & series.astype(str).str.strip().ne("")


def get_geo_analytics(records) -> list[GeoAnalytics]:
    """Fees and a frequency-based risk proxy per (region, country).

    Records without a region or a country are left out. The risk score is the
    share of the group's lines billed at a negative rate.
    """

    df = features.add_engineered_features(records, derive_geography=False)
    if df.empty:
        return []

    df = df.loc[_has_text(df["region"]) & _has_text(df["country"])].copy()
    if df.empty:
        return []
    grouped = df.groupby(["region", "country"], sort=False).agg(
        total_fees=("total_charge", "sum"),
        transaction_count=("total_charge", "size"),
        negative_rate_frequency=("is_negative_rate", "sum"),
    )
    grouped = grouped.sort_values("total_fees", ascending=False, kind="stable")

    return [
        {
            "region": str(region),
            "country": str(country),
            "total_fees": float(row["total_fees"]),
            "transaction_count": int(row["transaction_count"]),
            "risk_score": utils.safe_ratio(float(row["negative_rate_frequency"]), float(row["transaction_count"])),
            "negative_rate_frequency": int(row["negative_rate_frequency"]),
        }
        for (region, country), row in grouped.iterrows()
    ]


def _relative_deviation(value: float, mean: float) -> float:
    # A zero mean carries no baseline, so it reads as no deviation.
    if not mean:
        return 0.0
    return abs(value - mean) / mean


def get_volume_analytics(records) -> list[VolumeAnalytics]:
    """Distinct files and invoices per month with a deviation-based anomaly flag."""

    df = features.add_engineered_features(records)
    if df.empty:
        return []

    monthly = (
        df.groupby("month")
        .agg(
            file_count=("input_file_name", "nunique"),
            invoice_count=("inv_no", "nunique"),
        )
        .sort_index()
    )
    mean_files = float(monthly["file_count"].mean())
    mean_invoices = float(monthly["invoice_count"].mean())

    results: list[VolumeAnalytics] = []
    for month, row in monthly.iterrows():
        score = (
            _relative_deviation(float(row["file_count"]), mean_files)
            + _relative_deviation(float(row["invoice_count"]), mean_invoices)
        ) / 2.0
        results.append(
            {
                "month": features.month_label(month),
                "file_count": int(row["file_count"]),
                "invoice_count": int(row["invoice_count"]),
                "is_anomaly": bool(score > VOLUME_ANOMALY_THRESHOLD),
                "anomaly_score": float(score),
            }
        )

    LOGGER.debug(
        "volume_analytics_computed",
        months=len(results),
        anomalies=sum(1 for row in results if row["is_anomaly"]),
    )
    return results


def recommended_action(volatility_score: float) -> str:
    if volatility_score > HIGH_VOLATILITY_THRESHOLD:
        return ACTION_HIGH_RISK
    if volatility_score > HEDGING_VOLATILITY_THRESHOLD:
        return ACTION_HEDGE
    return ACTION_MONITOR


def get_currency_volatility(records) -> list[CurrencyVolatility]:
    """Coefficient of variation of each currency's monthly totals.

    Uses the population variance across the months the currency appears in.
    A single month or a zero mean yields a score of ``0.0``.
    """

    df = features.add_engineered_features(records)
    if df.empty:
        return []

    monthly = df.groupby(["currency", "month"])["total_charge"].sum()

    results: list[CurrencyVolatility] = []
    for currency, totals in monthly.groupby(level="currency", sort=False):
        values = totals.to_numpy(dtype=float)
        mean = float(values.mean())
        variance = float(np.var(values)) if len(values) > 1 else 0.0
        score = utils.safe_ratio(float(np.sqrt(variance)), abs(mean))
        results.append(
            {
                "currency": str(currency),
                "total_fees": float(values.sum()),
                "volatility_score": score,
                "monthly_variance": variance,
                "recommended_action": recommended_action(score),
            }
        )

    results.sort(key=lambda row: row["volatility_score"], reverse=True)
    return results


def get_lifecycle_analysis(records) -> list[LifecycleStage]:
    """Four-stage funnel: total, charged, reversed and final paid.

    Percentages are relative to the total. Charged drop-off is measured
    against the total and reversed drop-off is the reversed share of charged.
    Final paid does not follow the previous-stage rule: it is measured against
    charged, not reversed, because reversals leak out of the paid path rather
    than forming a step on it. Final paid is floored at zero.
    """

    df = features.add_engineered_features(records)
    total = int(len(df))
    if total == 0:
        charged = reversed_count = 0
    else:
        charged = int((df["total_charge"] > 0).sum())
        reversed_count = int(df["is_reversal"].astype(bool).sum())
    final_paid = max(charged - reversed_count, 0)

    def _stage(name: str, count: int, previous: int | None) -> LifecycleStage:
        drop_off = 0.0 if previous is None else utils.safe_ratio(previous - count, previous) * 100.0
        return {
            "stage": name,
            "count": count,
            "percentage": 100.0 if name == STAGE_TOTAL else utils.safe_ratio(count, total) * 100.0,
            "drop_off_rate": drop_off,
        }

    return [
        _stage(STAGE_TOTAL, total, None),
        _stage(STAGE_CHARGED, charged, total),
        # The reversed stage reports the share of charged lines that reversed.
        {
            "stage": STAGE_REVERSED,
            "count": reversed_count,
            "percentage": utils.safe_ratio(reversed_count, total) * 100.0,
            "drop_off_rate": utils.safe_ratio(reversed_count, charged) * 100.0,
        },
        _stage(STAGE_FINAL_PAID, final_paid, charged),
    ]
