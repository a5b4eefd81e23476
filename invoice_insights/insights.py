"""Insights and aggregation helpers for Invoice Insights.

Every function takes the full invoice set (a frame or an iterable of records),
works on a copy and returns plain JSON-serialisable structures. Empty inputs
degrade to ``0.0`` / ``[]`` rather than NaN.
"""

from __future__ import annotations

from datetime import date
from typing import TypedDict

import numpy as np
import pandas as pd
import structlog

from . import features, utils

LOGGER = structlog.get_logger(__name__)

DEFAULT_TOP_LIMIT = 10
NEGATIVE_SERVICE_LIMIT = 5


class KPISummary(TypedDict):
    total_fees_paid: float
    average_rate: float
    number_of_invoices: int
    monthly_growth: float


class ChartPoint(TypedDict):
    name: str
    value: float


class SchemeAnalytics(TypedDict):
    scheme_id: str
    total_fees: float
    transaction_count: float
    growth_rate: float | None
    market_share: float


class NegativeRateAnalysis(TypedDict):
    percentage_of_negative_rates: float
    total_negative_charges: float
    top_negative_services: list[ChartPoint]


class CollectionMethodAnalysis(TypedDict):
    method: str
    total_fees: float
    transaction_count: int
    average_fee: float
    market_share: float


class UOMAnalysis(TypedDict):
    uom: str
    total_charge: float
    transaction_count: int
    total_quantity: float
    average_charge_per_unit: float
    market_share: float


def _today(today: date | None) -> date:
    return today if today is not None else date.today()


def _month_total(df: pd.DataFrame, month_number: int) -> float:
    # Matches on month number only; the bill year is ignored.
    mask = df["bill_date"].dt.month == month_number
    return float(df.loc[mask, "total_charge"].sum())


def current_and_previous_month_totals(records, *, today: date | None = None) -> tuple[float, float]:
    """Return totals for today's calendar month number and the one before it."""

    df = features.prepare_invoices(records)
    if df.empty:
        return 0.0, 0.0
    month_number = _today(today).month
    return _month_total(df, month_number), _month_total(df, month_number - 1)


def calculate_kpis(records, *, today: date | None = None) -> KPISummary:
    """Compute the headline KPI cards."""

    df = features.prepare_invoices(records)
    if df.empty:
        return {
            "total_fees_paid": 0.0,
            "average_rate": 0.0,
            "number_of_invoices": 0,
            "monthly_growth": 0.0,
        }

    current_total, previous_total = current_and_previous_month_totals(df, today=today)
    monthly_growth = 0.0
    if previous_total > 0:
        monthly_growth = (current_total - previous_total) / previous_total * 100.0

    return {
        "total_fees_paid": float(df["total_charge"].sum()),
        "average_rate": float(df["rate"].mean()),
        "number_of_invoices": int(len(df)),
        "monthly_growth": float(monthly_growth),
    }


def get_monthly_trends(records) -> list[ChartPoint]:
    """Sum ``total_charge`` per ``"Mon YY"`` bucket, oldest bucket first."""

    df = features.add_engineered_features(records)
    if df.empty:
        return []

    totals = df.groupby("month_label")["total_charge"].sum()
    ordered = sorted(totals.items(), key=lambda item: features.parse_month_label(item[0]))
    return [{"name": str(label), "value": float(value)} for label, value in ordered]


def _top_breakdown(df: pd.DataFrame, group_column: str, limit: int) -> list[ChartPoint]:
    if df.empty or limit <= 0:
        return []

    totals = (
        df.groupby(group_column, sort=False)["total_charge"]
        .sum()
        .sort_values(ascending=False, kind="stable")
        .head(limit)
    )
    return [{"name": str(name), "value": float(value)} for name, value in totals.items()]


def get_top_service_codes(records, limit: int = DEFAULT_TOP_LIMIT) -> list[ChartPoint]:
    return _top_breakdown(features.prepare_invoices(records), "service_code_description", limit)


def get_top_event_descriptions(records, limit: int = DEFAULT_TOP_LIMIT) -> list[ChartPoint]:
    return _top_breakdown(features.prepare_invoices(records), "event_desc", limit)


def get_currency_distribution(records, *, absolute: bool = True) -> list[ChartPoint]:
    """Charge volume per currency in first-seen order.

    With ``absolute`` (the default) reversals add to the volume instead of
    cancelling it out. Currencies that sum to zero are dropped either way.
    """

    df = features.prepare_invoices(records)
    if df.empty:
        return []

    df["value"] = df["total_charge"].abs() if absolute else df["total_charge"]
    totals = df.groupby("currency", sort=False)["value"].sum()
    return [
        {"name": str(currency), "value": float(value)}
        for currency, value in totals.items()
        if not np.isclose(value, 0.0)
    ]


def get_scheme_analytics(records, *, rng: np.random.Generator | None = None) -> list[SchemeAnalytics]:
    """Aggregate fees per card scheme (first three letters of the service code).

    There is no per-scheme time series to model growth from, so ``growth_rate``
    is ``None`` unless a generator is injected, in which case it carries a mock
    value in ``[-10, 10)`` for demonstration screens.
    """

    df = features.add_engineered_features(records)
    if df.empty:
        return []

    grouped = df.groupby("scheme", sort=False).agg(
        total_fees=("total_charge", "sum"),
        transaction_count=("qty_amt", "sum"),
    )
    overall = float(grouped["total_fees"].sum())

    results: list[SchemeAnalytics] = []
    for scheme_id, row in grouped.iterrows():
        growth_rate = float(rng.uniform(-10.0, 10.0)) if rng is not None else None
        results.append(
            {
                "scheme_id": str(scheme_id),
                "total_fees": float(row["total_fees"]),
                "transaction_count": float(row["transaction_count"]),
                "growth_rate": growth_rate,
                "market_share": utils.safe_ratio(float(row["total_fees"]), overall) * 100.0,
            }
        )
    return results


def get_negative_rate_analysis(records) -> NegativeRateAnalysis:
    """Share of absolute charge volume billed at penalty (negative) rates."""

    df = features.add_engineered_features(records)
    if df.empty:
        return {
            "percentage_of_negative_rates": 0.0,
            "total_negative_charges": 0.0,
            "top_negative_services": [],
        }

    negative = df.loc[df["is_negative_rate"]]
    total_negative = float(negative["abs_total_charge"].sum())
    total_charges = float(df["abs_total_charge"].sum())

    services = (
        negative.groupby("service_code_description", sort=False)["abs_total_charge"]
        .sum()
        .sort_values(ascending=False, kind="stable")
        .head(NEGATIVE_SERVICE_LIMIT)
    )

    return {
        "percentage_of_negative_rates": utils.safe_ratio(total_negative, total_charges) * 100.0,
        "total_negative_charges": total_negative,
        "top_negative_services": [
            {"name": str(name), "value": float(value)} for name, value in services.items()
        ],
    }


def get_collection_method_analysis(records) -> list[CollectionMethodAnalysis]:
    df = features.prepare_invoices(records)
    if df.empty:
        return []

    grouped = df.groupby("collection_method", sort=True).agg(
        total_fees=("total_charge", "sum"),
        transaction_count=("total_charge", "size"),
    )
    overall = float(grouped["total_fees"].sum())
    return [
        {
            "method": str(method),
            "total_fees": float(row["total_fees"]),
            "transaction_count": int(row["transaction_count"]),
            "average_fee": utils.safe_ratio(float(row["total_fees"]), float(row["transaction_count"])),
            "market_share": utils.safe_ratio(float(row["total_fees"]), overall) * 100.0,
        }
        for method, row in grouped.iterrows()
    ]


def get_uom_analysis(records) -> list[UOMAnalysis]:
    df = features.prepare_invoices(records)
    if df.empty:
        return []

    grouped = df.groupby("uom", sort=True).agg(
        total_charge=("total_charge", "sum"),
        transaction_count=("total_charge", "size"),
        total_quantity=("qty_amt", "sum"),
    )
    overall = float(grouped["total_charge"].sum())
    results: list[UOMAnalysis] = []
    for uom, row in grouped.iterrows():
        total = float(row["total_charge"])
        results.append(
            {
                "uom": str(uom),
                "total_charge": total,
                "transaction_count": int(row["transaction_count"]),
                "total_quantity": float(row["total_quantity"]),
                "average_charge_per_unit": utils.safe_ratio(total, float(row["total_quantity"])),
                "market_share": utils.safe_ratio(total, overall) * 100.0,
            }
        )

    LOGGER.debug("uom_analysis_computed", groups=len(results))
    return results
