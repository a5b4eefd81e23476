"""Feature engineering helpers for Invoice Insights."""

from __future__ import annotations

import math

import pandas as pd

from . import utils
from .records import INVOICE_COLUMNS, NUMERIC_COLUMNS

DEFAULT_REGION = "Global"
DEFAULT_COUNTRY = "International"

MONTH_LABEL_FORMAT = "%b %y"
INVOICES_PER_PAGE = 20

# Card scheme code -> (region, country) of the scheme's home market.
ICA_REGION_LOOKUP: dict[str, tuple[str, str]] = {
    "VISA": ("North America", "United States"),
    "MAST": ("Europe", "Belgium"),
    "AMEX": ("North America", "United States"),
    "DISC": ("North America", "United States"),
    "DINE": ("Asia Pacific", "Japan"),
    "JCB": ("Asia Pacific", "Japan"),
    "CUP": ("Asia Pacific", "China"),
    "RUPA": ("Asia Pacific", "India"),
    "ELO": ("Latin America", "Brazil"),
    "INTE": ("Europe", "United Kingdom"),
}


def region_for_ica(ica: str | None) -> tuple[str, str]:
    """Return the ``(region, country)`` pair for a card scheme identifier."""

    if not ica:
        return DEFAULT_REGION, DEFAULT_COUNTRY
    return ICA_REGION_LOOKUP.get(str(ica).strip().upper(), (DEFAULT_REGION, DEFAULT_COUNTRY))


def month_label(ts: pd.Timestamp) -> str:
    return ts.strftime(MONTH_LABEL_FORMAT)


def parse_month_label(label: str) -> pd.Timestamp:
    return pd.to_datetime(label, format=MONTH_LABEL_FORMAT)


def scheme_for_service(description: str) -> str:
    return str(description)[:3].upper()


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return bool(pd.isna(value))


def prepare_invoices(records) -> pd.DataFrame:
    """Return a typed copy of ``records`` with every canonical column present."""

    df = utils.ensure_dataframe(records)
    for column in INVOICE_COLUMNS:
        if column not in df:
            df[column] = None

    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0.0).astype(float)

    df["bill_date"] = pd.to_datetime(df["bill_date"])
    for column in ("service_code_description", "event_desc", "currency", "collection_method", "uom"):
        df[column] = df[column].fillna("").astype(str)
    return df


def add_engineered_features(records, *, derive_geography: bool = True) -> pd.DataFrame:
    """Add derived fields required by downstream analytics and visuals.

    With ``derive_geography`` missing regions and countries are filled from the
    ICA lookup; without it they are left as supplied.
    """

    df = prepare_invoices(records)

    if df.empty:
        for column in ("month", "month_label", "scheme", "abs_total_charge", "is_negative_rate"):
            df[column] = pd.Series(dtype=object)
        return df

    df["region"] = df["region"].astype(object)
    df["country"] = df["country"].astype(object)
    df["is_reversal"] = df["is_reversal"].astype(object)
    if derive_geography:
        derived = df["invoice_ica"].map(region_for_ica)
        missing_region = df["region"].map(_is_blank)
        missing_country = df["country"].map(_is_blank)
        df.loc[missing_region, "region"] = derived[missing_region].map(lambda pair: pair[0])
        df.loc[missing_country, "country"] = derived[missing_country].map(lambda pair: pair[1])

    missing_reversal = df["is_reversal"].isna()
    df.loc[missing_reversal, "is_reversal"] = df.loc[missing_reversal, "total_charge"] < 0
    df["is_reversal"] = df["is_reversal"].astype(bool)

    df["month"] = df["bill_date"].dt.to_period("M").dt.to_timestamp()
    df["month_label"] = df["bill_date"].dt.strftime(MONTH_LABEL_FORMAT)
    df["scheme"] = df["service_code_description"].map(scheme_for_service)
    df["abs_total_charge"] = df["total_charge"].abs()
    df["is_negative_rate"] = df["rate"] < 0

    return df


def _cell_text(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).lower()


def filter_invoices(records, term: str | None) -> pd.DataFrame:
    """Keep rows where any field contains ``term``, ignoring case.

    Missing values never match. A blank term keeps every row.
    """

    df = utils.ensure_dataframe(records)
    needle = (term or "").strip().lower()
    if not needle or df.empty:
        return df.reset_index(drop=True)

    mask = df.apply(lambda column: column.map(lambda value: needle in _cell_text(value))).any(axis=1)
    return df.loc[mask].reset_index(drop=True)


def paginate_invoices(df: pd.DataFrame, page: int, page_size: int = INVOICES_PER_PAGE) -> tuple[pd.DataFrame, int]:
    """Return the rows of ``page`` (1-based, clamped) and the total page count."""

    total_pages = max(math.ceil(len(df) / page_size), 1)
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return df.iloc[start:start + page_size], total_pages
