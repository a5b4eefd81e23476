"""Shared utilities for Invoice Insights."""

from __future__ import annotations

from dataclasses import is_dataclass
from typing import Any, Iterable, Mapping

import pandas as pd

from .records import INVOICE_COLUMNS


def ensure_dataframe(records: Iterable[Mapping | Any] | pd.DataFrame) -> pd.DataFrame:
    """Normalise the input payload to a :class:`pandas.DataFrame`.

    Accepts a frame, or any iterable of :class:`~invoice_insights.records.InvoiceRecord`
    objects or mappings. Frames are copied so callers' data is never mutated.
    """

    if isinstance(records, pd.DataFrame):
        return records.copy()

    rows = [
        row.to_dict() if is_dataclass(row) else dict(row)
        for row in records
    ]
    if not rows:
        return pd.DataFrame(columns=list(INVOICE_COLUMNS))
    return pd.DataFrame(rows)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` or ``0.0`` when the denominator is zero."""

    if not denominator:
        return 0.0
    return float(numerator / denominator)


def format_currency(value: float, currency: str = "$") -> str:
    """Return a human-readable currency string."""

    sign = "-" if value < 0 else ""
    return f"{sign}{currency}{abs(value):,.2f}"
