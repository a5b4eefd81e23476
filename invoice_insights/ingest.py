"""Adapter from the ``invoice_data`` store export to invoice records."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import numpy as np
import pandas as pd
import structlog

from . import features
from .records import INVOICE_COLUMNS, InvoiceRecord

LOGGER = structlog.get_logger(__name__)

# Store column -> record field
STORE_COLUMN_MAP = {
    "event_id": "id",
    "total_costs": "total_costs",
    "ccy": "currency",
    "bill_date": "bill_date",
    "service_code_description": "service_code_description",
    "event_desc": "event_desc",
    "qty_amt": "qty_amt",
    "rate": "rate",
    "charge": "charge",
    "tax_charge": "tax_charge",
    "total_charge": "total_charge",
    "invoice_ica": "invoice_ica",
    "collection_method": "collection_method",
    "input_file_name": "input_file_name",
    "inv_no": "inv_no",
    "uom": "uom",
}

AGENT_POOL_SIZE = 50


class DataSourceError(RuntimeError):
    """Raised when the invoice store cannot be read."""


def _number(value: Any) -> float:
    number = pd.to_numeric(value, errors="coerce")
    return 0.0 if pd.isna(number) else float(number)


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def transform_invoice_row(row: Mapping[str, Any], *, rng: np.random.Generator | None = None) -> InvoiceRecord:
    """Map a store row onto :class:`InvoiceRecord`.

    Region and country come from the ICA lookup and ``is_reversal`` from the
    sign of ``total_charge``. The mock processing time and agent id are only
    filled when a generator is injected.
    """

    total_charge = _number(row.get("total_charge"))
    region, country = features.region_for_ica(_text(row.get("invoice_ica")))
    bill_date = row.get("bill_date")
    if isinstance(bill_date, pd.Timestamp):
        bill_date = bill_date.strftime("%Y-%m-%d")

    return InvoiceRecord(
        id=_text(row.get("event_id")),
        total_costs=_number(row.get("total_costs")),
        currency=_text(row.get("ccy")),
        bill_date=_text(bill_date),
        service_code_description=_text(row.get("service_code_description")),
        event_desc=_text(row.get("event_desc")),
        qty_amt=_number(row.get("qty_amt")),
        rate=_number(row.get("rate")),
        charge=_number(row.get("charge")),
        tax_charge=_number(row.get("tax_charge")),
        total_charge=total_charge,
        invoice_ica=_text(row.get("invoice_ica")),
        collection_method=_text(row.get("collection_method")).upper(),  # type: ignore[arg-type]
        input_file_name=_text(row.get("input_file_name")),
        inv_no=_text(row.get("inv_no")),
        uom=_text(row.get("uom")),
        region=region,
        country=country,
        is_reversal=total_charge < 0,
        processing_time=round(float(rng.uniform(0.0, 24.0)), 2) if rng is not None else None,
        agent_id=f"AGENT-{int(rng.integers(1, AGENT_POOL_SIZE + 1))}" if rng is not None else None,
    )


def _read_export(path: str | Path) -> pd.DataFrame:
    source = Path(path)
    if not source.exists():
        raise DataSourceError(f"Invoice export not found: {source}")
    try:
        return pd.read_csv(source, dtype={"event_id": str, "inv_no": str})
    except (OSError, ValueError) as exc:
        raise DataSourceError(f"Could not read invoice export {source}: {exc}") from exc


def fetch_invoice_data(path: str | Path, *, rng: np.random.Generator | None = None) -> pd.DataFrame:
    """Load the store export and return invoice records, newest bill date first."""

    try:
        raw = _read_export(path)
    except DataSourceError as exc:
        LOGGER.error("invoice_fetch_failed", path=str(path), error=str(exc))
        raise

    missing = sorted(set(STORE_COLUMN_MAP) - set(raw.columns))
    if missing:
        LOGGER.error("invoice_fetch_failed", path=str(path), missing_columns=missing)
        raise DataSourceError(f"Invoice export is missing columns: {', '.join(missing)}")

    if raw.empty:
        LOGGER.warning("invoice_data_empty", path=str(path))
        return pd.DataFrame(columns=list(INVOICE_COLUMNS))

    records = [transform_invoice_row(row, rng=rng) for row in raw.to_dict(orient="records")]
    df = pd.DataFrame([record.to_dict() for record in records], columns=list(INVOICE_COLUMNS))
    df.sort_values("bill_date", ascending=False, inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)

    LOGGER.info("invoice_fetch_complete", path=str(path), rows=int(len(df)))
    return df


def get_invoice_data_stats(path: str | Path) -> dict[str, int]:
    """Return the row count of the store export, ``0`` when it cannot be read."""

    try:
        raw = _read_export(path)
    except DataSourceError as exc:
        LOGGER.error("invoice_stats_failed", path=str(path), error=str(exc))
        return {"total_count": 0}
    return {"total_count": int(len(raw))}
