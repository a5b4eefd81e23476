"""Invoice record definition shared by the generator, the store adapter and analytics."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Literal

import pandas as pd

CollectionMethod = Literal["AUTO", "MANUAL"]


@dataclass(frozen=True)
class InvoiceRecord:
    """A single invoice/fee line."""

    id: str
    total_costs: float
    currency: str
    bill_date: str
    service_code_description: str
    event_desc: str
    qty_amt: float
    rate: float
    charge: float
    tax_charge: float
    total_charge: float
    invoice_ica: str
    collection_method: CollectionMethod
    input_file_name: str
    inv_no: str
    uom: str
    region: str | None = None
    country: str | None = None
    is_reversal: bool | None = None
    processing_time: float | None = None
    agent_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


INVOICE_COLUMNS: tuple[str, ...] = tuple(field.name for field in fields(InvoiceRecord))

NUMERIC_COLUMNS = (
    "total_costs",
    "qty_amt",
    "rate",
    "charge",
    "tax_charge",
    "total_charge",
)


def records_from_frame(df: pd.DataFrame) -> list[InvoiceRecord]:
    """Rebuild :class:`InvoiceRecord` objects from a frame in canonical column layout."""

    records: list[InvoiceRecord] = []
    for row in df.to_dict(orient="records"):
        payload = {name: row.get(name) for name in INVOICE_COLUMNS}
        bill_date = payload["bill_date"]
        if isinstance(bill_date, pd.Timestamp):
            payload["bill_date"] = bill_date.strftime("%Y-%m-%d")
        for name, value in payload.items():
            # NaN from optional columns should read as missing
            if isinstance(value, float) and pd.isna(value) and name not in NUMERIC_COLUMNS:
                payload[name] = None
        records.append(InvoiceRecord(**payload))
    return records
