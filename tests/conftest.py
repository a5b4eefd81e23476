from __future__ import annotations

from typing import Any, Callable

import pytest


def _invoice(
    total_charge: float,
    *,
    rate: float = 1.0,
    currency: str = "USD",
    service: str = "Card Payment Processing",
    event: str = "Settlement",
    bill_date: str = "2023-05-10",
    qty: float = 1.0,
    method: str = "AUTO",
    uom: str = "TXN",
    inv_no: str | None = "INV-1",
    input_file: str | None = "billing_01.csv",
    ica: str = "VISA",
    region: str | None = None,
    country: str | None = None,
    is_reversal: bool | None = None,
) -> dict[str, Any]:
    return {
        "id": f"{service}-{bill_date}-{total_charge}",
        "total_costs": total_charge,
        "currency": currency,
        "bill_date": bill_date,
        "service_code_description": service,
        "event_desc": event,
        "qty_amt": qty,
        "rate": rate,
        "charge": total_charge,
        "tax_charge": 0.0,
        "total_charge": total_charge,
        "invoice_ica": ica,
        "collection_method": method,
        "input_file_name": input_file,
        "inv_no": inv_no,
        "uom": uom,
        "region": region,
        "country": country,
        "is_reversal": is_reversal,
    }


@pytest.fixture
def make_invoice() -> Callable[..., dict[str, Any]]:
    return _invoice


@pytest.fixture
def scenario_invoices(make_invoice) -> list[dict[str, Any]]:
    return [
        make_invoice(100.0, rate=1.0),
        make_invoice(-20.0, rate=-0.5, service="Overdraft Fee"),
        make_invoice(50.0, rate=2.0, service="Wire Transfer"),
    ]
