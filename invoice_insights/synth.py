"""Synthetic invoice generation utilities.

The generator produces deterministic fee ledgers for demonstration screens and
tests: penalty (negative) rates, several currencies and card schemes, and a
handful of billing files per month. Nothing is generated at import time; call
:func:`generate_invoices` explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import structlog

from . import features
from .records import INVOICE_COLUMNS

LOGGER = structlog.get_logger(__name__)

DEFAULT_DATASET_ROWS = 500
DEFAULT_SAMPLE_ROWS = 200
DEFAULT_SEED = 7
DEFAULT_YEAR = 2023

TAX_RATE = 0.08
NEGATIVE_RATE_PROBABILITY = 0.15
AUTO_COLLECTION_PROBABILITY = 0.7
AGENT_POOL_SIZE = 50

SERVICE_DESCRIPTIONS = (
    "Card Payment Processing",
    "International Transfer",
    "ACH Processing",
    "Wire Transfer",
    "Foreign Exchange",
    "Merchant Services",
    "ATM Transaction",
    "Overdraft Fee",
    "Account Maintenance",
    "Regulatory Compliance",
)

EVENT_DESCRIPTIONS = (
    "Transaction Processing",
    "Currency Conversion",
    "Risk Assessment",
    "Compliance Check",
    "Settlement",
    "Authorization",
    "Clearing",
    "Reconciliation",
    "Reporting",
    "Investigation",
)

CURRENCIES = ("USD", "EUR", "GBP", "JPY", "CAD")
ICA_CODES = ("VISA", "MAST", "AMEX", "DISC", "DINE")


@dataclass(frozen=True)
class UnitProfile:
    """Billing unit with its typical quantity range."""

    code: str
    qty_range: tuple[int, int]


UNITS = (
    UnitProfile("TXN", (1, 1000)),
    UnitProfile("ITEM", (1, 400)),
    UnitProfile("VOLUME", (100, 1000)),
    UnitProfile("MONTH", (1, 12)),
    UnitProfile("EVENT", (1, 250)),
)


def _pick(rng: np.random.Generator, options: tuple[Any, ...]) -> Any:
    return options[int(rng.integers(0, len(options)))]


def _generate_invoice(index: int, year: int, rng: np.random.Generator) -> dict[str, Any]:
    month = int(rng.integers(1, 13))
    day = int(rng.integers(1, 29))
    bill_date = date(year, month, day)

    unit = _pick(rng, UNITS)
    qty_amt = float(rng.integers(unit.qty_range[0], unit.qty_range[1] + 1))
    rate = float(rng.uniform(0.1, 5.1))
    if rng.random() < NEGATIVE_RATE_PROBABILITY:
        rate = -rate

    charge = qty_amt * rate
    tax_charge = charge * TAX_RATE
    total_charge = charge + tax_charge

    ica = _pick(rng, ICA_CODES)
    region, country = features.region_for_ica(ica)
    batch = int(rng.integers(1, 5))

    return {
        "id": f"INV-{index + 1:05d}",
        "total_costs": total_charge,
        "currency": _pick(rng, CURRENCIES),
        "bill_date": bill_date.isoformat(),
        "service_code_description": _pick(rng, SERVICE_DESCRIPTIONS),
        "event_desc": _pick(rng, EVENT_DESCRIPTIONS),
        "qty_amt": qty_amt,
        "rate": rate,
        "charge": charge,
        "tax_charge": tax_charge,
        "total_charge": total_charge,
        "invoice_ica": ica,
        "collection_method": "AUTO" if rng.random() < AUTO_COLLECTION_PROBABILITY else "MANUAL",
        "input_file_name": f"billing_{year}{month:02d}_{batch:02d}.csv",
        "inv_no": f"{ica}-{year}{month:02d}-{int(rng.integers(1, 41)):03d}",
        "uom": unit.code,
        "region": region,
        "country": country,
        "is_reversal": total_charge < 0,
        "processing_time": round(float(rng.uniform(0.0, 24.0)), 2),
        "agent_id": f"AGENT-{int(rng.integers(1, AGENT_POOL_SIZE + 1))}",
    }


def generate_invoices(
    rows: int = DEFAULT_DATASET_ROWS,
    *,
    seed: int | None = DEFAULT_SEED,
    year: int = DEFAULT_YEAR,
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Generate a deterministic invoice ledger, newest bill date first.

    An explicit ``rng`` takes precedence over ``seed``.
    """

    if rows <= 0:
        raise ValueError("rows must be positive")

    generator = rng if rng is not None else np.random.default_rng(seed)
    invoices = [_generate_invoice(index, year, generator) for index in range(rows)]

    df = pd.DataFrame(invoices, columns=list(INVOICE_COLUMNS))
    df.sort_values(["bill_date", "id"], ascending=[False, True], inplace=True)
    df.reset_index(drop=True, inplace=True)

    LOGGER.debug("synthetic_invoices_generated", rows=rows, year=year)
    return df


def generate_sample_invoices(rows: int = DEFAULT_SAMPLE_ROWS, seed: int | None = DEFAULT_SEED) -> pd.DataFrame:
    """Return a smaller sample for quick visualisation or tests."""

    return generate_invoices(rows=rows, seed=seed)


def write_synthetic_csv(
    *,
    rows: int = DEFAULT_DATASET_ROWS,
    seed: int | None = DEFAULT_SEED,
    output_dir: str | Path = Path("data"),
) -> Path:
    """Persist a generated ledger in the ``invoice_data`` export layout."""

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    dataset = generate_invoices(rows=rows, seed=seed)
    export = dataset.rename(columns={"id": "event_id", "currency": "ccy"})
    export = export.drop(columns=["region", "country", "is_reversal", "processing_time", "agent_id"])
    dataset_path = output_path / "invoice_data.csv"
    export.to_csv(dataset_path, index=False)

    LOGGER.info("synthetic_csv_written", path=str(dataset_path), rows=rows)
    return dataset_path


def main() -> None:  # pragma: no cover - convenience CLI
    dataset_path = write_synthetic_csv()
    print(f"Wrote {dataset_path}")


if __name__ == "__main__":  # pragma: no cover - module CLI
    main()
