"""Tests for the invoice store adapter."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from invoice_insights import ingest, insights, synth

STORE_ROW = {
    "event_id": "EVT-001",
    "total_costs": "-54.0",
    "ccy": "EUR",
    "bill_date": "2023-04-02",
    "service_code_description": "Foreign Exchange",
    "event_desc": "Currency Conversion",
    "qty_amt": "10",
    "rate": "-5",
    "charge": "-50",
    "tax_charge": "-4",
    "total_charge": "-54",
    "invoice_ica": "mast",
    "collection_method": "manual",
    "input_file_name": "billing_202304_01.csv",
    "inv_no": "INV-9",
    "uom": "TXN",
}


def test_transform_invoice_row_maps_store_shape() -> None:
    record = ingest.transform_invoice_row(STORE_ROW)

    assert record.id == "EVT-001"
    assert record.currency == "EUR"
    assert record.total_charge == -54.0
    assert record.qty_amt == 10.0
    assert record.collection_method == "MANUAL"
    assert (record.region, record.country) == ("Europe", "Belgium")
    assert record.is_reversal is True
    assert record.processing_time is None
    assert record.agent_id is None


def test_transform_invoice_row_mock_fields_follow_injected_generator() -> None:
    first = ingest.transform_invoice_row(STORE_ROW, rng=np.random.default_rng(4))
    second = ingest.transform_invoice_row(STORE_ROW, rng=np.random.default_rng(4))

    assert first == second
    assert 0.0 <= first.processing_time <= 24.0
    assert first.agent_id.startswith("AGENT-")


def test_transform_invoice_row_tolerates_missing_values() -> None:
    row = {**STORE_ROW, "rate": None, "uom": float("nan"), "invoice_ica": None}
    record = ingest.transform_invoice_row(row)

    assert record.rate == 0.0
    assert record.uom == ""
    assert (record.region, record.country) == ("Global", "International")


def test_fetch_invoice_data_reads_export(tmp_path) -> None:
    path = synth.write_synthetic_csv(rows=120, seed=6, output_dir=tmp_path)
    df = ingest.fetch_invoice_data(path)
    generated = synth.generate_invoices(rows=120, seed=6)

    assert len(df) == 120
    assert pd.to_datetime(df["bill_date"]).is_monotonic_decreasing
    assert (df["is_reversal"] == (df["total_charge"] < 0)).all()
    assert df["processing_time"].isna().all()
    assert insights.calculate_kpis(df)["total_fees_paid"] == pytest.approx(
        insights.calculate_kpis(generated)["total_fees_paid"]
    )
    assert ingest.get_invoice_data_stats(path) == {"total_count": 120}


def test_fetch_invoice_data_missing_file_raises(tmp_path) -> None:
    with pytest.raises(ingest.DataSourceError):
        ingest.fetch_invoice_data(tmp_path / "absent.csv")

    assert ingest.get_invoice_data_stats(tmp_path / "absent.csv") == {"total_count": 0}


def test_fetch_invoice_data_missing_columns_raises(tmp_path) -> None:
    path = tmp_path / "broken.csv"
    pd.DataFrame([{"event_id": "x", "ccy": "USD"}]).to_csv(path, index=False)

    with pytest.raises(ingest.DataSourceError, match="missing columns"):
        ingest.fetch_invoice_data(path)


def test_fetch_invoice_data_empty_export(tmp_path) -> None:
    path = tmp_path / "empty.csv"
    pd.DataFrame(columns=list(ingest.STORE_COLUMN_MAP)).to_csv(path, index=False)

    df = ingest.fetch_invoice_data(path)
    assert df.empty
    assert insights.calculate_kpis(df)["number_of_invoices"] == 0


def test_analytics_accept_record_objects() -> None:
    records = [ingest.transform_invoice_row(STORE_ROW), ingest.transform_invoice_row({**STORE_ROW, "total_charge": "20", "rate": "2"})]
    kpis = insights.calculate_kpis(records)

    assert kpis["total_fees_paid"] == pytest.approx(-34.0)
    assert kpis["number_of_invoices"] == 2
