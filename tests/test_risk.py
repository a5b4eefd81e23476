"""Tests for geographic, volume, volatility and lifecycle aggregations."""

from __future__ import annotations

import pytest

from invoice_insights import risk, synth


def test_geo_analytics_risk_score_and_missing_fields(make_invoice) -> None:
    rows = [
        make_invoice(100.0, rate=1.0, region="Europe", country="France"),
        make_invoice(-10.0, rate=-0.5, region="Europe", country="France"),
        make_invoice(40.0, rate=2.0, region="Europe", country="France"),
        make_invoice(500.0, rate=1.0, region="Asia Pacific", country="Japan"),
        make_invoice(999.0, rate=-1.0, region=None, country="Japan"),
        make_invoice(999.0, rate=-1.0, region="Europe", country=""),
    ]
    geo = risk.get_geo_analytics(rows)

    assert [(row["region"], row["country"]) for row in geo] == [
        ("Asia Pacific", "Japan"),
        ("Europe", "France"),
    ]
    france = geo[1]
    assert france["transaction_count"] == 3
    assert france["total_fees"] == pytest.approx(130.0)
    assert france["negative_rate_frequency"] == 1
    assert france["risk_score"] == pytest.approx(1 / 3)
    assert geo[0]["risk_score"] == 0.0


def test_geo_analytics_generated_data_counts_everything() -> None:
    df = synth.generate_invoices(rows=300, seed=21)
    geo = risk.get_geo_analytics(df)

    assert sum(row["transaction_count"] for row in geo) == 300
    assert all(0.0 <= row["risk_score"] <= 1.0 for row in geo)


def _month_invoices(make_invoice, month: int, count: int) -> list[dict]:
    return [
        make_invoice(
            10.0,
            bill_date=f"2023-{month:02d}-05",
            inv_no=f"INV-{month}-{index}",
            input_file=f"file_{month}_{index}.csv",
        )
        for index in range(count)
    ]


def test_volume_analytics_flags_deviating_month(make_invoice) -> None:
    rows = []
    for month in (1, 2, 3, 4):
        rows.extend(_month_invoices(make_invoice, month, 2))
    rows.extend(_month_invoices(make_invoice, 5, 4))

    volume = risk.get_volume_analytics(rows)

    assert [row["month"] for row in volume] == ["Jan 23", "Feb 23", "Mar 23", "Apr 23", "May 23"]
    assert volume[0]["file_count"] == 2
    assert volume[0]["anomaly_score"] == pytest.approx(0.4 / 2.4)
    assert not volume[0]["is_anomaly"]
    assert volume[4]["invoice_count"] == 4
    assert volume[4]["anomaly_score"] == pytest.approx(1.6 / 2.4)
    assert volume[4]["is_anomaly"]


def test_volume_analytics_zero_mean_is_not_anomalous(make_invoice) -> None:
    rows = [make_invoice(5.0, inv_no=None, input_file=None, bill_date=f"2023-0{m}-02") for m in (1, 2)]
    volume = risk.get_volume_analytics(rows)

    assert [row["anomaly_score"] for row in volume] == [0.0, 0.0]
    assert not any(row["is_anomaly"] for row in volume)


def test_currency_volatility_scores_and_tiers(make_invoice) -> None:
    rows = [
        make_invoice(10.0, currency="JPY", bill_date="2023-01-10"),
        make_invoice(190.0, currency="JPY", bill_date="2023-02-10"),
        make_invoice(100.0, currency="USD", bill_date="2023-01-10"),
        make_invoice(500.0, currency="USD", bill_date="2023-02-10"),
        make_invoice(75.0, currency="EUR", bill_date="2023-03-10"),
        make_invoice(100.0, currency="GBP", bill_date="2023-01-10"),
        make_invoice(-100.0, currency="GBP", bill_date="2023-02-10"),
    ]
    volatility = {row["currency"]: row for row in risk.get_currency_volatility(rows)}

    assert volatility["JPY"]["volatility_score"] == pytest.approx(0.9)
    assert volatility["JPY"]["recommended_action"] == risk.ACTION_HIGH_RISK
    assert volatility["USD"]["volatility_score"] == pytest.approx(200 / 300)
    assert volatility["USD"]["monthly_variance"] == pytest.approx(40_000.0)
    assert volatility["USD"]["recommended_action"] == risk.ACTION_HEDGE
    assert volatility["EUR"]["volatility_score"] == 0.0
    assert volatility["EUR"]["recommended_action"] == risk.ACTION_MONITOR
    assert volatility["GBP"]["volatility_score"] == 0.0
    assert volatility["GBP"]["total_fees"] == 0.0

    ordered = [row["currency"] for row in risk.get_currency_volatility(rows)]
    assert ordered[:2] == ["JPY", "USD"]


def test_lifecycle_analysis_stages(make_invoice) -> None:
    rows = [
        make_invoice(100.0, is_reversal=False),
        make_invoice(50.0, is_reversal=True),
        make_invoice(30.0),
        make_invoice(-10.0),
    ]
    stages = risk.get_lifecycle_analysis(rows)

    assert [stage["stage"] for stage in stages] == [
        risk.STAGE_TOTAL,
        risk.STAGE_CHARGED,
        risk.STAGE_REVERSED,
        risk.STAGE_FINAL_PAID,
    ]
    assert [stage["count"] for stage in stages] == [4, 3, 2, 1]
    assert [stage["percentage"] for stage in stages] == pytest.approx([100.0, 75.0, 50.0, 25.0])
    assert stages[0]["drop_off_rate"] == 0.0
    assert stages[1]["drop_off_rate"] == pytest.approx(25.0)
    assert stages[2]["drop_off_rate"] == pytest.approx(200 / 3)
    assert stages[3]["drop_off_rate"] == pytest.approx(200 / 3)


def test_lifecycle_first_stage_matches_record_count() -> None:
    df = synth.generate_invoices(rows=250, seed=17)
    stages = risk.get_lifecycle_analysis(df)

    assert stages[0]["count"] == 250
    assert stages[0]["percentage"] == 100.0
    assert stages[3]["count"] >= 0


def test_risk_aggregations_handle_empty_input() -> None:
    assert risk.get_geo_analytics([]) == []
    assert risk.get_volume_analytics([]) == []
    assert risk.get_currency_volatility([]) == []
    stages = risk.get_lifecycle_analysis([])
    assert stages[0]["count"] == 0
    assert stages[0]["percentage"] == 100.0
    assert all(stage["percentage"] == 0.0 for stage in stages[1:])
    assert all(stage["drop_off_rate"] == 0.0 for stage in stages)
