from __future__ import annotations

from datetime import date

import plotly.graph_objects as go

from invoice_insights import alerts, synth, viz


def test_viz_builders_return_figures() -> None:
    df = synth.generate_invoices(rows=400, seed=14)
    payload = alerts.calculate_insights(df, today=date(2023, 6, 1))

    figures = [
        viz.plot_monthly_trends(payload["monthly_trends"]),
        viz.plot_ranked_bar(payload["top_service_codes"], "Top service codes"),
        viz.plot_currency_donut(payload["currency_distribution"]),
        viz.plot_geo_risk(payload["geo_analytics"]),
        viz.plot_volume_anomalies(payload["volume_analytics"]),
        viz.plot_currency_volatility(payload["currency_volatility"]),
        viz.plot_lifecycle_funnel(payload["lifecycle_analysis"]),
    ]
    for figure in figures:
        assert isinstance(figure, go.Figure)
        assert figure.data, "Chart should plot at least one trace"


def test_viz_builders_handle_empty_payload() -> None:
    payload = alerts.calculate_insights([])

    empty = viz.plot_lifecycle_funnel(payload["lifecycle_analysis"])
    assert isinstance(empty, go.Figure)
    assert not empty.data
    assert not viz.plot_monthly_trends([]).data
    assert not viz.plot_geo_risk([]).data
