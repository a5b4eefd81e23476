"""Streamlit entry point for the Invoice Insights dashboard."""

from __future__ import annotations

import numpy as np
import pandas as pd
import streamlit as st
import structlog

from invoice_insights import alerts, features, ingest, synth, utils, viz
from invoice_insights.config import get_settings
from invoice_insights.log_config import configure_logging

LOGGER = structlog.get_logger(__name__)

CHART_CONFIG = {"displayModeBar": False}


@st.cache_data(show_spinner=False)
def _load_sample(rows: int, seed: int, year: int) -> pd.DataFrame:
    return synth.generate_invoices(rows=rows, seed=seed, year=year)


@st.cache_data(show_spinner=False)
def _load_store(path: str) -> pd.DataFrame:
    return ingest.fetch_invoice_data(path)


def _load_invoices() -> tuple[pd.DataFrame, str]:
    settings = get_settings()
    if settings.uses_store:
        try:
            return _load_store(settings.invoice_csv_path), f"Store export: {settings.invoice_csv_path}"
        except ingest.DataSourceError as exc:
            st.error(f"Could not load invoice data ({exc}). Showing sample data instead.")
    sample = _load_sample(settings.sample_rows, settings.sample_seed, settings.sample_year)
    return sample, f"Sample data: {len(sample):,} generated invoices"


def _kpi_row(payload: alerts.InsightsPayload) -> None:
    kpis = payload["kpis"]
    negative = payload["negative_rate_analysis"]
    cols = st.columns(4)
    cols[0].metric("Total fees paid", utils.format_currency(kpis["total_fees_paid"]))
    cols[1].metric("Average rate", f"{kpis['average_rate']:.3f}")
    cols[2].metric("Invoices", f"{kpis['number_of_invoices']:,}", f"{kpis['monthly_growth']:+.1f}% MoM")
    cols[3].metric("Negative-rate share", f"{negative['percentage_of_negative_rates']:.1f}%")


def _alert_table(rules: list[alerts.AlertRule]) -> pd.DataFrame:
    frame = pd.DataFrame(rules)
    frame["status"] = frame["status"].str.replace("_", " ").str.title()
    return frame[["title", "severity", "status", "condition", "threshold", "value"]]


def _invoice_table(invoices: pd.DataFrame) -> None:
    term = st.text_input("Search invoices", placeholder="Service, currency, invoice number...")
    matched = features.filter_invoices(invoices, term)
    total = len(invoices)
    st.caption(f"Showing {len(matched):,} of {total:,} records" if term else f"{total:,} records")
    if matched.empty:
        st.info("No invoices match the search.")
        return

    total_pages = features.paginate_invoices(matched, 1)[1]
    page = int(st.number_input("Page", min_value=1, max_value=total_pages, value=1, step=1))
    rows, _ = features.paginate_invoices(matched, page)
    st.dataframe(rows, hide_index=True, use_container_width=True)
    st.caption(f"Page {page} of {total_pages}")


def main() -> None:
    """Render the Invoice Insights Streamlit application."""

    settings = get_settings()
    configure_logging(settings.log_level)

    st.set_page_config(page_title="Invoice Insights", page_icon="📊", layout="wide")

    invoices, source_label = _load_invoices()
    payload = alerts.calculate_insights(invoices, rng=np.random.default_rng(settings.sample_seed))
    LOGGER.info("dashboard_rendered", records=int(len(invoices)), source=source_label)

    st.title("Invoice fee insights")
    st.caption(source_label)

    if invoices.empty:
        st.warning("No invoice data found.")
        return

    _kpi_row(payload)

    overview, geography, volume, currency, lifecycle, agent, alert_tab, table = st.tabs(
        ["Overview", "Geography", "Volume", "Currency", "Lifecycle", "AI Insights", "Alerts", "Invoices"]
    )

    with overview:
        st.plotly_chart(viz.plot_monthly_trends(payload["monthly_trends"]), use_container_width=True, config=CHART_CONFIG)
        left, right = st.columns(2)
        left.plotly_chart(
            viz.plot_ranked_bar(payload["top_service_codes"], "Top service codes"),
            use_container_width=True,
            config=CHART_CONFIG,
        )
        right.plotly_chart(
            viz.plot_ranked_bar(payload["top_event_descriptions"], "Top event descriptions", color="#457b9d"),
            use_container_width=True,
            config=CHART_CONFIG,
        )
        left, right = st.columns(2)
        left.plotly_chart(viz.plot_currency_donut(payload["currency_distribution"]), use_container_width=True, config=CHART_CONFIG)
        schemes = pd.DataFrame(payload["scheme_analytics"])
        right.markdown("### Schemes")
        right.dataframe(schemes, hide_index=True, use_container_width=True)

    with geography:
        geo = payload["geo_analytics"]
        st.plotly_chart(viz.plot_geo_risk(geo), use_container_width=True, config=CHART_CONFIG)
        if geo:
            riskiest = max(geo, key=lambda row: row["risk_score"])
            st.caption(f"Highest risk: {riskiest['country']} ({riskiest['risk_score'] * 100:.1f}% negative-rate lines)")

    with volume:
        rows = payload["volume_analytics"]
        st.plotly_chart(viz.plot_volume_anomalies(rows), use_container_width=True, config=CHART_CONFIG)
        st.caption(f"{sum(1 for row in rows if row['is_anomaly'])} anomalous month(s)")

    with currency:
        st.plotly_chart(viz.plot_currency_volatility(payload["currency_volatility"]), use_container_width=True, config=CHART_CONFIG)
        left, right = st.columns(2)
        left.markdown("### Collection methods")
        left.dataframe(pd.DataFrame(payload["collection_method_analysis"]), hide_index=True, use_container_width=True)
        right.markdown("### Units of measure")
        right.dataframe(pd.DataFrame(payload["uom_analysis"]), hide_index=True, use_container_width=True)

    with lifecycle:
        st.plotly_chart(viz.plot_lifecycle_funnel(payload["lifecycle_analysis"]), use_container_width=True, config=CHART_CONFIG)

    with agent:
        for rec in payload["agent_recommendations"]:
            st.markdown(f"**{rec['category']}** · {rec['priority']} priority")
            st.write(rec["recommendation"])
            st.caption(f"Potential savings (heuristic): {utils.format_currency(rec['potential_savings'])}")
        benchmarks = payload["dynamic_benchmarks"]
        cols = st.columns(4)
        cols[0].metric("75th percentile", utils.format_currency(benchmarks["percentile75"]))
        cols[1].metric("90th percentile", utils.format_currency(benchmarks["percentile90"]))
        cols[2].metric("95th percentile", utils.format_currency(benchmarks["percentile95"]))
        cols[3].metric("YoY growth", f"{benchmarks['year_over_year_growth']:.1f}%")

    with alert_tab:
        st.dataframe(_alert_table(payload["alert_rules"]), hide_index=True, use_container_width=True)

    with table:
        _invoice_table(invoices)

    st.sidebar.subheader("Exports")
    st.sidebar.download_button(
        "Download invoices CSV",
        data=features.add_engineered_features(invoices).to_csv(index=False),
        file_name="invoice_insights.csv",
        mime="text/csv",
    )


if __name__ == "__main__":
    main()
