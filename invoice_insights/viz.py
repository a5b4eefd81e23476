"""Visualization utilities for Invoice Insights."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=20))
    return fig


def plot_monthly_trends(points: Iterable[Mapping[str, object]]) -> go.Figure:
    """Return a line chart of monthly fee totals."""

    data = list(points)
    if not data:
        return _empty_figure("No invoices available.")

    df = pd.DataFrame(data)
    fig = go.Figure(
        go.Scatter(
            name="Total charge",
            x=df["name"],
            y=df["value"],
            mode="lines+markers",
            line=dict(color="#264653", width=2),
        )
    )
    fig.update_layout(
        title="Monthly fee trend",
        xaxis_title="Month",
        yaxis_title="Total charge",
        margin=dict(l=0, r=0, t=45, b=0),
    )
    return fig


def plot_ranked_bar(points: Iterable[Mapping[str, object]], title: str, color: str = "#2a9d8f") -> go.Figure:
    data = list(points)
    if not data:
        return _empty_figure("Nothing to rank.")

    df = pd.DataFrame(data)
    fig = px.bar(
        df,
        x="name",
        y="value",
        labels={"name": "", "value": "Total charge"},
        title=title,
    )
    fig.update_traces(marker_color=color)
    fig.update_layout(margin=dict(l=0, r=0, t=40, b=80))
    fig.update_xaxes(tickangle=-30)
    return fig


def plot_currency_donut(points: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(points)
    if not data:
        return _empty_figure("No currency volume to display.")

    df = pd.DataFrame(data)
    fig = px.pie(
        df,
        names="name",
        values="value",
        hole=0.55,
        title="Currency distribution",
    )
    fig.update_traces(textinfo="label+percent", pull=[0.03] * len(df))
    fig.update_layout(margin=dict(l=0, r=0, t=40, b=0))
    return fig


def plot_geo_risk(rows: Iterable[Mapping[str, object]]) -> go.Figure:
    """Bubble chart of fees against risk score per region/country."""

    data = list(rows)
    if not data:
        return _empty_figure("No geographic data available.")

    df = pd.DataFrame(data)
    df["label"] = df["country"] + " (" + df["region"] + ")"
    fig = px.scatter(
        df,
        x="total_fees",
        y="risk_score",
        size="transaction_count",
        color="region",
        hover_name="label",
        labels={"total_fees": "Total fees", "risk_score": "Risk score"},
        title="Geographic fee risk",
    )
    fig.update_yaxes(tickformat=".0%")
    fig.update_layout(margin=dict(l=0, r=0, t=45, b=0))
    return fig


def plot_volume_anomalies(rows: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(rows)
    if not data:
        return _empty_figure("No monthly volume data available.")

    df = pd.DataFrame(data)
    colors = np.where(df["is_anomaly"], "#e76f51", "#457b9d")

    fig = go.Figure()
    fig.add_bar(name="Invoices", x=df["month"], y=df["invoice_count"], marker_color=colors)
    fig.add_trace(
        go.Scatter(
            name="Files",
            x=df["month"],
            y=df["file_count"],
            mode="lines+markers",
            yaxis="y2",
            line=dict(color="#1d3557", width=2),
        )
    )
    fig.update_layout(
        title="Invoice volume and anomalies",
        yaxis=dict(title="Distinct invoices"),
        yaxis2=dict(title="Distinct files", overlaying="y", side="right"),
        margin=dict(l=0, r=0, t=45, b=0),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def plot_currency_volatility(rows: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(rows)
    if not data:
        return _empty_figure("No currency data available.")

    df = pd.DataFrame(data)
    fig = px.bar(
        df,
        x="currency",
        y="volatility_score",
        color="recommended_action",
        labels={"currency": "Currency", "volatility_score": "Volatility score"},
        title="Currency volatility",
    )
    fig.update_layout(margin=dict(l=0, r=0, t=40, b=0))
    return fig


def plot_lifecycle_funnel(stages: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(stages)
    if not data or not data[0].get("count"):
        return _empty_figure("No invoices to trace.")

    df = pd.DataFrame(data)
    fig = go.Figure(
        go.Funnel(
            y=df["stage"],
            x=df["count"],
            textinfo="value+percent initial",
            marker=dict(color=["#264653", "#2a9d8f", "#e76f51", "#e9c46a"][: len(df)]),
        )
    )
    fig.update_layout(title="Invoice lifecycle", margin=dict(l=0, r=0, t=45, b=0))
    return fig
