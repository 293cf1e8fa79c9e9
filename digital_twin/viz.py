"""Visualization utilities for Digital Twin."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

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
        font=dict(size=14, color="#9ca3af"),
    )
    fig.update_layout(
        margin=dict(l=0, r=0, t=20, b=20),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
    )
    return fig


def slice_colours(count: int) -> list[str]:
    """One colour per slice, stepping the hue by 40 degrees."""

    return [f"hsl({(i * 40) % 360}, 80%, 60%)" for i in range(count)]


def plot_category_pie(breakdown: Iterable[Mapping[str, object]], currency_symbol: str = "£") -> go.Figure:
    """Return a pie chart of spend per category."""

    data = list(breakdown)
    if not data:
        return _empty_figure("Log a transaction to see your breakdown.")

    df = pd.DataFrame(data)
    colours = dict(zip(df["name"], slice_colours(len(df))))
    fig = px.pie(
        df,
        names="name",
        values="amount",
        color="name",
        color_discrete_map=colours,
    )
    fig.update_traces(
        sort=False,
        textinfo="percent",
        hovertemplate=f"%{{label}}<br>{currency_symbol}%{{value:,.2f}}<extra></extra>",
    )
    fig.update_layout(
        margin=dict(l=0, r=0, t=10, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        font=dict(color="#e5e7eb"),
        legend=dict(orientation="h", yanchor="top", y=-0.05),
    )
    return fig
