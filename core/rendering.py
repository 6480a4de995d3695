"""
Визуализация: карта-хороплет и два столбчатых графика (plotly).

На вход идут уже сопоставленные данные; неразрешённые провинции
просто не попадают в фигуры.
"""

from __future__ import annotations

import json
from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from core.enrichment import matched_only
from core.reconcile import Reconciliation
from core.sources import TOTAL_CATEGORY_RE

COLOR_SCALE = "YlOrRd"
FONT = dict(family="Sora, sans-serif", color="#31333F")


def fmt_int_es(v) -> str:
    """5714730 -> '5.714.730'; NaN/None -> '—'."""
    if v is None or pd.isna(v):
        return "—"
    return f"{int(round(float(v))):,}".replace(",", ".")


def hover_label(name: str, value) -> str:
    return f"<b>{name}</b><br>{fmt_int_es(value)}"


def _canonical_frame(table: pd.DataFrame, rec: Reconciliation) -> pd.DataFrame:
    df = table.copy()
    df["canonical"] = df["region"].map(lambda r: rec.lookup(str(r)))
    return df.dropna(subset=["canonical"])


def choropleth(
    gdf: pd.DataFrame,
    name_field: str,
    value_col: str = "value",
    title: Optional[str] = None,
) -> go.Figure:
    """Choropleth over the polygons that have a value; hover shows name + value."""
    plot = matched_only(gdf, value_col)
    if plot.empty:
        return go.Figure()

    plot = plot.assign(label=[hover_label(n, v) for n, v in zip(plot[name_field], plot[value_col])])
    geo = json.loads(plot[[name_field, plot.geometry.name]].to_json())

    fig = px.choropleth(
        plot.drop(columns=[plot.geometry.name]),
        geojson=geo,
        locations=name_field,
        featureidkey=f"properties.{name_field}",
        color=value_col,
        custom_data=["label"],
        color_continuous_scale=COLOR_SCALE,
        labels={value_col: "Valor"},
        projection="mercator",
    )
    fig.update_traces(hovertemplate="%{customdata[0]}<extra></extra>", marker_line_width=0.5)
    fig.update_geos(fitbounds="locations", visible=False)
    fig.update_layout(
        title=dict(text=title or "", x=0.01),
        margin=dict(t=50, b=10, l=10, r=10),
        height=600,
        paper_bgcolor="white",
        font=FONT,
    )
    return fig


def bar_by_region(table: pd.DataFrame, rec: Reconciliation, title: Optional[str] = None) -> go.Figure:
    """Horizontal bars, one per resolved province, largest on top."""
    df = _canonical_frame(table, rec).dropna(subset=["value"])
    if df.empty:
        return go.Figure()
    df = df.sort_values("value", ascending=True)

    fig = go.Figure(go.Bar(
        x=df["value"],
        y=df["canonical"],
        orientation="h",
        marker_color="#d7301f",
        customdata=[hover_label(n, v) for n, v in zip(df["canonical"], df["value"])],
        hovertemplate="%{customdata}<extra></extra>",
    ))
    fig.update_layout(
        title=dict(text=title or "", x=0.01),
        margin=dict(t=50, b=10, l=10, r=10),
        height=max(400, 18 * len(df)),
        paper_bgcolor="white",
        font=FONT,
    )
    return fig


def bar_by_category(
    df: pd.DataFrame,
    period: str,
    rec: Reconciliation,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Grouped bars per category (e.g. Hombres / Mujeres) for one period.
    The total category is left out when there are others to show.
    """
    sub = df[df["period"] == period]
    cats = sub["category"].unique().tolist()
    parts = [c for c in cats if not TOTAL_CATEGORY_RE.search(c)]
    if parts:
        sub = sub[sub["category"].isin(parts)]

    sub = _canonical_frame(sub, rec).dropna(subset=["value"])
    if sub.empty:
        return go.Figure()
    order = sub.groupby("canonical")["value"].sum().sort_values(ascending=False).index.tolist()

    fig = px.bar(
        sub,
        x="canonical",
        y="value",
        color="category",
        barmode="group",
        category_orders={"canonical": order},
        labels={"canonical": "", "value": "Valor", "category": ""},
    )
    fig.update_layout(
        title=dict(text=title or "", x=0.01),
        margin=dict(t=50, b=10, l=10, r=10),
        height=500,
        paper_bgcolor="white",
        font=FONT,
        xaxis_tickangle=-45,
    )
    return fig
