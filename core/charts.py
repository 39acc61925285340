from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def embedding_scatter(points: pd.DataFrame, group_field: str, *, title: str = "") -> Dict[str, Any]:
    hover = alt.selection_point(fields=[group_field], on="mouseover", empty="all")
    chart = (
        alt.Chart(points)
        .mark_circle(size=28)
        .encode(
            x=alt.X("x:Q", title=None, axis=alt.Axis(labels=False, ticks=False, grid=False, domain=False)),
            y=alt.Y("y:Q", title=None, axis=alt.Axis(labels=False, ticks=False, grid=False, domain=False)),
            color=alt.Color(f"{group_field}:N", title=title or group_field.title()),
            opacity=alt.condition(hover, alt.value(0.85), alt.value(0.15)),
            tooltip=[
                alt.Tooltip("model:N", title="Model"),
                alt.Tooltip("cluster:N", title="Cluster"),
            ],
        )
        .add_params(hover)
        .properties(height=360)
    )
    return to_vega_spec(chart)


def attitude_scatter(points: List[Dict[str, Any]], x_title: str, y_title: str) -> Dict[str, Any]:
    df = pd.DataFrame(points, columns=["key", "name", "x", "y", "n"])
    base = alt.Chart(df).encode(
        x=alt.X("x:Q", title=f"{x_title} (% agree)", scale=alt.Scale(domain=[0, 100])),
        y=alt.Y("y:Q", title=f"{y_title} (% agree)", scale=alt.Scale(domain=[0, 100])),
    )
    dots = base.mark_circle(size=140).encode(
        color=alt.Color("name:N", title="Group"),
        tooltip=[
            alt.Tooltip("name:N", title="Group"),
            alt.Tooltip("x:Q", title=x_title, format=".1f"),
            alt.Tooltip("y:Q", title=y_title, format=".1f"),
            alt.Tooltip("n:Q", title="Respondents"),
        ],
    )
    labels = base.mark_text(dy=-12, fontSize=11).encode(text="name:N")
    return to_vega_spec((dots + labels).properties(height=320))


def price_histogram(series: Sequence[Mapping[str, Any]], bucket_order: Sequence[str]) -> Dict[str, Any]:
    records = [
        {"group": s["name"], "label": d["label"], "pct": d["pct"], "count": d["count"]}
        for s in series
        for d in s["data"]
    ]
    df = pd.DataFrame(records, columns=["group", "label", "pct", "count"])
    chart = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title="Transaction price", sort=list(bucket_order), axis=alt.Axis(labelAngle=-45)),
            xOffset=alt.XOffset("group:N"),
            y=alt.Y("pct:Q", title="% of buyers", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("group:N", title="Group"),
            tooltip=[
                alt.Tooltip("group:N", title="Group"),
                alt.Tooltip("label:N", title="Bucket"),
                alt.Tooltip("pct:Q", title="Share", format=".1f"),
                alt.Tooltip("count:Q", title="Count"),
            ],
        )
        .properties(height=280)
    )
    return to_vega_spec(chart)


def state_bars(pcts: Mapping[str, float], counts: Mapping[str, int], *, top_n: int = 15) -> Dict[str, Any]:
    df = pd.DataFrame(
        [{"state": k, "pct": v, "count": counts.get(k, 0)} for k, v in pcts.items()],
        columns=["state", "pct", "count"],
    )
    df = df.sort_values(["pct", "state"], ascending=[False, True]).head(top_n)
    chart = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("pct:Q", title="% of respondents"),
            y=alt.Y("state:N", title=None, sort="-x"),
            tooltip=[
                alt.Tooltip("state:N", title="State"),
                alt.Tooltip("pct:Q", title="Share", format=".1f"),
                alt.Tooltip("count:Q", title="Count"),
            ],
        )
        .properties(height=max(120, 18 * len(df)))
    )
    return to_vega_spec(chart)


def price_curve_chart(curve: Mapping[str, Sequence[float]], current_price: Optional[float] = None) -> Dict[str, Any]:
    df = pd.DataFrame({"price": curve["price"], "revenue": curve["revenue"], "profit": curve["profit"]})
    long_df = df.melt(id_vars="price", value_vars=["revenue", "profit"], var_name="metric", value_name="value")
    line = (
        alt.Chart(long_df)
        .mark_line()
        .encode(
            x=alt.X("price:Q", title="Price", axis=alt.Axis(format="$,.0f", grid=False)),
            y=alt.Y("value:Q", title="Value", axis=alt.Axis(format="$,.0f", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title="Metric"),
            tooltip=[
                alt.Tooltip("price:Q", title="Price", format="$,.2f"),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("value:Q", title="Value", format="$,.0f"),
            ],
        )
    )
    if current_price is None:
        return to_vega_spec(line.properties(height=300))
    rule = alt.Chart(pd.DataFrame({"price": [current_price]})).mark_rule(strokeDash=[4, 4]).encode(x="price:Q")
    return to_vega_spec((line + rule).properties(height=300))


def volume_bars(rows: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    df = pd.DataFrame([{"key": r["key"], "volume": r["volume"], "price": r["price"]} for r in rows], columns=["key", "volume", "price"])
    chart = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("key:N", title=None, sort=None),
            y=alt.Y("volume:Q", title="Volume", axis=alt.Axis(format=",.0f")),
            tooltip=[
                alt.Tooltip("key:N", title="Segment"),
                alt.Tooltip("volume:Q", title="Volume", format=",.0f"),
                alt.Tooltip("price:Q", title="ATP", format="$,.0f"),
            ],
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def sentiment_bars(categories: Sequence[Mapping[str, Any]], title: str) -> Dict[str, Any]:
    df = pd.DataFrame(
        [{"category": c["name"], "score": c["score"], "weight": c["weight"]} for c in categories],
        columns=["category", "score", "weight"],
    )
    chart = (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("score:Q", title="Score", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("category:N", title=None, sort=None),
            tooltip=[
                alt.Tooltip("category:N", title="Category"),
                alt.Tooltip("score:Q", title="Score"),
                alt.Tooltip("weight:Q", title="Weight", format=".0%"),
            ],
        )
        .properties(height=200)
    )
    return to_vega_spec(chart)
