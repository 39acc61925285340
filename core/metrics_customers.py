from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.attitudes import attitude_points
from core.charts import attitude_scatter, embedding_scatter, price_histogram, state_bars
from core.filters import CustomerFilters
from core.geo import aggregate_by_state, state_choices
from core.lookups import var_label
from core.pricing import bucketize, histogram_to_records, price_buckets, price_series_by_group
from core.reference import FIELD_GROUPS
from core.scope import available_clusters, center_points, group_centroids, group_name, state_names
from core.summary import section_to_dict, summarize_group


def _scatter_points(rows: pd.DataFrame, filters: CustomerFilters, center_t: float) -> List[Dict[str, Any]]:
    if rows.empty:
        return []
    moved = center_points(rows, filters.group_by, center_t)
    out = pd.DataFrame(
        {
            "model": moved["model"].astype(str),
            "cluster": moved["cluster"],
            "x": moved["emb_x"].astype(float),
            "y": moved["emb_y"].astype(float),
        }
    )
    out["group"] = [group_name(k, filters.group_by) for k in (out["cluster"] if filters.group_by == "cluster" else out["model"])]
    return out.to_dict(orient="records")


def _centroids(rows: pd.DataFrame, filters: CustomerFilters) -> List[Dict[str, Any]]:
    return [
        {"key": k, "name": group_name(k, filters.group_by), **c}
        for k, c in group_centroids(rows, filters.group_by).items()
    ]


def compute_customer_groups(filters: CustomerFilters, ctx: Dict[str, Any], *, center_t: float = 0.0) -> Dict[str, Any]:
    """Everything the customer-groups page renders for one filter state."""
    rows: pd.DataFrame = ctx.get("rows", pd.DataFrame())
    lookup = ctx["lookup"]
    labels = ctx.get("var_labels", {})
    resolver = ctx["resolver"]

    plot: pd.DataFrame = ctx.get("plot", rows)
    panel: pd.DataFrame = ctx.get("panel", rows)
    att_rows: pd.DataFrame = ctx.get("attitudes", panel)
    price_rows: pd.DataFrame = ctx.get("price", panel)
    map_rows: pd.DataFrame = ctx.get("map", plot)

    counts = {
        "all": int(len(rows)),
        "base": int(len(ctx.get("base", rows))),
        "plot": int(len(plot)),
        "scope": int(len(ctx.get("scope", plot))),
        "panel": int(len(panel)),
    }
    if rows.empty:
        return {"filters": asdict(filters), "counts": counts, "summary": {}, "attitudes": {}, "price": {}, "map": {}, "scatter": {}, "charts": {}}

    fields = FIELD_GROUPS.get(filters.field_group, ())
    sections = summarize_group(panel, fields, lookup)
    summary = {
        "group": filters.field_group,
        "sections": [section_to_dict(s) | {"label": var_label(labels, s.field)} for s in sections],
    }

    points = attitude_points(
        att_rows,
        filters.att_x,
        filters.att_y,
        lookup,
        group_by=filters.group_by,
        include_missing=filters.include_missing,
    )
    x_label = var_label(labels, filters.att_x)
    y_label = var_label(labels, filters.att_y)
    attitudes = {
        "x_field": filters.att_x,
        "y_field": filters.att_y,
        "x_label": x_label,
        "y_label": y_label,
        "locked": filters.locks.attitudes,
        "points": points,
    }

    overall = bucketize(price_rows)
    series = price_series_by_group(price_rows, filters.group_by)
    price = {
        "locked": filters.locks.price,
        "total_valid": overall.total_valid,
        "overall": histogram_to_records(overall),
        "series": series,
    }

    agg = aggregate_by_state(map_rows, resolver)
    geo = asdict(agg) | {"locked": filters.locks.map, "selected": filters.state_name}

    scatter_points = _scatter_points(plot, filters, center_t)
    scatter = {
        "group_by": filters.group_by,
        "center_t": center_t,
        "points": scatter_points,
        "centroids": _centroids(plot, filters),
    }

    charts: Dict[str, Any] = {}
    if scatter_points:
        charts["scatter"] = embedding_scatter(pd.DataFrame(scatter_points), "group", title="Model" if filters.group_by == "model" else "Cluster")
    if points:
        charts["attitudes"] = attitude_scatter(points, x_label, y_label)
    if series:
        charts["price"] = price_histogram(series, [b.label for b in price_buckets()])
    if agg.total:
        charts["states"] = state_bars(agg.pcts, agg.counts)

    return {
        "filters": asdict(filters),
        "counts": counts,
        "options": {
            "models": list(ctx.get("models", [])),
            "clusters": available_clusters(ctx.get("base", rows)),
            "states": state_choices(state_names(plot, resolver).dropna()),
        },
        "summary": summary,
        "attitudes": attitudes,
        "price": price,
        "map": geo,
        "scatter": scatter,
        "charts": charts,
    }
