"""Scope filters over normalized rows.

Each stage returns a boolean-mask selection of its input: rows are never
reordered, duplicated or modified. Composition order is models -> cluster ->
state, with the optional focus model applied on top for the detail panels.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from core.filters import CustomerFilters, GroupBy

StateResolverFn = Callable[[Mapping[str, Any]], Optional[str]]


def filter_by_models(rows: pd.DataFrame, active_models: Optional[Iterable[str]]) -> pd.DataFrame:
    active = [str(m) for m in (active_models or [])]
    # "Select none" shows everything.
    if not active or rows.empty:
        return rows
    return rows[rows["model"].isin(active)]


def filter_by_cluster(rows: pd.DataFrame, cluster: Optional[int]) -> pd.DataFrame:
    if cluster is None or rows.empty:
        return rows
    return rows[rows["cluster"] == cluster]


def filter_by_state(rows: pd.DataFrame, state_name: Optional[str], resolver: StateResolverFn) -> pd.DataFrame:
    if not state_name or rows.empty:
        return rows
    names = state_names(rows, resolver)
    return rows[names == state_name]


def filter_by_focus_model(rows: pd.DataFrame, model: Optional[str]) -> pd.DataFrame:
    if not model or rows.empty:
        return rows
    return rows[rows["model"] == model]


def state_names(rows: pd.DataFrame, resolver: StateResolverFn) -> pd.Series:
    if rows.empty:
        return pd.Series([], index=rows.index, dtype=object)
    return pd.Series([resolver(r) for r in rows.to_dict(orient="records")], index=rows.index, dtype=object)


def build_scope(
    rows: pd.DataFrame,
    filters: CustomerFilters,
    resolver: StateResolverFn,
    *,
    locked: bool = False,
) -> pd.DataFrame:
    if locked:
        return rows
    scoped = filter_by_models(rows, filters.selected_models)
    scoped = filter_by_cluster(scoped, filters.cluster)
    return filter_by_state(scoped, filters.state_name, resolver)


def build_panel_scopes(rows: pd.DataFrame, filters: CustomerFilters, resolver: StateResolverFn) -> Dict[str, pd.DataFrame]:
    """Named scopes used by the customer-groups page."""
    base = filter_by_models(rows, filters.selected_models)
    plot = filter_by_cluster(base, filters.cluster)
    scope = filter_by_state(plot, filters.state_name, resolver)
    panel = filter_by_focus_model(scope, filters.focus_model)
    map_base = filter_by_focus_model(plot, filters.focus_model)
    return {
        "base": base,
        "plot": plot,
        "scope": scope,
        "panel": panel,
        "attitudes": rows if filters.locks.attitudes else panel,
        "price": rows if filters.locks.price else panel,
        "map": rows if filters.locks.map else map_base,
    }


def group_key_series(rows: pd.DataFrame, group_by: GroupBy) -> pd.Series:
    if group_by == "cluster":
        return rows["cluster"]
    return rows["model"].astype(str)


def group_keys(rows: pd.DataFrame, group_by: GroupBy) -> List[Any]:
    if rows.empty:
        return []
    keys = group_key_series(rows, group_by).drop_duplicates().tolist()
    if group_by == "cluster":
        return sorted(k for k in keys if pd.notna(k))
    return sorted(str(k) for k in keys)


def group_name(key: Any, group_by: GroupBy) -> str:
    return f"C{key}" if group_by == "cluster" else str(key)


def available_clusters(rows: pd.DataFrame) -> List[Any]:
    return group_keys(rows, "cluster")


def models_in(rows: pd.DataFrame) -> List[str]:
    return group_keys(rows, "model")


def group_centroids(rows: pd.DataFrame, group_by: GroupBy) -> Dict[Any, Dict[str, float]]:
    """Mean raw embedding position per group."""
    if rows.empty:
        return {}
    keys = group_key_series(rows, group_by)
    means = rows[["raw_x", "raw_y"]].astype(float).groupby(keys, sort=True).mean()
    return {k: {"cx": float(r["raw_x"]), "cy": float(r["raw_y"])} for k, r in means.iterrows()}


def center_points(rows: pd.DataFrame, group_by: GroupBy, t: float) -> pd.DataFrame:
    """Move each point a fraction ``t`` of the way toward its group centroid."""
    t = min(1.0, max(0.0, float(t)))
    if t <= 0 or rows.empty:
        return rows
    centroids = group_centroids(rows, group_by)
    keys = group_key_series(rows, group_by)
    cx = keys.map(lambda k: centroids[k]["cx"]).astype(float)
    cy = keys.map(lambda k: centroids[k]["cy"]).astype(float)
    out = rows.copy()
    out["emb_x"] = out["raw_x"] + (cx - out["raw_x"]) * t
    out["emb_y"] = out["raw_y"] + (cy - out["raw_y"]) * t
    return out
