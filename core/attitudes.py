"""Percent-agree scoring for the loyalty / willingness-to-pay statements."""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Literal, Mapping, Optional

import pandas as pd

from core.filters import GroupBy
from core.lookups import CodeLookup
from core.reference import AGREE_TOP2, AGREE_TOP3, ATTITUDE_LABEL_SUFFIXES, LOYAL_FIELD
from core.rows import is_missing
from core.scope import group_key_series, group_keys, group_name

AgreePolicy = Literal["LOYAL_ONLY", "TOP2", "TOP3"]


def agree_policy_for(field_name: str) -> AgreePolicy:
    if field_name == LOYAL_FIELD:
        return "LOYAL_ONLY"
    if re.match(r"^STATE_", field_name, re.IGNORECASE):
        return "TOP2"
    return "TOP3"


def normalize_label(value: object) -> str:
    return re.sub(r"\s+", " ", str(value if value is not None else "").strip().lower())


def is_agree(label: object, policy: AgreePolicy) -> bool:
    s = normalize_label(label)
    if policy == "LOYAL_ONLY":
        return s == "loyal"
    if policy == "TOP2":
        return s in AGREE_TOP2
    return s in AGREE_TOP3


def attitude_raw(row: Mapping[str, Any], field_name: str) -> Optional[Any]:
    """Value of ``field_name`` or its first non-blank label alias."""
    for key in (field_name,) + tuple(f"{field_name}{sfx}" for sfx in ATTITUDE_LABEL_SUFFIXES):
        v = row.get(key)
        if not is_missing(v):
            return v
    return None


def resolve_attitude_label(row: Mapping[str, Any], field_name: str, lookup: CodeLookup) -> Optional[str]:
    raw = attitude_raw(row, field_name)
    if raw is None:
        return None
    return lookup.label(field_name, raw)


def percent_agree(
    rows: pd.DataFrame,
    field_name: str,
    lookup: CodeLookup,
    *,
    include_missing: bool = True,
) -> float:
    """Share of rows (0..100) whose label falls in the field's agree set.

    Missing rows stay in the denominator unless ``include_missing`` is False.
    Returns NaN when the denominator is zero.
    """
    policy = agree_policy_for(field_name)
    agree = valid = missing = 0
    for row in rows.to_dict(orient="records") if not rows.empty else []:
        label = resolve_attitude_label(row, field_name, lookup)
        if not label:
            missing += 1
            continue
        valid += 1
        if is_agree(label, policy):
            agree += 1
    denom = valid + missing if include_missing else valid
    return agree / denom * 100 if denom > 0 else math.nan


def attitude_points(
    rows: pd.DataFrame,
    x_field: str,
    y_field: str,
    lookup: CodeLookup,
    *,
    group_by: GroupBy = "model",
    include_missing: bool = True,
) -> List[Dict[str, Any]]:
    """One (x, y) percent-agree point per group; groups lacking either score are skipped."""
    if rows.empty:
        return []
    keys = group_key_series(rows, group_by)
    points = []
    for k in group_keys(rows, group_by):
        grp = rows[keys == k]
        x = percent_agree(grp, x_field, lookup, include_missing=include_missing)
        y = percent_agree(grp, y_field, lookup, include_missing=include_missing)
        if math.isnan(x) or math.isnan(y):
            continue
        points.append({"key": k, "name": group_name(k, group_by), "x": x, "y": y, "n": int(len(grp))})
    return points
