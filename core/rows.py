from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import pandas as pd

from core.reference import MODEL_KEYS


logger = logging.getLogger(__name__)

Records = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


def is_missing(value: object) -> bool:
    """True for None, NaN/NA and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_number(value: object) -> float:
    if is_missing(value):
        return math.nan
    try:
        n = float(str(value).strip().replace(",", ""))
    except ValueError:
        return math.nan
    return n if math.isfinite(n) else math.nan


def coerce_price(value: object) -> float:
    if is_missing(value):
        return math.nan
    try:
        n = float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return math.nan
    return n if math.isfinite(n) else math.nan


def as_frame(records: Records) -> pd.DataFrame:
    """Build an object-dtype frame so survey codes keep their original Python types."""
    if isinstance(records, pd.DataFrame):
        return records
    rows = [dict(r) for r in (records or []) if isinstance(r, Mapping)]
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows, dtype=object)


def resolve_first(row: Mapping[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for k in keys:
        v = row.get(k)
        if not is_missing(v):
            return v
    return None


def normalize_records(records: Records, *, model_keys: Sequence[str] = MODEL_KEYS) -> pd.DataFrame:
    """Validate and coerce raw point records into the canonical row shape.

    Rows without a model or with a non-finite ``emb_x``/``emb_y``/``cluster`` are
    dropped; everything else is kept untouched. Original order is preserved.
    """
    df = as_frame(records).reset_index(drop=True)
    if df.empty:
        return pd.DataFrame(columns=["model", "cluster", "emb_x", "emb_y", "raw_x", "raw_y"])

    present = [k for k in model_keys if k in df.columns]
    model = pd.Series([None] * len(df), index=df.index, dtype=object)
    for k in present:
        col = df[k]
        fill = model.isna() & ~col.map(is_missing)
        model[fill] = col[fill]
    model = model.map(lambda v: None if v is None else str(v))

    def _numeric(col: str) -> pd.Series:
        if col not in df.columns:
            return pd.Series(math.nan, index=df.index, dtype=float)
        return df[col].map(coerce_number).astype(float)

    x = _numeric("emb_x")
    y = _numeric("emb_y")
    cl = _numeric("cluster")

    valid = model.map(bool) & x.notna() & y.notna() & cl.notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.debug("normalize_records dropped %d of %d rows", dropped, len(df))

    out = df.loc[valid].copy()
    out["model"] = model[valid]
    out["emb_x"] = x[valid]
    out["emb_y"] = y[valid]
    out["raw_x"] = x[valid]
    out["raw_y"] = y[valid]
    clusters = cl[valid]
    if not clusters.empty and (clusters % 1 == 0).all():
        clusters = clusters.astype(int)
    out["cluster"] = clusters
    return out.reset_index(drop=True)
