from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from core.filters import GroupBy
from core.reference import PRICE_FIELD
from core.rows import coerce_price
from core.scope import group_key_series, group_keys, group_name


BUCKET_MIN = 30_000
BUCKET_STEP = 5_000
OVER_MIN = 110_000


@dataclass
class PriceBucket:
    low: float
    high: float
    label: str
    count: int = 0
    pct: float = 0.0


@dataclass
class PriceHistogram:
    bins: List[PriceBucket] = field(default_factory=list)
    total_valid: int = 0


def _fmt_k(n: float) -> str:
    return f"${math.floor(n / 1000 + 0.5)}k"


def _fmt_k_dec(n: float) -> str:
    return f"${n / 1000:.1f}k"


def bucket_label(low: float, high: float) -> str:
    if low == -math.inf:
        return "Under $30k"
    if high == math.inf:
        return "$110k+"
    # display-only fence post: 35000 shows as $34.9k
    return f"{_fmt_k(low)} to {_fmt_k_dec(high - 100)}"


def bucket_edges() -> List[float]:
    return [-math.inf] + list(range(BUCKET_MIN, OVER_MIN + 1, BUCKET_STEP)) + [math.inf]


def price_buckets() -> List[PriceBucket]:
    edges = bucket_edges()
    return [PriceBucket(low=lo, high=hi, label=bucket_label(lo, hi)) for lo, hi in zip(edges[:-1], edges[1:])]


def bucketize(rows: pd.DataFrame, price_field: str = PRICE_FIELD) -> PriceHistogram:
    """Fixed-width price histogram; empty bin list when no row has a usable price."""
    if rows.empty or price_field not in rows.columns:
        return PriceHistogram()
    values = rows[price_field].map(coerce_price).astype(float).dropna().to_numpy()
    total_valid = int(values.size)
    if total_valid == 0:
        return PriceHistogram()

    buckets = price_buckets()
    # right-open bins: 35000 falls in [35000, 40000)
    idx = np.searchsorted(np.asarray(bucket_edges()[1:-1], dtype=float), values, side="right")
    counts = np.bincount(idx, minlength=len(buckets))
    for b, c in zip(buckets, counts):
        b.count = int(c)
        b.pct = c / total_valid * 100
    return PriceHistogram(bins=buckets, total_valid=total_valid)


def price_series_by_group(
    rows: pd.DataFrame,
    group_by: GroupBy = "model",
    order: Optional[Sequence[Any]] = None,
    price_field: str = PRICE_FIELD,
) -> List[Dict[str, Any]]:
    if rows.empty:
        return []
    keys = group_key_series(rows, group_by)
    series = []
    for k in order if order is not None else group_keys(rows, group_by):
        hist = bucketize(rows[keys == k], price_field)
        if hist.bins:
            series.append({"key": k, "name": group_name(k, group_by), "total_valid": hist.total_valid, "data": histogram_to_records(hist)})
    return series


def histogram_to_records(hist: PriceHistogram) -> List[Dict[str, Any]]:
    return [{"label": b.label, "count": b.count, "pct": b.pct} for b in hist.bins]
