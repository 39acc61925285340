from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Literal, Optional

import numpy as np
import pandas as pd

from core.lookups import CodeLookup
from core.reference import CATEGORICAL_FINANCING_FIELDS, FIELD_GROUPS, NUMERIC_GROUP
from core.rows import coerce_number, coerce_price, is_missing


UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class NumericPolicy:
    """Fields summarized as an average instead of a distribution."""

    numeric_fields: FrozenSet[str] = frozenset(FIELD_GROUPS[NUMERIC_GROUP])
    categorical_overrides: FrozenSet[str] = CATEGORICAL_FINANCING_FIELDS

    def is_numeric(self, field_name: str) -> bool:
        return field_name in self.numeric_fields and field_name not in self.categorical_overrides


@dataclass
class SummaryItem:
    label: str
    count: int
    pct: float


@dataclass
class SummarySection:
    field: str
    mode: Literal["numeric", "categorical"]
    average: Optional[float] = None
    valid_count: int = 0
    missing_count: int = 0
    display: Optional[str] = None
    items: List[SummaryItem] = field(default_factory=list)
    total: int = 0


def is_likely_percent_field(field_name: str) -> bool:
    return re.search(r"APR|PCT|PERCENT", field_name, re.IGNORECASE) is not None


def is_likely_currency_field(field_name: str) -> bool:
    return re.search(r"DOWN|TRADE|PAY|MONPAY|PAYMENT|PRICE", field_name, re.IGNORECASE) is not None


def is_likely_length_field(field_name: str) -> bool:
    return re.search(r"LENGTH", field_name, re.IGNORECASE) is not None


def format_numeric_value(field_name: str, value: float) -> str:
    if value is None or math.isnan(value):
        return "—"
    if is_likely_percent_field(field_name):
        return f"{value:.1f}%"
    if is_likely_currency_field(field_name):
        return f"${value:,.0f}"
    if is_likely_length_field(field_name):
        return f"{value:.0f} mo"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def _column(rows: pd.DataFrame, field_name: str) -> pd.Series:
    if field_name not in rows.columns:
        return pd.Series([None] * len(rows), index=rows.index, dtype=object)
    return rows[field_name]


def _numeric_section(rows: pd.DataFrame, field_name: str) -> Optional[SummarySection]:
    coerce = coerce_price if is_likely_currency_field(field_name) else coerce_number
    values = _column(rows, field_name).map(coerce).astype(float)
    valid = values.dropna()
    if valid.empty:
        return None
    average = float(valid.mean())
    return SummarySection(
        field=field_name,
        mode="numeric",
        average=average,
        valid_count=int(len(valid)),
        missing_count=int(len(values) - len(valid)),
        display=format_numeric_value(field_name, average),
    )


def _categorical_section(rows: pd.DataFrame, field_name: str, lookup: CodeLookup) -> Optional[SummarySection]:
    raw = _column(rows, field_name)
    missing = raw.map(is_missing)
    missing_count = int(missing.sum())
    labels = raw[~missing].map(lambda v: lookup.label(field_name, v))
    valid_count = int(len(labels))

    total = valid_count + missing_count
    if total == 0:
        return None

    # value_counts(sort=False) keeps first-seen order; the stable sort keeps it for ties
    counts = labels.value_counts(sort=False)
    counts = counts.iloc[np.argsort(-counts.to_numpy(), kind="stable")]
    items = [SummaryItem(label=str(lab), count=int(c), pct=c / total * 100) for lab, c in counts.items()]
    if missing_count > 0:
        items.append(SummaryItem(label=UNKNOWN_LABEL, count=missing_count, pct=missing_count / total * 100))

    drift = 100.0 - sum(i.pct for i in items)
    if drift != 0 and items:
        items[-1].pct += drift

    return SummarySection(
        field=field_name,
        mode="categorical",
        valid_count=valid_count,
        missing_count=missing_count,
        items=items,
        total=total,
    )


def summarize_field(
    rows: pd.DataFrame,
    field_name: str,
    lookup: CodeLookup,
    policy: Optional[NumericPolicy] = None,
) -> Optional[SummarySection]:
    """Summarize one field over a scope; None when the scope has no rows at all."""
    policy = policy or NumericPolicy()
    if rows.empty:
        return None
    if policy.is_numeric(field_name):
        section = _numeric_section(rows, field_name)
        if section is not None:
            return section
    return _categorical_section(rows, field_name, lookup)


def summarize_group(
    rows: pd.DataFrame,
    fields: Iterable[str],
    lookup: CodeLookup,
    policy: Optional[NumericPolicy] = None,
) -> List[SummarySection]:
    sections = [s for s in (summarize_field(rows, f, lookup, policy) for f in fields) if s is not None]

    def _order(s: SummarySection) -> tuple:
        top = s.items[0].pct if s.items else 0.0
        return (0 if s.mode == "numeric" else 1, -top)

    return sorted(sections, key=_order)


def section_to_dict(section: SummarySection) -> Dict[str, Any]:
    if section.mode == "numeric":
        return {
            "field": section.field,
            "mode": "numeric",
            "kpi": {
                "label": "Average",
                "value": section.average,
                "display": section.display,
                "n_valid": section.valid_count,
                "n_missing": section.missing_count,
            },
        }
    return {
        "field": section.field,
        "mode": "categorical",
        "items": [{"label": i.label, "count": i.count, "pct": i.pct} for i in section.items],
        "total": section.total,
    }
