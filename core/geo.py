from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import pandas as pd

from core.lookups import CodeLookup
from core.reference import STATE_CODE_FIELD, STATE_KEYS, US_STATE_ABBR_TO_NAME
from core.rows import is_missing
from core.scope import state_names


_ABBR_TOKEN = re.compile(r"\b[A-Z]{2}\b")


@dataclass
class StateAggregate:
    counts: Dict[str, int] = field(default_factory=dict)
    pcts: Dict[str, float] = field(default_factory=dict)
    total: int = 0
    max_pct: float = 0.0


class StateResolver:
    """Resolves a row to a full US state name from whichever state column it carries."""

    def __init__(
        self,
        lookup: Optional[CodeLookup] = None,
        *,
        abbr_to_name: Mapping[str, str] = US_STATE_ABBR_TO_NAME,
        state_keys: Sequence[str] = STATE_KEYS,
        code_field: str = STATE_CODE_FIELD,
    ):
        self.lookup = lookup
        self.abbr_to_name = abbr_to_name
        self.state_keys = tuple(state_keys)
        self.code_field = code_field
        self._by_lower_name = {name.lower(): name for name in abbr_to_name.values()}

    def to_state_name(self, value: object) -> Optional[str]:
        if is_missing(value):
            return None
        s = str(value).strip()
        name = self._by_lower_name.get(s.lower())
        if name:
            return name
        name = self.abbr_to_name.get(s.upper())
        if name:
            return name
        for tok in _ABBR_TOKEN.findall(s):
            if tok.upper() in self.abbr_to_name:
                return self.abbr_to_name[tok.upper()]
        return None

    def resolve(self, row: Mapping[str, Any]) -> Optional[str]:
        for key in self.state_keys:
            raw = row.get(key)
            if is_missing(raw):
                continue
            val = str(raw).strip()
            if key == self.code_field and self.lookup is not None:
                mapped = self.lookup.get(key, raw)
                if mapped:
                    val = mapped.strip()
            name = self.to_state_name(val)
            if name:
                return name
        return None

    __call__ = resolve


def resolve_state_name(row: Mapping[str, Any], resolver: Optional[StateResolver] = None) -> Optional[str]:
    return (resolver or StateResolver()).resolve(row)


def aggregate_by_state(rows: pd.DataFrame, resolver: StateResolver) -> StateAggregate:
    """Counts and shares per state; rows without a resolvable state are left out."""
    if rows.empty:
        return StateAggregate()
    names = state_names(rows, resolver).dropna()
    total = int(len(names))
    if total == 0:
        return StateAggregate()
    counts = names.value_counts(sort=False)
    pcts = {str(k): float(c) / total * 100 for k, c in counts.items()}
    return StateAggregate(
        counts={str(k): int(c) for k, c in counts.items()},
        pcts=pcts,
        total=total,
        max_pct=max(pcts.values()),
    )


def state_choices(names: Iterable[str]) -> list[str]:
    return sorted(set(n for n in names if n))
