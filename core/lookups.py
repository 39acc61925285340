from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from core.rows import is_missing


def _number_key(value: object) -> Optional[str]:
    """Canonical text for a numeric code so 1, 1.0 and "1" share a key."""
    if isinstance(value, bool):
        return None
    try:
        n = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return str(int(n)) if n.is_integer() else repr(n)


class CodeLookup:
    """Read-only field -> (code -> label) mapping built from reference triples."""

    def __init__(self, by_field: Mapping[str, Mapping[str, str]]):
        self._by_field = MappingProxyType({k: MappingProxyType(dict(v)) for k, v in by_field.items()})

    @classmethod
    def from_triples(cls, triples: Iterable[Any]) -> "CodeLookup":
        """Accepts ``(NAME, START, LABEL)`` tuples or dicts with those keys."""
        by_field: Dict[str, Dict[str, str]] = {}
        for row in triples or []:
            if isinstance(row, Mapping):
                name, start, label = row.get("NAME"), row.get("START"), row.get("LABEL")
            else:
                try:
                    name, start, label = row
                except (TypeError, ValueError):
                    continue
            field = str(name if name is not None else "").strip()
            if not field:
                continue
            codes = by_field.setdefault(field, {})
            text = str(label if label is not None else "").strip()
            codes[str(start).strip()] = text
            num = _number_key(start)
            if num is not None:
                codes.setdefault(num, text)
        return cls(by_field)

    def fields(self) -> list[str]:
        return sorted(self._by_field)

    def get(self, field: str, raw: object) -> Optional[str]:
        """Mapped label for ``raw`` or None; tries the raw text, then the numeric form."""
        codes = self._by_field.get(field)
        if not codes or is_missing(raw):
            return None
        as_str = str(raw).strip()
        if as_str in codes:
            return codes[as_str]
        num = _number_key(raw)
        if num is not None and num in codes:
            return codes[num]
        return None

    def label(self, field: str, raw: object) -> str:
        mapped = self.get(field, raw)
        if mapped is not None:
            return mapped
        num = _number_key(raw)
        # pandas upcasts integer codes to float; show 3.0 as "3"
        if isinstance(raw, float) and num is not None:
            return num
        return str(raw).strip()


def build_var_labels(rows: Iterable[Any]) -> Dict[str, str]:
    """Variable code -> display text from ``(code, text)`` pairs or dicts."""
    out: Dict[str, str] = {}
    for row in rows or []:
        code, text = "", ""
        if isinstance(row, Mapping):
            for k in ("code", "CODE", "key", "Key", "variable", "VARIABLE"):
                if row.get(k) is not None:
                    code = str(row[k]).strip()
                    break
            for k in ("text", "label", "LABEL", "display", "Display"):
                if row.get(k) is not None:
                    text = str(row[k]).strip()
                    break
        elif isinstance(row, (list, tuple)) and row:
            code = str(row[0] if row[0] is not None else "").strip()
            text = str(row[1] if len(row) > 1 and row[1] is not None else "").strip()
        if code:
            out[code] = text or code
    return out


def var_label(labels: Mapping[str, str], code: object) -> str:
    key = str(code if code is not None else "").strip()
    return labels.get(key) or key
