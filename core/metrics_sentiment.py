from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from core.charts import sentiment_bars
from core.sentiment import (
    DEMOGRAPHIC_OPTIONS,
    apply_demographic_adjustments,
    demo_models,
    normalize_demographics,
    sentiment_to_dict,
)


def compute_sentiments(selected_ids: Optional[Iterable[str]] = None, demo: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    models = demo_models()
    ids = [m.id for m in models]
    if selected_ids is None:
        # first two are preselected
        selected = ids[:2]
    else:
        wanted = set(selected_ids)
        selected = [i for i in ids if i in wanted]

    selection = normalize_demographics(demo)
    adjusted = [sentiment_to_dict(apply_demographic_adjustments(m, selection)) for m in models if m.id in selected]
    return {
        "available": [{"id": m.id, "name": m.name} for m in models],
        "selected": selected,
        "demographics": {k: getattr(selection, k) for k in DEMOGRAPHIC_OPTIONS},
        "options": {k: list(v) for k, v in DEMOGRAPHIC_OPTIONS.items()},
        "models": adjusted,
        "charts": {m["id"]: sentiment_bars(m["categories"], m["name"]) for m in adjusted},
    }
