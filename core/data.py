from __future__ import annotations

import zlib
from functools import lru_cache
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from core.filters import CustomerFilters, normalize_filters
from core.geo import StateResolver
from core.lookups import CodeLookup, build_var_labels
from core.reference import (
    AGREE_SCALE,
    DATASET_MODELS,
    DEMO_CODES,
    DEMOS_MAPPING,
    FIELD_GROUPS,
    STATE_CODE_FIELD,
    US_STATE_ABBR_TO_NAME,
    VAR_TEXT,
)
from core.rows import normalize_records
from core.scope import available_clusters, build_panel_scopes, models_in


DEFAULT_ROWS = 600
N_CLUSTERS = 6
MISSING_RATE = 0.08

# Mean transaction price per dataset, shifted per model.
_PRICE_BASE = {"SUV": 52_000.0, "PU": 58_000.0}
_PRICE_SD = 14_000.0

_ATTITUDE_FIELDS = tuple(
    f for f in FIELD_GROUPS["Loyalty"] + FIELD_GROUPS["Willingness to Pay"] if f not in DEMO_CODES
)
_STATE_ABBRS = tuple(US_STATE_ABBR_TO_NAME.keys())


def _seed_for(dataset: str) -> int:
    return zlib.crc32(f"customer-groups:{dataset}".encode("utf-8"))


def format_price(value: float) -> str:
    return f"${value:,.0f}"


def _maybe_missing(rng: np.random.Generator, value: Any, rate: float = MISSING_RATE) -> Any:
    return None if rng.random() < rate else value


def generate_records(dataset: str = "SUV", n: int = DEFAULT_ROWS, seed: Optional[int] = None) -> List[Dict[str, Any]]:
    """Deterministic survey-style point records for one dataset.

    Codes follow the demo code books. A small share of rows carry a broken
    embedding or no model so the normalizer has something to drop; the state
    is usually an ADMARK code, sometimes a plain abbreviation column.
    """
    models = DATASET_MODELS.get(dataset, DATASET_MODELS["SUV"])
    rng = np.random.default_rng(_seed_for(dataset) if seed is None else seed)

    angles = np.linspace(0, 2 * np.pi, N_CLUSTERS, endpoint=False)
    centers = np.column_stack([np.cos(angles), np.sin(angles)]) * 4.0
    model_shift = {m: (i - (len(models) - 1) / 2) * 4_000.0 for i, m in enumerate(models)}
    base_price = _PRICE_BASE.get(dataset, _PRICE_BASE["SUV"])

    records: List[Dict[str, Any]] = []
    for i in range(n):
        model = models[int(rng.integers(len(models)))]
        cluster = int(rng.integers(N_CLUSTERS))
        x, y = centers[cluster] + rng.normal(0.0, 0.9, size=2)
        rec: Dict[str, Any] = {
            "respondent_id": f"{dataset}-{i + 1:05d}",
            "model": model,
            "cluster": cluster,
            "emb_x": round(float(x), 4),
            "emb_y": round(float(y), 4),
        }

        roll = rng.random()
        if roll < 0.01:
            rec["emb_x"] = "n/a"
        elif roll < 0.02:
            rec["model"] = ""

        for name, labels in DEMO_CODES.items():
            rec[name] = _maybe_missing(rng, int(rng.integers(1, len(labels) + 1)))
        for name in _ATTITUDE_FIELDS:
            # skewed toward agreement
            code = int(min(len(AGREE_SCALE), 1 + rng.poisson(1.6)))
            rec[name] = _maybe_missing(rng, code)

        price = base_price + model_shift[model] + rng.normal(0.0, _PRICE_SD)
        price = max(18_000.0, price)
        rec["FIN_PRICE_UNEDITED"] = _maybe_missing(rng, format_price(price), 0.05)
        rec["FIN_PU_APR"] = _maybe_missing(rng, round(float(rng.uniform(0.0, 11.0)), 2))
        rec["FIN_PU_DOWN_PAY"] = _maybe_missing(rng, round(price * float(rng.uniform(0.05, 0.25)), -2))
        rec["FIN_PU_TRADE_IN"] = _maybe_missing(rng, round(float(rng.uniform(0.0, 25_000.0)), -2))
        rec["BLD_FIN_TOTAL_MONPAY"] = _maybe_missing(rng, round(price / float(rng.choice([48, 60, 72])), 0))
        rec["FIN_LE_LENGTH"] = _maybe_missing(rng, int(rng.choice([24, 36, 39, 48])), 0.5)
        rec["FIN_PU_LENGTH"] = _maybe_missing(rng, int(rng.choice([36, 48, 60, 72, 84])), 0.3)

        state_roll = rng.random()
        code = int(rng.integers(1, len(_STATE_ABBRS) + 1))
        if state_roll < 0.85:
            rec[STATE_CODE_FIELD] = code
        elif state_roll < 0.95:
            rec["STATE"] = _STATE_ABBRS[code - 1]
        records.append(rec)
    return records


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(dataset: str, n: int) -> Dict[str, object]:
    rows = normalize_records(generate_records(dataset, n))
    lookup = CodeLookup.from_triples(DEMOS_MAPPING)
    return {
        "dataset": dataset,
        "rows": rows,
        "models": models_in(rows),
        "lookup": lookup,
        "var_labels": build_var_labels(VAR_TEXT),
        "resolver": StateResolver(lookup),
    }


def load_dashboard_data(dataset: str = "SUV", n: int = DEFAULT_ROWS) -> Dict[str, object]:
    dataset = dataset.upper() if dataset.upper() in DATASET_MODELS else "SUV"
    return _load_dashboard_data_cached(dataset, int(n))


def prepare_context(filters: dict | CustomerFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Filtered views for one request. The cached frames are never modified."""
    rows: pd.DataFrame = data_ctx.get("rows", pd.DataFrame())
    models = list(data_ctx.get("models") or [])
    filt = filters if isinstance(filters, CustomerFilters) else normalize_filters(filters, available_models=models)

    resolver = data_ctx.get("resolver") or StateResolver(data_ctx.get("lookup"))
    scopes = build_panel_scopes(rows, filt, resolver)
    return {
        "filters": filt,
        "rows": rows,
        "models": models,
        "lookup": data_ctx.get("lookup") or CodeLookup({}),
        "var_labels": data_ctx.get("var_labels") or {},
        "resolver": resolver,
        **scopes,
    }


def dataset_summary(data_ctx: Dict[str, object]) -> Dict[str, Any]:
    rows: pd.DataFrame = data_ctx.get("rows", pd.DataFrame())
    if rows.empty:
        return {"dataset": data_ctx.get("dataset"), "rows": 0, "models": [], "clusters": []}
    clusters = [int(c) for c in available_clusters(rows)]
    return {
        "dataset": data_ctx.get("dataset"),
        "rows": int(len(rows)),
        "models": list(data_ctx.get("models") or []),
        "clusters": clusters,
    }
