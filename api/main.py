from __future__ import annotations

import io
import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CustomerFiltersModel, MarketStateModel, SegmentsRequest, SentimentRequest, SolveRequest
from core.data import dataset_summary, load_dashboard_data, prepare_context
from core.filters import CustomerFilters, normalize_filters
from core.lookups import build_var_labels, var_label
from core.market import MarketState
from core.metrics_customers import compute_customer_groups
from core.metrics_market import compute_market, compute_market_solve
from core.metrics_segments import compute_segments
from core.metrics_sentiment import compute_sentiments
from core.reference import FIELD_GROUPS, VAR_TEXT


app = FastAPI(title="Customer Insights API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

EXPORT_SCOPES = {
    "customer-groups": "panel",
    "scope": "scope",
    "plot": "plot",
    "attitudes": "attitudes",
    "price": "price",
    "map": "map",
}


def _filters_from_model(model: CustomerFiltersModel, *, available_models: list[str]) -> CustomerFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_models=available_models)


def _state_from_model(model: MarketStateModel) -> MarketState:
    return MarketState(**model.model_dump())


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.get("/meta/models")
def meta_models(dataset: str = Query(default="SUV")):
    try:
        data_ctx = load_dashboard_data(dataset)
        return _json(dataset_summary(data_ctx))
    except Exception as exc:
        logger.exception("meta_models failed")
        return _error(exc)


@app.get("/meta/field-groups")
def meta_field_groups():
    try:
        labels = build_var_labels(VAR_TEXT)
        groups = {
            name: [{"field": f, "label": var_label(labels, f)} for f in fields]
            for name, fields in FIELD_GROUPS.items()
        }
        return _json({"groups": groups})
    except Exception as exc:
        logger.exception("meta_field_groups failed")
        return _error(exc)


@app.post("/customer-groups")
def customer_groups(filters: CustomerFiltersModel, center_t: float = Query(default=0.0, ge=0.0, le=1.0)):
    try:
        data_ctx = load_dashboard_data(filters.dataset)
        f = _filters_from_model(filters, available_models=data_ctx.get("models", []))
        ctx = prepare_context(f, data_ctx)
        return _json(compute_customer_groups(f, ctx, center_t=center_t))
    except Exception as exc:
        logger.exception("customer_groups failed")
        return _error(exc)


@app.post("/market/derive")
def market_derive(state: MarketStateModel):
    try:
        return _json(compute_market(_state_from_model(state)))
    except Exception as exc:
        logger.exception("market_derive failed")
        return _error(exc)


@app.post("/market/solve")
def market_solve(req: SolveRequest):
    try:
        return _json(compute_market_solve(_state_from_model(req.state), req.kpi, req.value))
    except Exception as exc:
        logger.exception("market_solve failed")
        return _error(exc)


@app.post("/segments")
def segments(req: SegmentsRequest):
    try:
        return _json(
            compute_segments(
                req.mode,
                req.selected,
                req.edits,
                selected_month_idx=req.selected_month_idx,
                range_start_idx=req.range_start_idx,
                range_end_idx=req.range_end_idx,
            )
        )
    except Exception as exc:
        logger.exception("segments failed")
        return _error(exc)


@app.post("/sentiments")
def sentiments(req: SentimentRequest):
    try:
        return _json(compute_sentiments(req.selected, req.demographics))
    except Exception as exc:
        logger.exception("sentiments failed")
        return _error(exc)


@app.post("/export/{page}")
def export_page(
    page: str,
    filters: CustomerFiltersModel,
    fmt: Literal["csv", "xlsx"] = Query(default="csv", alias="format"),
):
    data_ctx = load_dashboard_data(filters.dataset)
    f = _filters_from_model(filters, available_models=data_ctx.get("models", []))
    ctx = prepare_context(f, data_ctx)

    scope_key = EXPORT_SCOPES.get(page)
    export_df = ctx.get(scope_key) if scope_key else None
    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    export_df = export_df.drop(columns=["raw_x", "raw_y"], errors="ignore")

    if fmt == "xlsx":
        buf = io.BytesIO()
        export_df.to_excel(buf, index=False, sheet_name=page[:31], engine="openpyxl")
        return Response(
            content=buf.getvalue(),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={page}.xlsx"},
        )
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={page}.csv"})
