from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from core.charts import price_curve_chart
from core.market import (
    KpiName,
    MarketState,
    SolverSettings,
    apply_kpi_edit,
    clamp_state,
    derive_all,
    kpis_to_dict,
    price_curve,
)


def compute_market(state: MarketState, *, curve_points: int = 80) -> Dict[str, Any]:
    s = clamp_state(state)
    curve = price_curve(s, points=curve_points)
    return {
        "state": asdict(s),
        "kpis": kpis_to_dict(derive_all(s)),
        "curve": curve,
        "charts": {"curve": price_curve_chart(curve, current_price=s.price)},
    }


def compute_market_solve(
    state: MarketState,
    kpi: KpiName,
    value: float,
    settings: Optional[SolverSettings] = None,
) -> Dict[str, Any]:
    """Re-solve the price so ``kpi`` reads ``value``, then rederive every KPI."""
    new_state = apply_kpi_edit(state, kpi, value, settings)
    return {
        "kpi": kpi,
        "target": value,
        "price": new_state.price,
        "state": asdict(new_state),
        "kpis": kpis_to_dict(derive_all(new_state)),
    }
