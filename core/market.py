"""Price-elasticity demand model, KPI derivation and price solvers.

Every function here is total: inputs are clamped into the model's domain and a
solve that cannot be bracketed returns a best-effort price instead of raising,
so a slider driving these never produces an error.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, replace
from typing import Callable, Dict, Literal, Optional, Tuple

import numpy as np


logger = logging.getLogger(__name__)

PRICE_MIN = 0.01
PRICE_MAX = 1e6
ELASTICITY_MIN = -5.0
ELASTICITY_MAX = -0.05

KpiName = Literal["demand", "revenue", "profit", "margin_pct"]


@dataclass(frozen=True)
class MarketState:
    price: float = 50.0
    base_price: float = 50.0
    base_demand: float = 10_000.0
    elasticity: float = -1.2
    vcpu: float = 20.0
    fixed_cost: float = 120_000.0


@dataclass(frozen=True)
class DerivedKPIs:
    demand: float
    revenue: float
    total_cost: float
    profit: float
    margin_pct: float
    unit_margin: float


@dataclass(frozen=True)
class SolverSettings:
    max_iter: int = 70
    tol: float = 1e-6
    max_expansions: int = 10
    scan_points: int = 64
    # upper bracket = base_price * K
    revenue_k: float = 100.0
    profit_k: float = 200.0
    margin_k: float = 60.0


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp into [lo, hi]; non-finite input falls to ``lo``."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return lo
    if not math.isfinite(v):
        return lo
    return min(hi, max(lo, v))


def clamp_state(state: MarketState) -> MarketState:
    return MarketState(
        price=clamp(state.price, PRICE_MIN, PRICE_MAX),
        base_price=clamp(state.base_price, PRICE_MIN, PRICE_MAX),
        base_demand=clamp(state.base_demand, 0.0, math.inf),
        elasticity=clamp(state.elasticity, ELASTICITY_MIN, ELASTICITY_MAX),
        vcpu=clamp(state.vcpu, 0.0, math.inf),
        fixed_cost=clamp(state.fixed_cost, 0.0, math.inf),
    )


def demand_at(price: float, state: MarketState) -> float:
    return state.base_demand * (price / state.base_price) ** state.elasticity


def derive_at(price: float, state: MarketState) -> DerivedKPIs:
    demand = demand_at(price, state)
    revenue = price * demand
    total_cost = state.fixed_cost + state.vcpu * demand
    profit = revenue - total_cost
    return DerivedKPIs(
        demand=demand,
        revenue=revenue,
        total_cost=total_cost,
        profit=profit,
        margin_pct=profit / revenue if revenue > 0 else 0.0,
        unit_margin=price - state.vcpu,
    )


def derive_all(state: MarketState) -> DerivedKPIs:
    s = clamp_state(state)
    return derive_at(s.price, s)


def invert_elasticity_for_price(target_demand: float, state: MarketState) -> float:
    """Closed-form price that yields ``target_demand`` on the power-law curve."""
    s = clamp_state(state)
    try:
        if float(target_demand) == math.inf:
            return PRICE_MIN
    except (TypeError, ValueError):
        pass
    target = clamp(target_demand, 0.0, math.inf)
    if target <= 0 or s.base_demand <= 0:
        # zero demand is only reached as price -> infinity
        return PRICE_MAX
    return clamp(s.base_price * (target / s.base_demand) ** (1.0 / s.elasticity), PRICE_MIN, PRICE_MAX)


def _find_bracket(
    f: Callable[[float], float],
    lo: float,
    hi: float,
    near: float,
    settings: SolverSettings,
) -> Tuple[float, float, bool]:
    if f(lo) * f(hi) <= 0:
        return lo, hi, True

    # Non-monotonic metrics (profit, margin) can cross the target twice inside the
    # bracket; take the crossing closest to the current price.
    grid = np.geomspace(lo, hi, settings.scan_points)
    vals = np.array([f(p) for p in grid])
    crossings = np.nonzero(vals[:-1] * vals[1:] <= 0)[0]
    if crossings.size:
        mids = np.sqrt(grid[crossings] * grid[crossings + 1])
        i = crossings[int(np.argmin(np.abs(np.log(mids / near))))]
        return float(grid[i]), float(grid[i + 1]), True

    for _ in range(settings.max_expansions):
        lo /= 2
        hi *= 2
        if f(lo) * f(hi) <= 0:
            return lo, hi, True
    return lo, hi, False


def bisect_price(
    f: Callable[[float], float],
    lo: float,
    hi: float,
    *,
    near: Optional[float] = None,
    settings: Optional[SolverSettings] = None,
) -> float:
    """Root of ``f`` by bisection; midpoint of the widest bracket when none is found."""
    settings = settings or SolverSettings()
    near = near if near and near > 0 else math.sqrt(lo * hi)
    lo, hi, bracketed = _find_bracket(f, lo, hi, near, settings)
    if not bracketed:
        logger.debug("bisect_price could not bracket a root in [%g, %g]", lo, hi)
        return clamp((lo + hi) / 2, PRICE_MIN, PRICE_MAX)

    f_lo = f(lo)
    mid = (lo + hi) / 2
    for _ in range(settings.max_iter):
        mid = (lo + hi) / 2
        f_mid = f(mid)
        if abs(f_mid) < settings.tol:
            break
        if f_lo * f_mid <= 0:
            hi = mid
        else:
            lo, f_lo = mid, f_mid
    return clamp(mid, PRICE_MIN, PRICE_MAX)


def _solve(metric: Callable[[DerivedKPIs], float], target: float, state: MarketState, k: float, settings: SolverSettings) -> float:
    s = clamp_state(state)
    goal = float(target) if target is not None and math.isfinite(float(target)) else 0.0

    def f(price: float) -> float:
        return metric(derive_at(price, s)) - goal

    return bisect_price(f, PRICE_MIN, s.base_price * k, near=s.price, settings=settings)


def solve_price_for_revenue(target: float, state: MarketState, settings: Optional[SolverSettings] = None) -> float:
    settings = settings or SolverSettings()
    return _solve(lambda d: d.revenue, target, state, settings.revenue_k, settings)


def solve_price_for_profit(target: float, state: MarketState, settings: Optional[SolverSettings] = None) -> float:
    settings = settings or SolverSettings()
    return _solve(lambda d: d.profit, target, state, settings.profit_k, settings)


def solve_price_for_margin(target: float, state: MarketState, settings: Optional[SolverSettings] = None) -> float:
    """``target`` is a fraction of revenue (0.36 for 36%)."""
    settings = settings or SolverSettings()
    return _solve(lambda d: d.margin_pct, target, state, settings.margin_k, settings)


def apply_kpi_edit(state: MarketState, kpi: KpiName, value: float, settings: Optional[SolverSettings] = None) -> MarketState:
    """New state whose price reproduces the edited KPI; other inputs are untouched."""
    s = clamp_state(state)
    if kpi == "demand":
        price = invert_elasticity_for_price(value, s)
    elif kpi == "revenue":
        price = solve_price_for_revenue(value, s, settings)
    elif kpi == "profit":
        price = solve_price_for_profit(value, s, settings)
    elif kpi == "margin_pct":
        price = solve_price_for_margin(value, s, settings)
    else:
        return s
    return replace(s, price=price)


def kpis_to_dict(kpis: DerivedKPIs) -> Dict[str, float]:
    return asdict(kpis)


def price_curve(state: MarketState, *, points: int = 80, span: float = 3.0) -> Dict[str, list]:
    """KPIs sampled on a price grid around the base price, for the curve chart."""
    s = clamp_state(state)
    lo = max(PRICE_MIN, s.base_price / span)
    hi = min(PRICE_MAX, s.base_price * span)
    grid = np.linspace(lo, hi, max(2, int(points)))
    rows = [derive_at(float(p), s) for p in grid]
    return {
        "price": [float(p) for p in grid],
        "demand": [r.demand for r in rows],
        "revenue": [r.revenue for r in rows],
        "profit": [r.profit for r in rows],
    }
