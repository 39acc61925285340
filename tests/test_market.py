import math
from dataclasses import replace

import pytest

from core.market import (
    PRICE_MAX,
    PRICE_MIN,
    MarketState,
    SolverSettings,
    apply_kpi_edit,
    bisect_price,
    clamp,
    clamp_state,
    derive_all,
    invert_elasticity_for_price,
    price_curve,
    solve_price_for_margin,
    solve_price_for_profit,
    solve_price_for_revenue,
)


@pytest.fixture
def state():
    return MarketState()


class TestDerive:
    def test_default_state(self, state):
        k = derive_all(state)
        assert k.demand == pytest.approx(10_000)
        assert k.revenue == pytest.approx(500_000)
        assert k.total_cost == pytest.approx(320_000)
        assert k.profit == pytest.approx(180_000)
        assert k.margin_pct == pytest.approx(0.36)
        assert k.unit_margin == pytest.approx(30)

    def test_inputs_are_clamped(self):
        s = clamp_state(MarketState(price=-5, elasticity=0.0, base_demand=float("nan"), vcpu=-1))
        assert s.price == PRICE_MIN
        assert s.elasticity == -0.05
        assert s.base_demand == 0.0
        assert s.vcpu == 0.0
        assert clamp_state(MarketState(elasticity=-9)).elasticity == -5.0

    def test_zero_revenue_margin(self):
        assert derive_all(MarketState(base_demand=0)).margin_pct == 0.0

    def test_clamp_non_finite(self):
        assert clamp(float("inf"), 1, 2) == 1
        assert clamp("x", 1, 2) == 1
        assert clamp(5, 1, 2) == 2


class TestInverse:
    @pytest.mark.parametrize("price", [0.01, 1.0, 50.0, 1234.5, 1e6])
    def test_round_trip(self, state, price):
        demand = derive_all(replace(state, price=price)).demand
        assert invert_elasticity_for_price(demand, state) == pytest.approx(price, rel=1e-9)

    def test_non_positive_demand_maps_to_max_price(self, state):
        assert invert_elasticity_for_price(0, state) == PRICE_MAX
        assert invert_elasticity_for_price(-10, state) == PRICE_MAX

    def test_infinite_demand_maps_to_min_price(self, state):
        assert invert_elasticity_for_price(float("inf"), state) == PRICE_MIN
        assert invert_elasticity_for_price(float("nan"), state) == PRICE_MAX


class TestSolvers:
    @pytest.mark.parametrize("target", [-50_000, 0, 100_000, 180_000, 220_000])
    def test_profit_targets_are_hit(self, state, target):
        price = solve_price_for_profit(target, state)
        assert derive_all(replace(state, price=price)).profit == pytest.approx(target, abs=1e-3)

    def test_profit_prefers_root_near_current_price(self, state):
        # 180k is reached at p=50 and again above the profit-maximizing price
        assert solve_price_for_profit(180_000, state) == pytest.approx(50.0, abs=1e-6)

    def test_revenue_target(self, state):
        price = solve_price_for_revenue(400_000, state)
        assert price > 50
        assert derive_all(replace(state, price=price)).revenue == pytest.approx(400_000, abs=1e-3)

    def test_margin_target(self, state):
        assert solve_price_for_margin(0.36, state) == pytest.approx(50.0, abs=1e-3)

    def test_unreachable_target_returns_bounded_price(self, state):
        price = solve_price_for_profit(1e12, state)
        assert math.isfinite(price)
        assert PRICE_MIN <= price <= PRICE_MAX

    def test_bisect_on_simple_function(self):
        root = bisect_price(lambda p: p - 3.0, 0.01, 10.0, settings=SolverSettings(tol=1e-12))
        assert root == pytest.approx(3.0, abs=1e-9)


class TestKpiEdit:
    def test_demand_edit_only_moves_price(self, state):
        new = apply_kpi_edit(state, "demand", 5_000)
        assert derive_all(new).demand == pytest.approx(5_000)
        assert replace(new, price=state.price) == state

    def test_profit_edit(self, state):
        new = apply_kpi_edit(state, "profit", 200_000)
        assert derive_all(new).profit == pytest.approx(200_000, abs=1e-3)

    def test_unknown_kpi_keeps_price(self, state):
        assert apply_kpi_edit(state, "volume", 1.0) == state

    def test_price_curve(self, state):
        curve = price_curve(state, points=5, span=2.0)
        assert curve["price"] == pytest.approx([25.0, 43.75, 62.5, 81.25, 100.0])
        assert curve["demand"][-1] == pytest.approx(10_000 * 2 ** -1.2)
        assert curve["revenue"][0] == pytest.approx(25 * 10_000 * 2 ** 1.2)
