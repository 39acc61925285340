import math
from dataclasses import replace

import numpy as np
import pytest

from core.segments import (
    MODES,
    ResponseCoefficients,
    apply_edits,
    build_profile,
    clamp_edit,
    compute_volume,
    month_range,
    range_stats,
    simulate,
    weighted_kpis,
)


@pytest.fixture
def base():
    return MODES["segments"]["M SUV"]


class TestVolumeModel:
    def test_baseline_reproduces_base_volume(self, base):
        assert compute_volume(base, base) == pytest.approx(base.base_volume)

    def test_price_response(self, base):
        vol = compute_volume(replace(base, price=base.price * 1.1), base)
        assert vol == pytest.approx(base.base_volume * 1.1 ** -1.1)

    def test_mix_and_incentive_responses(self, base):
        c = ResponseCoefficients()
        state = replace(base, fleet=base.fleet + 10, days=base.days + 20, incentives=base.incentives + 1000)
        expected = base.base_volume * math.exp(c.b_fleet_per_10pp) * math.exp(2 * c.b_days_per_10) * math.exp(c.b_incentives_per_k)
        assert compute_volume(state, base) == pytest.approx(expected)


class TestEdits:
    @pytest.mark.parametrize(
        "field_name, raw, expected",
        [
            ("price", 500, 1_000),
            ("price", 300_000, 250_000),
            ("month", 12.6, 12),
            ("month", 0, 1),
            ("days", "abc", 0),
            ("incentives", float("inf"), 0),
            ("lease", "42", 42),
        ],
    )
    def test_clamp_edit(self, field_name, raw, expected):
        assert clamp_edit(field_name, raw) == expected

    def test_unknown_field(self):
        assert clamp_edit("color", 1) is None

    def test_apply_edits(self, base):
        edited = apply_edits(base, {"price": 50_000, "month": 3.2, "color": "red"})
        assert edited.price == 50_000
        assert edited.month == 3
        assert edited.base_volume == base.base_volume


class TestProfiles:
    def test_month_range(self):
        assert month_range("2023-11", "2024-02") == ["2023-11", "2023-12", "2024-01", "2024-02"]

    def test_profile_is_deterministic(self, base):
        a = build_profile("M SUV", base, 24)
        b = build_profile("M SUV", base, 24)
        assert set(a) == {"price", "fleet", "lease", "days", "incentives", "volume"}
        for k in a:
            assert len(a[k]) == 24
            np.testing.assert_array_equal(a[k], b[k])
        assert (a["volume"] >= 1).all()

    def test_range_stats(self):
        profile = {
            "price": np.array([100.0, 200.0, 300.0]),
            "fleet": np.zeros(3),
            "lease": np.zeros(3),
            "days": np.array([10.0, 20.0, 30.0]),
            "incentives": np.zeros(3),
            "volume": np.array([1.0, 1.0, 2.0]),
        }
        stats = range_stats(profile, 1, 99)
        assert stats["avg_price"] == round((200 + 600) / 3)
        assert stats["avg_days"] == round((20 + 60) / 3)
        assert stats["total_volume"] == 3
        assert range_stats(profile, 2, 0)["total_volume"] == 2
        assert range_stats(None, 0, 1)["total_volume"] == 0


class TestKpis:
    def test_volume_weighting(self):
        rows = [
            {"price": 10.0, "fleet": 0.0, "lease": 10.0, "days": 30.0, "incentives": 0.0, "volume": 1.0},
            {"price": 20.0, "fleet": 4.0, "lease": 10.0, "days": 50.0, "incentives": 0.0, "volume": 3.0},
        ]
        k = weighted_kpis(rows)
        assert k["total_volume"] == 4.0
        assert k["weighted_atp"] == pytest.approx(17.5)
        assert k["fleet_mix"] == pytest.approx(3.0)
        assert k["days_supply"] == pytest.approx(45.0)

    def test_empty_selection(self):
        assert weighted_kpis([])["weighted_atp"] == 0.0

    def test_snapshot_simulation(self):
        out = simulate("powertrains", ["ICE", "BEV", "UNKNOWN"], {"BEV": {"price": 96_000}})
        assert [r["key"] for r in out["rows"]] == ["ICE", "BEV"]
        bev = out["rows"][1]
        assert bev["volume"] == pytest.approx(18_000 * 2 ** -1.1)
        assert out["rows"][0]["volume"] == pytest.approx(70_000)
        assert out["kpis"]["total_volume"] == pytest.approx(70_000 + bev["volume"])
        assert out["window"] is None

    def test_range_simulation(self):
        out = simulate("segments", ["S SUV", "M SUV"], range_start_idx=0, range_end_idx=11)
        assert out["window"] == {"start": "2023-01", "end": "2023-12"}
        total = sum(r["volume"] for r in out["rows"])
        assert out["kpis"]["total_volume"] == pytest.approx(total, abs=2)
