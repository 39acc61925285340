"""Segment / powertrain market simulation.

Volume responds to price, fleet mix, lease mix, days supply and incentives
through a multiplicative response model anchored on each key's baseline.
Monthly demo profiles are generated deterministically per key.
"""

from __future__ import annotations

import math
import zlib
from dataclasses import asdict, dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class SegmentBaseline:
    price: float
    fleet: float
    lease: float
    days: float
    incentives: float
    month: int
    base_volume: float


@dataclass(frozen=True)
class ResponseCoefficients:
    e_price: float = -1.1
    b_fleet_per_10pp: float = 0.06
    b_lease_per_10pp: float = 0.04
    b_incentives_per_k: float = 0.05
    b_days_per_10: float = -0.05


def _base(atp, fleet, lease, days, incentives, month, base_volume) -> SegmentBaseline:
    return SegmentBaseline(atp, fleet, lease, days, incentives, month, base_volume)


MODES: Mapping[str, Mapping[str, SegmentBaseline]] = MappingProxyType(
    {
        "segments": MappingProxyType(
            {
                "S SUV": _base(38_000, 10_000, 14, 50, 750, 6, 24_000),
                "M SUV": _base(45_000, 12_000, 16, 55, 1_000, 6, 40_000),
                "L SUV": _base(54_000, 14_000, 18, 60, 1_500, 6, 28_000),
                "XL SUV": _base(62_000, 16_000, 20, 65, 2_000, 6, 16_000),
                "S Pickup": _base(42_000, 11_000, 13, 55, 700, 6, 20_000),
                "M Pickup": _base(50_000, 13_000, 15, 60, 1_100, 6, 36_000),
                "L Pickup": _base(58_000, 15_000, 17, 65, 1_600, 6, 26_000),
                "XL Pickup": _base(66_000, 17_000, 19, 70, 2_200, 6, 14_000),
            }
        ),
        "powertrains": MappingProxyType(
            {
                "ICE": _base(40_000, 9_000, 15, 55, 750, 6, 70_000),
                "HEV": _base(44_000, 12_000, 17, 50, 1_000, 6, 28_000),
                "PHEV": _base(50_000, 15_000, 18, 60, 1_500, 6, 14_000),
                "BEV": _base(48_000, 10_000, 20, 65, 2_500, 6, 18_000),
            }
        ),
    }
)

HISTORY_START = "2023-01"
HISTORY_END = "2025-08"
HORIZON_END = "2040-01"

# (lo, hi) limits for user edits
EDIT_LIMITS: Mapping[str, Tuple[float, float]] = MappingProxyType(
    {
        "month": (1, 12),
        "price": (1_000, 250_000),
        "fleet": (0, 100_000),
        "lease": (0, 100_000),
        "days": (0, 400),
        "incentives": (0, 25_000),
    }
)
PROFILE_FIELDS = ("price", "fleet", "lease", "days", "incentives")


def compute_volume(state: SegmentBaseline, base: SegmentBaseline, coeffs: ResponseCoefficients = ResponseCoefficients()) -> float:
    price_factor = (state.price / base.price) ** coeffs.e_price
    fleet_factor = math.exp(coeffs.b_fleet_per_10pp * ((state.fleet - base.fleet) / 10))
    lease_factor = math.exp(coeffs.b_lease_per_10pp * ((state.lease - base.lease) / 10))
    days_factor = math.exp(coeffs.b_days_per_10 * ((state.days - base.days) / 10))
    inc_factor = math.exp(coeffs.b_incentives_per_k * ((state.incentives - base.incentives) / 1000))
    vol = base.base_volume * price_factor * fleet_factor * lease_factor * days_factor * inc_factor
    return max(0.0, vol)


def clamp_edit(field_name: str, raw: object) -> Optional[float]:
    if field_name not in EDIT_LIMITS:
        return None
    lo, hi = EDIT_LIMITS[field_name]
    try:
        v = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        v = 0.0
    if not math.isfinite(v):
        v = lo
    v = min(hi, max(lo, v))
    if field_name == "month":
        return float(int(round(v)))
    return v


def apply_edits(base: SegmentBaseline, edits: Optional[Mapping[str, Any]]) -> SegmentBaseline:
    changes = {}
    for k, raw in (edits or {}).items():
        v = clamp_edit(k, raw)
        if v is not None:
            changes[k] = int(v) if k == "month" else v
    return replace(base, **changes)


def month_range(start_ym: str, end_ym: str) -> List[str]:
    return [p.strftime("%Y-%m") for p in pd.period_range(start=start_ym, end=end_ym, freq="M")]


def month_number(ym: str) -> int:
    return int(ym.split("-")[1])


def _seed_for(key: str) -> int:
    return zlib.crc32(key.encode("utf-8"))


def build_profile(key: str, base: SegmentBaseline, n: int) -> Dict[str, np.ndarray]:
    """Seasonal, trending, lightly noisy monthly series for one key."""
    rng = np.random.default_rng(_seed_for(key))
    i = np.arange(n)

    def season(amp: float) -> np.ndarray:
        return 1 + amp * np.sin(2 * np.pi * i / 12)

    def noise(amp: float) -> np.ndarray:
        return 1 + (rng.random(n) - 0.5) * (2 * amp)

    def trend(slope: float) -> np.ndarray:
        return 1 + slope * i

    return {
        "price": base.price * season(0.06) * trend(0.0008) * noise(0.015),
        "fleet": base.fleet * season(0.04) * noise(0.02),
        "lease": base.lease * season(0.03) * noise(0.02),
        # loosely counter-seasonal
        "days": base.days * (2 - season(0.08)) * noise(0.03),
        "incentives": base.incentives * season(0.12) * noise(0.05),
        "volume": np.maximum(1.0, base.base_volume * season(0.1) * trend(0.002) * noise(0.04)),
    }


def build_profiles(mode: str = "segments", start: str = HISTORY_START, end: str = HORIZON_END) -> Dict[str, Any]:
    ticks = month_range(start, end)
    baselines = MODES.get(mode, MODES["segments"])
    return {
        "month_ticks": ticks,
        "profiles": {k: build_profile(k, b, len(ticks)) for k, b in baselines.items()},
    }


def clamp_range(start_idx: Optional[int], end_idx: Optional[int], n: int) -> Tuple[int, int]:
    rs = max(0, min(start_idx if start_idx is not None else 0, n - 1))
    re_ = max(rs, min(end_idx if end_idx is not None else n - 1, n - 1))
    return rs, re_


def _weighted(profiles: Iterable[Mapping[str, np.ndarray]], rs: int, re_: int) -> Dict[str, float]:
    sum_vol = 0.0
    sums = {f: 0.0 for f in PROFILE_FIELDS}
    for prof in profiles:
        vol = prof["volume"][rs : re_ + 1]
        sum_vol += float(vol.sum())
        for f in PROFILE_FIELDS:
            sums[f] += float((prof[f][rs : re_ + 1] * vol).sum())
    out = {f: (sums[f] / sum_vol if sum_vol > 0 else 0.0) for f in PROFILE_FIELDS}
    out["total_volume"] = sum_vol
    return out


def range_stats(profile: Optional[Mapping[str, np.ndarray]], start_idx: Optional[int], end_idx: Optional[int]) -> Dict[str, int]:
    """Volume-weighted averages (rounded) and total volume over a month range."""
    if not profile:
        return {f"avg_{f}": 0 for f in PROFILE_FIELDS} | {"total_volume": 0}
    rs, re_ = clamp_range(start_idx, end_idx, len(profile["volume"]))
    w = _weighted([profile], rs, re_)
    out = {f"avg_{f}": int(round(w[f])) for f in PROFILE_FIELDS}
    out["total_volume"] = int(round(w["total_volume"]))
    return out


def weighted_kpis(rows: List[Dict[str, Any]]) -> Dict[str, float]:
    """Volume-weighted KPIs across snapshot rows carrying a ``volume``."""
    total = float(sum(r["volume"] for r in rows))

    def vw(f: str) -> float:
        return sum(r[f] * r["volume"] for r in rows) / total if total > 0 else 0.0

    return {
        "total_volume": total,
        "weighted_atp": vw("price"),
        "fleet_mix": vw("fleet"),
        "lease_mix": vw("lease"),
        "days_supply": vw("days"),
        "incentives": vw("incentives"),
    }


def range_kpis(profiles: Mapping[str, Mapping[str, np.ndarray]], keys: Iterable[str], start_idx: Optional[int], end_idx: Optional[int]) -> Dict[str, float]:
    selected = [profiles[k] for k in keys if k in profiles]
    if not selected:
        return weighted_kpis([])
    rs, re_ = clamp_range(start_idx, end_idx, len(selected[0]["volume"]))
    w = _weighted(selected, rs, re_)
    return {
        "total_volume": w["total_volume"],
        "weighted_atp": w["price"],
        "fleet_mix": w["fleet"],
        "lease_mix": w["lease"],
        "days_supply": w["days"],
        "incentives": w["incentives"],
    }


def simulate(
    mode: str,
    selected: Iterable[str],
    edits: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    selected_month_idx: Optional[int] = None,
    range_start_idx: Optional[int] = None,
    range_end_idx: Optional[int] = None,
    coeffs: ResponseCoefficients = ResponseCoefficients(),
    profiles: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Simulation rows and KPIs for the selected keys.

    Powertrains, or segments with a month picked, are snapshots driven by the
    response model. Segments without a month use range averages and totals.
    """
    baselines = MODES.get(mode, MODES["segments"])
    edits = edits or {}
    keys = [k for k in selected if k in baselines]

    range_mode = mode == "segments" and selected_month_idx is None
    if range_mode:
        profiles = profiles or build_profiles("segments")
        n = len(profiles["month_ticks"])
        rs, re_ = clamp_range(range_start_idx, range_end_idx, n)

    rows: List[Dict[str, Any]] = []
    for key in keys:
        base = baselines[key]
        state = apply_edits(base, edits.get(key))
        if range_mode:
            stats = range_stats(profiles["profiles"].get(key), rs, re_)
            state = replace(
                state,
                price=stats["avg_price"],
                fleet=stats["avg_fleet"],
                lease=stats["avg_lease"],
                days=stats["avg_days"],
                incentives=stats["avg_incentives"],
            )
            volume = float(stats["total_volume"])
        else:
            volume = compute_volume(state, base, coeffs)
        rows.append({"key": key, "label": key, **asdict(state), "volume": volume})

    if range_mode:
        kpis = range_kpis(profiles["profiles"], keys, rs, re_)
        window = {"start": profiles["month_ticks"][rs], "end": profiles["month_ticks"][re_]}
    else:
        kpis = weighted_kpis(rows)
        window = None
    return {"mode": mode, "rows": rows, "kpis": kpis, "window": window}


def month_inputs(profile: Mapping[str, np.ndarray], month_ticks: List[str], idx: int) -> Dict[str, int]:
    """Rounded profile values for one month, used to seed the edit inputs."""
    i = max(0, min(int(idx), len(month_ticks) - 1))
    out = {f: int(round(float(profile[f][i]))) for f in PROFILE_FIELDS}
    out["month"] = month_number(month_ticks[i])
    return out
