from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from core.charts import volume_bars
from core.segments import HISTORY_END, MODES, ResponseCoefficients, build_profiles, month_inputs, simulate


def compute_segments(
    mode: str = "segments",
    selected: Optional[Iterable[str]] = None,
    edits: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    selected_month_idx: Optional[int] = None,
    range_start_idx: Optional[int] = None,
    range_end_idx: Optional[int] = None,
    coeffs: ResponseCoefficients = ResponseCoefficients(),
) -> Dict[str, Any]:
    if mode not in MODES:
        mode = "segments"
    keys = list(MODES[mode].keys())
    selected = [k for k in (selected or keys) if k in MODES[mode]]

    profiles = build_profiles(mode)
    ticks = profiles["month_ticks"]
    if selected_month_idx is not None:
        selected_month_idx = max(0, min(int(selected_month_idx), len(ticks) - 1))

    result = simulate(
        mode,
        selected,
        edits,
        selected_month_idx=selected_month_idx,
        range_start_idx=range_start_idx,
        range_end_idx=range_end_idx,
        coeffs=coeffs,
        profiles=profiles,
    )

    month_values = {}
    if selected_month_idx is not None:
        month_values = {k: month_inputs(profiles["profiles"][k], ticks, selected_month_idx) for k in selected}

    return {
        **result,
        "keys": keys,
        "selected": selected,
        "month_ticks": ticks,
        "history_end": HISTORY_END,
        "selected_month": ticks[selected_month_idx] if selected_month_idx is not None else None,
        "month_values": month_values,
        "charts": {"volume": volume_bars(result["rows"])} if result["rows"] else {},
    }
