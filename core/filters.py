from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional

from core.reference import DATASET_MODELS, FIELD_GROUPS


GroupBy = Literal["model", "cluster"]


@dataclass(frozen=True)
class PanelLocks:
    attitudes: bool = False
    price: bool = False
    map: bool = False


@dataclass(frozen=True)
class CustomerFilters:
    dataset: str = "SUV"
    selected_models: List[str] = field(default_factory=list)
    cluster: Optional[int] = None
    state_name: Optional[str] = None
    focus_model: Optional[str] = None
    group_by: GroupBy = "model"
    field_group: str = "Demographics"
    att_x: str = FIELD_GROUPS["Loyalty"][0]
    att_y: str = FIELD_GROUPS["Willingness to Pay"][0]
    include_missing: bool = True
    locks: PanelLocks = field(default_factory=PanelLocks)


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def _as_optional_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None


def _as_optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def normalize_filters(raw: dict, *, available_models: Optional[List[str]] = None) -> CustomerFilters:
    raw = raw or {}
    dataset = str(raw.get("dataset") or "SUV").strip().upper()
    if dataset not in DATASET_MODELS:
        dataset = "SUV"

    selected_models = _as_str_list(raw.get("selected_models"))
    if available_models is not None:
        allowed = set(available_models)
        selected_models = [m for m in selected_models if m in allowed]

    focus_model = _as_optional_str(raw.get("focus_model"))
    if focus_model is not None and available_models is not None and focus_model not in available_models:
        focus_model = None

    group_by = raw.get("group_by") or "model"
    if group_by not in ("model", "cluster"):
        group_by = "model"

    field_group = str(raw.get("field_group") or "Demographics")
    if field_group not in FIELD_GROUPS:
        field_group = "Demographics"

    att_fields = set(FIELD_GROUPS["Loyalty"]) | set(FIELD_GROUPS["Willingness to Pay"])
    att_x = str(raw.get("att_x") or FIELD_GROUPS["Loyalty"][0])
    att_y = str(raw.get("att_y") or FIELD_GROUPS["Willingness to Pay"][0])
    if att_x not in att_fields:
        att_x = FIELD_GROUPS["Loyalty"][0]
    if att_y not in att_fields:
        att_y = FIELD_GROUPS["Willingness to Pay"][0]

    lk = raw.get("locks") or {}
    locks = PanelLocks(
        attitudes=bool(lk.get("attitudes", False)),
        price=bool(lk.get("price", False)),
        map=bool(lk.get("map", False)),
    )

    return CustomerFilters(
        dataset=dataset,
        selected_models=selected_models,
        cluster=_as_optional_int(raw.get("cluster")),
        state_name=_as_optional_str(raw.get("state_name")),
        focus_model=focus_model,
        group_by=group_by,
        field_group=field_group,
        att_x=att_x,
        att_y=att_y,
        include_missing=bool(raw.get("include_missing", True)),
        locks=locks,
    )
