from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PanelLocksModel(BaseModel):
    attitudes: bool = False
    price: bool = False
    map: bool = False


class CustomerFiltersModel(BaseModel):
    dataset: str = "SUV"
    selected_models: List[str] = Field(default_factory=list)
    cluster: Optional[int] = None
    state_name: Optional[str] = None
    focus_model: Optional[str] = None
    group_by: Literal["model", "cluster"] = "model"
    field_group: str = "Demographics"
    att_x: Optional[str] = None
    att_y: Optional[str] = None
    include_missing: bool = True
    locks: PanelLocksModel = Field(default_factory=PanelLocksModel)


class MarketStateModel(BaseModel):
    price: float = 50.0
    base_price: float = 50.0
    base_demand: float = 10_000.0
    elasticity: float = -1.2
    vcpu: float = 20.0
    fixed_cost: float = 120_000.0


class SolveRequest(BaseModel):
    state: MarketStateModel = Field(default_factory=MarketStateModel)
    kpi: Literal["demand", "revenue", "profit", "margin_pct"]
    value: float


class SegmentsRequest(BaseModel):
    mode: Literal["segments", "powertrains"] = "segments"
    selected: Optional[List[str]] = None
    edits: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    selected_month_idx: Optional[int] = None
    range_start_idx: Optional[int] = None
    range_end_idx: Optional[int] = None


class SentimentRequest(BaseModel):
    selected: Optional[List[str]] = None
    demographics: Dict[str, str] = Field(default_factory=dict)
