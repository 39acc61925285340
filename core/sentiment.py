"""Product sentiment demo models and demographic adjustments."""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Statement:
    name: str
    weight: float
    score: float


@dataclass(frozen=True)
class Category:
    name: str
    weight: float
    score: float
    statements: Tuple[Statement, ...] = ()


@dataclass(frozen=True)
class SentimentModel:
    id: str
    name: str
    overall: float
    categories: Tuple[Category, ...] = ()


@dataclass(frozen=True)
class DemographicSelection:
    age_range: str = ""
    gender: str = ""
    marital_status: str = ""
    num_kids: str = ""
    life_stage: str = ""
    education: str = ""
    household_income: str = ""


DEMOGRAPHIC_OPTIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "age_range": ("18-24", "25-34", "35-44", "45-54", "55-64", "65+"),
    "gender": ("Female", "Male", "Non-binary", "Other"),
    "marital_status": ("Single", "Married/Partnered", "Divorced/Separated", "Widowed"),
    "num_kids": ("0", "1", "2", "3+"),
    "life_stage": ("Young Single", "Young Family", "Maturing Family", "Established", "Empty Nester", "Retired"),
    "education": ("HS or less", "Some college", "Bachelor's", "Graduate+"),
    "household_income": ("<$50k", "$50-100k", "$100-150k", "$150k+"),
})

CATEGORY_NAMES = ("Design", "Performance", "Comfort", "Technology", "Value", "Reliability")

# statement names and weights per category, shared by every model
_STATEMENTS: Mapping[str, Tuple[Tuple[str, float], ...]] = MappingProxyType({
    "Design": (("Exterior styling", 0.35), ("Interior materials", 0.25), ("Color/trim options", 0.2), ("Fit & finish", 0.2)),
    "Performance": (("Acceleration", 0.3), ("Handling", 0.3), ("Braking", 0.2), ("Range/MPG", 0.2)),
    "Comfort": (("Seat comfort", 0.3), ("Ride quality", 0.35), ("Cabin noise", 0.2), ("Climate controls", 0.15)),
    "Technology": (("Infotainment UX", 0.35), ("Navigation", 0.25), ("Driver assist", 0.25), ("App/Connectivity", 0.15)),
    "Value": (("Price vs features", 0.45), ("Resale expectations", 0.25), ("Maintenance costs", 0.3)),
    "Reliability": (("Build reliability", 0.45), ("Software stability", 0.3), ("Warranty experience", 0.25)),
})

# name, overall, then per category: (weight, score, statement scores)
_DEMO_MODELS = (
    ("Ford Bronco", 78, (
        (0.2, 82, (85, 78, 80, 82)),
        (0.22, 80, (82, 79, 78, 76)),
        (0.16, 74, (75, 73, 72, 76)),
        (0.18, 76, (78, 74, 75, 77)),
        (0.12, 75, (76, 73, 75)),
        (0.12, 80, (81, 77, 82)),
    )),
    ("Toyota 4Runner", 82, (
        (0.17, 78, (79, 76, 77, 80)),
        (0.2, 79, (77, 78, 79, 82)),
        (0.18, 80, (81, 79, 80, 80)),
        (0.16, 74, (74, 73, 74, 74)),
        (0.14, 85, (86, 88, 82)),
        (0.15, 90, (92, 86, 90)),
    )),
    ("Rivian R1S", 85, (
        (0.22, 90, (92, 89, 88, 90)),
        (0.22, 92, (95, 92, 90, 89)),
        (0.16, 84, (86, 83, 82, 85)),
        (0.2, 88, (90, 87, 88, 88)),
        (0.1, 74, (75, 73, 74)),
        (0.1, 78, (80, 75, 79)),
    )),
    ("Tesla Model Y", 81, (
        (0.18, 80, (82, 76, 78, 77)),
        (0.24, 91, (95, 90, 88, 90)),
        (0.16, 79, (79, 78, 80, 79)),
        (0.22, 87, (90, 85, 87, 86)),
        (0.1, 73, (74, 72, 73)),
        (0.1, 70, (70, 68, 72)),
    )),
    ("Jeep Wrangler", 76, (
        (0.22, 86, (90, 78, 84, 82)),
        (0.24, 78, (76, 74, 77, 84)),
        (0.14, 68, (70, 64, 66, 70)),
        (0.14, 70, (72, 68, 70, 69)),
        (0.14, 77, (78, 80, 73)),
        (0.12, 74, (75, 72, 75)),
    )),
)

STATEMENT_DAMPING = 0.7


def model_id(name: str) -> str:
    return re.sub(r"\s+", "-", name).lower()


def make_model(name: str, overall: float, categories: Sequence[Category]) -> SentimentModel:
    return SentimentModel(id=model_id(name), name=name, overall=overall, categories=tuple(categories))


def demo_models() -> List[SentimentModel]:
    models = []
    for name, overall, cats in _DEMO_MODELS:
        categories = []
        for cat_name, (weight, score, stmt_scores) in zip(CATEGORY_NAMES, cats):
            statements = tuple(
                Statement(s_name, s_weight, s_score)
                for (s_name, s_weight), s_score in zip(_STATEMENTS[cat_name], stmt_scores)
            )
            categories.append(Category(cat_name, weight, score, statements))
        models.append(make_model(name, overall, categories))
    return models


def clamp_score(x: float) -> int:
    """Round half up and clamp into [0, 100]."""
    return int(max(0, min(100, math.floor(x + 0.5))))


def demographic_deltas(demo: DemographicSelection) -> Dict[str, float]:
    delta = {name: 0.0 for name in CATEGORY_NAMES}

    if demo.age_range in ("18-24", "25-34"):
        delta["Technology"] += 2
        delta["Design"] += 1
    elif demo.age_range in ("35-44", "45-54"):
        delta["Comfort"] += 1
        delta["Value"] += 1
    elif demo.age_range in ("55-64", "65+"):
        delta["Comfort"] += 2
        delta["Reliability"] += 1

    if demo.gender == "Female":
        delta["Comfort"] += 1
        delta["Technology"] += 1
    elif demo.gender == "Male":
        delta["Performance"] += 1
        delta["Design"] += 1

    if demo.marital_status == "Married/Partnered":
        delta["Value"] += 1
    elif demo.marital_status == "Single":
        delta["Design"] += 1

    if demo.num_kids in ("2", "3+"):
        delta["Comfort"] += 2
        delta["Value"] += 1
    elif demo.num_kids == "1":
        delta["Comfort"] += 1

    if demo.life_stage in ("Young Family", "Maturing Family"):
        delta["Comfort"] += 2
        delta["Value"] += 1
    elif demo.life_stage in ("Empty Nester", "Retired"):
        delta["Reliability"] += 2

    if demo.education == "Graduate+":
        delta["Technology"] += 1

    if demo.household_income == "<$50k":
        delta["Value"] += 2
    elif demo.household_income == "$150k+":
        delta["Design"] += 1

    return delta


def apply_demographic_adjustments(model: SentimentModel, demo: DemographicSelection) -> SentimentModel:
    """Nudge category scores for the selected demographics and recompute the overall.

    Statements move by a damped share of their category's delta. The overall is
    the weight-averaged adjusted category score, or the original overall when
    the category weights sum to zero.
    """
    delta = demographic_deltas(demo)
    categories = []
    for c in model.categories:
        add = delta.get(c.name, 0.0)
        s_add = add * STATEMENT_DAMPING
        statements = tuple(replace(s, score=clamp_score(s.score + s_add)) for s in c.statements)
        categories.append(replace(c, score=clamp_score(c.score + add), statements=statements))

    total_w = sum(c.weight for c in categories)
    if total_w > 0:
        overall = clamp_score(sum(c.score * c.weight for c in categories) / total_w)
    else:
        overall = model.overall
    return replace(model, categories=tuple(categories), overall=overall)


def normalize_demographics(raw: Optional[Mapping[str, Any]]) -> DemographicSelection:
    """Keep only recognised option values; anything else means "no filter"."""
    raw = raw or {}
    values = {}
    for key, options in DEMOGRAPHIC_OPTIONS.items():
        v = raw.get(key)
        values[key] = str(v) if v is not None and str(v) in options else ""
    return DemographicSelection(**values)


def sentiment_to_dict(model: SentimentModel) -> Dict[str, Any]:
    return asdict(model)
