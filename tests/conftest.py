from __future__ import annotations

import pytest

from core.geo import StateResolver
from core.lookups import CodeLookup
from core.rows import as_frame, normalize_records


@pytest.fixture
def lookup() -> CodeLookup:
    return CodeLookup.from_triples(
        [
            ("BLD_AGE_GRP", 1, "18-24"),
            ("BLD_AGE_GRP", 2, "25-34"),
            ("C1_PL", 1, "Cash"),
            ("C1_PL", 2, "Finance"),
            ("STATE_REFER", 1, "Strongly agree"),
            ("STATE_REFER", 2, "Somewhat agree"),
            ("STATE_REFER", 3, "Agree"),
            ("STATE_REFER", 6, "Strongly disagree"),
            ("PV_VALUE", 1, "Strongly agree"),
            ("PV_VALUE", 3, "Agree"),
            ("PV_VALUE", 5, "Somewhat disagree"),
            {"NAME": "OL_MODEL_GRP", "START": 1, "LABEL": "Loyal"},
            {"NAME": "OL_MODEL_GRP", "START": 2, "LABEL": "Conquest"},
            ("ADMARK_STATE", 5, "California"),
            ("ADMARK_STATE", 6, "CO"),
        ]
    )


@pytest.fixture
def resolver(lookup) -> StateResolver:
    return StateResolver(lookup)


@pytest.fixture
def point():
    """Factory for a valid raw point record with extra survey fields."""

    def _point(model: str = "Bronco", cluster: int = 1, x: float = 0.0, y: float = 0.0, **fields):
        return {"model": model, "cluster": cluster, "emb_x": x, "emb_y": y, **fields}

    return _point


@pytest.fixture
def make_rows():
    def _make(records):
        return normalize_records(records)

    return _make


@pytest.fixture
def frame():
    def _frame(records):
        return as_frame(records)

    return _frame
