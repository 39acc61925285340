import pytest
from fastapi.testclient import TestClient

import api.main as main
from core.reference import DATASET_MODELS


@pytest.fixture(scope="module")
def client():
    return TestClient(main.app)


class TestMeta:
    def test_models(self, client):
        resp = client.get("/meta/models", params={"dataset": "pu"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["dataset"] == "PU"
        assert body["models"] == sorted(DATASET_MODELS["PU"])
        assert body["rows"] > 0

    def test_field_groups(self, client):
        body = client.get("/meta/field-groups").json()
        assert list(body["groups"]) == ["Demographics", "Financing", "Buying Behavior", "Loyalty", "Willingness to Pay"]
        assert body["groups"]["Demographics"][0] == {"field": "BLD_AGE_GRP", "label": "Age group"}


class TestCustomerGroups:
    def test_default_filters(self, client):
        resp = client.post("/customer-groups", json={})
        assert resp.status_code == 200
        body = resp.json()
        assert body["filters"]["dataset"] == "SUV"
        assert body["counts"]["all"] == body["counts"]["panel"]
        assert body["charts"]["price"]["mark"]["type"] == "bar"

    def test_unknown_filter_values_are_ignored(self, client):
        resp = client.post(
            "/customer-groups",
            json={"selected_models": ["Nope"], "field_group": "Nope", "cluster": 99},
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["filters"]["selected_models"] == []
        assert body["counts"]["plot"] == 0
        assert body["attitudes"]["points"] == []
        assert body["price"]["total_valid"] == 0

    def test_center_t_is_validated(self, client):
        assert client.post("/customer-groups", params={"center_t": 2}, json={}).status_code == 422


class TestMarket:
    def test_derive(self, client):
        body = client.post("/market/derive", json={}).json()
        assert body["kpis"]["demand"] == pytest.approx(10_000)
        assert body["kpis"]["margin_pct"] == pytest.approx(0.36)

    def test_solve(self, client):
        body = client.post("/market/solve", json={"kpi": "profit", "value": 200_000}).json()
        assert body["kpis"]["profit"] == pytest.approx(200_000, abs=1e-3)

    def test_bad_kpi_is_rejected(self, client):
        assert client.post("/market/solve", json={"kpi": "volume", "value": 1}).status_code == 422

    def test_errors_are_reported_as_json(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("solver exploded")

        monkeypatch.setattr(main, "compute_market", boom)
        resp = client.post("/market/derive", json={})
        assert resp.status_code == 500
        assert resp.json() == {"error": "solver exploded", "type": "RuntimeError"}


class TestOtherPages:
    def test_segments(self, client):
        body = client.post("/segments", json={"mode": "powertrains", "edits": {"BEV": {"price": 60_000}}}).json()
        assert [r["key"] for r in body["rows"]] == ["ICE", "HEV", "PHEV", "BEV"]
        assert body["kpis"]["total_volume"] > 0

    def test_sentiments(self, client):
        body = client.post("/sentiments", json={"selected": ["jeep-wrangler"], "demographics": {"gender": "Male"}}).json()
        assert [m["id"] for m in body["models"]] == ["jeep-wrangler"]


class TestExport:
    def test_csv(self, client):
        resp = client.post("/export/customer-groups", json={})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        header = resp.text.splitlines()[0].split(",")
        assert "model" in header
        assert "raw_x" not in header

    def test_xlsx(self, client):
        resp = client.post("/export/price", params={"format": "xlsx"}, json={})
        assert resp.status_code == 200
        assert resp.content[:2] == b"PK"
        assert "price.xlsx" in resp.headers["content-disposition"]

    def test_unknown_page_exports_nothing(self, client):
        resp = client.post("/export/nope", json={})
        assert resp.status_code == 200
        assert "model" not in resp.text
