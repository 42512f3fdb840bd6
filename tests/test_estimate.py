# tests/test_estimate.py
import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings, settings
from app.geo import FALLBACK_ESTIMATE, UnknownPickupPoint, estimate_delivery, fee_for_distance
from app.main import app, get_geo_client, get_settings

ORS_URL = "https://ors.test/v2/directions/foot-walking/geojson"


def _ors_response(summary):
    return {"features": [{"properties": {"summary": summary}}]}


def _mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _use_ors(handler):
    cfg = Settings(ORS_API_KEY="test-key", ORS_DIRECTIONS_URL=ORS_URL)
    app.dependency_overrides[get_settings] = lambda: cfg
    app.dependency_overrides[get_geo_client] = lambda: _mock_client(handler)


def test_unknown_pickup_point(client):
    r = client.get("/api/estimate", params={"from": "Regis", "to": "Moon Base"})
    assert r.status_code == 400
    assert r.json() == {"error": "Unknown pickup point"}

    r = client.get("/api/estimate")
    assert r.status_code == 400


def test_fallback_without_api_key(client):
    app.dependency_overrides[get_settings] = lambda: Settings(ORS_API_KEY="")
    r = client.get("/api/estimate", params={"from": "Regis", "to": "Gate 2.5"})
    assert r.status_code == 200
    assert r.json() == {"meters": 500, "minutes": 10, "fee": 20, "note": "Estimated values (API unavailable)"}


def test_estimate_from_ors(client):
    seen = {}

    def handler(request: httpx.Request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_ors_response({"distance": 1234.5, "duration": 900}))

    _use_ors(handler)
    r = client.get("/api/estimate", params={"from": "Regis", "to": "Gate 2.5"})
    assert r.status_code == 200
    assert r.json() == {"meters": 1234.5, "minutes": 15, "fee": 17}
    assert seen["auth"] == "test-key"
    assert seen["body"] == {"coordinates": [[121.07496, 14.63995], [121.07888, 14.6418]]}


def test_ors_error_status_falls_back(client):
    _use_ors(lambda request: httpx.Response(503, text="busy"))
    r = client.get("/api/estimate", params={"from": "AS Steps", "to": "Sunken Garden"})
    assert r.status_code == 200
    assert r.json()["note"] == "Estimated values (API unavailable)"


def test_ors_timeout_falls_back(client):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    _use_ors(handler)
    r = client.get("/api/estimate", params={"from": "Main Gate", "to": "Beato Library"})
    assert r.status_code == 200
    assert r.json()["fee"] == 20


def test_missing_summary_uses_defaults():
    client = _mock_client(lambda request: httpx.Response(200, json={"features": []}))
    est = asyncio.run(estimate_delivery("Regis", "Katipunan LRT", api_key="k", url=ORS_URL, client=client))
    assert (est.meters, est.minutes, est.fee) == (500, 10, 13)
    assert est.note is None


def test_estimate_delivery_unknown_point():
    with pytest.raises(UnknownPickupPoint):
        asyncio.run(estimate_delivery("Regis", None))


def test_no_key_skips_network():
    def handler(request):
        raise AssertionError("should not be called")

    est = asyncio.run(estimate_delivery("Regis", "Regis", api_key="", client=_mock_client(handler)))
    assert est == FALLBACK_ESTIMATE


def test_fee_for_distance():
    assert fee_for_distance(0) == 10
    assert fee_for_distance(100) == 11
    assert fee_for_distance(101) == 11
    assert fee_for_distance(250) == 12


def test_lifespan_shares_one_geo_client(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", "sqlite://")
    with TestClient(app) as c:
        geo = app.state.geo_client
        assert isinstance(geo, httpx.AsyncClient)
        assert not geo.is_closed
        r = c.get("/api/estimate", params={"from": "Regis", "to": "Gate 2.5"})
        assert r.status_code == 200
    assert geo.is_closed
    del app.state.geo_client
    del app.state.store
