"""Tests for the HTTP layer (FastAPI TestClient)."""

import pytest
from fastapi.testclient import TestClient

from mimi.api.main import create_app
from mimi.cache import TTLCache
from mimi.config import Settings
from mimi.service import AnalysisService
from tests.conftest import FakeProvider, linear, make_bars


@pytest.fixture
def client(rising_bars, short_bars):
    provider = FakeProvider({
        "AAPL": rising_bars,
        "MSFT": make_bars(linear(300, 250, 120)),
        "TINY": short_bars,
        "SPY": make_bars(linear(400, 500, 260)),
        "QQQ": make_bars(linear(300, 450, 260)),
    })
    app = create_app(AnalysisService(provider, TTLCache(), Settings()))
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAnalysisRoute:
    def test_analysis(self, client):
        resp = client.get("/api/analysis", params={"symbol": "aapl"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["scanned_at"]
        assert body["result"]["symbol"] == "AAPL"
        assert body["result"]["darvas_box"]["status"] == "breakout"
        assert body["result"]["moving_averages"]["golden_cross"] is True

    def test_missing_symbol(self, client):
        assert client.get("/api/analysis").status_code == 400

    def test_not_enough_data(self, client):
        resp = client.get("/api/analysis", params={"symbol": "TINY"})
        assert resp.status_code == 404
        assert "TINY" in resp.json()["detail"]


class TestSignalsRoute:
    def test_scan(self, client):
        resp = client.get("/api/signals", params={"symbols": "AAPL,MSFT,TINY"})
        assert resp.status_code == 200
        symbols = [r["symbol"] for r in resp.json()["results"]]
        assert symbols == ["AAPL", "MSFT"]

    def test_empty_list(self, client):
        assert client.get("/api/signals", params={"symbols": ""}).status_code == 400

    def test_too_many(self, client):
        symbols = ",".join(f"S{i}" for i in range(201))
        assert client.get("/api/signals", params={"symbols": symbols}).status_code == 400


class TestChartRoute:
    def test_chart(self, client):
        resp = client.get("/api/chart-data", params={"symbol": "AAPL", "days": 60})
        assert resp.status_code == 200
        body = resp.json()
        assert body["days"] == 60
        assert len(body["data"]["candles"]) == 60
        assert len(body["data"]["indicators"]["sma200"]) == 60

    def test_unknown(self, client):
        assert client.get("/api/chart-data", params={"symbol": "NOPE"}).status_code == 404


class TestMarketRegimeRoute:
    def test_regime(self, client):
        resp = client.get("/api/market-regime")
        assert resp.status_code == 200
        assert resp.json()["overall"]["regime"] == "offense"
