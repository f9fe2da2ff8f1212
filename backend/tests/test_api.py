"""Tests for the HTTP API."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.api import get_candle_feed, get_overlay_engine
from app.main import app
from app.services import CandleFeedResult
from core.models import Candle
from core.overlay_engine import OverlayEngine
from core.script import LOGISTIC_REGRESSION_TEMPLATE


def _candles(n: int) -> list[Candle]:
    return [
        Candle(
            time=1_700_000_000 + i * 86400,
            open=100 + i,
            high=103 + i + (i % 4),
            low=97 + i - (i % 3),
            close=100 + i + (i % 5) - 2,
        )
        for i in range(n)
    ]


class FakeFeed:
    """Candle feed double recording what was requested."""

    def __init__(self, candles: list[Candle], is_placeholder: bool = False):
        self.candles = candles
        self.is_placeholder = is_placeholder
        self.calls: list[tuple[str, str, int]] = []

    async def load(self, symbol: str, timeframe: str = "D", range_: int = 300) -> CandleFeedResult:
        self.calls.append((symbol, timeframe, range_))
        return CandleFeedResult(candles=self.candles, is_placeholder=self.is_placeholder)


class LoopCheckingEngine(OverlayEngine):
    """Overlay engine recording whether compute ran on the event loop thread."""

    def __init__(self):
        super().__init__()
        self.ran_on_loop: list[bool] = []

    def compute(self, history, scripts, color_index=0):
        try:
            asyncio.get_running_loop()
            self.ran_on_loop.append(True)
        except RuntimeError:
            self.ran_on_loop.append(False)
        return super().compute(history, scripts, color_index)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _payload(candles: list[Candle]) -> list[dict]:
    return [c.model_dump() for c in candles]


class TestMetaEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_status_lists_engines(self, client):
        body = client.get("/api/status").json()

        assert body["service"] == "chart-overlays"
        assert body["status"] == "running"
        assert body["engines"] == ["bull_bear_power", "linear_regression_ema", "logistic_regression"]

    def test_templates(self, client):
        body = client.get("/api/templates").json()
        names = [t["name"] for t in body]

        assert len(names) == 11
        assert "ML Logistic Regression" in names
        assert "Bollinger Bands" in names

    def test_template_by_name(self, client):
        response = client.get("/api/templates/RSI 14")
        assert response.status_code == 200
        assert response.json()["script"] == "ta.rsi(close, 14)"

    def test_unknown_template(self, client):
        assert client.get("/api/templates/Ichimoku").status_code == 404

    def test_script_preview(self, client):
        response = client.post("/api/scripts/preview", json=["SMA 20", LOGISTIC_REGRESSION_TEMPLATE])
        assert [p["preview"] for p in response.json()] == ["SMA 20", "ML: Logistic Regression"]


class TestOverlays:
    def test_compute_overlays(self, client):
        response = client.post(
            "/api/overlays",
            json={"candles": _payload(_candles(40)), "scripts": ["SMA 5", "RSI 14"], "color_index": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert [r["name"] for r in body["results"]] == ["SMA 5", "RSI 14"]
        assert body["next_color_index"] == 3
        assert body["markers"] == []

    def test_markers_serialized(self, client):
        response = client.post(
            "/api/overlays",
            json={"candles": _payload(_candles(60)), "scripts": [LOGISTIC_REGRESSION_TEMPLATE]},
        )

        markers = response.json()["markers"]
        assert {m["type"] for m in markers} <= {"buy", "sell", "stopBuy", "stopSell"}
        assert [m["time"] for m in markers] == sorted(m["time"] for m in markers)

    def test_unsorted_candles_rejected(self, client):
        candles = _payload(_candles(5))
        response = client.post("/api/overlays", json={"candles": candles[::-1], "scripts": ["SMA 2"]})
        assert response.status_code == 422

    def test_malformed_candle_rejected(self, client):
        response = client.post("/api/overlays", json={"candles": [{"time": 1}], "scripts": []})
        assert response.status_code == 422


class TestChartOverlays:
    def test_uses_feed(self, client):
        feed = FakeFeed(_candles(30))
        app.dependency_overrides[get_candle_feed] = lambda: feed

        response = client.post("/api/charts/BBCA/overlays", json={"scripts": ["EMA 5"], "timeframe": "1h"})

        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "BBCA"
        assert body["timeframe"] == "1h"
        assert body["is_placeholder"] is False
        assert len(body["candles"]) == 30
        assert body["results"][0]["name"] == "EMA 5"
        assert feed.calls == [("BBCA", "1h", 300)]

    def test_default_timeframe_and_placeholder_flag(self, client):
        feed = FakeFeed(_candles(30), is_placeholder=True)
        app.dependency_overrides[get_candle_feed] = lambda: feed

        body = client.post("/api/charts/TLKM/overlays", json={}).json()

        assert body["is_placeholder"] is True
        assert body["timeframe"] == "D"
        assert body["results"] == []


class TestComputeOffEventLoop:
    def test_overlays_computed_in_worker_thread(self, client):
        engine = LoopCheckingEngine()
        app.dependency_overrides[get_overlay_engine] = lambda: engine

        response = client.post("/api/overlays", json={"candles": _payload(_candles(20)), "scripts": ["SMA 5"]})

        assert response.status_code == 200
        assert engine.ran_on_loop == [False]

    def test_chart_overlays_computed_in_worker_thread(self, client):
        engine = LoopCheckingEngine()
        app.dependency_overrides[get_overlay_engine] = lambda: engine
        app.dependency_overrides[get_candle_feed] = lambda: FakeFeed(_candles(20))

        response = client.post("/api/charts/BBCA/overlays", json={"scripts": ["SMA 5"]})

        assert response.status_code == 200
        assert engine.ran_on_loop == [False]
