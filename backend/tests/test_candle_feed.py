"""Tests for the market data client and candle feed."""

import json
import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.clients import MarketDataClient, market_symbol
from app.services import (
    BASE_PRICES,
    CandleFeed,
    UnrecognizedPayloadError,
    generate_synthetic_candles,
    parse_candles,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _client(handler) -> MarketDataClient:
    return MarketDataClient(
        base_url="https://proxy.test/idx-proxy",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


CHART_PAYLOAD = {
    "data": [
        {"date": "2024-01-03T00:00:00Z", "o": 101, "h": 104, "l": 100, "c": 103, "v": 5000},
        {"date": "2024-01-02T00:00:00Z", "o": 100, "h": 102, "l": 99, "c": 101, "v": 4000},
    ]
}


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

class TestParseCandles:
    def test_list_of_full_names(self):
        candles = parse_candles([
            {"time": 1704240000, "open": 1, "high": 3, "low": 0.5, "close": 2, "volume": 10},
        ])

        assert len(candles) == 1
        assert candles[0].time == 1704240000
        assert candles[0].close == 2.0
        assert candles[0].volume == 10.0

    def test_data_object_with_short_names(self):
        candles = parse_candles(CHART_PAYLOAD)

        assert [c.time for c in candles] == [1704153600, 1704240000]
        assert candles[0].open == 100.0
        assert candles[1].high == 104.0
        assert candles[1].volume == 5000.0

    def test_data_object_with_full_names(self):
        candles = parse_candles({"data": [{"timestamp": "2024-01-02", "open": 1, "high": 2, "low": 0.5, "close": 1.5}]})
        assert candles[0].time == 1704153600
        assert candles[0].volume is None

    def test_duplicate_times_keep_last(self):
        candles = parse_candles([
            {"time": 10, "open": 1, "high": 1, "low": 1, "close": 1},
            {"time": 10, "open": 2, "high": 2, "low": 2, "close": 2},
        ])
        assert len(candles) == 1
        assert candles[0].close == 2.0

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {},
            {"data": "nope"},
            [{"time": 1, "close": 2}],
            "candles",
        ],
    )
    def test_unrecognized_shapes(self, payload):
        with pytest.raises(UnrecognizedPayloadError):
            parse_candles(payload)

    def test_missing_field(self):
        with pytest.raises(UnrecognizedPayloadError):
            parse_candles({"data": [{"time": 1, "o": 1, "h": 2, "l": 0}]})

    def test_bad_time(self):
        with pytest.raises(UnrecognizedPayloadError):
            parse_candles({"data": [{"date": "yesterday", "o": 1, "h": 2, "l": 0, "c": 1}]})


# ---------------------------------------------------------------------------
# Synthetic data
# ---------------------------------------------------------------------------

class TestSyntheticCandles:
    def test_shape(self):
        candles = generate_synthetic_candles("BBCA", 200, now=1_700_000_000, rng=random.Random(1))

        assert len(candles) == 201
        assert candles[-1].time == 1_700_000_000
        assert all(b.time - a.time == 86400 for a, b in zip(candles, candles[1:]))
        for c in candles:
            assert c.low <= min(c.open, c.close)
            assert c.high >= max(c.open, c.close)

    def test_starts_near_base_price(self):
        candles = generate_synthetic_candles("IDX:BBCA", 10, now=0, rng=random.Random(7))
        assert abs(candles[0].open - BASE_PRICES["BBCA"]) <= BASE_PRICES["BBCA"] * 0.0125

    def test_unknown_symbol_base(self):
        candles = generate_synthetic_candles("ZZZZ", 0, now=0, rng=random.Random(3))
        assert len(candles) == 1
        assert abs(candles[0].open - 5000) <= 5000 * 0.0125

    def test_seeded_rng_is_reproducible(self):
        a = generate_synthetic_candles("TLKM", 20, now=0, rng=random.Random(42))
        b = generate_synthetic_candles("TLKM", 20, now=0, rng=random.Random(42))
        assert a == b


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class TestMarketDataClient:
    def test_market_symbol(self):
        assert market_symbol("BBCA") == "IDX:BBCA"
        assert market_symbol("NASDAQ:AAPL") == "NASDAQ:AAPL"

    @pytest.mark.asyncio
    async def test_get_chart_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=CHART_PAYLOAD)

        client = _client(handler)
        try:
            payload = await client.get_chart("BBCA", "1h", 150)
        finally:
            await client.close()

        assert payload == CHART_PAYLOAD
        assert seen["url"] == "https://proxy.test/idx-proxy"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {
            "endpoint": "/v2/chart/price",
            "params": {"symbol": "IDX:BBCA", "timeframe": "60", "range": 150},
        }

    @pytest.mark.asyncio
    async def test_search_symbol(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body == {"endpoint": "/v2/search/market", "params": {"query": "bank"}}
            return httpx.Response(200, json={"data": []})

        client = _client(handler)
        try:
            assert await client.search_symbol("bank") == {"data": []}
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_http_error_raised(self):
        client = _client(lambda request: httpx.Response(502))
        try:
            with pytest.raises(httpx.HTTPStatusError):
                await client.get_chart("BBCA")
        finally:
            await client.close()


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestCandleFeed:
    async def test_provider_data(self):
        client = _client(lambda request: httpx.Response(200, json=CHART_PAYLOAD))
        feed = CandleFeed(client)
        try:
            result = await feed.load("BBCA")
        finally:
            await client.close()

        assert result.is_placeholder is False
        assert [c.close for c in result.candles] == [101.0, 103.0]

    async def test_http_error_falls_back(self):
        client = _client(lambda request: httpx.Response(500))
        feed = CandleFeed(client, fallback_bar_count=50, rng=random.Random(0))
        try:
            result = await feed.load("BBRI")
        finally:
            await client.close()

        assert result.is_placeholder is True
        assert len(result.candles) == 51

    async def test_connection_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = _client(handler)
        feed = CandleFeed(client, fallback_bar_count=10)
        try:
            result = await feed.load("BBRI")
        finally:
            await client.close()

        assert result.is_placeholder is True

    async def test_unrecognized_payload_falls_back(self):
        client = _client(lambda request: httpx.Response(200, json={"error": "quota"}))
        feed = CandleFeed(client, fallback_bar_count=10)
        try:
            result = await feed.load("BBRI")
        finally:
            await client.close()

        assert result.is_placeholder is True
        assert len(result.candles) == 11

    async def test_invalid_json_falls_back(self):
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        feed = CandleFeed(client, fallback_bar_count=5)
        try:
            result = await feed.load("BBRI")
        finally:
            await client.close()

        assert result.is_placeholder is True

    async def test_forwards_request_to_client(self):
        client = MagicMock()
        client.get_chart = AsyncMock(return_value=CHART_PAYLOAD)
        feed = CandleFeed(client)

        result = await feed.load("ASII", "W", 52)

        client.get_chart.assert_awaited_once_with("ASII", "W", 52)
        assert len(result.candles) == 2
