"""Market data proxy client for fetching chart history and symbol search."""

from typing import Any

import httpx

# UI timeframe labels -> provider resolution values
TIMEFRAME_MAP: dict[str, str] = {
    "1m": "1",
    "5m": "5",
    "15m": "15",
    "1h": "60",
    "4h": "240",
    "D": "D",
    "W": "W",
    "M": "M",
}

DEFAULT_EXCHANGE_PREFIX = "IDX"


def market_symbol(symbol: str) -> str:
    """Qualify a bare ticker with the default exchange (``BBCA`` -> ``IDX:BBCA``)."""
    return symbol if ":" in symbol else f"{DEFAULT_EXCHANGE_PREFIX}:{symbol}"


class MarketDataClient:
    """Client for the market data proxy.

    The proxy accepts ``{"endpoint": ..., "params": {...}}`` as a JSON POST
    body and relays the request to the upstream provider.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
                headers["apikey"] = self.api_key
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Relay one request through the proxy and return the decoded JSON."""
        client = await self._get_client()
        response = await client.post(
            self.base_url,
            json={"endpoint": endpoint, "params": params or {}},
        )
        response.raise_for_status()
        return response.json()

    async def get_chart(self, symbol: str, timeframe: str = "D", range_: int = 300) -> Any:
        """
        Fetch raw chart history for a symbol.

        Args:
            symbol: Ticker, bare (``BBCA``) or exchange-qualified (``IDX:BBCA``)
            timeframe: UI timeframe label (``1m`` ... ``M``)
            range_: Number of bars to request

        Returns:
            Decoded JSON payload as returned by the provider
        """
        return await self._request(
            "/v2/chart/price",
            {
                "symbol": market_symbol(symbol),
                "timeframe": TIMEFRAME_MAP.get(timeframe, timeframe),
                "range": range_,
            },
        )

    async def search_symbol(self, query: str) -> Any:
        """Search the provider's market symbol list."""
        return await self._request("/v2/search/market", {"query": query})
