"""Market data clients."""

from app.clients.market_data import MarketDataClient, TIMEFRAME_MAP, market_symbol

__all__ = [
    "MarketDataClient",
    "TIMEFRAME_MAP",
    "market_symbol",
]
