"""API endpoints."""

from app.api.routes import router, get_candle_feed, get_overlay_engine

__all__ = [
    "router",
    "get_candle_feed",
    "get_overlay_engine",
]
