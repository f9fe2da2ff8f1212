"""REST API routes."""

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field, ValidationError

from app.clients import MarketDataClient
from app.config import get_settings
from app.services import CandleFeed
from core.models import Candle, CandleHistory
from core.overlay_engine import OverlayBundle, OverlayEngine
from core.script import ScriptTemplate, all_templates, get_template, script_preview
from core.strategy import list_engines

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "chart-overlays"
VERSION = "0.1.0"


# Request / response models
class OverlayRequest(BaseModel):
    """Compute overlays over caller-supplied candles."""

    candles: list[Candle]
    scripts: list[str] = Field(default_factory=list)
    color_index: int = 0


class ChartOverlayRequest(BaseModel):
    """Compute overlays over a symbol's chart history."""

    scripts: list[str] = Field(default_factory=list)
    timeframe: str | None = None
    color_index: int = 0


class ChartOverlayResponse(OverlayBundle):
    """Overlay bundle plus the candles it was computed over."""

    symbol: str
    timeframe: str
    candles: list[Candle]
    is_placeholder: bool


class ScriptPreview(BaseModel):
    script: str
    preview: str


class SystemStatus(BaseModel):
    """System status response."""

    service: str
    status: str
    version: str
    engines: list[str]


# Dependencies
def get_overlay_engine() -> OverlayEngine:
    return OverlayEngine()


async def get_candle_feed() -> AsyncIterator[CandleFeed]:
    settings = get_settings()
    client = MarketDataClient(
        base_url=settings.market_data_url,
        api_key=settings.market_data_api_key,
        timeout=settings.request_timeout,
    )
    try:
        yield CandleFeed(client, fallback_bar_count=settings.fallback_bar_count)
    finally:
        await client.close()


def _history(candles: list[Candle]) -> CandleHistory:
    try:
        return CandleHistory.from_candles(candles)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/status", response_model=SystemStatus)
async def get_status():
    """Get system status."""
    return SystemStatus(
        service=SERVICE_NAME,
        status="running",
        version=VERSION,
        engines=list_engines(),
    )


@router.get("/templates", response_model=list[ScriptTemplate])
async def get_templates():
    """List built-in script templates."""
    return all_templates()


@router.get("/templates/{name}", response_model=ScriptTemplate)
async def get_template_by_name(name: str):
    """Get one built-in script template."""
    try:
        return get_template(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Template '{name}' not found")


@router.post("/scripts/preview", response_model=list[ScriptPreview])
async def preview_scripts(scripts: list[str]):
    """Short labels for a list of scripts."""
    return [ScriptPreview(script=s, preview=script_preview(s)) for s in scripts]


@router.post("/overlays", response_model=OverlayBundle)
def compute_overlays(
    request: OverlayRequest,
    engine: OverlayEngine = Depends(get_overlay_engine),
):
    """Compute overlays and markers for the supplied candles."""
    history = _history(request.candles)
    return engine.compute(history, request.scripts, request.color_index)


@router.post("/charts/{symbol}/overlays", response_model=ChartOverlayResponse)
async def compute_chart_overlays(
    symbol: str,
    request: ChartOverlayRequest,
    feed: CandleFeed = Depends(get_candle_feed),
    engine: OverlayEngine = Depends(get_overlay_engine),
):
    """Load a symbol's chart history and compute overlays over it."""
    settings = get_settings()
    timeframe = request.timeframe or settings.default_timeframe

    loaded = await feed.load(symbol, timeframe, settings.default_range)
    bundle = await run_in_threadpool(
        engine.compute, _history(loaded.candles), request.scripts, request.color_index
    )

    logger.info(
        "%s %s: %d candles%s, %d results, %d markers",
        symbol, timeframe, len(loaded.candles),
        " (placeholder)" if loaded.is_placeholder else "",
        len(bundle.results), len(bundle.markers),
    )
    return ChartOverlayResponse(
        **bundle.model_dump(),
        symbol=symbol,
        timeframe=timeframe,
        candles=loaded.candles,
        is_placeholder=loaded.is_placeholder,
    )
