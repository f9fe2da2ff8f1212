"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from app.api import router
from app.config import get_settings
from core.strategy import list_engines

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Starting chart overlay service...")
    logger.info("Engines: %s", ", ".join(list_engines()))
    logger.info("Market data proxy: %s", settings.market_data_url)
    yield
    logger.info("Chart overlay service stopped")


app = FastAPI(
    title="Chart Overlay Service",
    description="Indicator scripts and ML signal engines over candle history",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}
