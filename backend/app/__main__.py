"""CLI entry point for computing chart overlays.

Usage:
    python -m app --candles candles.json --script "SMA 20" --script "RSI 14"
    python -m app --symbol BBCA --template "MACD" --template "ML Logistic Regression"
    python -m app --symbol BBCA --timeframe 1h --script-file my_indicator.pine
    python -m app --serve --port 8080
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from app.clients import MarketDataClient
from app.config import get_settings
from app.services import CandleFeed, CandleFeedResult, parse_candles
from core.overlay_engine import compute_overlays
from core.script import all_templates, get_template

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Compute indicator overlays and ML signal markers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m app --candles candles.json --script "SMA 20"
  python -m app --symbol BBCA --template "Bollinger Bands"
  python -m app --list-templates
  python -m app --serve
        """,
    )

    # Management commands
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API instead of a one-off computation",
    )
    parser.add_argument(
        "--list-templates",
        action="store_true",
        help="List built-in script templates",
    )
    parser.add_argument("--host", type=str, default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)

    # Candle source
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--candles",
        type=Path,
        default=None,
        help="JSON file with candles in any recognized provider shape",
    )
    source.add_argument(
        "--symbol",
        type=str,
        default=None,
        help="Fetch candles for this symbol (placeholder data on failure)",
    )
    parser.add_argument(
        "--timeframe",
        type=str,
        default=settings.default_timeframe,
        help=f"Chart timeframe (default: {settings.default_timeframe})",
    )

    # Scripts
    parser.add_argument(
        "--script",
        action="append",
        default=[],
        help="Script text (repeatable)",
    )
    parser.add_argument(
        "--script-file",
        action="append",
        type=Path,
        default=[],
        help="File containing a script (repeatable)",
    )
    parser.add_argument(
        "--template",
        action="append",
        default=[],
        help="Built-in template name (repeatable)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


async def load_candles(args: argparse.Namespace) -> CandleFeedResult:
    """Load candles from a file or through the candle feed."""
    if args.candles is not None:
        payload = json.loads(args.candles.read_text())
        return CandleFeedResult(candles=parse_candles(payload), is_placeholder=False)

    settings = get_settings()
    client = MarketDataClient(
        base_url=settings.market_data_url,
        api_key=settings.market_data_api_key,
        timeout=settings.request_timeout,
    )
    try:
        feed = CandleFeed(client, fallback_bar_count=settings.fallback_bar_count)
        return await feed.load(args.symbol, args.timeframe, settings.default_range)
    finally:
        await client.close()


def collect_scripts(args: argparse.Namespace) -> list[str]:
    """Templates first, then script files, then inline scripts."""
    scripts = [get_template(name).script for name in args.template]
    scripts.extend(path.read_text() for path in args.script_file)
    scripts.extend(args.script)
    return scripts


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if args.list_templates:
        for template in all_templates():
            print(template.name)
        return 0

    if args.serve:
        import uvicorn

        uvicorn.run("app.main:app", host=args.host, port=args.port)
        return 0

    if args.candles is None and args.symbol is None:
        logger.error("One of --candles or --symbol is required")
        return 2

    try:
        scripts = collect_scripts(args)
    except KeyError as e:
        logger.error("%s", e)
        return 2

    try:
        loaded = asyncio.run(load_candles(args))
    except (OSError, ValueError) as e:
        logger.error("Could not read candles from %s: %s", args.candles, e)
        return 1

    if loaded.is_placeholder:
        logger.warning("Computing over placeholder data for %s", args.symbol)

    bundle = compute_overlays(loaded.candles, scripts)
    output = bundle.model_dump(mode="json")
    output["is_placeholder"] = loaded.is_placeholder
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
