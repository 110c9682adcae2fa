"""perpdata — Market data SDK for perpetual futures exchanges.

AsterDex and EdgeX listings merged into per-symbol asset snapshots, with
rate-limited open-interest enrichment, cumulative order book ladders and
live price patches from the exchange ticker stream.

Quick start::

    from perpdata import create_client_from_env
    client = create_client_from_env()
    metrics, assets = client.get_snapshot()
    book = client.get_order_book(assets[0].id)
"""

from __future__ import annotations

import os

from perpdata.aggregator import aggregate
from perpdata.client import MarketDataClient
from perpdata.config import ExchangeType, MarketDataConfig
from perpdata.enrichment import enrich, select_top_k
from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.frames import assets_to_frame, metrics_to_frame, order_book_to_frame
from perpdata.live import AssetStore, LiveTickerReconciler
from perpdata.models.asset import AggregateMetrics, AssetSnapshot
from perpdata.models.orderbook import BookSide, DepthLevel, OrderBookView
from perpdata.models.sentiment import LongShortRatio
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats
from perpdata.numeric import parse_int, parse_number
from perpdata.orderbook import OrderBookTracker, build_order_book, normalize
from perpdata.quality import ValidationResult, validate_assets, validate_order_book
from perpdata.result import FetchResult
from perpdata.signing import Credentials, sign_query
from perpdata.sorting import SortField, filter_assets, sort_assets
from perpdata.stream import LiveStream

__version__ = "0.1.0"

__all__ = [
    # Client
    "MarketDataClient",
    "create_client_from_env",
    # Config
    "MarketDataConfig",
    "ExchangeType",
    "Credentials",
    # Errors
    "MarketDataError",
    "MarketDataErrorCode",
    "FetchResult",
    # Models
    "AssetSnapshot",
    "AggregateMetrics",
    "BookSide",
    "DepthLevel",
    "OrderBookView",
    "LongShortRatio",
    "SymbolMeta",
    "TickerStats",
    "MarkData",
    "PriceTick",
    # Pipeline
    "parse_number",
    "parse_int",
    "aggregate",
    "enrich",
    "select_top_k",
    "normalize",
    "build_order_book",
    "OrderBookTracker",
    "AssetStore",
    "LiveTickerReconciler",
    "LiveStream",
    "sign_query",
    # Presentation helpers
    "SortField",
    "sort_assets",
    "filter_assets",
    "ValidationResult",
    "validate_assets",
    "validate_order_book",
    "assets_to_frame",
    "metrics_to_frame",
    "order_book_to_frame",
]


def create_client_from_env() -> MarketDataClient:
    """Zero-config factory — reads exchange choice and limits from env vars.

    Environment variables:
        PERPDATA_EXCHANGE: "aster", "edgex" or "mock" (default: "aster").
        PERPDATA_OI_TOP_K: Symbols to enrich with open interest (default: 20).
        PERPDATA_OI_DELAY_MS: Pause before each open-interest call (default: 100).
        PERPDATA_DEPTH_LIMIT: Order book levels per side (default: 50).
        PERPDATA_TIMEOUT: HTTP timeout in seconds (default: 10).
        ASTER_API_KEY: Aster API key (account endpoints only).
        ASTER_API_SECRET: Aster API secret.
        PERPDATA_SERVER_TIME_OFFSET_MS: Exchange clock offset for signed reads (default: 0).
    """
    config = MarketDataConfig(
        exchange=ExchangeType(os.getenv("PERPDATA_EXCHANGE", "aster").strip().lower()),
        open_interest_top_k=int(os.getenv("PERPDATA_OI_TOP_K", "20")),
        open_interest_delay_ms=float(os.getenv("PERPDATA_OI_DELAY_MS", "100")),
        depth_limit=int(os.getenv("PERPDATA_DEPTH_LIMIT", "50")),
        request_timeout=float(os.getenv("PERPDATA_TIMEOUT", "10")),
        api_key=os.getenv("ASTER_API_KEY"),
        api_secret=os.getenv("ASTER_API_SECRET"),
        server_time_offset_ms=int(os.getenv("PERPDATA_SERVER_TIME_OFFSET_MS", "0")),
    )

    return MarketDataClient(config)
