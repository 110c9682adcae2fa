"""Market data models."""

from perpdata.models.asset import AggregateMetrics, AssetSnapshot, icon_ref_for
from perpdata.models.orderbook import BookSide, DepthLevel, OrderBookView
from perpdata.models.sentiment import LongShortRatio
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats

__all__ = [
    "AssetSnapshot",
    "AggregateMetrics",
    "icon_ref_for",
    "BookSide",
    "DepthLevel",
    "OrderBookView",
    "LongShortRatio",
    "SymbolMeta",
    "TickerStats",
    "MarkData",
    "PriceTick",
]
