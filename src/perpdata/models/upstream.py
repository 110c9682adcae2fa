"""Upstream row types: exchange listings mapped to a common shape.

Field values are kept raw (strings, numbers, ``None``) exactly as the
exchange sent them. Normalization happens in the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SymbolMeta:
    """Symbol/contract listing entry.

    Attributes:
        id: Exchange symbol or contract id.
        symbol: Display symbol.
        base_asset: Base asset identifier (e.g. ``BTC``).
    """

    id: str
    symbol: str
    base_asset: str


@dataclass(frozen=True)
class TickerStats:
    """24h rolling ticker statistics.

    Attributes:
        id: Exchange symbol or contract id.
        last_price: Last traded price.
        high_price: 24h high.
        low_price: 24h low.
        quote_volume: 24h volume in quote currency.
        base_volume: 24h volume in base currency.
        trade_count: 24h trade count.
        price_change_percent: 24h change in percent.
        open_interest: Base-asset open interest, only for exchanges that
            publish it inline with the ticker. ``None`` means "not provided".
    """

    id: str
    last_price: Any = None
    high_price: Any = None
    low_price: Any = None
    quote_volume: Any = None
    base_volume: Any = None
    trade_count: Any = None
    price_change_percent: Any = None
    open_interest: Any = None


@dataclass(frozen=True)
class MarkData:
    """Mark/index/funding entry."""

    id: str
    mark_price: Any = None
    index_price: Any = None
    oracle_price: Any = None
    funding_rate: Any = None
    next_funding_time: Any = None


@dataclass(frozen=True)
class PriceTick:
    """One price-only update from the push stream."""

    id: str
    price: Any
