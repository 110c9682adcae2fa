"""Sorting and search over asset collections.

Sortable columns are a closed enum. Each member maps to a key function in
``SORT_KEYS``; there is no attribute lookup by name.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any, Callable

from perpdata.models.asset import AssetSnapshot


class SortField(Enum):
    """Sortable asset columns."""

    SYMBOL = "symbol"
    PRICE = "price"
    FUNDING_RATE = "funding_rate"
    DAILY_VOLUME = "daily_volume"
    OPEN_INTEREST = "open_interest"
    DAILY_TRADES = "daily_trades"
    PRICE_CHANGE = "price_change"


SORT_KEYS: dict[SortField, Callable[[AssetSnapshot], Any]] = {
    SortField.SYMBOL: lambda a: a.symbol.lower(),
    SortField.PRICE: lambda a: a.price,
    SortField.FUNDING_RATE: lambda a: a.funding_rate,
    SortField.DAILY_VOLUME: lambda a: a.daily_volume_quote,
    SortField.OPEN_INTEREST: lambda a: a.open_interest_quote,
    SortField.DAILY_TRADES: lambda a: a.daily_trades,
    SortField.PRICE_CHANGE: lambda a: a.price_change_percent_24h,
}


def sort_assets(
    assets: Iterable[AssetSnapshot],
    sort_field: SortField,
    descending: bool = True,
) -> list[AssetSnapshot]:
    """Stable sort by ``sort_field``; assets with no value go last either way."""
    key = SORT_KEYS[sort_field]
    present: list[AssetSnapshot] = []
    missing: list[AssetSnapshot] = []
    for a in assets:
        (missing if key(a) is None else present).append(a)
    present.sort(key=key, reverse=descending)
    return present + missing


def filter_assets(assets: Iterable[AssetSnapshot], query: str) -> list[AssetSnapshot]:
    """Assets whose symbol contains ``query``, case-insensitive."""
    needle = query.strip().lower()
    if not needle:
        return list(assets)
    return [a for a in assets if needle in a.symbol.lower()]


__all__ = ["SortField", "SORT_KEYS", "sort_assets", "filter_assets"]
