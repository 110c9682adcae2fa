"""Snapshot aggregation: merge three upstream listings into asset snapshots."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from perpdata.models.asset import AggregateMetrics, AssetSnapshot, icon_ref_for
from perpdata.models.upstream import MarkData, SymbolMeta, TickerStats
from perpdata.numeric import parse_int, parse_number

logger = logging.getLogger(__name__)


def aggregate(
    symbol_meta: Iterable[SymbolMeta],
    tickers: Iterable[TickerStats],
    mark_data: Iterable[MarkData],
    open_interest: Mapping[str, float | None] | None = None,
    exchange: str = "",
) -> tuple[AggregateMetrics, list[AssetSnapshot]]:
    """Join metadata, tickers and mark data by id into one snapshot per symbol.

    ``symbol_meta`` decides which symbols exist and their join order.
    Symbols without a ticker are dropped; mark data is optional.

    Args:
        symbol_meta: Listing of tradable symbols.
        tickers: 24h ticker stats.
        mark_data: Mark/index/funding rows.
        open_interest: Base-asset open interest per id from enrichment.
            An id that is present with ``None`` was attempted and failed;
            an absent id was never attempted.
        exchange: Exchange display name stamped on every snapshot.

    Returns:
        ``(metrics, assets)`` with assets sorted by quote volume descending.
        Empty ``symbol_meta`` or ``tickers`` yields zero metrics and ``[]``.
    """
    symbol_meta = list(symbol_meta)
    tickers = list(tickers)
    if not symbol_meta or not tickers:
        logger.debug(
            "Nothing to aggregate (%d symbols, %d tickers)", len(symbol_meta), len(tickers),
        )
        return AggregateMetrics.zero(), []

    ticker_map = {t.id: t for t in tickers}
    mark_map = {m.id: m for m in mark_data}
    oi_map = open_interest or {}

    assets: list[AssetSnapshot] = []
    seen: set[str] = set()
    for meta in symbol_meta:
        if meta.id in seen:
            continue
        ticker = ticker_map.get(meta.id)
        if ticker is None:
            continue
        seen.add(meta.id)
        assets.append(_merge(meta, ticker, mark_map.get(meta.id), oi_map, exchange))

    assets.sort(key=lambda a: a.daily_volume_quote, reverse=True)
    return AggregateMetrics.from_assets(assets), assets


def _merge(
    meta: SymbolMeta,
    ticker: TickerStats,
    mark: MarkData | None,
    oi_map: Mapping[str, float | None],
    exchange: str,
) -> AssetSnapshot:
    price = parse_number(ticker.last_price, "null")
    return AssetSnapshot(
        id=meta.id,
        symbol=meta.symbol,
        price=price,
        high_24h=parse_number(ticker.high_price, "null"),
        low_24h=parse_number(ticker.low_price, "null"),
        mark_price=parse_number(mark.mark_price, "null") if mark else None,
        index_price=parse_number(mark.index_price, "null") if mark else None,
        oracle_price=parse_number(mark.oracle_price, "null") if mark else None,
        daily_volume_quote=parse_number(ticker.quote_volume, "zero"),
        daily_volume_base=parse_number(ticker.base_volume, "zero"),
        open_interest_quote=_open_interest_quote(meta.id, ticker, price, oi_map),
        daily_trades=parse_int(ticker.trade_count, "zero"),
        funding_rate=parse_number(mark.funding_rate, "null") if mark else None,
        next_funding_timestamp=parse_int(mark.next_funding_time, "null") if mark else None,
        price_change_percent_24h=parse_number(ticker.price_change_percent, "null"),
        icon_ref=icon_ref_for(meta.base_asset),
        exchange=exchange,
    )


def _open_interest_quote(
    symbol_id: str,
    ticker: TickerStats,
    price: float | None,
    oi_map: Mapping[str, float | None],
) -> float | None:
    # Valued at the current last price, not a price taken with the OI reading.
    if symbol_id in oi_map:
        oi_base = parse_number(oi_map[symbol_id], "zero")
    elif ticker.open_interest is not None:
        oi_base = parse_number(ticker.open_interest, "zero")
    else:
        return None
    if price is None:
        return 0.0
    return oi_base * price


__all__ = ["aggregate"]
