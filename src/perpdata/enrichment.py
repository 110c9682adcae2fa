"""Rate-limited enrichment — per-symbol metrics for the top-K symbols only.

Open interest is a per-symbol endpoint on some exchanges. Calling it for
every listed symbol would trip the exchange's request-weight limits, which
are shared with the other calls of the same aggregation cycle, so only the
``top_k`` symbols by volume are fetched, one at a time, with a fixed pause
before each request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Any, Callable

from perpdata.models.upstream import TickerStats
from perpdata.numeric import parse_number
from perpdata.result import FetchResult

logger = logging.getLogger(__name__)


def quote_volume(ticker: TickerStats) -> float:
    """Default ranking key: 24h quote volume (invalid -> 0)."""
    return parse_number(ticker.quote_volume, "zero")


def select_top_k(
    tickers: Iterable[TickerStats],
    top_k: int,
    volume_key: Callable[[TickerStats], float] = quote_volume,
) -> list[str]:
    """Ids of the ``top_k`` tickers by ``volume_key``, descending.

    Ties keep their input order.
    """
    if top_k <= 0:
        return []
    ranked = sorted(tickers, key=volume_key, reverse=True)
    ids: list[str] = []
    for t in ranked:
        if t.id in ids:
            continue
        ids.append(t.id)
        if len(ids) == top_k:
            break
    return ids


def enrich(
    tickers: Iterable[TickerStats],
    top_k: int,
    fetch: Callable[[str], Any],
    delay_ms: float,
    volume_key: Callable[[TickerStats], float] = quote_volume,
    sleep: Callable[[float], Any] = time.sleep,
) -> dict[str, float | None]:
    """Fetch a supplementary metric for the top-K symbols, sequentially.

    Args:
        tickers: Ticker rows used for ranking.
        top_k: Number of symbols to enrich.
        fetch: Per-symbol fetch; returns a raw value or raises.
        delay_ms: Pause before each call, in milliseconds.
        volume_key: Ranking key.
        sleep: Sleep function (injectable for tests).

    Returns:
        ``{id: value}`` for exactly the selected ids. A failed call records
        ``None``. Ids outside the top-K are absent.
    """
    selected = select_top_k(tickers, top_k, volume_key)
    values: dict[str, float | None] = {}
    failures = 0
    for symbol_id in selected:
        if delay_ms > 0:
            sleep(delay_ms / 1000.0)
        result = FetchResult.capture(fetch, symbol_id, label=f"enrich {symbol_id}")
        if result.ok:
            values[symbol_id] = parse_number(result.value, "null")
        else:
            failures += 1
            values[symbol_id] = None

    if failures:
        logger.warning("Enrichment: %d of %d calls failed", failures, len(selected))
    return values


__all__ = ["enrich", "select_top_k", "quote_volume"]
