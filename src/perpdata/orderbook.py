"""Order book normalization into cumulative depth ladders."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from perpdata.models.orderbook import BookSide, DepthLevel, OrderBookView
from perpdata.numeric import parse_number

logger = logging.getLogger(__name__)


def _split_level(level: Any) -> tuple[Any, Any]:
    """Raw (price, quantity) from ``[price, qty]`` or ``{"price", "size"}``."""
    if isinstance(level, Mapping):
        qty = level.get("size")
        if qty is None:
            qty = level.get("quantity")
        return level.get("price"), qty
    if isinstance(level, Sequence) and not isinstance(level, (str, bytes)) and len(level) >= 2:
        return level[0], level[1]
    return None, None


def normalize(raw_levels: Iterable[Any] | None, side: BookSide) -> list[DepthLevel]:
    """Convert raw levels for one side into a cumulative depth ladder.

    Asks are sorted ascending by price before accumulating; bids keep the
    upstream (already descending) order. Malformed levels count as zero.
    """
    if not raw_levels:
        return []

    parsed: list[tuple[float, float]] = []
    for level in raw_levels:
        price, qty = _split_level(level)
        parsed.append((parse_number(price, "zero"), parse_number(qty, "zero")))

    if side is BookSide.ASK:
        parsed.sort(key=lambda pq: pq[0])

    ladder: list[DepthLevel] = []
    running = 0.0
    for price, qty in parsed:
        running += qty
        ladder.append(DepthLevel(price=price, quantity=qty, cumulative_quantity=running))
    return ladder


def build_order_book(
    symbol_id: str,
    raw_bids: Iterable[Any] | None,
    raw_asks: Iterable[Any] | None,
) -> OrderBookView:
    return OrderBookView(
        symbol_id=symbol_id,
        bids=normalize(raw_bids, BookSide.BID),
        asks=normalize(raw_asks, BookSide.ASK),
    )


class OrderBookTracker:
    """Holds the current order book view and drops superseded responses.

    Each request takes a token from :meth:`begin`. Only the response for
    the most recently requested token may replace the view.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seq = 0
        self._symbol_id: str | None = None
        self._view: OrderBookView | None = None

    @property
    def symbol_id(self) -> str | None:
        return self._symbol_id

    @property
    def view(self) -> OrderBookView | None:
        return self._view

    def begin(self, symbol_id: str) -> int:
        with self._lock:
            self._seq += 1
            self._symbol_id = symbol_id
            return self._seq

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._seq

    def publish(self, token: int, view: OrderBookView) -> bool:
        """Store ``view`` if ``token`` is still the latest request."""
        with self._lock:
            if token != self._seq:
                logger.debug(
                    "Discarding stale order book for %s (latest request: %s)",
                    view.symbol_id, self._symbol_id,
                )
                return False
            self._view = view
            return True


__all__ = ["normalize", "build_order_book", "OrderBookTracker"]
