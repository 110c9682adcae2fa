"""Order book depth data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BookSide(Enum):
    """Side of the order book."""

    BID = "bid"
    ASK = "ask"


@dataclass(frozen=True)
class DepthLevel:
    """Single price level with running depth.

    Attributes:
        price: Level price.
        quantity: Quantity resting at this level.
        cumulative_quantity: Running total of ``quantity`` in display order.
    """

    price: float
    quantity: float
    cumulative_quantity: float


@dataclass(frozen=True)
class OrderBookView:
    """Both depth ladders for one symbol.

    ``bids`` run from best (highest) price down, ``asks`` from best
    (lowest) price up. Each side accumulates from its own first level.
    """

    symbol_id: str
    bids: list[DepthLevel] = field(default_factory=list)
    asks: list[DepthLevel] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when neither side has any levels."""
        return not self.bids and not self.asks

    @property
    def has_both_sides(self) -> bool:
        return bool(self.bids) and bool(self.asks)

    @property
    def max_cumulative(self) -> float:
        """Deepest cumulative quantity across both sides (depth-bar scale)."""
        return max(
            self.bids[-1].cumulative_quantity if self.bids else 0.0,
            self.asks[-1].cumulative_quantity if self.asks else 0.0,
        )

    @property
    def spread(self) -> float | None:
        if not self.bids or not self.asks:
            return None
        return self.asks[0].price - self.bids[0].price
