"""Market sentiment models."""

from __future__ import annotations

from dataclasses import dataclass, field

TOTAL_EXCHANGE = "_total_"
DEFAULT_RATIO_RANGES = ("30m", "1h", "4h", "12h", "24h")


@dataclass(frozen=True)
class LongShortRatio:
    """Taker buy/sell split over one time range.

    Attributes:
        range: Time window the figures cover (e.g. ``1h``).
        exchange: Venue the row describes; ``_total_`` for the aggregate.
        buy_ratio: Share of volume from buyers, in percent.
        sell_ratio: Share of volume from sellers, in percent.
        buy_volume_usd: Buy volume in USD.
        sell_volume_usd: Sell volume in USD.
        available_ranges: Ranges the exchange can serve.
    """

    range: str
    exchange: str
    buy_ratio: float | None = None
    sell_ratio: float | None = None
    buy_volume_usd: float | None = None
    sell_volume_usd: float | None = None
    available_ranges: tuple[str, ...] = field(default=DEFAULT_RATIO_RANGES)
