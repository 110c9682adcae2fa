"""Asset snapshot and aggregate metrics data models."""

from __future__ import annotations

from dataclasses import dataclass

ICON_URL_TEMPLATE = "https://placehold.co/32x32.png?text={base}"


def icon_ref_for(base_asset: str) -> str:
    """Deterministic icon reference for a base asset identifier."""
    return ICON_URL_TEMPLATE.format(base=base_asset)


@dataclass(frozen=True)
class AssetSnapshot:
    """Denormalized per-symbol view merged from all upstream sources.

    ``None`` on a price-like field means the source has no value for it,
    which is different from zero. ``open_interest_quote`` is ``None`` only
    when open interest was never requested for the symbol.

    Attributes:
        id: Stable exchange symbol/contract id (join key).
        symbol: Display symbol, e.g. ``BTCUSDT``.
        price: Last traded price.
        high_24h: 24h high.
        low_24h: 24h low.
        mark_price: Mark price.
        index_price: Index price.
        oracle_price: Oracle price (exchanges that publish one).
        daily_volume_quote: 24h volume in quote currency.
        daily_volume_base: 24h volume in base currency.
        open_interest_quote: Open interest valued at ``price``.
        daily_trades: 24h trade count.
        funding_rate: Last/current funding rate as a fraction.
        next_funding_timestamp: Next funding time (epoch ms).
        price_change_percent_24h: 24h price change in percent.
        icon_ref: Opaque icon reference derived from the base asset.
        exchange: Exchange display name.
    """

    id: str
    symbol: str
    price: float | None = None
    high_24h: float | None = None
    low_24h: float | None = None
    mark_price: float | None = None
    index_price: float | None = None
    oracle_price: float | None = None
    daily_volume_quote: float = 0.0
    daily_volume_base: float = 0.0
    open_interest_quote: float | None = None
    daily_trades: int = 0
    funding_rate: float | None = None
    next_funding_timestamp: int | None = None
    price_change_percent_24h: float | None = None
    icon_ref: str = ""
    exchange: str = ""


@dataclass(frozen=True)
class AggregateMetrics:
    """Exchange-wide totals over one asset collection."""

    total_daily_volume: float = 0.0
    total_open_interest: float = 0.0
    total_daily_trades: int = 0

    @classmethod
    def zero(cls) -> AggregateMetrics:
        return cls()

    @classmethod
    def from_assets(cls, assets: list[AssetSnapshot]) -> AggregateMetrics:
        return cls(
            total_daily_volume=sum(a.daily_volume_quote for a in assets),
            total_open_interest=sum(
                a.open_interest_quote for a in assets if a.open_interest_quote is not None
            ),
            total_daily_trades=sum(a.daily_trades for a in assets),
        )
