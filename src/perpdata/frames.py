"""DataFrame export for tabular consumers (notebooks, CSV dumps)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, fields

import pandas as pd

from perpdata.models.asset import AggregateMetrics, AssetSnapshot
from perpdata.models.orderbook import OrderBookView

ASSET_COLUMNS = [f.name for f in fields(AssetSnapshot)]
METRIC_COLUMNS = [f.name for f in fields(AggregateMetrics)]
ORDER_BOOK_COLUMNS = ["side", "level", "price", "quantity", "cumulative_quantity"]


def assets_to_frame(assets: Iterable[AssetSnapshot]) -> pd.DataFrame:
    """One row per asset, columns in ``AssetSnapshot`` field order."""
    records = [asdict(a) for a in assets]
    if not records:
        return pd.DataFrame(columns=ASSET_COLUMNS)
    return pd.DataFrame(records, columns=ASSET_COLUMNS)


def metrics_to_frame(metrics: AggregateMetrics, exchange: str | None = None) -> pd.DataFrame:
    """Single-row frame of totals, indexed by exchange name when given."""
    df = pd.DataFrame([asdict(metrics)], columns=METRIC_COLUMNS)
    if exchange is not None:
        df.index = pd.Index([exchange], name="exchange")
    return df


def order_book_to_frame(view: OrderBookView) -> pd.DataFrame:
    """Long-format ladder: bids then asks, ``level`` counted from best price."""
    records = []
    for side, levels in (("bid", view.bids), ("ask", view.asks)):
        for i, lv in enumerate(levels):
            records.append(
                {
                    "side": side,
                    "level": i,
                    "price": lv.price,
                    "quantity": lv.quantity,
                    "cumulative_quantity": lv.cumulative_quantity,
                }
            )
    if not records:
        return pd.DataFrame(columns=ORDER_BOOK_COLUMNS)
    return pd.DataFrame(records, columns=ORDER_BOOK_COLUMNS)


__all__ = ["assets_to_frame", "metrics_to_frame", "order_book_to_frame"]
