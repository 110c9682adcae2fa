"""Live price reconciliation onto the shared asset collection."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace
from typing import Callable

from perpdata.models.asset import AggregateMetrics, AssetSnapshot
from perpdata.models.upstream import PriceTick
from perpdata.numeric import parse_number

logger = logging.getLogger(__name__)

AssetListener = Callable[[tuple[AssetSnapshot, ...]], None]
Fold = Callable[
    [tuple[AssetSnapshot, ...], dict[str, int]],
    tuple[AssetSnapshot, ...],
]


class AssetStore:
    """Single shared asset collection with one writer at a time.

    Readers get immutable tuples and never block. Writers either replace
    the whole collection (:meth:`replace`) or fold a change into it
    (:meth:`transform`); both run under the same lock together with
    listener notification, so listeners see generations in commit order.
    Listeners must not write to the store.
    """

    def __init__(self) -> None:
        self._write_lock = threading.Lock()
        self._metrics = AggregateMetrics.zero()
        self._assets: tuple[AssetSnapshot, ...] = ()
        self._index: dict[str, int] = {}
        self._generation = 0
        self._listeners: list[AssetListener] = []
        self._listeners_lock = threading.Lock()

    # ------------------------------------------------------------ readers

    @property
    def assets(self) -> tuple[AssetSnapshot, ...]:
        return self._assets

    @property
    def metrics(self) -> AggregateMetrics:
        return self._metrics

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, symbol_id: str) -> AssetSnapshot | None:
        assets, index = self._assets, self._index
        i = index.get(symbol_id)
        return assets[i] if i is not None else None

    # ------------------------------------------------------------ writers

    def replace(self, metrics: AggregateMetrics, assets: Iterable[AssetSnapshot]) -> None:
        """Install a full snapshot as the next generation."""
        new_assets = tuple(assets)
        with self._write_lock:
            self._commit(new_assets, metrics)

    def transform(self, fold: Fold) -> bool:
        """Apply ``fold(assets, index)``; commit only if it returns a new tuple."""
        with self._write_lock:
            current = self._assets
            updated = fold(current, self._index)
            if updated is current:
                return False
            self._commit(updated, self._metrics)
            return True

    def _commit(self, assets: tuple[AssetSnapshot, ...], metrics: AggregateMetrics) -> None:
        if assets is not self._assets:
            self._index = {a.id: i for i, a in enumerate(assets)}
        self._assets = assets
        self._metrics = metrics
        self._generation += 1
        for listener in self._snapshot_listeners():
            try:
                listener(assets)
            except Exception:  # noqa: BLE001
                logger.exception("Asset listener %r failed", listener)

    # ---------------------------------------------------------- listeners

    def add_listener(self, listener: AssetListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: AssetListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def listener_count(self) -> int:
        with self._listeners_lock:
            return len(self._listeners)

    def _snapshot_listeners(self) -> list[AssetListener]:
        with self._listeners_lock:
            return list(self._listeners)


class LiveTickerReconciler:
    """Folds price ticks into an :class:`AssetStore`.

    Only ``price`` is touched. Unchanged snapshots keep their identity, and
    a batch of ticks becomes at most one new generation.
    """

    def __init__(self, store: AssetStore) -> None:
        self.store = store

    def on_price_tick(self, symbol_id: str, new_price: object) -> bool:
        return self.apply([PriceTick(id=symbol_id, price=new_price)])

    def apply(self, ticks: Iterable[PriceTick]) -> bool:
        """Fold one batch. Returns True if the collection changed."""
        latest: dict[str, float] = {}
        for tick in ticks:
            price = parse_number(tick.price, "null")
            if price is None:
                logger.debug("Skipping tick with unusable price for %s: %r", tick.id, tick.price)
                continue
            latest[tick.id] = price
        if not latest:
            return False
        return self.store.transform(lambda assets, index: _fold(assets, index, latest))


def _fold(
    assets: tuple[AssetSnapshot, ...],
    index: dict[str, int],
    prices: dict[str, float],
) -> tuple[AssetSnapshot, ...]:
    updated: list[AssetSnapshot] | None = None
    for symbol_id, price in prices.items():
        i = index.get(symbol_id)
        if i is None or assets[i].price == price:
            continue
        if updated is None:
            updated = list(assets)
        updated[i] = replace(assets[i], price=price)
    return assets if updated is None else tuple(updated)


__all__ = ["AssetStore", "LiveTickerReconciler", "AssetListener"]
