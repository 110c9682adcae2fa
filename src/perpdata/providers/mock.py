"""Mock provider for testing and CI — no network required."""

from __future__ import annotations

import json
from typing import Any

from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats
from perpdata.providers.base import BaseExchangeProvider

_DEFAULT_MARKETS = (
    # id, base, last, quote volume, open interest (base)
    ("BTCUSDT", "BTC", "60000.5", "250000000", "1200.5"),
    ("ETHUSDT", "ETH", "3000.25", "120000000", "15000"),
    ("SOLUSDT", "SOL", "150.1", "40000000", "90000"),
)


class MockProvider(BaseExchangeProvider):
    """In-memory provider that returns configurable static data.

    Use ``set_symbol_meta``, ``set_tickers`` etc. to pre-load rows, or leave
    the defaults for a small synthetic market. ``fail(method, error)`` makes
    a method raise; ``calls`` records every call in order.
    """

    name = "Mock"
    stream_url = "ws://mock.invalid/stream"

    def __init__(self) -> None:
        self._symbol_meta: list[SymbolMeta] = [
            SymbolMeta(id=sid, symbol=sid, base_asset=base) for sid, base, *_ in _DEFAULT_MARKETS
        ]
        self._tickers: list[TickerStats] = [
            TickerStats(
                id=sid,
                last_price=last,
                high_price=last,
                low_price=last,
                quote_volume=qv,
                base_volume="0",
                trade_count=1000,
                price_change_percent="0.0",
            )
            for sid, _, last, qv, _ in _DEFAULT_MARKETS
        ]
        self._mark_data: list[MarkData] = [
            MarkData(id=sid, mark_price=last, index_price=last,
                     funding_rate="0.0001", next_funding_time=1700000000000)
            for sid, _, last, _, _ in _DEFAULT_MARKETS
        ]
        self._open_interest: dict[str, Any] = {sid: oi for sid, *_, oi in _DEFAULT_MARKETS}
        self._depth: dict[str, tuple[list[Any], list[Any]]] = {}
        self._failures: dict[str, list[Exception]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    # --- Pre-load helpers ---

    def set_symbol_meta(self, rows: list[SymbolMeta]) -> None:
        self._symbol_meta = list(rows)

    def set_tickers(self, rows: list[TickerStats]) -> None:
        self._tickers = list(rows)

    def set_mark_data(self, rows: list[MarkData]) -> None:
        self._mark_data = list(rows)

    def set_open_interest(self, symbol_id: str, value: Any) -> None:
        self._open_interest[symbol_id] = value

    def set_depth(self, symbol_id: str, bids: list[Any], asks: list[Any]) -> None:
        self._depth[symbol_id] = (bids, asks)

    def fail(self, method: str, error: Exception | None = None, times: int = 1) -> None:
        """Make the next ``times`` calls of ``method`` raise ``error``."""
        exc = error or MarketDataError(
            f"mock {method} unavailable",
            code=MarketDataErrorCode.SOURCE_UNAVAILABLE,
            retryable=True,
        )
        self._failures.setdefault(method, []).extend([exc] * times)

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # --- Provider implementation ---

    def fetch_symbol_meta(self) -> list[SymbolMeta]:
        self._record("fetch_symbol_meta")
        return list(self._symbol_meta)

    def fetch_tickers(self) -> list[TickerStats]:
        self._record("fetch_tickers")
        return list(self._tickers)

    def fetch_mark_data(self) -> list[MarkData]:
        self._record("fetch_mark_data")
        return list(self._mark_data)

    def fetch_open_interest(self, symbol_id: str) -> Any:
        self._record("fetch_open_interest", symbol_id)
        if symbol_id not in self._open_interest:
            raise MarketDataError(
                f"No open interest for {symbol_id}",
                code=MarketDataErrorCode.NOT_FOUND,
            )
        return self._open_interest[symbol_id]

    def fetch_depth(self, symbol_id: str, limit: int) -> tuple[list[Any], list[Any]]:
        self._record("fetch_depth", symbol_id, limit)
        if symbol_id in self._depth:
            bids, asks = self._depth[symbol_id]
            return bids[:limit], asks[:limit]
        return self._generate_depth(symbol_id, limit)

    def parse_ticks(self, message: Any) -> list[PriceTick]:
        if isinstance(message, str):
            message = json.loads(message)
        if not isinstance(message, list):
            return []
        return [
            PriceTick(id=str(t["s"]), price=t.get("c"))
            for t in message
            if isinstance(t, dict) and t.get("s")
        ]

    def capabilities(self) -> set[str]:
        return {"open_interest", "depth", "stream"}

    # --- Internals ---

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _generate_depth(self, symbol_id: str, limit: int) -> tuple[list[Any], list[Any]]:
        ticker = next((t for t in self._tickers if t.id == symbol_id), None)
        mid = float(ticker.last_price) if ticker and ticker.last_price else 100.0
        tick = max(mid * 0.0001, 0.01)
        bids = [[f"{mid - (i + 1) * tick:.4f}", f"{1.0 + i * 0.5:.4f}"] for i in range(limit)]
        asks = [[f"{mid + (i + 1) * tick:.4f}", f"{1.0 + i * 0.5:.4f}"] for i in range(limit)]
        return bids, asks
