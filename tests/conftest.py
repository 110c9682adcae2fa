"""Shared fixtures for perpdata tests."""

from __future__ import annotations

import queue
import sys
import time
from pathlib import Path

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from perpdata.models.asset import AssetSnapshot
from perpdata.models.upstream import MarkData, SymbolMeta, TickerStats
from perpdata.providers.mock import MockProvider


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def sample_meta() -> list[SymbolMeta]:
    return [
        SymbolMeta(id="AAAUSDT", symbol="AAAUSDT", base_asset="AAA"),
        SymbolMeta(id="BBBUSDT", symbol="BBBUSDT", base_asset="BBB"),
    ]


@pytest.fixture
def sample_tickers() -> list[TickerStats]:
    return [
        TickerStats(
            id="AAAUSDT", last_price="10", high_price="11", low_price="9",
            quote_volume="100", base_volume="10", trade_count="50",
            price_change_percent="1.5",
        ),
        TickerStats(
            id="BBBUSDT", last_price="2", high_price="2.5", low_price="1.5",
            quote_volume="200", base_volume="100", trade_count="70",
            price_change_percent="-3",
        ),
    ]


@pytest.fixture
def sample_marks() -> list[MarkData]:
    return [
        MarkData(id="AAAUSDT", mark_price="10.01", index_price="10.02",
                 funding_rate="0.0001", next_funding_time=1700000000000),
        MarkData(id="BBBUSDT", mark_price="2.01", index_price="2.02",
                 funding_rate="-0.0002", next_funding_time="1700000000000"),
    ]


@pytest.fixture
def sample_assets() -> list[AssetSnapshot]:
    """Three assets already in default (quote volume) order."""
    return [
        AssetSnapshot(id="X", symbol="XUSDT", price=1.0, daily_volume_quote=300.0,
                      daily_trades=3, open_interest_quote=None, funding_rate=0.0003),
        AssetSnapshot(id="Y", symbol="YUSDT", price=3.0, daily_volume_quote=200.0,
                      daily_trades=2, open_interest_quote=50.0, funding_rate=None),
        AssetSnapshot(id="Z", symbol="ZUSDT", price=2.0, daily_volume_quote=100.0,
                      daily_trades=1, open_interest_quote=80.0, funding_rate=-0.0001),
    ]


class FakeConnection:
    """Stand-in for a sync websockets connection, fed from a queue."""

    def __init__(self, messages=()):
        self.inbox: queue.Queue = queue.Queue()
        for m in messages:
            self.inbox.put(m)
        self.sent: list[str] = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def send(self, data: str) -> None:
        self.sent.append(data)

    def recv(self, timeout: float | None = None):
        try:
            item = self.inbox.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError from None
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_ws() -> FakeConnection:
    return FakeConnection()


def wait_for(predicate, timeout: float = 3.0) -> bool:
    """Poll ``predicate`` until true or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def waiter():
    return wait_for
