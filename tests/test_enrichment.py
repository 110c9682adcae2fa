"""Tests for rate-limited top-K enrichment."""

from unittest.mock import MagicMock

from perpdata.enrichment import enrich, select_top_k
from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.models.upstream import TickerStats


def _tickers(*pairs):
    return [TickerStats(id=sid, quote_volume=vol) for sid, vol in pairs]


class TestSelectTopK:
    def test_descending(self):
        tickers = _tickers(("A", "1"), ("B", "3"), ("C", "2"))
        assert select_top_k(tickers, 2) == ["B", "C"]

    def test_ties_keep_input_order(self):
        tickers = _tickers(("A", "5"), ("B", "5"), ("C", "5"))
        assert select_top_k(tickers, 2) == ["A", "B"]

    def test_non_positive_k(self):
        assert select_top_k(_tickers(("A", "1")), 0) == []
        assert select_top_k(_tickers(("A", "1")), -3) == []

    def test_k_larger_than_list(self):
        assert select_top_k(_tickers(("A", "1"), ("B", "2")), 10) == ["B", "A"]

    def test_malformed_volume_ranks_as_zero(self):
        tickers = _tickers(("A", "bad"), ("B", "0.5"))
        assert select_top_k(tickers, 2) == ["B", "A"]

    def test_custom_key(self):
        tickers = [TickerStats(id="A", base_volume="9"), TickerStats(id="B", base_volume="1")]
        assert select_top_k(tickers, 1, lambda t: float(t.base_volume)) == ["A"]


class TestEnrich:
    def test_top_one_fetches_once(self):
        fetch = MagicMock(return_value="12.5")
        sleep = MagicMock()
        tickers = _tickers(("A", "100"), ("B", "300"), ("C", "200"))
        result = enrich(tickers, 1, fetch, delay_ms=100, sleep=sleep)
        fetch.assert_called_once_with("B")
        assert result == {"B": 12.5}
        assert "A" not in result and "C" not in result

    def test_failure_recorded_as_none_and_continues(self):
        def fetch(symbol_id):
            if symbol_id == "B":
                raise MarketDataError("limited", code=MarketDataErrorCode.RATE_LIMITED, retryable=True)
            return "1"

        tickers = _tickers(("A", "100"), ("B", "300"), ("C", "200"))
        result = enrich(tickers, 3, fetch, delay_ms=0, sleep=MagicMock())
        assert result == {"B": None, "C": 1.0, "A": 1.0}

    def test_unexpected_exception_swallowed(self):
        fetch = MagicMock(side_effect=[RuntimeError("boom"), "2"])
        result = enrich(_tickers(("A", "2"), ("B", "1")), 2, fetch, delay_ms=0)
        assert result == {"A": None, "B": 2.0}

    def test_sequential_with_delay_before_each_call(self):
        events = []
        sleep = MagicMock(side_effect=lambda s: events.append(("sleep", s)))
        fetch = MagicMock(side_effect=lambda sid: events.append(("fetch", sid)) or "1")
        enrich(_tickers(("A", "2"), ("B", "1")), 2, fetch, delay_ms=100, sleep=sleep)
        assert events == [("sleep", 0.1), ("fetch", "A"), ("sleep", 0.1), ("fetch", "B")]

    def test_zero_delay_skips_sleep(self):
        sleep = MagicMock()
        enrich(_tickers(("A", "1")), 1, MagicMock(return_value="1"), delay_ms=0, sleep=sleep)
        sleep.assert_not_called()

    def test_zero_k_makes_no_calls(self):
        fetch = MagicMock()
        assert enrich(_tickers(("A", "1")), 0, fetch, delay_ms=100) == {}
        fetch.assert_not_called()

    def test_unparseable_value_is_none(self):
        result = enrich(_tickers(("A", "1")), 1, MagicMock(return_value="n/a"), delay_ms=0)
        assert result == {"A": None}
