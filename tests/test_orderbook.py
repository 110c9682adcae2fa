"""Tests for depth ladder normalization and stale-response suppression."""

from perpdata.models.orderbook import BookSide, DepthLevel, OrderBookView
from perpdata.orderbook import OrderBookTracker, build_order_book, normalize


def _triples(levels):
    return [(lv.price, lv.quantity, lv.cumulative_quantity) for lv in levels]


class TestNormalize:
    def test_asks_sorted_ascending_then_accumulated(self):
        levels = normalize([[10, 1], [9, 2]], BookSide.ASK)
        assert _triples(levels) == [(9.0, 2.0, 2.0), (10.0, 1.0, 3.0)]

    def test_bids_keep_input_order(self):
        levels = normalize([[10, 1], [9, 2]], BookSide.BID)
        assert _triples(levels) == [(10.0, 1.0, 1.0), (9.0, 2.0, 3.0)]

    def test_string_pairs(self):
        levels = normalize([["100.5", "0.25"], ["100.4", "0.75"]], BookSide.BID)
        assert _triples(levels) == [(100.5, 0.25, 0.25), (100.4, 0.75, 1.0)]

    def test_mapping_levels(self):
        raw = [{"price": "101", "size": "2"}, {"price": "100", "size": "1"}]
        levels = normalize(raw, BookSide.ASK)
        assert _triples(levels) == [(100.0, 1.0, 1.0), (101.0, 2.0, 3.0)]

    def test_mapping_quantity_key(self):
        levels = normalize([{"price": "5", "quantity": "3"}], BookSide.BID)
        assert _triples(levels) == [(5.0, 3.0, 3.0)]

    def test_empty(self):
        assert normalize([], BookSide.BID) == []
        assert normalize(None, BookSide.ASK) == []

    def test_malformed_level_contributes_zero(self):
        levels = normalize([["x", "1"], ["10", ""], "junk"], BookSide.BID)
        assert _triples(levels) == [(0.0, 1.0, 1.0), (10.0, 0.0, 1.0), (0.0, 0.0, 1.0)]


class TestOrderBookView:
    def test_build(self):
        view = build_order_book("BTCUSDT", [[10, 1], [9, 2]], [[12, 1], [11, 4]])
        assert view.symbol_id == "BTCUSDT"
        assert [lv.price for lv in view.asks] == [11.0, 12.0]
        assert view.max_cumulative == 5.0
        assert view.spread == 1.0
        assert not view.is_empty
        assert view.has_both_sides

    def test_empty_view(self):
        view = OrderBookView(symbol_id="X")
        assert view.is_empty
        assert view.max_cumulative == 0.0
        assert view.spread is None

    def test_sides_independent(self):
        view = build_order_book("X", [[1, 5]], [])
        assert view.bids == [DepthLevel(1.0, 5.0, 5.0)]
        assert view.asks == []
        assert not view.is_empty
        assert not view.has_both_sides
        assert view.spread is None


class TestOrderBookTracker:
    def test_latest_request_published(self):
        tracker = OrderBookTracker()
        token = tracker.begin("A")
        view = OrderBookView(symbol_id="A")
        assert tracker.publish(token, view)
        assert tracker.view is view
        assert tracker.symbol_id == "A"

    def test_stale_response_discarded(self):
        tracker = OrderBookTracker()
        old = tracker.begin("A")
        new = tracker.begin("B")
        b_view = OrderBookView(symbol_id="B")
        assert tracker.publish(new, b_view)
        assert not tracker.publish(old, OrderBookView(symbol_id="A"))
        assert tracker.view is b_view

    def test_stale_before_current_arrives(self):
        tracker = OrderBookTracker()
        old = tracker.begin("A")
        tracker.begin("B")
        assert not tracker.publish(old, OrderBookView(symbol_id="A"))
        assert tracker.view is None
        assert not tracker.is_current(old)
