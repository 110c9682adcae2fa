"""Tests for the three-way snapshot merge."""

from perpdata.aggregator import aggregate
from perpdata.models.asset import AggregateMetrics, icon_ref_for
from perpdata.models.upstream import MarkData, SymbolMeta, TickerStats


class TestAggregateEmpty:
    def test_no_meta(self, sample_tickers, sample_marks):
        metrics, assets = aggregate([], sample_tickers, sample_marks)
        assert metrics == AggregateMetrics.zero()
        assert assets == []

    def test_no_tickers(self, sample_meta, sample_marks):
        metrics, assets = aggregate(sample_meta, [], sample_marks)
        assert metrics == AggregateMetrics.zero()
        assert assets == []


class TestAggregateMerge:
    def test_sorted_by_quote_volume(self, sample_meta, sample_tickers, sample_marks):
        metrics, assets = aggregate(sample_meta, sample_tickers, sample_marks)
        assert [a.id for a in assets] == ["BBBUSDT", "AAAUSDT"]
        assert metrics.total_daily_volume == 300.0
        assert metrics.total_daily_trades == 120

    def test_missing_ticker_excluded(self, sample_meta, sample_tickers, sample_marks):
        meta = sample_meta + [SymbolMeta(id="CCCUSDT", symbol="CCCUSDT", base_asset="CCC")]
        metrics, assets = aggregate(meta, sample_tickers, sample_marks)
        assert "CCCUSDT" not in [a.id for a in assets]
        assert metrics.total_daily_volume == 300.0

    def test_ticker_without_meta_excluded(self, sample_meta, sample_tickers, sample_marks):
        tickers = sample_tickers + [TickerStats(id="ZZZ", quote_volume="999")]
        _, assets = aggregate(sample_meta, tickers, sample_marks)
        assert len(assets) == 2

    def test_mark_data_optional(self, sample_meta, sample_tickers):
        _, assets = aggregate(sample_meta, sample_tickers, [])
        for a in assets:
            assert a.mark_price is None
            assert a.funding_rate is None
            assert a.next_funding_timestamp is None
            assert a.price is not None

    def test_field_mapping(self, sample_meta, sample_tickers, sample_marks):
        _, assets = aggregate(sample_meta, sample_tickers, sample_marks, exchange="Aster")
        a = next(x for x in assets if x.id == "AAAUSDT")
        assert a.symbol == "AAAUSDT"
        assert a.price == 10.0
        assert a.high_24h == 11.0
        assert a.low_24h == 9.0
        assert a.mark_price == 10.01
        assert a.index_price == 10.02
        assert a.oracle_price is None
        assert a.daily_volume_base == 10.0
        assert a.daily_trades == 50
        assert a.funding_rate == 0.0001
        assert a.next_funding_timestamp == 1700000000000
        assert a.price_change_percent_24h == 1.5
        assert a.icon_ref == icon_ref_for("AAA")
        assert a.exchange == "Aster"

    def test_string_funding_time_parsed(self, sample_meta, sample_tickers, sample_marks):
        _, assets = aggregate(sample_meta, sample_tickers, sample_marks)
        b = next(x for x in assets if x.id == "BBBUSDT")
        assert b.next_funding_timestamp == 1700000000000

    def test_malformed_fields_resolve_per_policy(self):
        meta = [SymbolMeta(id="A", symbol="A", base_asset="A")]
        tickers = [TickerStats(id="A", last_price="", quote_volume="bad", trade_count=None)]
        _, assets = aggregate(meta, tickers, [MarkData(id="A", funding_rate="x")])
        a = assets[0]
        assert a.price is None
        assert a.daily_volume_quote == 0.0
        assert a.daily_trades == 0
        assert a.funding_rate is None

    def test_duplicate_meta_first_wins(self, sample_tickers, sample_marks):
        meta = [
            SymbolMeta(id="AAAUSDT", symbol="FIRST", base_asset="AAA"),
            SymbolMeta(id="AAAUSDT", symbol="SECOND", base_asset="AAA"),
        ]
        _, assets = aggregate(meta, sample_tickers, sample_marks)
        assert len(assets) == 1
        assert assets[0].symbol == "FIRST"

    def test_equal_volume_keeps_join_order(self):
        meta = [SymbolMeta(id=s, symbol=s, base_asset=s) for s in ("P", "Q", "R")]
        tickers = [TickerStats(id=s, quote_volume="5") for s in ("R", "Q", "P")]
        _, assets = aggregate(meta, tickers, [])
        assert [a.id for a in assets] == ["P", "Q", "R"]

    def test_idempotent(self, sample_meta, sample_tickers, sample_marks):
        first = aggregate(sample_meta, sample_tickers, sample_marks, {"AAAUSDT": "3"})
        second = aggregate(sample_meta, sample_tickers, sample_marks, {"AAAUSDT": "3"})
        assert first == second


class TestOpenInterest:
    def test_never_attempted_is_none(self, sample_meta, sample_tickers, sample_marks):
        metrics, assets = aggregate(sample_meta, sample_tickers, sample_marks, {"AAAUSDT": 3.0})
        by_id = {a.id: a for a in assets}
        assert by_id["AAAUSDT"].open_interest_quote == 30.0
        assert by_id["BBBUSDT"].open_interest_quote is None
        assert metrics.total_open_interest == 30.0

    def test_attempted_but_failed_is_zero(self, sample_meta, sample_tickers, sample_marks):
        _, assets = aggregate(sample_meta, sample_tickers, sample_marks, {"BBBUSDT": None})
        by_id = {a.id: a for a in assets}
        assert by_id["BBBUSDT"].open_interest_quote == 0.0

    def test_no_price_gives_zero(self):
        meta = [SymbolMeta(id="A", symbol="A", base_asset="A")]
        tickers = [TickerStats(id="A", last_price=None, quote_volume="1")]
        _, assets = aggregate(meta, tickers, [], {"A": 5.0})
        assert assets[0].open_interest_quote == 0.0

    def test_inline_open_interest(self):
        meta = [SymbolMeta(id="10000001", symbol="BTCUSD", base_asset="BTC")]
        tickers = [TickerStats(id="10000001", last_price="100", quote_volume="1",
                               open_interest="2.5")]
        metrics, assets = aggregate(meta, tickers, [])
        assert assets[0].open_interest_quote == 250.0
        assert metrics.total_open_interest == 250.0

    def test_inline_missing_counts_as_zero(self):
        meta = [SymbolMeta(id="1", symbol="X", base_asset="X")]
        tickers = [TickerStats(id="1", last_price="100", open_interest="")]
        _, assets = aggregate(meta, tickers, [])
        assert assets[0].open_interest_quote == 0.0
