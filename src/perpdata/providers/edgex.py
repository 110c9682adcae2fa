"""EdgeX perpetual futures provider.

EdgeX publishes open interest, mark/index/oracle prices and funding inline
with each ticker, so no per-symbol enrichment is needed. Every REST
response is wrapped in ``{"code": "SUCCESS", "data": ...}``.
"""

from __future__ import annotations

from typing import Any

from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.models.sentiment import DEFAULT_RATIO_RANGES, TOTAL_EXCHANGE, LongShortRatio
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats
from perpdata.numeric import parse_number
from perpdata.providers.base import RestExchangeProvider

TICKER_CHANNEL = "ticker.all"
_DEPTH_LEVELS = (15, 200)


class EdgeXProvider(RestExchangeProvider):
    """Fetch market data from the EdgeX public API.

    Capabilities: depth, stream, long_short_ratio.
    """

    name = "EdgeX"
    default_rest_url = "https://pro.edgex.exchange/api/v1/public"
    default_stream_url = "wss://pro.edgex.exchange/api/v1/public/ws"

    def capabilities(self) -> set[str]:
        return {"depth", "stream", "long_short_ratio"}

    # ------------------------------------------------------------ listings

    def fetch_symbol_meta(self) -> list[SymbolMeta]:
        data = self._expect(self._get_data("/meta/getMetaData"), dict, "getMetaData")
        coin_names = {
            c.get("coinId"): c.get("coinName")
            for c in data.get("coinList") or []
            if isinstance(c, dict)
        }
        contracts = self._expect(data.get("contractList"), list, "getMetaData.contractList")
        meta: list[SymbolMeta] = []
        for c in contracts:
            if not isinstance(c, dict) or not c.get("contractId"):
                continue
            if not (c.get("enableTrade") and c.get("enableDisplay")):
                continue
            base_id = c.get("baseCoinId") or ""
            meta.append(SymbolMeta(
                id=str(c["contractId"]),
                symbol=c.get("contractName") or str(c["contractId"]),
                base_asset=coin_names.get(base_id) or base_id,
            ))
        return meta

    def fetch_tickers(self) -> list[TickerStats]:
        return [
            TickerStats(
                id=str(r["contractId"]),
                last_price=r.get("lastPrice"),
                high_price=r.get("high"),
                low_price=r.get("low"),
                quote_volume=r.get("value"),
                base_volume=r.get("size"),
                trade_count=r.get("trades"),
                price_change_percent=r.get("priceChangePercent"),
                # Always attempted for EdgeX: a missing value counts as zero.
                open_interest=r.get("openInterest", ""),
            )
            for r in self._ticker_rows()
        ]

    def fetch_mark_data(self) -> list[MarkData]:
        return [
            MarkData(
                id=str(r["contractId"]),
                mark_price=r.get("markPrice"),
                index_price=r.get("indexPrice"),
                oracle_price=r.get("oraclePrice"),
                funding_rate=r.get("fundingRate"),
                next_funding_time=r.get("nextFundingTime"),
            )
            for r in self._ticker_rows()
        ]

    def _ticker_rows(self) -> list[dict[str, Any]]:
        rows = self._expect(self._get_data("/quote/getTicker"), list, "getTicker")
        return [r for r in rows if isinstance(r, dict) and r.get("contractId")]

    # ---------------------------------------------------------- per-symbol

    def fetch_depth(self, symbol_id: str, limit: int) -> tuple[list[Any], list[Any]]:
        level = next((lv for lv in _DEPTH_LEVELS if limit <= lv), _DEPTH_LEVELS[-1])
        books = self._expect(
            self._get_data("/quote/getDepth", params={"contractId": symbol_id, "level": level}),
            list,
            "getDepth",
        )
        if not books or not isinstance(books[0], dict):
            return [], []
        book = books[0]
        return (book.get("bids") or [])[:limit], (book.get("asks") or [])[:limit]

    # ----------------------------------------------------------- sentiment

    def fetch_long_short_ratio(self, range_: str = "1h") -> LongShortRatio | None:
        """Exchange-wide taker buy/sell split for ``range_``.

        Prefers the ``_total_`` row and falls back to the first venue listed.
        Returns ``None`` when the exchange has no rows for the range.
        """
        data = self._expect(
            self._get_data("/quote/getExchangeLongShortRatio", params={"range": range_}),
            dict,
            "getExchangeLongShortRatio",
        )
        rows = [r for r in data.get("exchangeLongShortRatioList") or [] if isinstance(r, dict)]
        if not rows:
            return None
        row = next((r for r in rows if r.get("exchange") == TOTAL_EXCHANGE), rows[0])
        ranges = data.get("allRangeList")
        return LongShortRatio(
            range=range_,
            exchange=str(row.get("exchange") or ""),
            buy_ratio=parse_number(row.get("buyRatio")),
            sell_ratio=parse_number(row.get("sellRatio")),
            buy_volume_usd=parse_number(row.get("buyVolUsd")),
            sell_volume_usd=parse_number(row.get("sellVolUsd")),
            available_ranges=(
                tuple(str(r) for r in ranges) if isinstance(ranges, list) and ranges
                else DEFAULT_RATIO_RANGES
            ),
        )

    # -------------------------------------------------------------- stream

    def subscribe_message(self) -> dict[str, Any] | None:
        return {"type": "subscribe", "channel": TICKER_CHANNEL}

    def reply_to(self, message: Any) -> dict[str, Any] | None:
        if isinstance(message, dict) and message.get("type") == "ping":
            return {"type": "pong", "time": message.get("time")}
        return None

    def parse_ticks(self, message: Any) -> list[PriceTick]:
        if not isinstance(message, dict):
            return []
        if message.get("type") != "payload" or message.get("channel") != TICKER_CHANNEL:
            return []
        content = message.get("content")
        if not isinstance(content, dict):
            return []
        if content.get("dataType") not in ("Snapshot", "Changed"):
            return []
        rows = content.get("data")
        if not isinstance(rows, list):
            return []
        return [
            PriceTick(id=str(t["contractId"]), price=t.get("lastPrice"))
            for t in rows
            if isinstance(t, dict) and t.get("contractId")
        ]

    # ----------------------------------------------------------- internals

    def _get_data(self, path: str, params: dict[str, Any] | None = None) -> Any:
        payload = self._expect(self._get(path, params=params), dict, path)
        if payload.get("code") != "SUCCESS":
            raise MarketDataError(
                f"EdgeX {path} returned code {payload.get('code')}: {payload.get('msg')}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
                retryable=True,
            )
        return payload.get("data")
