"""AsterDex perpetual futures provider.

Public REST endpoints under ``/fapi/v1`` plus the all-market ticker stream.
Open interest is only available per symbol, so the client enriches the
top symbols through :meth:`AsterProvider.fetch_open_interest`. Account reads
are signed with HMAC-SHA256 (see :mod:`perpdata.signing`).
"""

from __future__ import annotations

from typing import Any

from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats
from perpdata.numeric import parse_int
from perpdata.providers.base import RestExchangeProvider
from perpdata.signing import Credentials, sign_query

TICKER_STREAM = "!ticker@arr"


class AsterProvider(RestExchangeProvider):
    """Fetch market data from the AsterDex futures API.

    Capabilities: open_interest, depth, stream, account.
    """

    name = "Aster"
    default_rest_url = "https://fapi.asterdex.com"
    default_stream_url = f"wss://fstream.asterdex.com/stream?streams={TICKER_STREAM}"

    def capabilities(self) -> set[str]:
        return {"open_interest", "depth", "stream", "account"}

    # ------------------------------------------------------------ listings

    def fetch_symbol_meta(self) -> list[SymbolMeta]:
        data = self._expect(self._get("/fapi/v1/exchangeInfo"), dict, "exchangeInfo")
        symbols = self._expect(data.get("symbols"), list, "exchangeInfo.symbols")
        return [
            SymbolMeta(
                id=s["symbol"],
                symbol=s["symbol"],
                base_asset=s.get("baseAsset") or s["symbol"],
            )
            for s in symbols
            if isinstance(s, dict) and s.get("symbol") and s.get("status") == "TRADING"
        ]

    def fetch_tickers(self) -> list[TickerStats]:
        rows = self._expect(self._get("/fapi/v1/ticker/24hr"), list, "ticker/24hr")
        return [
            TickerStats(
                id=r["symbol"],
                last_price=r.get("lastPrice"),
                high_price=r.get("highPrice"),
                low_price=r.get("lowPrice"),
                quote_volume=r.get("quoteVolume"),
                base_volume=r.get("volume"),
                trade_count=r.get("count"),
                price_change_percent=r.get("priceChangePercent"),
            )
            for r in rows
            if isinstance(r, dict) and r.get("symbol")
        ]

    def fetch_mark_data(self) -> list[MarkData]:
        rows = self._expect(self._get("/fapi/v1/premiumIndex"), list, "premiumIndex")
        return [
            MarkData(
                id=r["symbol"],
                mark_price=r.get("markPrice"),
                index_price=r.get("indexPrice"),
                funding_rate=r.get("lastFundingRate"),
                next_funding_time=r.get("nextFundingTime"),
            )
            for r in rows
            if isinstance(r, dict) and r.get("symbol")
        ]

    # ---------------------------------------------------------- per-symbol

    def fetch_open_interest(self, symbol_id: str) -> Any:
        data = self._expect(
            self._get("/fapi/v1/openInterest", params={"symbol": symbol_id}),
            dict,
            "openInterest",
        )
        return data.get("openInterest")

    def fetch_depth(self, symbol_id: str, limit: int) -> tuple[list[Any], list[Any]]:
        data = self._expect(
            self._get("/fapi/v1/depth", params={"symbol": symbol_id, "limit": limit}),
            dict,
            "depth",
        )
        return data.get("bids") or [], data.get("asks") or []

    # -------------------------------------------------------------- stream

    def parse_ticks(self, message: Any) -> list[PriceTick]:
        if isinstance(message, dict):
            if message.get("stream") != TICKER_STREAM:
                return []
            message = message.get("data")
        if not isinstance(message, list):
            return []
        return [
            PriceTick(id=t["s"], price=t.get("c"))
            for t in message
            if isinstance(t, dict) and t.get("s")
        ]

    # ------------------------------------------------------------- account

    def fetch_server_time(self) -> int:
        """Exchange clock in epoch milliseconds (public endpoint)."""
        data = self._expect(self._get("/fapi/v1/time"), dict, "time")
        server_time = parse_int(data.get("serverTime"), "null")
        if server_time is None:
            raise MarketDataError(
                f"Unexpected time payload: {data!r}"[:200],
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        return server_time

    def get_balances(self, credentials: Credentials, time_offset_ms: int = 0) -> list[dict[str, Any]]:
        data = self._get_signed("/fapi/v2/balance", {}, credentials, time_offset_ms=time_offset_ms)
        return self._expect(data, list, "balance")

    def get_account_info(self, credentials: Credentials, time_offset_ms: int = 0) -> dict[str, Any]:
        data = self._get_signed("/fapi/v2/account", {}, credentials, time_offset_ms=time_offset_ms)
        return self._expect(data, dict, "account")

    def get_positions(
        self,
        credentials: Credentials,
        symbol: str | None = None,
        time_offset_ms: int = 0,
    ) -> list[dict[str, Any]]:
        params = {"symbol": symbol} if symbol else {}
        data = self._get_signed(
            "/fapi/v2/positionRisk", params, credentials, time_offset_ms=time_offset_ms
        )
        return self._expect(data, list, "positionRisk")

    def get_user_trades(
        self,
        credentials: Credentials,
        symbol: str,
        limit: int = 500,
        from_id: int | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        time_offset_ms: int = 0,
    ) -> list[dict[str, Any]]:
        """Account trade history for ``symbol``, oldest first."""
        params: dict[str, Any] = {"symbol": symbol, "limit": limit}
        if from_id is not None:
            params["fromId"] = from_id
        if start_time is not None:
            params["startTime"] = start_time
        if end_time is not None:
            params["endTime"] = end_time
        data = self._get_signed(
            "/fapi/v1/userTrades", params, credentials, time_offset_ms=time_offset_ms
        )
        return self._expect(data, list, "userTrades")

    def get_income_history(
        self,
        credentials: Credentials,
        income_type: str | None = None,
        symbol: str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 1000,
        time_offset_ms: int = 0,
    ) -> list[dict[str, Any]]:
        """Realized PnL, funding fees, commissions and transfers."""
        params: dict[str, Any] = {"limit": limit}
        if income_type:
            params["incomeType"] = income_type
        if symbol:
            params["symbol"] = symbol
        if start_time is not None:
            params["startTime"] = start_time
        if end_time is not None:
            params["endTime"] = end_time
        data = self._get_signed("/fapi/v1/income", params, credentials, time_offset_ms=time_offset_ms)
        return self._expect(data, list, "income")

    def get_commission_rate(
        self, symbol: str, credentials: Credentials, time_offset_ms: int = 0
    ) -> dict[str, Any]:
        """Maker/taker commission rates for ``symbol`` (signed endpoint)."""
        data = self._get_signed(
            "/fapi/v1/commissionRate", {"symbol": symbol}, credentials,
            time_offset_ms=time_offset_ms,
        )
        return self._expect(data, dict, "commissionRate")

    def _get_signed(
        self,
        path: str,
        params: dict[str, Any],
        credentials: Credentials,
        timestamp_ms: int | None = None,
        time_offset_ms: int = 0,
    ) -> Any:
        if not credentials.api_key or not credentials.api_secret:
            raise MarketDataError(
                "Aster API key and secret are required for signed endpoints",
                code=MarketDataErrorCode.AUTH_FAILED,
            )
        query, signature = sign_query(
            params, credentials, timestamp_ms=timestamp_ms, time_offset_ms=time_offset_ms
        )
        # The signature covers these exact bytes; do not let requests re-encode them.
        signed_path = f"{path}?{query}&signature={signature}"
        return self._get(signed_path, headers={"X-MBX-APIKEY": credentials.api_key})
