"""Abstract base class for exchange providers."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import requests

from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.models.sentiment import LongShortRatio
from perpdata.models.upstream import MarkData, PriceTick, SymbolMeta, TickerStats
from perpdata.signing import Credentials


class BaseExchangeProvider(ABC):
    """Abstract base for all exchange providers.

    Subclasses implement the three listings the aggregator joins. Optional
    endpoints default to ``NotImplementedError`` and are advertised through
    ``capabilities()``.
    """

    name: str = "base"
    stream_url: str = ""

    # --- Listings (required) ---

    @abstractmethod
    def fetch_symbol_meta(self) -> list[SymbolMeta]:
        """Tradable symbols/contracts."""
        ...

    @abstractmethod
    def fetch_tickers(self) -> list[TickerStats]:
        """24h ticker stats for all symbols."""
        ...

    @abstractmethod
    def fetch_mark_data(self) -> list[MarkData]:
        """Mark/index/funding rows for all symbols."""
        ...

    # --- Per-symbol ---

    def fetch_open_interest(self, symbol_id: str) -> Any:
        """Raw base-asset open interest for one symbol."""
        raise NotImplementedError

    def fetch_depth(self, symbol_id: str, limit: int) -> tuple[list[Any], list[Any]]:
        """Raw ``(bids, asks)`` levels for one symbol."""
        raise NotImplementedError

    # --- Sentiment ---

    def fetch_long_short_ratio(self, range_: str = "1h") -> LongShortRatio | None:
        """Exchange-wide taker buy/sell split for one time range."""
        raise NotImplementedError

    # --- Account (signed) ---

    def fetch_server_time(self) -> int:
        """Exchange clock in epoch milliseconds."""
        raise NotImplementedError

    def get_balances(self, credentials: Credentials, time_offset_ms: int = 0) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_account_info(self, credentials: Credentials, time_offset_ms: int = 0) -> dict[str, Any]:
        raise NotImplementedError

    def get_positions(
        self, credentials: Credentials, symbol: str | None = None, time_offset_ms: int = 0
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_user_trades(self, credentials: Credentials, symbol: str, **kwargs: Any) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_income_history(self, credentials: Credentials, **kwargs: Any) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_commission_rate(
        self, symbol: str, credentials: Credentials, time_offset_ms: int = 0
    ) -> dict[str, Any]:
        raise NotImplementedError

    # --- Push stream ---

    def subscribe_message(self) -> dict[str, Any] | None:
        """Message to send right after the stream connects, if any."""
        return None

    def parse_ticks(self, message: dict[str, Any]) -> list[PriceTick]:
        """Price ticks carried by one decoded stream message."""
        return []

    def reply_to(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Protocol-level reply (e.g. pong) for one decoded message."""
        return None

    # --- Capabilities ---

    def capabilities(self) -> set[str]:
        """Return the set of supported features.

        Possible values: ``open_interest`` (per-symbol enrichment needed),
        ``depth``, ``stream``, ``account``, ``long_short_ratio``.
        """
        return set()

    def close(self) -> None:
        pass


class RestExchangeProvider(BaseExchangeProvider):
    """Shared HTTP plumbing for REST-backed providers (``requests`` session)."""

    default_rest_url: str = ""
    default_stream_url: str = ""

    def __init__(
        self,
        rest_url: str | None = None,
        ws_url: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (rest_url or self.default_rest_url).rstrip("/")
        self.stream_url = ws_url or self.default_stream_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise MarketDataError(
                f"{self.name} {path} timed out",
                code=MarketDataErrorCode.TIMEOUT,
                retryable=True,
            ) from exc
        except requests.RequestException as exc:
            raise MarketDataError(
                f"{self.name} {path} unavailable: {exc}",
                code=MarketDataErrorCode.SOURCE_UNAVAILABLE,
                retryable=True,
            ) from exc

        self._check_response(resp, path)
        try:
            return resp.json()
        except ValueError as exc:
            raise MarketDataError(
                f"{self.name} {path} returned malformed JSON",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            ) from exc

    def _check_response(self, resp: Any, path: str) -> None:
        status = resp.status_code
        if 200 <= status < 300:
            return
        body = (resp.text or "")[:200]
        if status in (418, 429):
            raise MarketDataError(
                f"{self.name} rate limited on {path}",
                code=MarketDataErrorCode.RATE_LIMITED,
                retryable=True,
            )
        if status in (401, 403):
            raise MarketDataError(
                f"{self.name} authentication failed on {path}: {body}",
                code=MarketDataErrorCode.AUTH_FAILED,
            )
        if status in (400, 404):
            raise MarketDataError(
                f"{self.name} {path} not found: {body}",
                code=MarketDataErrorCode.NOT_FOUND,
            )
        raise MarketDataError(
            f"{self.name} {path} failed with HTTP {status}: {body}",
            code=MarketDataErrorCode.PROVIDER_ERROR,
            retryable=True,
        )

    @staticmethod
    def _expect(data: Any, kind: type, what: str) -> Any:
        if not isinstance(data, kind):
            raise MarketDataError(
                f"Unexpected {what} payload: {json.dumps(data, default=str)[:200]}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        return data
