"""MarketDataClient — consumer-facing orchestrator for one exchange."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from perpdata.aggregator import aggregate
from perpdata.config import ExchangeType, MarketDataConfig
from perpdata.enrichment import enrich
from perpdata.errors import MarketDataError, MarketDataErrorCode
from perpdata.live import AssetListener, AssetStore, LiveTickerReconciler
from perpdata.models.asset import AggregateMetrics, AssetSnapshot
from perpdata.models.orderbook import OrderBookView
from perpdata.models.sentiment import LongShortRatio
from perpdata.models.upstream import MarkData, SymbolMeta, TickerStats
from perpdata.orderbook import OrderBookTracker, build_order_book
from perpdata.providers import create_provider
from perpdata.providers.base import BaseExchangeProvider
from perpdata.quality import validate_assets, validate_order_book
from perpdata.result import FetchResult
from perpdata.signing import Credentials
from perpdata.stream import ConnectFactory, LiveStream

logger = logging.getLogger(__name__)


class MarketDataClient:
    """Snapshot cycles, order books and live prices for one exchange.

    Usage::

        from perpdata import create_client_from_env
        client = create_client_from_env()
        metrics, assets = client.get_snapshot()
        unsubscribe = client.subscribe_live_prices(print)
    """

    def __init__(
        self,
        config: MarketDataConfig | None = None,
        provider: BaseExchangeProvider | None = None,
        connect_factory: ConnectFactory | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.config = config or MarketDataConfig()
        self.provider = provider or self._build_provider(self.config)
        self.store = AssetStore()
        self.reconciler = LiveTickerReconciler(self.store)
        self.order_book = OrderBookTracker()

        self._sleep = sleep
        self._cycle_lock = threading.Lock()
        self._stream_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="perpdata-fetch")
        self._stream = LiveStream(
            self.provider,
            self.reconciler,
            reconnect_delay=self.config.ws_reconnect_delay,
            connect_factory=connect_factory,
        )

    @staticmethod
    def _build_provider(config: MarketDataConfig) -> BaseExchangeProvider:
        kwargs: dict[str, Any] = {}
        if config.exchange is not ExchangeType.MOCK:
            kwargs["rest_url"] = config.rest_url
            kwargs["ws_url"] = config.ws_url
            kwargs["timeout"] = config.request_timeout
        return create_provider(config.exchange, **kwargs)

    # ------------------------------------------------------------ readers

    @property
    def assets(self) -> tuple[AssetSnapshot, ...]:
        """Current collection, including live price patches."""
        return self.store.assets

    @property
    def metrics(self) -> AggregateMetrics:
        return self.store.metrics

    @property
    def stream(self) -> LiveStream:
        return self._stream

    # ----------------------------------------------------------- snapshot

    def get_snapshot(self) -> tuple[AggregateMetrics, list[AssetSnapshot]]:
        """Run one aggregation cycle and install it in the store.

        Metadata, tickers and mark data are fetched concurrently; open
        interest is then enriched sequentially for the top symbols when the
        exchange needs it. An unavailable metadata or ticker source yields
        ``(AggregateMetrics.zero(), [])``. A malformed payload from either
        of them raises :class:`MarketDataError`.

        Only one cycle runs at a time; concurrent callers wait their turn.
        """
        with self._cycle_lock:
            metrics, assets = self._run_cycle()
            self.store.replace(metrics, assets)
        self._sync_stream()
        return metrics, assets

    def _run_cycle(self) -> tuple[AggregateMetrics, list[AssetSnapshot]]:
        p = self.provider
        meta_f = self._executor.submit(FetchResult.capture, p.fetch_symbol_meta, label="symbol meta")
        tick_f = self._executor.submit(FetchResult.capture, p.fetch_tickers, label="tickers")
        mark_f = self._executor.submit(FetchResult.capture, p.fetch_mark_data, label="mark data")

        meta: FetchResult[list[SymbolMeta]] = meta_f.result()
        tickers: FetchResult[list[TickerStats]] = tick_f.result()
        marks: FetchResult[list[MarkData]] = mark_f.result()

        for result in (meta, tickers):
            if not result.ok and _is_hard_failure(result.error):
                raise result.error
        if not meta.ok or not tickers.ok:
            logger.warning("%s snapshot degraded to no data: mandatory source unavailable", p.name)
            return AggregateMetrics.zero(), []

        open_interest: dict[str, float | None] | None = None
        if "open_interest" in p.capabilities() and self.config.open_interest_top_k > 0:
            open_interest = enrich(
                tickers.value or [],
                self.config.open_interest_top_k,
                p.fetch_open_interest,
                self.config.open_interest_delay_ms,
                sleep=self._sleep,
            )

        metrics, assets = aggregate(
            meta.value or [],
            tickers.value or [],
            marks.unwrap_or([]),
            open_interest=open_interest,
            exchange=p.name,
        )
        if self.config.validate and assets:
            _log_failed_checks(f"{p.name} snapshot", validate_assets(assets))
        return metrics, assets

    # --------------------------------------------------------- order book

    def get_order_book(self, symbol_id: str) -> OrderBookView:
        """Fetch and normalize depth for ``symbol_id``.

        A failed fetch is retried ``depth_retries`` times, then yields an
        empty view. The result becomes ``order_book.view`` unless another
        symbol was requested in the meantime.
        """
        token = self.order_book.begin(symbol_id)
        attempts = 1 + max(self.config.depth_retries, 0)
        result: FetchResult[tuple[list[Any], list[Any]]] = FetchResult.failure(
            MarketDataError("depth not fetched", code=MarketDataErrorCode.NO_DATA)
        )
        for _ in range(attempts):
            result = FetchResult.capture(
                self.provider.fetch_depth, symbol_id, self.config.depth_limit,
                label=f"depth {symbol_id}",
            )
            if result.ok or not self.order_book.is_current(token):
                break

        if result.ok and result.value is not None:
            bids, asks = result.value
            view = build_order_book(symbol_id, bids, asks)
        else:
            view = OrderBookView(symbol_id=symbol_id)

        if self.config.validate and not view.is_empty:
            _log_failed_checks(f"{symbol_id} order book", validate_order_book(view))
        self.order_book.publish(token, view)
        return view

    # -------------------------------------------------------- live prices

    def subscribe_live_prices(self, on_update: AssetListener) -> Callable[[], None]:
        """Call ``on_update(assets)`` for every new collection state.

        The push stream runs while at least one listener is subscribed and
        the collection is non-empty. Returns an idempotent unsubscribe.
        """
        self.store.add_listener(on_update)
        self._sync_stream()
        done = threading.Event()

        def unsubscribe() -> None:
            if done.is_set():
                return
            done.set()
            self.store.remove_listener(on_update)
            self._sync_stream()

        return unsubscribe

    def _sync_stream(self) -> None:
        if "stream" not in self.provider.capabilities():
            return
        with self._stream_lock:
            wanted = self.store.listener_count() > 0 and len(self.store) > 0
            if wanted and not self._stream.running:
                self._stream.start()
            elif not self.store.listener_count() and self._stream.running:
                self._stream.stop()

    # ---------------------------------------------------------- sentiment

    def get_long_short_ratio(self, range_: str = "1h") -> LongShortRatio | None:
        """Exchange-wide buy/sell split, or ``None`` when the read fails."""
        self._require_capability("long_short_ratio")
        result = FetchResult.capture(
            self.provider.fetch_long_short_ratio, range_, label=f"long/short ratio {range_}"
        )
        return result.value if result.ok else None

    # ------------------------------------------------------------ account

    def sync_server_time(self) -> int:
        """Measure the exchange clock offset used to timestamp signed reads.

        The offset (server minus local, in ms) is stored on the config and
        returned.
        """
        self._require_capability("account")
        before = int(time.time() * 1000)
        server_time = self.provider.fetch_server_time()
        after = int(time.time() * 1000)
        offset = server_time - (before + after) // 2
        self.config.server_time_offset_ms = offset
        logger.info("%s server time offset: %d ms", self.provider.name, offset)
        return offset

    def get_balances(self) -> list[dict[str, Any]]:
        return self.provider.get_balances(
            self._account_credentials(), time_offset_ms=self.config.server_time_offset_ms
        )

    def get_account_info(self) -> dict[str, Any]:
        return self.provider.get_account_info(
            self._account_credentials(), time_offset_ms=self.config.server_time_offset_ms
        )

    def get_positions(self, symbol: str | None = None) -> list[dict[str, Any]]:
        return self.provider.get_positions(
            self._account_credentials(), symbol=symbol,
            time_offset_ms=self.config.server_time_offset_ms,
        )

    def get_user_trades(
        self,
        symbol: str,
        limit: int = 500,
        from_id: int | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> list[dict[str, Any]]:
        return self.provider.get_user_trades(
            self._account_credentials(),
            symbol,
            limit=limit,
            from_id=from_id,
            start_time=start_time,
            end_time=end_time,
            time_offset_ms=self.config.server_time_offset_ms,
        )

    def get_income_history(
        self,
        income_type: str | None = None,
        symbol: str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 1000,
    ) -> list[dict[str, Any]]:
        return self.provider.get_income_history(
            self._account_credentials(),
            income_type=income_type,
            symbol=symbol,
            start_time=start_time,
            end_time=end_time,
            limit=limit,
            time_offset_ms=self.config.server_time_offset_ms,
        )

    def get_commission_rate(self, symbol: str) -> dict[str, Any]:
        """Maker/taker commission for ``symbol`` using the configured key pair."""
        return self.provider.get_commission_rate(
            symbol, self._account_credentials(),
            time_offset_ms=self.config.server_time_offset_ms,
        )

    def _require_capability(self, capability: str) -> None:
        if capability not in self.provider.capabilities():
            raise MarketDataError(
                f"{self.provider.name} does not support {capability}",
                code=MarketDataErrorCode.NOT_FOUND,
            )

    def _account_credentials(self) -> Credentials:
        self._require_capability("account")
        credentials = self.config.credentials
        if credentials is None:
            raise MarketDataError(
                "api_key and api_secret must be configured for account endpoints",
                code=MarketDataErrorCode.AUTH_FAILED,
            )
        return credentials

    # ------------------------------------------------------------ cleanup

    def close(self) -> None:
        """Stop the stream, the fetch pool and the provider session."""
        with self._stream_lock:
            self._stream.stop()
        self._executor.shutdown(wait=False)
        self.provider.close()

    def __enter__(self) -> MarketDataClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def _is_hard_failure(error: MarketDataError | None) -> bool:
    """Broken payloads propagate; outages and rejections degrade."""
    return (
        error is not None
        and error.code is MarketDataErrorCode.PROVIDER_ERROR
        and not error.retryable
    )


def _log_failed_checks(what: str, result: Any) -> None:
    if result.passed:
        return
    msgs = "; ".join(c.message for c in result.failed_checks)
    logger.warning("%s failed validation: %s", what, msgs)
