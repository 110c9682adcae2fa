"""Websocket transport feeding price ticks into the live reconciler."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from perpdata.live import LiveTickerReconciler
from perpdata.providers.base import BaseExchangeProvider

logger = logging.getLogger(__name__)

ConnectFactory = Callable[[str], Any]


def _default_connect(url: str) -> Any:
    return connect(url, open_timeout=10, close_timeout=5, max_size=2**22)


class LiveStream:
    """Background websocket worker for one provider's ticker stream.

    Each decoded message is handed to the provider for tick extraction and
    folded through the reconciler as one batch. When the transport drops the
    worker reconnects after ``reconnect_delay`` seconds until :meth:`stop`.
    """

    def __init__(
        self,
        provider: BaseExchangeProvider,
        reconciler: LiveTickerReconciler,
        reconnect_delay: float = 1.0,
        read_timeout: float = 1.0,
        connect_factory: ConnectFactory | None = None,
    ) -> None:
        self.provider = provider
        self.reconciler = reconciler
        self.reconnect_delay = reconnect_delay
        self.read_timeout = read_timeout
        self._connect = connect_factory or _default_connect
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._connected = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def connected(self) -> bool:
        return self._connected

    def start(self) -> None:
        if self.running:
            return
        # A fresh event per run: a worker left behind by a timed-out stop()
        # keeps its own set event and cannot be revived by a later start().
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(stop_event,),
            name=f"perpdata-stream-{self.provider.name.lower()}",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(
                    "%s stream worker still exiting after %.1fs", self.provider.name, timeout
                )
        self._thread = None

    def _set_connected(self, stop_event: threading.Event, value: bool) -> None:
        # Only the current run reports connection state.
        if stop_event is self._stop_event:
            self._connected = value

    def _run_loop(self, stop_event: threading.Event) -> None:
        url = self.provider.stream_url
        while not stop_event.is_set():
            try:
                self._run_once(url, stop_event)
            except (OSError, WebSocketException, TimeoutError) as exc:
                logger.warning("%s stream disconnected: %s", self.provider.name, exc)
            except Exception:  # noqa: BLE001
                logger.exception("%s stream worker failed", self.provider.name)
            finally:
                self._set_connected(stop_event, False)
            if stop_event.wait(self.reconnect_delay):
                break

    def _run_once(self, url: str, stop_event: threading.Event) -> None:
        with self._connect(url) as ws:
            if stop_event.is_set():
                return
            self._set_connected(stop_event, True)
            logger.info("%s stream connected: %s", self.provider.name, url)
            subscribe = self.provider.subscribe_message()
            if subscribe is not None:
                ws.send(json.dumps(subscribe))

            while not stop_event.is_set():
                try:
                    payload = ws.recv(timeout=self.read_timeout)
                except TimeoutError:
                    continue
                self.handle_message(payload, ws)

    def handle_message(self, payload: str | bytes, ws: Any = None) -> bool:
        """Decode one frame, answer protocol pings, fold carried ticks."""
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            message = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("Dropping undecodable %s frame", self.provider.name)
            return False

        reply = self.provider.reply_to(message)
        if reply is not None and ws is not None:
            ws.send(json.dumps(reply))

        ticks = self.provider.parse_ticks(message)
        if not ticks:
            return False
        return self.reconciler.apply(ticks)
