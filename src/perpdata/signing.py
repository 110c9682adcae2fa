"""Request signing for authenticated exchange endpoints.

Credentials are an explicit value passed to each authenticated call; the
package keeps no process-wide key state.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

DEFAULT_RECV_WINDOW = 5000


@dataclass(frozen=True)
class Credentials:
    """API key pair. ``api_secret`` is excluded from ``repr``."""

    api_key: str
    api_secret: str = field(repr=False)


def build_query(params: dict[str, Any]) -> str:
    """Encode ``params`` in insertion order, percent-encoding values."""
    return "&".join(f"{k}={quote(str(v), safe='')}" for k, v in params.items())


def sign(message: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of ``message``."""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_query(
    params: dict[str, Any] | None,
    credentials: Credentials,
    timestamp_ms: int | None = None,
    recv_window: int = DEFAULT_RECV_WINDOW,
    time_offset_ms: int = 0,
) -> tuple[str, str]:
    """Build the exact query string to send and its signature.

    ``timestamp`` and ``recvWindow`` are appended after the caller's params.
    The request must send the returned query string byte-for-byte, followed
    by ``&signature=<signature>``. ``time_offset_ms`` (server minus local
    clock) shifts the generated timestamp; an explicit ``timestamp_ms`` is
    used as given.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000) + time_offset_ms
    full = dict(params or {})
    full["timestamp"] = timestamp_ms
    full["recvWindow"] = recv_window
    query = build_query(full)
    return query, sign(query, credentials.api_secret)


__all__ = ["Credentials", "build_query", "sign", "sign_query", "DEFAULT_RECV_WINDOW"]
