"""Typed outcome of a single optional-source fetch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from perpdata.errors import MarketDataError, MarketDataErrorCode

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Success or failure of one upstream call.

    ``ok=True`` with ``value=None`` means the source legitimately had
    nothing; ``ok=False`` means the call failed and ``error`` says why.
    """

    ok: bool
    value: T | None = None
    error: MarketDataError | None = None

    @classmethod
    def success(cls, value: T | None) -> FetchResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: MarketDataError) -> FetchResult[T]:
        return cls(ok=False, error=error)

    @classmethod
    def capture(cls, fn: Callable[..., T], *args: Any, label: str = "") -> FetchResult[T]:
        """Run ``fn(*args)`` and wrap its outcome; never raises ``Exception``."""
        try:
            return cls.success(fn(*args))
        except MarketDataError as exc:
            logger.warning("%s failed (%s): %s", label or fn.__name__, exc.code.value, exc)
            return cls.failure(exc)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s failed: %s", label or fn.__name__, exc)
            return cls.failure(MarketDataError(
                str(exc),
                code=MarketDataErrorCode.SOURCE_UNAVAILABLE,
                retryable=True,
            ))

    def unwrap_or(self, default: T) -> T:
        if self.ok and self.value is not None:
            return self.value
        return default
