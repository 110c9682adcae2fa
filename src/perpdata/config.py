"""Market data configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from perpdata.signing import Credentials


class ExchangeType(Enum):
    """Supported exchange backends."""

    ASTER = "aster"
    EDGEX = "edgex"
    MOCK = "mock"


@dataclass
class MarketDataConfig:
    """Configuration for MarketDataClient.

    Attributes:
        exchange: Exchange backend.
        open_interest_top_k: Symbols (by quote volume) to enrich with open
            interest per cycle, for exchanges without inline OI.
        open_interest_delay_ms: Pause before each open-interest request.
        depth_limit: Order book levels per side to request.
        depth_retries: Extra attempts for a failed depth fetch.
        request_timeout: HTTP timeout in seconds.
        ws_reconnect_delay: Seconds to wait before reconnecting the stream.
        validate: Whether to run quality checks and log failures.
        api_key: Exchange API key (authenticated endpoints only).
        api_secret: Exchange API secret.
        server_time_offset_ms: Exchange clock minus local clock, applied to
            signed request timestamps.
        rest_url: Override for the exchange REST base URL.
        ws_url: Override for the exchange stream URL.
    """

    exchange: ExchangeType = ExchangeType.ASTER
    open_interest_top_k: int = 20
    open_interest_delay_ms: float = 100.0
    depth_limit: int = 50
    depth_retries: int = 1
    request_timeout: float = 10.0
    ws_reconnect_delay: float = 1.0
    validate: bool = True

    api_key: str | None = None
    api_secret: str | None = None
    server_time_offset_ms: int = 0
    rest_url: str | None = None
    ws_url: str | None = None

    @property
    def credentials(self) -> Credentials | None:
        """Explicit key pair for signed endpoints, or ``None`` if unset."""
        if not self.api_key or not self.api_secret:
            return None
        return Credentials(api_key=self.api_key, api_secret=self.api_secret)
