"""Exchange provider registry."""

from __future__ import annotations

from perpdata.config import ExchangeType
from perpdata.providers.base import BaseExchangeProvider, RestExchangeProvider

# Lazy registry: classes are imported when first requested.
PROVIDER_CLASSES: dict[ExchangeType, str] = {
    ExchangeType.ASTER: "perpdata.providers.aster.AsterProvider",
    ExchangeType.EDGEX: "perpdata.providers.edgex.EdgeXProvider",
    ExchangeType.MOCK: "perpdata.providers.mock.MockProvider",
}


def create_provider(
    exchange: ExchangeType,
    **kwargs,
) -> BaseExchangeProvider:
    """Instantiate a provider by type, forwarding kwargs to its constructor."""
    import importlib

    dotted = PROVIDER_CLASSES[exchange]
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseExchangeProvider", "RestExchangeProvider", "PROVIDER_CLASSES", "create_provider"]
