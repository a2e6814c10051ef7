"""AI providers - text generation gateway and provider configuration."""

from .config import (
    EngineSettings,
    ProviderConfig,
    TextProviderConfig,
    estimate_cost,
    get_engine_settings,
    load_provider_config,
)
from .text import (
    ProviderGateway,
    ProviderResponse,
    TextProvider,
    call_with_cancellation,
    classify_error,
)

__all__ = [
    "EngineSettings",
    "ProviderConfig",
    "TextProviderConfig",
    "estimate_cost",
    "get_engine_settings",
    "load_provider_config",
    "ProviderGateway",
    "ProviderResponse",
    "TextProvider",
    "call_with_cancellation",
    "classify_error",
]
