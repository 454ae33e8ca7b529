"""Infrastructure layer: configuration and the model-provider boundary."""

from converge_app.infrastructure.config import (
    AppConfig,
    EngineConfig,
    ProviderConfig,
    ProviderOverride,
    load_config,
    load_config_from_json,
)

__all__ = [
    "AppConfig",
    "EngineConfig",
    "ProviderConfig",
    "ProviderOverride",
    "load_config",
    "load_config_from_json",
]
