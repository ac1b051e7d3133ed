"""Configuration loading and validation."""

from relaycast.config.loader import load_config
from relaycast.config.schema import (
    CompletionConfig,
    GeneralConfig,
    IdentityConfig,
    LoggingConfig,
    PowConfig,
    RelaycastConfig,
    RelaysConfig,
    ToolsConfig,
)

__all__ = [
    "CompletionConfig",
    "GeneralConfig",
    "IdentityConfig",
    "LoggingConfig",
    "PowConfig",
    "RelaycastConfig",
    "RelaysConfig",
    "ToolsConfig",
    "load_config",
]
