"""Core types, errors, and shared utilities."""

from relaycast.core.errors import (
    AllEndpointsFailedError,
    ConfigError,
    EndpointError,
    MiningCancelledError,
    MiningError,
    MiningTimeoutError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    PublishError,
    RelayConnectionError,
    RelaycastError,
    RelayRejectedError,
    RelayTimeoutError,
    SigningError,
    SigningKeyInvalidError,
)
from relaycast.core.retry import (
    TRANSIENT_PROVIDER_ERRORS,
    CompletionBackoff,
    with_backoff,
)

__all__ = [
    "AllEndpointsFailedError",
    "CompletionBackoff",
    "ConfigError",
    "EndpointError",
    "MiningCancelledError",
    "MiningError",
    "MiningTimeoutError",
    "ModelNotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderOverloadedError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "PublishError",
    "RelayConnectionError",
    "RelayRejectedError",
    "RelayTimeoutError",
    "RelaycastError",
    "SigningError",
    "SigningKeyInvalidError",
    "TRANSIENT_PROVIDER_ERRORS",
    "with_backoff",
]
