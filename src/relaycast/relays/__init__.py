"""Relay endpoints and fan-out publication."""

from relaycast.relays.base import EndpointOutcome, PublishOutcome, RelayEndpoint
from relaycast.relays.dispatcher import PublicationDispatcher
from relaycast.relays.websocket import WebSocketRelay

__all__ = [
    "EndpointOutcome",
    "PublicationDispatcher",
    "PublishOutcome",
    "RelayEndpoint",
    "WebSocketRelay",
]
