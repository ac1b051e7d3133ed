"""relaycast - signed, proof-of-work stamped notes published to relays."""

__version__ = "0.1.0"
