"""Pydantic models for relaycast configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_RELAYS = [
    "wss://relay.contextvm.org",
    "wss://relay.damus.io",
    "wss://nos.lol",
    "wss://relay.nostr.band",
]


class GeneralConfig(BaseModel):
    """General settings."""

    default_kind: int = Field(default=1, ge=0)
    persona: str = "relaycast"


class IdentityConfig(BaseModel):
    """Issuer key material."""

    private_key: str | None = None
    private_key_env: str | None = "RELAYCAST_PRIVATE_KEY"


class PowConfig(BaseModel):
    """Proof-of-work settings. ``difficulty = 0`` disables mining."""

    difficulty: int = Field(default=0, ge=0, le=256)
    difficulty_env: str | None = "RELAYCAST_POW_DIFFICULTY"
    on_timeout: Literal["publish_unmined", "abort"] = "publish_unmined"
    progress_interval: int = Field(default=50_000, gt=0)


class RelaysConfig(BaseModel):
    """Relay endpoints."""

    urls: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS))
    connect_timeout: float = Field(default=5.0, gt=0)
    publish_timeout: float = Field(default=10.0, gt=0)


class CompletionConfig(BaseModel):
    """OpenAI-compatible completion endpoint (OpenRouter by default)."""

    enabled: bool = True
    api_key: str | None = None
    api_key_env: str | None = "OPEN_ROUTER_KEY"
    base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-oss-120b"
    max_tokens: int = 1024
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, gt=0)
    retry_delay_cap: float = Field(default=30.0, gt=0)


class ToolsConfig(BaseModel):
    """Which tools the MCP server exposes."""

    enabled: list[str] = Field(
        default_factory=lambda: ["publish_note", "summarise", "funny_agent"]
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


class RelaycastConfig(BaseModel):
    """Top-level configuration for relaycast."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    pow: PowConfig = Field(default_factory=PowConfig)
    relays: RelaysConfig = Field(default_factory=RelaysConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
