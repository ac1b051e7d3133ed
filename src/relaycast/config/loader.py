"""Configuration loading: TOML files, env var overrides, merge logic.

Discovery order (later overrides earlier):
    1. Built-in defaults (Pydantic model defaults)
    2. User config: ``~/.config/relaycast/config.toml``
    3. Project-local config: ``./relaycast.toml``
    4. ``$RELAYCAST_CONFIG`` environment variable (explicit path)
    5. Programmatic overrides (passed to ``load_config``)

Environment variable overrides:
    ``identity.private_key_env`` and ``completion.api_key_env`` name env
    vars consulted when the key itself is not in a file.
    ``pow.difficulty_env`` overrides the difficulty when set.

The private key is validated here, so a malformed key fails at startup
rather than on the first publish.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from relaycast.core.errors import ConfigError

from .schema import RelaycastConfig


def _user_config_path() -> Path:
    """Return XDG-compliant user config path."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "relaycast" / "config.toml"


def _project_config_path() -> Path:
    """Return project-local config path."""
    return Path.cwd() / "relaycast.toml"


def _discover_config_files() -> list[Path]:
    """Return config files in merge order (first = lowest priority)."""
    paths: list[Path] = []

    user = _user_config_path()
    if user.is_file():
        paths.append(user)

    project = _project_config_path()
    if project.is_file():
        paths.append(project)

    env_path = os.environ.get("RELAYCAST_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            msg = f"RELAYCAST_CONFIG points to non-existent file: {env_path}"
            raise ConfigError(msg)
        paths.append(p)

    return paths


def _read_toml(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file."""
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override wins on conflicts."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_env(config: RelaycastConfig) -> None:
    """Resolve keys and difficulty from environment variables (in-place)."""
    identity = config.identity
    if identity.private_key is None and identity.private_key_env:
        value = os.environ.get(identity.private_key_env, "").strip()
        identity.private_key = value or None

    completion = config.completion
    if completion.api_key is None and completion.api_key_env:
        completion.api_key = os.environ.get(completion.api_key_env) or None

    if config.pow.difficulty_env:
        raw = os.environ.get(config.pow.difficulty_env, "").strip()
        if raw:
            try:
                difficulty = int(raw)
            except ValueError as e:
                msg = f"{config.pow.difficulty_env} must be an integer, got {raw!r}"
                raise ConfigError(msg) from e
            if not 0 <= difficulty <= 256:
                msg = f"{config.pow.difficulty_env} must be in 0..256, got {difficulty}"
                raise ConfigError(msg)
            config.pow.difficulty = difficulty


def _validate_identity(config: RelaycastConfig) -> None:
    """Reject malformed private keys at load time."""
    from relaycast.events.signing import KeySigner

    if config.identity.private_key is not None:
        KeySigner.from_hex(config.identity.private_key)


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> RelaycastConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file path (highest file priority).
        overrides: Dict of overrides merged last (highest overall priority).

    Returns:
        Validated RelaycastConfig instance.

    Raises:
        ConfigError: On invalid TOML, missing files, or validation failure.
        SigningKeyInvalidError: If the configured private key is malformed.
    """
    merged: dict[str, Any] = {}

    files = _discover_config_files()

    if path is not None:
        p = Path(path)
        if not p.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        files.append(p)

    for config_file in files:
        data = _read_toml(config_file)
        merged = _deep_merge(merged, data)

    if overrides:
        merged = _deep_merge(merged, overrides)

    try:
        config = RelaycastConfig.model_validate(merged)
    except Exception as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    _resolve_env(config)
    _validate_identity(config)

    return config
