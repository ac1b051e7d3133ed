"""Main CLI application.

Click commands for relaycast: keygen, identity, publish, difficulty,
tools, mcp.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import click

from relaycast import __version__
from relaycast.config.loader import load_config
from relaycast.core.errors import ConfigError, RelaycastError

if TYPE_CHECKING:
    from collections.abc import Callable

    from relaycast.config.schema import RelaycastConfig
    from relaycast.events.pipeline import RecordPublisher
    from relaycast.events.pow import MiningProgress
    from relaycast.events.signing import KeySigner
    from relaycast.providers.base import CompletionProvider
    from relaycast.relays.dispatcher import PublicationDispatcher
    from relaycast.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> RelaycastConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def _setup_logging(config: RelaycastConfig) -> None:
    """Route log records to stderr; stdout belongs to the MCP transport."""
    from rich.console import Console
    from rich.logging import RichHandler

    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False)
    ]
    if config.logging.file:
        file_handler = logging.FileHandler(config.logging.file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def _setup_signer(config: RelaycastConfig, *, ephemeral_ok: bool = False) -> KeySigner:
    """Build the issuer's signer from config.

    Raises:
        ConfigError: No key configured and *ephemeral_ok* is False.
    """
    from relaycast.events.signing import KeySigner

    key = config.identity.private_key
    if key is not None:
        return KeySigner.from_hex(key)
    if not ephemeral_ok:
        env = config.identity.private_key_env or "identity.private_key"
        msg = f"No private key configured. Run 'relaycast keygen' and set {env}."
        raise ConfigError(msg)

    signer = KeySigner.generate()
    logger.warning(
        "No private key configured; using an ephemeral identity %s. "
        "Run 'relaycast keygen' for a persistent one.",
        signer.public_identity,
    )
    return signer


def _setup_dispatcher(
    config: RelaycastConfig, relays: tuple[str, ...] = ()
) -> PublicationDispatcher:
    """Create a dispatcher over the configured (or given) relay URLs."""
    from relaycast.relays.dispatcher import PublicationDispatcher
    from relaycast.relays.websocket import WebSocketRelay

    urls = list(relays) or config.relays.urls
    if not urls:
        msg = "No relays configured."
        raise ConfigError(msg)
    endpoints = [
        WebSocketRelay(
            url,
            connect_timeout=config.relays.connect_timeout,
            ack_timeout=config.relays.publish_timeout,
        )
        for url in urls
    ]
    # Per-endpoint bound covers connect + acknowledgement.
    timeout = config.relays.connect_timeout + config.relays.publish_timeout
    return PublicationDispatcher(endpoints, timeout=timeout)


def _setup_publisher(
    config: RelaycastConfig,
    signer: KeySigner,
    dispatcher: PublicationDispatcher,
    *,
    progress: Callable[[MiningProgress], None] | None = None,
) -> RecordPublisher:
    from relaycast.events.pipeline import RecordPublisher
    from relaycast.events.pow import PowMiner

    return RecordPublisher(
        signer,
        dispatcher,
        difficulty=config.pow.difficulty,
        on_timeout=config.pow.on_timeout,
        miner=PowMiner(progress_interval=config.pow.progress_interval),
        progress=progress,
    )


def _setup_provider(config: RelaycastConfig) -> CompletionProvider | None:
    """Completion provider, or None when disabled or missing an API key."""
    if not config.completion.enabled or config.completion.api_key is None:
        return None

    from relaycast.providers.openrouter import OpenRouterProvider

    return OpenRouterProvider(
        api_key=config.completion.api_key,
        base_url=config.completion.base_url,
        default_model=config.completion.default_model,
    )


def _setup_tools(config: RelaycastConfig, publisher: RecordPublisher) -> ToolRegistry:
    """Register the enabled tools.

    Completion-backed tools are skipped (with a warning) when no
    completion provider is available.
    """
    from relaycast.core.retry import CompletionBackoff
    from relaycast.tools.registry import ToolRegistry

    registry = ToolRegistry()
    enabled = set(config.tools.enabled)
    provider = _setup_provider(config)
    backoff = CompletionBackoff.from_config(config.completion)

    if "publish_note" in enabled:
        from relaycast.tools.publish_note import PublishNoteTool

        registry.register(
            PublishNoteTool(publisher, default_kind=config.general.default_kind)
        )

    wants_completion = enabled & {"summarise", "funny_agent"}
    if wants_completion and provider is None:
        logger.warning(
            "%s not available: no completion API key (set %s)",
            ", ".join(sorted(wants_completion)),
            config.completion.api_key_env,
        )
        return registry

    if "summarise" in enabled:
        from relaycast.tools.summarise import SummariseTool

        registry.register(
            SummariseTool(
                provider,  # type: ignore[arg-type]
                publisher,
                persona=config.general.persona,
                max_tokens=config.completion.max_tokens,
                backoff=backoff,
            )
        )

    if "funny_agent" in enabled:
        from relaycast.tools.funny_agent import FunnyAgentTool

        registry.register(
            FunnyAgentTool(
                provider,  # type: ignore[arg-type]
                max_tokens=config.completion.max_tokens,
                backoff=backoff,
            )
        )

    return registry


def _parse_tag_options(values: tuple[str, ...]) -> list[list[str]]:
    """Parse ``name=value[,value...]`` options into tag lists."""
    tags: list[list[str]] = []
    for raw in values:
        name, sep, rest = raw.partition("=")
        if not sep or not name:
            msg = f"Invalid tag {raw!r}: expected name=value"
            raise click.BadParameter(msg, param_hint="--tag")
        tags.append([name, *rest.split(",")])
    return tags


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="relaycast")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """relaycast - Signed notes for relay networks.

    Sign text notes, stamp them with proof of work, and publish them
    to several relays at once.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── keygen / identity ────────────────────────────────────────────


@cli.command()
def keygen() -> None:
    """Generate a new private key."""
    from relaycast.cli.display import PublishDisplay
    from relaycast.events.signing import KeySigner

    signer = KeySigner.generate()
    PublishDisplay().show_new_key(signer.private_key_hex, signer.public_identity)


@cli.command()
@click.pass_context
def identity(ctx: click.Context) -> None:
    """Show the public identity of the configured key."""
    from relaycast.cli.display import PublishDisplay

    config = _load_config(ctx.obj["config_path"])
    try:
        signer = _setup_signer(config)
    except RelaycastError as e:
        _error(str(e))
        return  # unreachable
    PublishDisplay().show_identity(signer.public_identity)


# ── publish ──────────────────────────────────────────────────────


@cli.command()
@click.argument("content")
@click.option(
    "--tag",
    "tag_options",
    multiple=True,
    help="Tag as name=value[,value...]. Repeatable.",
)
@click.option("--kind", type=int, default=None, help="Event kind (default from config).")
@click.option(
    "--pow",
    "difficulty",
    type=click.IntRange(0, 256),
    default=None,
    help="Proof-of-work difficulty in bits (overrides config, 0 disables).",
)
@click.option(
    "--relay",
    "relays",
    multiple=True,
    help="Relay URL (repeatable, replaces the configured list).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Finalize and print the record without publishing it.",
)
@click.pass_context
def publish(
    ctx: click.Context,
    content: str,
    tag_options: tuple[str, ...],
    kind: int | None,
    difficulty: int | None,
    relays: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Sign CONTENT and publish it to the relays."""
    from relaycast.cli.display import PublishDisplay

    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config)
    tags = _parse_tag_options(tag_options)
    effective_kind = config.general.default_kind if kind is None else kind
    effective_difficulty = config.pow.difficulty if difficulty is None else difficulty

    display = PublishDisplay()
    try:
        signer = _setup_signer(config)
        dispatcher = _setup_dispatcher(config, relays)
        publisher = _setup_publisher(
            config, signer, dispatcher, progress=display.mining_progress
        )
        draft = publisher.draft(content, tags=tags, kind=effective_kind)

        if dry_run:
            with display.mining_status(effective_difficulty):
                record = asyncio.run(publisher.finalize(draft, effective_difficulty))
            display.show_record(record, title="Finalized record (not published)")
            return

        with display.mining_status(effective_difficulty):
            report = asyncio.run(
                publisher.publish_note(
                    content,
                    tags=tags,
                    kind=effective_kind,
                    difficulty=effective_difficulty,
                )
            )
    except RelaycastError as e:
        _error(str(e))
        return  # unreachable

    display.show_report(report)
    if not report.published:
        sys.exit(1)


# ── difficulty ───────────────────────────────────────────────────


@cli.command()
@click.argument("identifier")
def difficulty(identifier: str) -> None:
    """Show the proof-of-work difficulty of an event IDENTIFIER."""
    from relaycast.events.pow import leading_zero_bits

    try:
        bits = leading_zero_bits(identifier.strip().lower())
    except ValueError:
        _error(f"Not a hex identifier: {identifier}")
        return  # unreachable
    click.echo(f"{bits} leading zero bits")


# ── tools ────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """List the tools the MCP server exposes."""
    config = _load_config(ctx.obj["config_path"])
    try:
        signer = _setup_signer(config, ephemeral_ok=True)
        publisher = _setup_publisher(config, signer, _setup_dispatcher(config))
        registry = _setup_tools(config, publisher)
    except RelaycastError as e:
        _error(str(e))
        return  # unreachable

    if not len(registry):
        click.echo("No tools enabled.")
        return
    for definition in registry.list_definitions():
        click.echo(f"  {definition.name:<14} {definition.description}")


# ── mcp ──────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Start the MCP server on stdio."""
    from relaycast.mcp.server import run_server

    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config)
    try:
        asyncio.run(run_server(config))
    except RelaycastError as e:
        _error(str(e))
