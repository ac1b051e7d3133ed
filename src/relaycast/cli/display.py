"""Rich display for publication results.

Renders mining progress, per-relay outcomes and key material for the
CLI. Accepts an optional :class:`~rich.console.Console` for dependency
injection in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from rich.status import Status

    from relaycast.events.model import FinalizedRecord
    from relaycast.events.pipeline import PublicationReport
    from relaycast.events.pow import MiningProgress

_TRUNCATE_LEN = 500


def _truncate(text: str, limit: int = _TRUNCATE_LEN) -> str:
    """Truncate text to *limit* characters with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + " ..."


class PublishDisplay:
    """Console output for the ``publish`` and key commands."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._status: Status | None = None

    # ── Mining ────────────────────────────────────────────────

    def mining_status(self, difficulty: int) -> Status:
        """Spinner shown while a nonce is being searched for."""
        self._status = self._console.status(
            f"[bold yellow]Mining[/bold yellow] difficulty {difficulty} bits..."
        )
        return self._status

    def mining_progress(self, progress: MiningProgress) -> None:
        """Progress observer; safe to call from the mining thread."""
        if self._status is None:
            return
        self._status.update(
            f"[bold yellow]Mining[/bold yellow] difficulty {progress.difficulty} "
            f"bits: {progress.attempts:,} attempts, ~{progress.rate:,.0f} h/s"
        )

    # ── Records ───────────────────────────────────────────────

    def show_record(self, record: FinalizedRecord, *, title: str = "Record") -> None:
        body = (
            f"[bold]id[/bold]      {record.identifier}\n"
            f"[bold]pubkey[/bold]  {record.issuer}\n"
            f"[bold]kind[/bold]    {record.kind}\n"
            f"[bold]tags[/bold]    {[list(t) for t in record.tags]}\n\n"
            f"{_truncate(record.content)}"
        )
        self._console.print(Panel(body, title=title, border_style="cyan"))

    def show_report(self, report: PublicationReport) -> None:
        self.show_record(report.record, title="Published record")
        if report.mined:
            self._console.print(
                f"Proof of work: [green]{report.achieved_difficulty} bits[/green] "
                f"(requested {report.requested_difficulty})"
            )

        table = Table(title="Relays", show_lines=False)
        table.add_column("Relay")
        table.add_column("Status")
        table.add_column("Detail")
        table.add_column("ms", justify="right")
        for result in report.outcome.results:
            status = "[green]accepted[/green]" if result.accepted else "[red]failed[/red]"
            detail = result.message if result.accepted else (result.error or "")
            table.add_row(result.endpoint, status, detail, f"{result.latency_ms:.0f}")
        self._console.print(table)

        style = "green" if report.published else "red"
        if report.published and report.outcome.failures:
            style = "yellow"
        self._console.print(f"[{style}]{report.outcome.summary()}[/{style}]")
        for warning in report.warnings:
            self._console.print(f"[yellow]Warning:[/yellow] {warning}")

    # ── Keys ──────────────────────────────────────────────────

    def show_identity(self, public_identity: str) -> None:
        self._console.print(f"Public identity: [bold]{public_identity}[/bold]")

    def show_new_key(self, private_key_hex: str, public_identity: str) -> None:
        self._console.print(
            Panel(
                f"Private key: {private_key_hex}\n"
                f"Public identity: {public_identity}\n\n"
                "Store the private key in RELAYCAST_PRIVATE_KEY "
                "or [identity] private_key.",
                title="New key",
                border_style="magenta",
            )
        )
