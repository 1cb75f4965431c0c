"""Shared utilities for all CLI command modules.

Provides the Rich console instance, the ``--home`` option, logging
setup, and the helpers that turn outcomes into terminal output.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table

from .. import VAULT_HOME
from ..client import VaultClient
from ..formatting import format_size, format_timestamp
from ..models import BackupRecord, OutcomeStatus, RemoteEntry

console = Console()

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

home_option = click.option(
    "--home",
    default=VAULT_HOME,
    type=click.Path(),
    help="Client home directory.",
)


def setup_logging(home: Path, verbose: bool = False) -> None:
    """Log to ``<home>/logs/client.log``; warnings (or everything) to stderr."""
    root = logging.getLogger("nimbusvault")
    if root.handlers:
        return
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    log_dir = home.expanduser() / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / "client.log", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    except OSError as exc:
        console.print(f"[yellow]Logging to file disabled: {exc}[/]")

    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stream.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(stream)


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Drive a client coroutine from a synchronous click command."""
    return asyncio.run(coro)


def get_client(home: str) -> VaultClient:
    """Build the client for ``home``, setting up logging on first use.

    The client is closed when the invoking command finishes.
    """
    ctx = click.get_current_context(silent=True)
    verbose = bool(ctx and ctx.find_root().params.get("verbose"))
    home_path = Path(home).expanduser()
    setup_logging(home_path, verbose=verbose)
    client = VaultClient(home=home_path)
    if ctx is not None:
        ctx.call_on_close(client.close)
    return client


def require_login(client: VaultClient) -> None:
    """Exit with a hint when nobody is logged in."""
    if not client.session.is_authenticated:
        console.print("[red]Not logged in.[/] Run: nimbusvault login <username>")
        raise SystemExit(1)


def status_style(status: OutcomeStatus) -> str:
    """Map an outcome to a Rich colour."""
    return {
        OutcomeStatus.SUCCEEDED: "green",
        OutcomeStatus.FAILED: "red",
        OutcomeStatus.REJECTED: "yellow",
    }.get(status, "white")


def entries_table(entries: list[RemoteEntry]) -> Table:
    """Directory listing: folders and files with sizes."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Path", style="dim")

    for e in entries:
        name = f"{e.name}/" if e.is_dir else e.name
        table.add_row(
            name,
            "Folder" if e.is_dir else "File",
            format_size(e.size) if not e.is_dir else "",
            e.path,
        )
    return table


def records_table(records: list[BackupRecord]) -> Table:
    """Vault listing: one row per stored backup."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("ID", style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Saved", style="dim")
    table.add_column("Path", style="dim")

    for r in records:
        table.add_row(
            str(r.record_id),
            r.display_name,
            format_size(r.size),
            format_timestamp(r.saved_at),
            r.stored_path or "",
        )
    return table


def print_details(details: dict[str, Any], indent: str = "  ") -> None:
    """Print a backend result mapping as key/value lines."""
    for key, value in details.items():
        console.print(f"{indent}[dim]{key}:[/] {value}")


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}{'' if count == 1 else suffix}"


def describe_path(path: Optional[str]) -> str:
    return "~/" if path in (None, "", ".") else f"~/{path}"
