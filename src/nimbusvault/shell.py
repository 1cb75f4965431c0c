"""
NimbusVault Shell — interactive file browser for the vault.

Walk the remote tree, back items up, and restore from the vault without
retyping paths.

Commands:
    ls                  List the current directory
    cd <name>           Enter a folder (cd .. goes up)
    up                  Go to the parent folder
    pwd                 Show where you are
    backup <name>       Back up a file or folder from the listing
    vault               List your backups
    restore <id>        Restore a backup (asks for the password)
    usage               Storage used by your vault
    help                Show commands
    exit / quit         Leave the shell
"""

from __future__ import annotations

import asyncio
import readline
import shlex
import sys
from typing import Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.panel import Panel

from . import __version__
from .client import VaultClient
from .formatting import format_size

console = Console()

COMMANDS = [
    "ls", "cd", "up", "pwd", "backup", "vault",
    "restore", "usage", "help", "exit", "quit",
]

# Filled per session so completion can offer names from the listing
_client: Optional[VaultClient] = None


def _completer(text: str, state: int) -> Optional[str]:
    """Tab completion for commands and listing entries."""
    buf = readline.get_line_buffer()
    parts = buf.split()

    if not parts or (len(parts) == 1 and not buf.endswith(" ")):
        options = [c for c in COMMANDS if c.startswith(text)]
    elif parts[0] in ("cd", "backup") and _client is not None:
        names = [e.name for e in _client.navigator.entries
                 if parts[0] == "backup" or e.is_dir]
        options = [n for n in names if n.startswith(text)]
    elif parts[0] == "restore" and _client is not None:
        ids = [str(r.record_id) for r in _client.vault.records]
        options = [i for i in ids if i.startswith(text)]
    else:
        options = []

    return options[state] if state < len(options) else None


def _print_listing(client: VaultClient) -> None:
    nav = client.navigator
    console.print(f"  [bold]{nav.display_path}[/]")
    if nav.error:
        console.print(f"  [red]{nav.error}[/]")
        return
    if not nav.entries:
        console.print("  [dim]No files or folders found[/]")
        return
    for e in nav.entries:
        if e.is_dir:
            console.print(f"    [cyan]{e.name}/[/]")
        else:
            console.print(f"    {e.name}  [dim]{format_size(e.size)}[/]")


# ═══════════════════════════════════════════════════════════════════════════
# Command handlers
# ═══════════════════════════════════════════════════════════════════════════


async def _handle_ls(client: VaultClient, args: list[str]) -> None:
    """Re-list the current directory."""
    await client.navigator.reload()
    _print_listing(client)


async def _handle_cd(client: VaultClient, args: list[str]) -> None:
    """Enter a folder of the current listing."""
    if not args:
        console.print("  Usage: cd <folder>")
        return
    name = " ".join(args)
    if name == "..":
        await _handle_up(client, [])
        return

    entry = client.navigator.find(name)
    if entry is None:
        console.print(f"  [red]No such entry:[/] {name}")
        return
    if not entry.is_dir:
        console.print(f"  [yellow]{name} is a file.[/] Use 'backup {name}' to back it up.")
        return

    result = await client.navigator.enter(entry)
    if result is None:
        console.print(f"  [red]{client.navigator.error}[/]")
        return
    _print_listing(client)


async def _handle_up(client: VaultClient, args: list[str]) -> None:
    """Go to the parent folder."""
    result = await client.navigator.up()
    if result is None:
        console.print("  [dim]Already at the top.[/]")
        return
    _print_listing(client)


async def _handle_pwd(client: VaultClient, args: list[str]) -> None:
    console.print(f"  {client.navigator.display_path}")


async def _handle_backup(client: VaultClient, args: list[str]) -> None:
    """Back up an entry of the current listing."""
    if not args:
        console.print("  Usage: backup <name>")
        return
    name = " ".join(args)
    entry = client.navigator.find(name)
    if entry is None:
        console.print(f"  [red]No such entry:[/] {name}")
        return

    console.print(f"  [cyan]Backing up {entry.name}...[/]")
    outcome = await client.dispatcher.backup(entry)
    if outcome.ok:
        console.print(f"  [green]✓ {outcome.message}[/]")
    else:
        console.print(f"  [red]{outcome.message}[/]")


async def _handle_vault(client: VaultClient, args: list[str]) -> None:
    """List backups in the vault."""
    result = await client.vault.refresh()
    if result.error:
        console.print(f"  [red]{result.error}[/]")
        return
    count = len(result.records)
    console.print(f"  [bold]{count}[/] backup{'s' if count != 1 else ''} available")
    for r in result.records:
        console.print(
            f"    [bold]{r.record_id}[/]  [cyan]{r.display_name}[/]  "
            f"[dim]{format_size(r.size)}[/]"
        )


async def _handle_restore(client: VaultClient, args: list[str]) -> None:
    """Select a backup, ask for its password, restore it."""
    if not args:
        console.print("  Usage: restore <id>")
        return

    if not client.vault.records:
        await client.vault.refresh()
    record = client.vault.find(args[0])
    if record is None:
        console.print(f"  [red]No backup with ID {args[0]}[/]")
        return

    if not client.restore.select_for_restore(record):
        console.print(f"  [red]{client.restore.error}[/]")
        return

    console.print(f"  Restoring [cyan]{record.display_name}[/]")
    try:
        password = await asyncio.to_thread(
            click.prompt, "  Password", default="", hide_input=True, show_default=False,
        )
    except (click.Abort, EOFError):
        client.restore.cancel()
        console.print("\n  [dim]Restore cancelled.[/]")
        return

    outcome = await client.restore.confirm(password)
    if outcome.ok:
        console.print(f"  [green]✓ {outcome.message}[/]")
        for key, value in outcome.details.items():
            console.print(f"    [dim]{key}:[/] {value}")
    else:
        console.print(f"  [red]{outcome.message}[/]")


async def _handle_usage(client: VaultClient, args: list[str]) -> None:
    usage = await client.vault.usage()
    if usage is None:
        console.print(f"  [red]{client.vault.error}[/]")
        return
    console.print(f"  Storage used: [bold]{usage.used_pretty}[/]")


async def _handle_help(client: VaultClient, args: list[str]) -> None:
    """Show available commands."""
    console.print(
        Panel(
            "[bold]ls[/]              List the current directory\n"
            "[bold]cd[/] <name>       Enter a folder ([bold]cd ..[/] goes up)\n"
            "[bold]up[/]              Go to the parent folder\n"
            "[bold]pwd[/]             Show where you are\n"
            "[bold]backup[/] <name>   Back up a file or folder\n"
            "[bold]vault[/]           List your backups\n"
            "[bold]restore[/] <id>    Restore a backup\n"
            "[bold]usage[/]           Storage used by your vault\n"
            "[bold]help[/]            This message\n"
            "[bold]exit[/] / [bold]quit[/]     Leave the shell",
            title="NimbusVault Shell",
            border_style="cyan",
        )
    )


# ═══════════════════════════════════════════════════════════════════════════
# Main REPL loop
# ═══════════════════════════════════════════════════════════════════════════


DISPATCH: dict[str, Callable[[VaultClient, list[str]], Awaitable[None]]] = {
    "ls": _handle_ls,
    "cd": _handle_cd,
    "up": _handle_up,
    "pwd": _handle_pwd,
    "backup": _handle_backup,
    "vault": _handle_vault,
    "restore": _handle_restore,
    "usage": _handle_usage,
    "help": _handle_help,
}


def run_shell(client: VaultClient) -> None:
    """Run the interactive REPL loop.

    Mounts the client (root listing + vault), sets up tab completion
    and history, then reads commands until exit.
    """
    global _client
    _client = client

    readline.set_completer(_completer)
    readline.parse_and_bind("tab: complete")

    hist_file = client.home / ".shell_history"
    try:
        readline.read_history_file(str(hist_file))
    except (FileNotFoundError, OSError):
        pass

    name = client.username or "guest"
    console.print(
        f"\n  [bold cyan]NimbusVault Shell[/] v{__version__}\n"
        f"  User: [bold]{name}[/]  Backend: [dim]{client.config.api_url}[/]\n"
        f"  Type [bold]help[/] for commands, [bold]exit[/] to leave.\n"
    )

    _, refresh = asyncio.run(client.mount())
    _print_listing(client)
    if refresh.error:
        console.print(f"  [yellow]Vault: {refresh.error}[/]")
    else:
        console.print(f"  [dim]{len(refresh.records)} backup(s) in your vault[/]")

    while True:
        try:
            prompt_path = client.navigator.display_path
            prompt = (f"\033[36m{name}:{prompt_path}>\033[0m "
                      if sys.stdout.isatty() else f"{name}:{prompt_path}> ")
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            console.print("\n  Goodbye.\n")
            break

        line = line.strip()
        if not line:
            continue

        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()

        cmd = parts[0].lower()
        args = parts[1:]

        if cmd in ("exit", "quit"):
            console.print("  Goodbye.\n")
            break

        handler = DISPATCH.get(cmd)
        if handler:
            try:
                asyncio.run(handler(client, args))
            except Exception as exc:
                console.print(f"  [red]Error:[/] {exc}")
        else:
            console.print(f"  Unknown: {cmd}. Type 'help' for options.")

    try:
        hist_file.parent.mkdir(parents=True, exist_ok=True)
        readline.write_history_file(str(hist_file))
    except OSError:
        pass
