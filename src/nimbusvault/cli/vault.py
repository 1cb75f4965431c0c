"""Vault commands: list, usage, restore."""

from __future__ import annotations

import click
from rich.panel import Panel

from ..formatting import format_size
from ._common import (
    console,
    get_client,
    home_option,
    plural,
    print_details,
    records_table,
    require_login,
    run,
)


def register_vault_commands(main: click.Group) -> None:
    """Register the vault command group."""

    @main.group()
    def vault():
        """List and restore your stored backups."""

    @vault.command("list")
    @home_option
    def vault_list(home: str):
        """List backups in your vault.

        Examples:

            nimbusvault vault list
        """
        client = get_client(home)
        require_login(client)
        result = run(client.vault.refresh())

        if result.error:
            console.print(f"[red]{result.error}[/]")
            raise SystemExit(1)
        if not result.records:
            console.print("\n[dim]No backups yet.[/] Use 'nimbusvault files backup' to create one.\n")
            return

        console.print(f"\n[bold]{plural(len(result.records), 'backup')}[/] available "
                      f"[dim]({format_size(client.vault.total_bytes)})[/]\n")
        console.print(records_table(result.records))
        console.print()

    @vault.command("usage")
    @home_option
    def vault_usage(home: str):
        """Show how much storage your vault uses."""
        client = get_client(home)
        require_login(client)
        usage = run(client.vault.usage())
        if usage is None:
            console.print(f"[red]{client.vault.error}[/]")
            raise SystemExit(1)
        console.print(f"Storage used: [bold]{usage.used_pretty}[/] [dim]({usage.used_bytes} bytes)[/]")

    @vault.command("restore")
    @click.argument("record_id")
    @click.option("--out", "out_directory", default=None, help="Restore target directory on the backend.")
    @click.password_option(
        "--password", "-p", confirmation_prompt=False,
        prompt="Vault password", help="Password to decrypt the backup.",
    )
    @home_option
    def vault_restore(record_id: str, out_directory: str, password: str, home: str):
        """Decrypt and restore a backup by its ID.

        Examples:

            nimbusvault vault restore 42

            nimbusvault vault restore 42 --out /home/u/restored
        """
        client = get_client(home)
        require_login(client)

        async def _restore():
            refresh = await client.vault.refresh()
            if refresh.error:
                return None, refresh.error
            record = client.vault.find(record_id)
            if record is None:
                return None, f"No backup with ID {record_id}"
            if out_directory:
                client.restore.out_directory = out_directory
            client.restore.select_for_restore(record)
            return await client.restore.confirm(password), ""

        outcome, error = run(_restore())
        if outcome is None:
            console.print(f"[red]{error}[/]")
            raise SystemExit(1)
        if not outcome.ok:
            console.print(f"[red]Restore failed:[/] {outcome.message}")
            raise SystemExit(1)

        console.print(Panel(
            f"[bold green]{outcome.message}[/]",
            title="Restore Complete",
            border_style="green",
        ))
        print_details(outcome.details)
