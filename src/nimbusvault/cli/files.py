"""Remote file commands: ls, backup."""

from __future__ import annotations

import asyncio

import click

from ..models import BackupJob, OutcomeStatus
from ._common import (
    console,
    describe_path,
    entries_table,
    get_client,
    home_option,
    plural,
    require_login,
    run,
    status_style,
)


def register_files_commands(main: click.Group) -> None:
    """Register the files command group."""

    @main.group()
    def files():
        """Browse the remote file tree and back items up."""

    @files.command("ls")
    @click.argument("path", default=".")
    @home_option
    def files_ls(path: str, home: str):
        """List a remote directory (relative to the backend root).

        Examples:

            nimbusvault files ls

            nimbusvault files ls docs/2024
        """
        client = get_client(home)
        result = run(client.navigator.list(path))

        if result.error:
            console.print(f"[red]{result.error}[/]")
            raise SystemExit(1)

        console.print(f"\n[bold]{describe_path(result.path)}[/]")
        if not result.entries:
            console.print("\n[dim]No files or folders found.[/]\n")
            return
        console.print(entries_table(result.entries))
        console.print()

    @files.command("backup")
    @click.argument("paths", nargs=-1, required=True)
    @home_option
    def files_backup(paths: tuple[str, ...], home: str):
        """Back up one or more absolute paths into the vault.

        Several paths are sent at once; each succeeds or fails on its own.

        Examples:

            nimbusvault files backup /home/u/notes.txt

            nimbusvault files backup /home/u/docs /home/u/big.zip
        """
        client = get_client(home)
        require_login(client)

        async def _backup_all():
            jobs = [BackupJob.for_path(p) for p in paths]
            return await asyncio.gather(*(client.dispatcher.dispatch(j) for j in jobs))

        outcomes = run(_backup_all())

        failed = 0
        for outcome in outcomes:
            style = status_style(outcome.status)
            console.print(f"  [{style}]{outcome.status.value.upper():<9}[/] {outcome.path}  {outcome.message}")
            if outcome.status != OutcomeStatus.SUCCEEDED:
                failed += 1

        if failed:
            console.print(f"\n[red]{plural(failed, 'backup')} did not complete.[/]")
            raise SystemExit(1)
        console.print(f"\n[green]{plural(len(outcomes), 'backup')} created.[/] "
                      f"Vault now holds {plural(len(client.vault.records), 'record')}.")
