"""Interactive shell command."""

from __future__ import annotations

import click

from ._common import get_client, home_option, require_login


def register_shell_commands(main: click.Group) -> None:
    """Register the shell command."""

    @main.command("shell")
    @home_option
    def shell(home: str):
        """Browse the remote tree interactively.

        Examples:

            nimbusvault shell
        """
        from ..shell import run_shell

        client = get_client(home)
        require_login(client)
        run_shell(client)
