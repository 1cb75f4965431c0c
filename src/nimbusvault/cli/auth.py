"""Account commands: login, register, logout, whoami."""

from __future__ import annotations

import click

from ._common import console, get_client, home_option, run, status_style


def register_auth_commands(main: click.Group) -> None:
    """Register the account commands."""

    @main.command("login")
    @click.argument("username")
    @click.password_option("--password", "-p", confirmation_prompt=False, help="Account password.")
    @home_option
    def login(username: str, password: str, home: str):
        """Log in and remember the session.

        Examples:

            nimbusvault login data_guardian
        """
        client = get_client(home)
        outcome = run(client.login(username, password))
        style = status_style(outcome.status)
        console.print(f"[{style}]{outcome.message}[/]")
        if not outcome.ok:
            raise SystemExit(1)

    @main.command("register")
    @click.argument("username")
    @click.password_option("--password", "-p", help="New account password (8+ characters).")
    @home_option
    def register(username: str, password: str, home: str):
        """Create a new account.

        Examples:

            nimbusvault register data_guardian
        """
        client = get_client(home)
        # click already enforced the confirmation prompt
        outcome = run(client.register(username, password, password))
        style = status_style(outcome.status)
        console.print(f"[{style}]{outcome.message}[/]")
        if not outcome.ok:
            raise SystemExit(1)

    @main.command("logout")
    @home_option
    def logout(home: str):
        """Forget the saved session."""
        client = get_client(home)
        if not client.session.is_authenticated:
            console.print("[dim]Not logged in.[/]")
            return
        name = client.username
        client.logout()
        console.print(f"[green]Logged out[/] {name}")

    @main.command("whoami")
    @home_option
    def whoami(home: str):
        """Show the logged-in user and backend."""
        client = get_client(home)
        if not client.session.is_authenticated:
            console.print("[dim]Not logged in.[/]")
            raise SystemExit(1)
        console.print(
            f"[bold]{client.session.username}[/] "
            f"[dim](uid {client.session.uid})[/] on [cyan]{client.config.api_url}[/]"
        )
