"""
NimbusVault CLI — the encrypted backup client on the command line.

Each command group lives in its own module and is registered on the
main Click group below.

Entry point: nimbusvault.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="nimbusvault")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """NimbusVault — browse, back up, and restore your files."""


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .auth import register_auth_commands
from .files import register_files_commands
from .vault import register_vault_commands
from .shell_cmd import register_shell_commands

register_auth_commands(main)
register_files_commands(main)
register_vault_commands(main)
register_shell_commands(main)
