"""``locksync targets`` command."""

from __future__ import annotations

import click

from locksync.cli.common import cli_error_handler
from locksync.cli.console import console
from locksync.cli.context import CLIContext
from locksync.cli.output import targets_table
from locksync.targets import build_targets


@click.command()
@click.pass_context
def targets(ctx: click.Context) -> None:
    """List dependants and where their lockfile lives."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    with cli_error_handler():
        resolved = build_targets(cli_ctx.config)
    console.print(targets_table(resolved))
