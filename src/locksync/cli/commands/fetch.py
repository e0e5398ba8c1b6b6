"""``locksync fetch`` command."""

from __future__ import annotations

import os
from pathlib import Path

import click

from locksync.cli.common import cli_error_handler, run_workspace
from locksync.cli.context import CLIContext, async_command
from locksync.fetch import fetch_lockfile, write_artifact
from locksync.github import find_github_token
from locksync.models import Revision

GITHUB_OUTPUT_ENV_VAR = "GITHUB_OUTPUT"


def write_github_output(path: Path, revision: Revision) -> None:
    """Append ``head-hash`` and ``head-date`` step outputs for GitHub Actions."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"head-hash={revision.short_hash}\n")
        f.write(f"head-date={revision.date}\n")


@click.command()
@click.option(
    "-b",
    "--branch",
    default=None,
    help="Upstream branch to fetch (default: its default branch).",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory the lockfile is written to.",
)
@click.pass_context
@async_command
async def fetch(ctx: click.Context, branch: str | None, output: Path) -> None:
    """Fetch the upstream lockfile and print its revision."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    config = cli_ctx.config

    with cli_error_handler():
        configured = (
            config.github.token.get_secret_value() if config.github.token else None
        )
        with run_workspace(None) as run_dir:
            fetched = await fetch_lockfile(
                config, run_dir, branch=branch, token=find_github_token(configured)
            )
        destination = write_artifact(fetched.artifact, output)

        github_output = os.environ.get(GITHUB_OUTPUT_ENV_VAR)
        if github_output:
            write_github_output(Path(github_output), fetched.revision)

    click.echo(f"lockfile: {destination}")
    click.echo(f"head-hash: {fetched.revision.short_hash}")
    click.echo(f"head-date: {fetched.revision.date}")
