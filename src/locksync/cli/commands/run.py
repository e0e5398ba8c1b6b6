"""``locksync run`` command."""

from __future__ import annotations

from pathlib import Path

import click

from locksync.cli.common import cli_error_handler, run_workspace
from locksync.cli.console import console
from locksync.cli.context import CLIContext, async_command
from locksync.cli.output import format_json, report_table
from locksync.github import (
    DEFAULT_GITHUB_RATE_LIMIT,
    GitHubClient,
    find_github_token,
    resolve_github_token,
)
from locksync.models import SyncReport
from locksync.orchestrator import LockfileSyncOrchestrator


@click.command()
@click.option(
    "-b",
    "--branch",
    default=None,
    help="Branch to sync across all repositories (default: each one's default).",
)
@click.option(
    "--only",
    multiple=True,
    metavar="NAME",
    help="Sync only this dependant (repeatable).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Rectify lockfiles and report diffs without pushing or opening PRs.",
)
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for checkouts (default: a temporary directory).",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the report as JSON.",
)
@click.pass_context
@async_command
async def run(
    ctx: click.Context,
    branch: str | None,
    only: tuple[str, ...],
    dry_run: bool,
    workspace: Path | None,
    as_json: bool,
) -> None:
    """Fetch the upstream lockfile and open PRs in every dependant."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    config = cli_ctx.config

    with cli_error_handler():
        configured = (
            config.github.token.get_secret_value() if config.github.token else None
        )
        if dry_run:
            token = find_github_token(configured)
            github = None
        else:
            token = resolve_github_token(configured)
            github = GitHubClient(token=token, rate_limit=DEFAULT_GITHUB_RATE_LIMIT)

        try:
            with run_workspace(workspace) as run_dir:
                orchestrator = LockfileSyncOrchestrator(
                    config,
                    run_dir,
                    github=github,
                    token=token,
                    dry_run=dry_run,
                )
                report: SyncReport = await orchestrator.run(
                    branch=branch, only=list(only) or None
                )
        finally:
            if github is not None:
                github.close()

    if as_json:
        click.echo(format_json(report.to_dict()))
    elif not cli_ctx.quiet:
        console.print(report_table(report))

    ctx.exit(report.exit_code)
