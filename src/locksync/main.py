"""CLI entry point for locksync.

This module defines the Click-based command-line interface for locksync.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

# Load environment variables from .env file in current directory
# This must happen before configuration reads LOCKSYNC_* variables
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

from locksync import __version__  # noqa: E402
from locksync.cli.commands.fetch import fetch  # noqa: E402
from locksync.cli.commands.run import run  # noqa: E402
from locksync.cli.commands.targets import targets  # noqa: E402
from locksync.cli.context import CLIContext, ExitCode  # noqa: E402
from locksync.cli.output import format_error  # noqa: E402
from locksync.config import load_config  # noqa: E402
from locksync.exceptions import ConfigError  # noqa: E402
from locksync.logging import configure_logging  # noqa: E402

VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_log_level(verbose: int, quiet: bool, configured: str) -> int:
    """Pick the log level. Priority: quiet > verbose > config."""
    if quiet:
        return logging.ERROR
    if verbose > 0:
        return logging.INFO if verbose == 1 else logging.DEBUG
    return VERBOSITY_LEVELS.get(configured, logging.INFO)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="locksync")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./locksync.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """locksync - keep dependant Cargo lockfiles in step with Zenoh's."""
    ctx.ensure_object(dict)

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        # Logging is not configured yet
        details = [f"Field: {e.field}"] if e.field else []
        if e.value is not None:
            details.append(f"Value: {e.value}")
        click.echo(format_error(e.message, details=details or None), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        verbosity=verbose,
        quiet=quiet,
    )

    configure_logging(level=resolve_log_level(verbose, quiet, config.verbosity))

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(run)
cli.add_command(fetch)
cli.add_command(targets)

if __name__ == "__main__":
    cli()
