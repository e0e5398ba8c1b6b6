"""Command-line interface for locksync."""

from __future__ import annotations

from locksync.cli.context import CLIContext, ExitCode, async_command

__all__ = ["CLIContext", "ExitCode", "async_command"]
