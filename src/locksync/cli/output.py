"""Output formatting utilities for the locksync CLI."""

from __future__ import annotations

import json
from typing import Any

from rich.table import Table

from locksync.models import PullRequestOperation, SyncReport, Target

__all__ = [
    "format_error",
    "format_json",
    "report_table",
    "targets_table",
]


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error("Fetch failed", details=["Operation: clone"]))
        Error: Fetch failed
          Operation: clone
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2)


_RESULT_STYLES = {
    PullRequestOperation.CREATED: "[green]created[/green]",
    PullRequestOperation.UPDATED: "[cyan]updated[/cyan]",
}


def report_table(report: SyncReport) -> Table:
    """Render one row per target: manifest dir, result and pull request."""
    revision = report.revision
    table = Table(title=f"Lockfile @ {revision.short_hash} ({revision.date})")
    table.add_column("Target", style="bold")
    table.add_column("Manifest")
    table.add_column("Result")
    table.add_column("Pull request")

    for outcome in report.outcomes:
        if not outcome.succeeded:
            result = f"[red]failed[/red]: {outcome.error}"
        elif outcome.operation in _RESULT_STYLES:
            result = _RESULT_STYLES[outcome.operation]
            if outcome.auto_merge:
                result += " (auto-merge)"
        elif outcome.changed:
            result = "[yellow]changed[/yellow] (dry run)"
        else:
            result = "unchanged"
        table.add_row(
            outcome.target.name,
            outcome.target.manifest_dir,
            result,
            outcome.pr_url or "",
        )
    return table


def targets_table(targets: list[Target]) -> Table:
    table = Table()
    table.add_column("Target", style="bold")
    table.add_column("Repository")
    table.add_column("Manifest")
    for target in targets:
        table.add_row(target.name, target.repository, target.manifest_dir)
    return table
