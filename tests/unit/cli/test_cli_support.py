"""Tests for CLI context, error handling and output helpers."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import pytest
from rich.console import Console
from structlog.testing import capture_logs

from locksync.cli.common import cli_error_handler, run_workspace
from locksync.cli.context import ExitCode, async_command
from locksync.cli.output import format_error, report_table, targets_table
from locksync.exceptions import ConfigError, GitError, LocksyncError
from locksync.main import resolve_log_level
from locksync.models import (
    PullRequestOperation,
    Revision,
    SyncOutcome,
    SyncReport,
    Target,
)


def _render(renderable) -> str:
    console = Console(width=200, record=True)
    console.print(renderable)
    return console.export_text()


def test_cli_error_handler_keyboard_interrupt(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise KeyboardInterrupt()

    assert exc_info.value.code == ExitCode.INTERRUPTED
    assert "Interrupted by user" in capfd.readouterr().err


def test_cli_error_handler_config_error(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise ConfigError("Unknown dependant(s): zenoh-go", field="only")

    assert exc_info.value.code == ExitCode.FAILURE
    err = capfd.readouterr().err
    assert "Unknown dependant(s): zenoh-go" in err
    assert "Field: only" in err


def test_cli_error_handler_git_error(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise GitError("Failed to clone", operation="clone")

    assert exc_info.value.code == ExitCode.FAILURE
    assert "Operation: clone" in capfd.readouterr().err


def test_cli_error_handler_locksync_error(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise LocksyncError("Something went wrong")

    assert exc_info.value.code == ExitCode.FAILURE
    assert "Something went wrong" in capfd.readouterr().err


def test_cli_error_handler_generic_exception(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise ValueError("Unexpected error")

    assert exc_info.value.code == ExitCode.FAILURE
    assert "Unexpected error" in capfd.readouterr().err


def test_cli_error_handler_logs_unexpected_error():
    with capture_logs() as logs:
        with pytest.raises(SystemExit), cli_error_handler():
            raise ValueError("Unexpected error")

    assert [entry["event"] for entry in logs] == ["cli_unexpected_error"]
    assert logs[0]["log_level"] == "error"


def test_cli_error_handler_passes_click_exit():
    with pytest.raises(click.exceptions.Exit), cli_error_handler():
        raise click.exceptions.Exit(2)


def test_async_command_runs_coroutine():
    @async_command
    async def _command(value: int) -> int:
        return value * 2

    assert _command(21) == 42


def test_run_workspace_given_path(tmp_path: Path):
    with run_workspace(tmp_path / "ws") as ws:
        assert ws == tmp_path / "ws"
    assert (tmp_path / "ws").is_dir()


def test_run_workspace_temporary():
    with run_workspace(None) as ws:
        assert ws.is_dir()
        assert ws.name.startswith("locksync-")
    assert not ws.exists()


@pytest.mark.parametrize(
    ("verbose", "quiet", "configured", "expected"),
    [
        (0, True, "debug", logging.ERROR),
        (2, True, "info", logging.ERROR),
        (1, False, "error", logging.INFO),
        (2, False, "error", logging.DEBUG),
        (0, False, "warning", logging.WARNING),
        (0, False, "info", logging.INFO),
    ],
)
def test_resolve_log_level(verbose, quiet, configured, expected):
    assert resolve_log_level(verbose, quiet, configured) == expected


def test_format_error():
    text = format_error("Fetch failed", details=["Operation: clone"], suggestion="Retry")
    assert text == "Error: Fetch failed\n  Operation: clone\nSuggestion: Retry"


def test_report_table():
    report = SyncReport(
        revision=Revision("abc1234", "Mon Oct 12 10:00:00 2026 +0200"),
        outcomes=(
            SyncOutcome(
                target=Target("zenoh-c", "eclipse-zenoh/zenoh-c"),
                operation=PullRequestOperation.CREATED,
                auto_merge=True,
                pr_url="https://github.com/eclipse-zenoh/zenoh-c/pull/3",
            ),
            SyncOutcome(
                target=Target("zenoh-java", "eclipse-zenoh/zenoh-java", "zenoh-jni"),
                error="cargo check failed",
            ),
            SyncOutcome(target=Target("zenoh-python", "eclipse-zenoh/zenoh-python")),
            SyncOutcome(
                target=Target("zenoh-kotlin", "eclipse-zenoh/zenoh-kotlin"),
                changed=True,
            ),
        ),
    )

    text = _render(report_table(report))

    assert "abc1234" in text
    assert "created (auto-merge)" in text
    assert "https://github.com/eclipse-zenoh/zenoh-c/pull/3" in text
    assert "failed: cargo check failed" in text
    assert "unchanged" in text
    assert "changed (dry run)" in text


def test_targets_table():
    text = _render(
        targets_table([Target("zenoh-java", "eclipse-zenoh/zenoh-java", "zenoh-jni")])
    )
    assert "eclipse-zenoh/zenoh-java" in text
    assert "zenoh-jni" in text
