"""Tests for the locksync click commands."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from locksync import __version__
from locksync.exceptions import FetchError
from locksync.main import cli
from locksync.models import (
    FetchResult,
    PullRequestOperation,
    Revision,
    SyncOutcome,
    SyncReport,
    Target,
)

REVISION = Revision(short_hash="abc1234", date="Mon Oct 12 10:00:00 2026 +0200")
ZENOH_C = Target("zenoh-c", "eclipse-zenoh/zenoh-c")
ZENOH_JAVA = Target("zenoh-java", "eclipse-zenoh/zenoh-java", "zenoh-jni")


def _report(*outcomes: SyncOutcome) -> SyncReport:
    return SyncReport(revision=REVISION, outcomes=outcomes)


def _patch_orchestrator(report: SyncReport | Exception):
    orchestrator_cls = MagicMock()
    if isinstance(report, Exception):
        orchestrator_cls.return_value.run = AsyncMock(side_effect=report)
    else:
        orchestrator_cls.return_value.run = AsyncMock(return_value=report)
    return patch("locksync.cli.commands.run.LockfileSyncOrchestrator", orchestrator_cls)


def test_version(cli_runner: CliRunner, clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_config_file(
    cli_runner: CliRunner, clean_env: None, temp_dir: Path
) -> None:
    os.chdir(temp_dir)
    result = cli_runner.invoke(cli, ["--config", "nope.yaml", "targets"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_targets(cli_runner: CliRunner, clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    result = cli_runner.invoke(cli, ["targets"])

    assert result.exit_code == 0, result.output
    assert "zenoh-c" in result.output
    assert "zenoh-jni" in result.output


class TestRun:
    def test_all_created(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        report = _report(
            SyncOutcome(
                target=ZENOH_C,
                operation=PullRequestOperation.CREATED,
                changed=True,
                pr_number=3,
                auto_merge=True,
            ),
        )
        with _patch_orchestrator(report) as orchestrator_cls:
            result = cli_runner.invoke(
                cli,
                ["run", "--branch", "main", "--only", "zenoh-c"],
                env={"LOCKSYNC_GITHUB__TOKEN": "ghp_x"},
            )

        assert result.exit_code == 0, result.output
        assert "created" in result.output
        kwargs = orchestrator_cls.call_args.kwargs
        assert kwargs["token"] == "ghp_x"
        assert kwargs["github"] is not None
        assert kwargs["dry_run"] is False
        orchestrator_cls.return_value.run.assert_awaited_once_with(
            branch="main", only=["zenoh-c"]
        )

    def test_partial_failure_exit_code(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        report = _report(
            SyncOutcome(target=ZENOH_C),
            SyncOutcome(target=ZENOH_JAVA, error="cargo check failed"),
        )
        with _patch_orchestrator(report):
            result = cli_runner.invoke(
                cli, ["run"], env={"LOCKSYNC_GITHUB__TOKEN": "ghp_x"}
            )

        assert result.exit_code == 2

    def test_json_output(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        report = _report(SyncOutcome(target=ZENOH_JAVA, error="boom"))
        with _patch_orchestrator(report):
            result = cli_runner.invoke(
                cli, ["-q", "run", "--json"], env={"LOCKSYNC_GITHUB__TOKEN": "ghp_x"}
            )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["revision"]["short_hash"] == "abc1234"
        assert data["outcomes"][0]["error"] == "boom"

    def test_dry_run_needs_no_github_client(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        with (
            _patch_orchestrator(_report(SyncOutcome(target=ZENOH_C))) as orch,
            patch("locksync.github.client.get_github_token") as gh,
        ):
            result = cli_runner.invoke(cli, ["run", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert orch.call_args.kwargs["github"] is None
        assert orch.call_args.kwargs["dry_run"] is True
        gh.assert_not_called()

    def test_fetch_failure_exits_1(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        error = FetchError("Failed to fetch eclipse-zenoh/zenoh")
        with _patch_orchestrator(error):
            result = cli_runner.invoke(
                cli, ["run"], env={"LOCKSYNC_GITHUB__TOKEN": "ghp_x"}
            )

        assert result.exit_code == 1
        assert "Failed to fetch eclipse-zenoh/zenoh" in result.output

    def test_workspace_is_kept(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        with _patch_orchestrator(_report()) as orch:
            result = cli_runner.invoke(
                cli,
                ["run", "--dry-run", "--workspace", "ws"],
            )

        assert result.exit_code == 0, result.output
        assert orch.call_args.args[1] == Path("ws")
        assert (temp_dir / "ws").is_dir()


class TestFetch:
    def test_writes_lockfile_and_step_outputs(
        self,
        cli_runner: CliRunner,
        clean_env: None,
        temp_dir: Path,
        fetched: FetchResult,
    ) -> None:
        os.chdir(temp_dir)
        github_output = temp_dir / "github_output"
        github_output.write_text("earlier=1\n")

        with patch(
            "locksync.cli.commands.fetch.fetch_lockfile",
            AsyncMock(return_value=fetched),
        ):
            result = cli_runner.invoke(
                cli,
                ["fetch", "--output", "out"],
                env={"GITHUB_OUTPUT": str(github_output)},
            )

        assert result.exit_code == 0, result.output
        assert (temp_dir / "out" / "Cargo.lock").read_bytes() == (
            fetched.artifact.content
        )
        assert "head-hash: abc1234" in result.output
        assert github_output.read_text() == (
            "earlier=1\n"
            "head-hash=abc1234\n"
            "head-date=Mon Oct 12 10:00:00 2026 +0200\n"
        )

    def test_fetch_failure(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        os.chdir(temp_dir)
        with patch(
            "locksync.cli.commands.fetch.fetch_lockfile",
            AsyncMock(side_effect=FetchError("upstream unreachable")),
        ):
            result = cli_runner.invoke(cli, ["fetch"])

        assert result.exit_code == 1
        assert "upstream unreachable" in result.output
