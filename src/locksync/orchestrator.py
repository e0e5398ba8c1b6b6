"""Two-stage lockfile synchronization run.

The fetch stage runs once and must succeed; the sync stage then fans out
over every target concurrently. Target failures are collected, never
propagated, so one broken dependant cannot block the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from locksync.config import LocksyncConfig
from locksync.fetch import fetch_lockfile
from locksync.github import GitHubClient
from locksync.logging import bind_context, clear_context, get_logger
from locksync.models import FetchResult, RunContext, SyncOutcome, SyncReport, Target
from locksync.runners import CommandRunner
from locksync.sync import LockfileSyncer
from locksync.targets import build_targets

__all__ = ["LockfileSyncOrchestrator"]

logger = get_logger(__name__)


class LockfileSyncOrchestrator:
    """Fetch the upstream lockfile once, then sync every dependant.

    Example:
        ```python
        orchestrator = LockfileSyncOrchestrator(
            config, workspace, github=GitHubClient(token=token), token=token
        )
        report = await orchestrator.run(branch="main")
        sys.exit(report.exit_code)
        ```
    """

    def __init__(
        self,
        config: LocksyncConfig,
        workspace: Path,
        *,
        github: GitHubClient | None = None,
        token: str | None = None,
        runner: CommandRunner | None = None,
        run_context: RunContext | None = None,
        dry_run: bool = False,
    ) -> None:
        self._config = config
        self._workspace = workspace
        self._github = github
        self._token = token
        self._runner = runner
        self._run_context = run_context
        self._dry_run = dry_run

    async def run(
        self,
        branch: str | None = None,
        only: Iterable[str] | None = None,
    ) -> SyncReport:
        """Run both stages.

        Args:
            branch: Branch to fetch upstream and sync in every dependant;
                each repository's default branch when None.
            only: Restrict the fan-out to these dependant names.

        Returns:
            Report with one outcome per target.

        Raises:
            FetchError: If the fetch stage fails; no target is touched.
            ConfigError: If ``only`` names an unknown dependant.
        """
        targets = build_targets(self._config, only)
        bind_context(upstream=self._config.upstream.repository, branch=branch)
        try:
            fetched = await fetch_lockfile(
                self._config, self._workspace, branch=branch, token=self._token
            )
            syncer = LockfileSyncer(
                self._config,
                self._workspace,
                github=self._github,
                token=self._token,
                runner=self._runner,
                run_context=self._run_context,
                branch=branch,
                dry_run=self._dry_run,
            )
            outcomes = await self.fan_out(syncer, targets, fetched)
        finally:
            clear_context()

        report = SyncReport(revision=fetched.revision, outcomes=outcomes)
        logger.info(
            "run_completed",
            head_hash=fetched.revision.short_hash,
            targets=len(outcomes),
            failed=len(report.failed),
            created=len(report.created),
            updated=len(report.updated),
        )
        return report

    async def fan_out(
        self,
        syncer: LockfileSyncer,
        targets: list[Target],
        fetched: FetchResult,
    ) -> tuple[SyncOutcome, ...]:
        """Sync every target concurrently, bounded by ``parallel.max_targets``.

        Returns:
            Outcomes in target order.
        """
        semaphore = asyncio.Semaphore(self._config.parallel.max_targets)

        async def _bounded(target: Target) -> SyncOutcome:
            async with semaphore:
                return await syncer.sync(target, fetched)

        outcomes = await asyncio.gather(*(_bounded(t) for t in targets))
        return tuple(outcomes)
