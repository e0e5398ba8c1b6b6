"""Sync stage: propagate the fetched lockfile into one dependant.

Each call to :meth:`LockfileSyncer.sync` works in its own checkout and never
raises for failures inside the target; they are reported in the returned
:class:`~locksync.models.SyncOutcome` so sibling targets are unaffected.
"""

from __future__ import annotations

import dataclasses
import time
from pathlib import Path, PurePosixPath

from locksync.config import LocksyncConfig
from locksync.constants import MANIFEST_NAME
from locksync.exceptions import LocksyncError, ManifestNotFoundError, SyncError
from locksync.fetch import write_artifact
from locksync.git import AsyncGitRepository, GitIdentity, authenticated_url
from locksync.github import GitHubClient
from locksync.logging import get_logger
from locksync.models import (
    FetchResult,
    PullRequestOperation,
    RunContext,
    SyncOutcome,
    Target,
)
from locksync.pull_request import build_content
from locksync.runners import CommandRunner

__all__ = ["LockfileSyncer", "MANIFEST_PATH_PLACEHOLDER"]

logger = get_logger(__name__)

MANIFEST_PATH_PLACEHOLDER = "{manifest_path}"


class LockfileSyncer:
    """Overwrite, rectify and propose a dependant's lockfile.

    Attributes:
        workspace: Run directory; targets are cloned into
            ``<workspace>/targets/<name>``.
        dry_run: Stop after diff detection; no push, no GitHub calls.
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
        branch: str | None = None,
        dry_run: bool = False,
    ) -> None:
        """Initialize the LockfileSyncer.

        Args:
            config: Loaded configuration.
            workspace: Run directory.
            github: GitHub client; required unless ``dry_run``.
            token: Token embedded in HTTPS clone URLs for push access.
            runner: Command runner for toolchain and check commands.
            run_context: CI run metadata linked from PR bodies.
            branch: Branch to check out in every dependant (and PR base);
                each dependant's default branch when None.
            dry_run: Stop after diff detection.

        Raises:
            ValueError: If no GitHub client is given outside dry-run mode.
        """
        if github is None and not dry_run:
            raise ValueError("A GitHub client is required unless dry_run is set")
        self._config = config
        self.workspace = workspace
        self._github = github
        self._token = token
        self._runner = runner or CommandRunner(timeout=config.commands.timeout_seconds)
        self._run_context = run_context or RunContext.from_env()
        self._branch = branch
        self.dry_run = dry_run

        settings = config.pull_request
        self._identity = GitIdentity(settings.author_name, settings.author_email)

    async def sync(self, target: Target, fetched: FetchResult) -> SyncOutcome:
        """Sync one dependant, capturing any failure in the outcome."""
        start_time = time.monotonic()
        log = logger.bind(target=target.name)
        log.info("sync_started", manifest_dir=target.manifest_dir)

        try:
            outcome = await self._sync(target, fetched)
        except LocksyncError as e:
            outcome = SyncOutcome(target=target, error=e.message)
            log.error("sync_failed", error=e.message, error_type=type(e).__name__)
        except Exception as e:
            outcome = SyncOutcome(target=target, error=f"{type(e).__name__}: {e}")
            log.exception("sync_crashed")

        duration_ms = int((time.monotonic() - start_time) * 1000)
        outcome = dataclasses.replace(outcome, duration_ms=duration_ms)
        if outcome.succeeded:
            log.info(
                "sync_completed",
                operation=outcome.operation.value,
                changed=outcome.changed,
                pr_number=outcome.pr_number,
                auto_merge=outcome.auto_merge,
                duration_ms=duration_ms,
            )
        return outcome

    async def _sync(self, target: Target, fetched: FetchResult) -> SyncOutcome:
        config = self._config
        log = logger.bind(target=target.name)

        url = authenticated_url(
            config.github.git_base_url, target.repository, self._token
        )
        repo = await AsyncGitRepository.clone(
            url,
            self.workspace / "targets" / target.name,
            branch=self._branch,
            depth=config.github.clone_depth,
            submodules=True,
        )
        base = await repo.current_branch()

        if config.commands.toolchain_cmd:
            await self._runner.run_checked(
                config.commands.toolchain_cmd,
                cwd=repo.path,
                timeout=config.commands.timeout_seconds,
            )

        manifest_dir = repo.path / target.manifest_dir
        manifest_rel = PurePosixPath(target.manifest_dir, MANIFEST_NAME).as_posix()
        if not (manifest_dir / MANIFEST_NAME).is_file():
            raise ManifestNotFoundError(
                f"{target.repository} has no {manifest_rel}",
                target=target.name,
                path=manifest_dir / MANIFEST_NAME,
            )

        write_artifact(fetched.artifact, manifest_dir)
        lockfile_rel = PurePosixPath(
            target.manifest_dir, fetched.artifact.name
        ).as_posix()
        log.debug("lockfile_overwritten", path=lockfile_rel)

        await self._runner.run_checked(
            self._check_command(manifest_rel),
            cwd=repo.path,
            timeout=config.commands.timeout_seconds,
        )

        if not await repo.is_path_modified(lockfile_rel):
            log.info("lockfile_unchanged", base=base)
            return SyncOutcome(target=target)

        if self.dry_run:
            log.info("dry_run_skip_pull_request", base=base, path=lockfile_rel)
            return SyncOutcome(target=target, changed=True)

        if self._github is None:
            raise SyncError("No GitHub client configured", target=target.name)
        return await self._upsert_pull_request(
            self._github, repo, target, fetched, base, lockfile_rel
        )

    async def _upsert_pull_request(
        self,
        github: GitHubClient,
        repo: AsyncGitRepository,
        target: Target,
        fetched: FetchResult,
        base: str,
        lockfile_rel: str,
    ) -> SyncOutcome:
        """Commit, force-push and create or update the sync pull request."""
        settings = self._config.pull_request
        content = build_content(target, fetched, settings, self._run_context)
        log = logger.bind(target=target.name, branch=settings.branch, base=base)

        # The sync branch is rebuilt from base on every run
        await repo.reset_branch(settings.branch)
        await repo.commit_paths(
            [lockfile_rel],
            content.commit_message,
            author=self._identity,
            committer=self._identity,
        )
        await repo.push(branch=settings.branch, force=True)

        existing = await github.find_open_pull_request(
            target.repository, settings.branch, base
        )
        if existing is not None:
            pr = await github.update_pull_request(
                target.repository, existing.number, content.title, content.body
            )
            operation = PullRequestOperation.UPDATED
        else:
            pr = await github.create_pull_request(
                target.repository,
                title=content.title,
                body=content.body,
                head=settings.branch,
                base=base,
            )
            operation = PullRequestOperation.CREATED
        log.info("pull_request_upserted", operation=operation.value, number=pr.number)

        outcome = SyncOutcome(
            target=target,
            operation=operation,
            changed=True,
            pr_number=pr.number,
            pr_url=pr.html_url,
        )

        # The pull request exists from here on; failures must not hide it
        try:
            await github.add_labels(target.repository, pr.number, settings.labels)
            if operation is PullRequestOperation.CREATED and settings.auto_merge:
                await github.enable_auto_merge(
                    target.repository, pr.number, merge_method=settings.merge_method
                )
                outcome = dataclasses.replace(outcome, auto_merge=True)
                log.info("auto_merge_enabled", number=pr.number)
        except LocksyncError as e:
            log.error(
                "pull_request_finalize_failed",
                number=pr.number,
                error=e.message,
                error_type=type(e).__name__,
            )
            return dataclasses.replace(outcome, error=e.message)

        return outcome

    def _check_command(self, manifest_path: str) -> list[str]:
        return [
            part.replace(MANIFEST_PATH_PLACEHOLDER, manifest_path)
            for part in self._config.commands.check_cmd
        ]
