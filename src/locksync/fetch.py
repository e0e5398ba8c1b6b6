"""Fetch stage: upstream lockfile and revision.

Runs once per sync run, before any dependant is touched. Every failure here
is fatal for the run: without the lockfile and its revision there is nothing
to propagate.
"""

from __future__ import annotations

from pathlib import Path

from locksync.config import LocksyncConfig
from locksync.exceptions import FetchError, GitError
from locksync.git import AsyncGitRepository, authenticated_url
from locksync.logging import get_logger
from locksync.models import FetchResult, LockfileArtifact

__all__ = ["fetch_lockfile", "write_artifact"]

logger = get_logger(__name__)


async def fetch_lockfile(
    config: LocksyncConfig,
    workspace: Path,
    branch: str | None = None,
    token: str | None = None,
) -> FetchResult:
    """Check out the upstream project and read its lockfile and tip revision.

    Args:
        config: Loaded configuration.
        workspace: Run directory; the checkout goes to ``<workspace>/upstream``.
        branch: Upstream branch; its default branch when None.
        token: Token for HTTPS clones (the upstream is usually public).

    Returns:
        The lockfile artifact, the tip revision and the checked-out branch.

    Raises:
        FetchError: If the checkout, the log read or the lockfile read fails.
    """
    upstream = config.upstream
    log = logger.bind(upstream=upstream.repository, branch=branch)
    log.info("fetch_started")

    url = authenticated_url(config.github.git_base_url, upstream.repository, token)
    try:
        repo = await AsyncGitRepository.clone(
            url,
            workspace / "upstream",
            branch=branch,
            depth=config.github.clone_depth,
        )
        revision = await repo.head_revision()
        checked_out = await repo.current_branch()
    except GitError as e:
        raise FetchError(
            f"Failed to fetch {upstream.repository}: {e.message}",
            repository=upstream.repository,
        ) from e

    lockfile_path = repo.path / upstream.lockfile
    try:
        content = lockfile_path.read_bytes()
    except OSError as e:
        raise FetchError(
            f"{upstream.repository} has no readable {upstream.lockfile} "
            f"at {revision.short_hash}: {e}",
            repository=upstream.repository,
        ) from e

    artifact = LockfileArtifact(name=upstream.lockfile, content=content)
    log.info(
        "fetch_completed",
        head_hash=revision.short_hash,
        head_date=revision.date,
        checked_out=checked_out,
        lockfile_sha256=artifact.sha256,
        lockfile_bytes=len(content),
    )
    return FetchResult(
        repository=upstream.repository,
        artifact=artifact,
        revision=revision,
        branch=checked_out,
    )


def write_artifact(artifact: LockfileArtifact, directory: Path) -> Path:
    """Write the artifact into ``directory`` under its own name.

    Replaces any existing file; nothing is merged.

    Returns:
        Path of the written file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / artifact.name
    destination.write_bytes(artifact.content)
    return destination
