"""GitPython-based repository operations for locksync.

Key features:
- Uses GitPython's Repo class for all operations
- Provides both sync and async APIs (async via asyncio.to_thread)
- Integrates Tenacity for retry logic on network operations (clone, push)
- Never leaks access tokens embedded in remote URLs into errors or logs

Example:
    ```python
    from locksync.git import AsyncGitRepository

    repo = await AsyncGitRepository.clone(url, path, branch="main", submodules=True)
    if await repo.is_path_modified("Cargo.lock"):
        await repo.reset_branch("eclipse-zenoh-bot/sync-lockfile")
        await repo.commit_paths(["Cargo.lock"], "chore: sync", author=bot)
        await repo.push(branch="eclipse-zenoh-bot/sync-lockfile", force=True)
    ```
"""

from __future__ import annotations

import asyncio
import re
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from git import Actor, GitCommandError, InvalidGitRepositoryError, Repo
from git.exc import GitCommandNotFound, NoSuchPathError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from locksync.exceptions import (
    CloneError,
    GitError,
    GitNotFoundError,
    NotARepositoryError,
    NothingToCommitError,
    PushRejectedError,
)
from locksync.logging import get_logger
from locksync.models import Revision

logger = get_logger(__name__)

__all__ = [
    "AsyncGitRepository",
    "GitIdentity",
    "GitRepository",
    "authenticated_url",
    "redact_url",
]

# =============================================================================
# Constants
# =============================================================================

_INVALID_BRANCH_CHARS = re.compile(r"[~^: ?*\[\]\\]")

MAX_NETWORK_RETRIES: int = 3

#: stderr fragments of transient network failures
NETWORK_ERROR_PATTERNS: tuple[str, ...] = (
    "could not resolve host",
    "connection refused",
    "connection timed out",
    "connection reset",
    "network unreachable",
    "temporary failure",
    "unable to access",
    "early eof",
    "the remote end hung up unexpectedly",
)

_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")


# =============================================================================
# Value Objects
# =============================================================================


@dataclass(frozen=True, slots=True)
class GitIdentity:
    """Name and email used as commit author or committer.

    Attributes:
        name: Display name.
        email: Email address.
    """

    name: str
    email: str

    def to_actor(self) -> Actor:
        return Actor(self.name, self.email)

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


# =============================================================================
# Helper Functions
# =============================================================================


def _validate_branch_name(name: str) -> None:
    """Validate branch name according to git ref rules.

    Raises:
        ValueError: If branch name is invalid.
    """
    if not name or name.isspace():
        raise ValueError("Branch name cannot be empty")
    if name.startswith("-") or name.endswith("."):
        raise ValueError(f"Invalid branch name: {name}")
    if _INVALID_BRANCH_CHARS.search(name):
        raise ValueError(f"Branch name contains invalid characters: {name}")
    if ".." in name or name.endswith(".lock"):
        raise ValueError(f"Invalid branch name: {name}")


def redact_url(text: str) -> str:
    """Strip credentials from every http(s) URL found in ``text``."""
    return _CREDENTIALS_RE.sub(r"\1***@", text)


def authenticated_url(base_url: str, repository: str, token: str | None) -> str:
    """Build the clone URL of ``repository`` under ``base_url``.

    For http(s) bases the token is embedded as ``x-access-token``, which is
    how GitHub accepts installation and personal tokens over HTTPS. Local
    path bases are returned as plain paths.

    Example:
        >>> authenticated_url("https://github.com", "eclipse-zenoh/zenoh-c", "t")
        'https://x-access-token:t@github.com/eclipse-zenoh/zenoh-c.git'
    """
    url = f"{base_url.rstrip('/')}/{repository}.git"
    parts = urlsplit(url)
    if token is None or parts.scheme not in ("http", "https"):
        return url
    netloc = f"x-access-token:{quote(token, safe='')}@{parts.hostname}"
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit(parts._replace(netloc=netloc))


def _convert_git_error(exc: GitCommandError, operation: str) -> GitError:
    """Convert GitPython exception to locksync exception.

    Args:
        exc: GitPython exception.
        operation: Name of the git operation that failed.

    Returns:
        Appropriate locksync exception, with credentials redacted.
    """
    stderr = redact_url(str(exc.stderr or exc.stdout or str(exc)))
    message = redact_url(str(exc))
    stderr_lower = stderr.lower()

    if "nothing to commit" in stderr_lower:
        return NothingToCommitError()

    if "rejected" in stderr_lower or "failed to push" in stderr_lower:
        return PushRejectedError(message, reason=stderr.strip())

    return GitError(
        message,
        operation=operation,
        recoverable=_is_network_error(exc),
    )


# =============================================================================
# Network retry decorator
# =============================================================================


def _is_network_error(exc: BaseException) -> bool:
    """Check if exception is a network-related error that should be retried."""
    if not isinstance(exc, GitCommandError):
        return False
    stderr = str(exc.stderr or "").lower()
    return any(pattern in stderr for pattern in NETWORK_ERROR_PATTERNS)


network_retry = retry(
    retry=retry_if_exception(_is_network_error),
    stop=stop_after_attempt(MAX_NETWORK_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


@network_retry
def _clone(url: str, path: Path, options: list[str]) -> Repo:
    # A failed attempt can leave a partial checkout behind
    if path.exists():
        shutil.rmtree(path)
    return Repo.clone_from(url, path, multi_options=options)


# =============================================================================
# Main Class: GitRepository
# =============================================================================


class GitRepository:
    """GitPython-based repository operations.

    Thread-safe: only stores immutable configuration and Repo instance.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Initialize GitRepository.

        Args:
            path: Path to the git repository. Defaults to current directory.

        Raises:
            GitNotFoundError: If git is not installed.
            NotARepositoryError: If path is not a git repository.
        """
        resolved_path = Path.cwd() if path is None else Path(path)

        self._path = resolved_path

        try:
            self._repo = Repo(resolved_path)
        except GitCommandNotFound as e:
            raise GitNotFoundError("Git CLI not found. Please install git.") from e
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotARepositoryError(
                f"Not a git repository: {path}",
                path=path,
            ) from e

    @classmethod
    def clone(
        cls,
        url: str,
        path: Path,
        *,
        branch: str | None = None,
        depth: int | None = None,
        submodules: bool = False,
    ) -> GitRepository:
        """Clone ``url`` into ``path``.

        Args:
            url: Remote URL, possibly carrying credentials.
            path: Destination directory (replaced if it exists).
            branch: Branch to check out; the remote's default when None.
            depth: Shallow clone depth; full history when None.
            submodules: Also clone submodules, recursively.

        Returns:
            Repository for the new checkout.

        Raises:
            CloneError: If the clone fails after retries.
            GitNotFoundError: If git is not installed.
        """
        options: list[str] = []
        if branch:
            options.append(f"--branch={branch}")
        if depth is not None:
            options.append(f"--depth={depth}")
            if submodules:
                options.append("--shallow-submodules")
        if submodules:
            options.append("--recurse-submodules")

        safe_url = redact_url(url)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            _clone(url, path, options)
        except GitCommandNotFound as e:
            raise GitNotFoundError("Git CLI not found. Please install git.") from e
        except GitCommandError as e:
            detail = redact_url(str(e.stderr or e)).strip()
            raise CloneError(
                f"Failed to clone {safe_url}"
                + (f" at branch '{branch}'" if branch else "")
                + (f": {detail}" if detail else ""),
                url=safe_url,
                branch=branch,
            ) from e

        logger.info("clone_completed", url=safe_url, branch=branch, path=str(path))
        return cls(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def repo(self) -> Repo:
        """Underlying GitPython Repo instance."""
        return self._repo

    # -------------------------------------------------------------------------
    # Repository State
    # -------------------------------------------------------------------------

    def current_branch(self) -> str:
        """Get current branch name.

        Returns:
            Branch name, or commit SHA if in detached HEAD state.
        """
        if self._repo.head.is_detached:
            return self._repo.head.commit.hexsha
        return self._repo.active_branch.name

    def head_revision(self) -> Revision:
        """Short hash and author date of HEAD, formatted by git.

        Uses ``git log -1`` so the values match what git prints for
        ``--format=%h`` and ``--format=%ad`` (abbreviation length and date
        style follow the repository's configuration).

        Raises:
            GitError: If the log cannot be read (e.g. empty repository).
        """
        try:
            short_hash = self._repo.git.log("-1", "--format=%h").strip()
            date = self._repo.git.log("-1", "--format=%ad").strip()
        except GitCommandError as e:
            raise _convert_git_error(e, "log") from e
        if not short_hash:
            raise GitError("HEAD has no commits", operation="log")
        return Revision(short_hash=short_hash, date=date)

    def is_path_modified(self, path: str) -> bool:
        """Check whether ``path`` differs from its version at HEAD.

        Untracked files count as modified; ignored files do not.

        Args:
            path: Path relative to the repository root.
        """
        output = self._repo.git.status("--porcelain", "--", path)
        return bool(output.strip())

    # -------------------------------------------------------------------------
    # Branches, commits, pushes
    # -------------------------------------------------------------------------

    def reset_branch(self, name: str) -> None:
        """Create or reset branch ``name`` at HEAD and check it out.

        The working tree is kept, so pending changes follow the branch.

        Raises:
            ValueError: If branch name is invalid.
            GitError: If the checkout fails.
        """
        _validate_branch_name(name)
        try:
            self._repo.git.checkout("-B", name)
            logger.debug("branch_reset", branch=name)
        except GitCommandError as e:
            raise _convert_git_error(e, "checkout") from e

    def commit_paths(
        self,
        paths: Sequence[str],
        message: str,
        *,
        author: GitIdentity,
        committer: GitIdentity | None = None,
    ) -> str:
        """Stage ``paths`` and commit them.

        Args:
            paths: Paths relative to the repository root.
            message: Commit message.
            author: Commit author.
            committer: Commit committer; defaults to the author.

        Returns:
            The commit SHA.

        Raises:
            NothingToCommitError: If staging leaves nothing to commit.
        """
        try:
            self._repo.git.add("--", *paths)
            if not self._repo.index.diff(self._repo.head.commit):
                raise NothingToCommitError()
            commit = self._repo.index.commit(
                message,
                author=author.to_actor(),
                committer=(committer or author).to_actor(),
            )
        except GitCommandError as e:
            raise _convert_git_error(e, "commit") from e

        logger.info("commit_created", sha=commit.hexsha[:7], paths=list(paths))
        return commit.hexsha

    @network_retry
    def _push(self, args: list[str]) -> None:
        self._repo.git.push(*args)

    def push(
        self,
        remote: str = "origin",
        branch: str | None = None,
        force: bool = False,
    ) -> None:
        """Push a branch to a remote.

        Args:
            remote: Remote name (default: origin).
            branch: Branch to push (default: current branch).
            force: Force push, rewriting the remote branch.

        Raises:
            PushRejectedError: If remote rejects the push.
            GitError: On other push failures.
        """
        branch_name = branch or self.current_branch()
        args: list[str] = []
        if force:
            args.append("--force")
        args.extend([remote, f"HEAD:refs/heads/{branch_name}"])

        try:
            self._push(args)
        except GitCommandError as e:
            raise _convert_git_error(e, "push") from e

        logger.info("push_completed", remote=remote, branch=branch_name, force=force)


# =============================================================================
# Async Wrapper
# =============================================================================


class AsyncGitRepository:
    """Async wrapper for GitRepository.

    Delegates all operations to a synchronous GitRepository running in
    a thread pool, so concurrent targets do not block each other.
    """

    def __init__(self, sync: GitRepository) -> None:
        self._sync = sync

    @classmethod
    def open(cls, path: Path | str | None = None) -> AsyncGitRepository:
        return cls(GitRepository(path))

    @classmethod
    async def clone(
        cls,
        url: str,
        path: Path,
        *,
        branch: str | None = None,
        depth: int | None = None,
        submodules: bool = False,
    ) -> AsyncGitRepository:
        """Clone ``url`` into ``path`` without blocking the event loop."""
        sync = await asyncio.to_thread(
            GitRepository.clone,
            url,
            path,
            branch=branch,
            depth=depth,
            submodules=submodules,
        )
        return cls(sync)

    @property
    def path(self) -> Path:
        return self._sync.path

    async def current_branch(self) -> str:
        return await asyncio.to_thread(self._sync.current_branch)

    async def head_revision(self) -> Revision:
        return await asyncio.to_thread(self._sync.head_revision)

    async def is_path_modified(self, path: str) -> bool:
        return await asyncio.to_thread(self._sync.is_path_modified, path)

    async def reset_branch(self, name: str) -> None:
        return await asyncio.to_thread(self._sync.reset_branch, name)

    async def commit_paths(
        self,
        paths: Sequence[str],
        message: str,
        *,
        author: GitIdentity,
        committer: GitIdentity | None = None,
    ) -> str:
        return await asyncio.to_thread(
            self._sync.commit_paths,
            paths,
            message,
            author=author,
            committer=committer,
        )

    async def push(
        self,
        remote: str = "origin",
        branch: str | None = None,
        force: bool = False,
    ) -> None:
        return await asyncio.to_thread(self._sync.push, remote, branch, force)
