"""GitHub client module using PyGithub.

This module provides a PyGithub client and async-friendly wrapper functions
for the pull request operations of a lockfile sync: lookup by head branch,
create, update, label, and enabling auto-merge.

Rate limiting is supported via aiolimiter to respect GitHub API limits.
GitHub allows 5000 requests per hour for authenticated users.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, TypeVar

from aiolimiter import AsyncLimiter
from github import Auth, Github, GithubException
from github.PullRequest import PullRequest

from locksync.exceptions import GitHubAuthError, GitHubCLINotFoundError, GitHubError
from locksync.logging import get_logger

if TYPE_CHECKING:
    from github.Repository import Repository

#: Default rate limit for GitHub API (requests per hour)
DEFAULT_GITHUB_RATE_LIMIT: int = 5000

#: Time period for rate limiting in seconds (1 hour)
DEFAULT_GITHUB_RATE_PERIOD: float = 3600.0

#: Environment variables checked for a token, in order
TOKEN_ENV_VARS: tuple[str, ...] = ("GH_TOKEN", "GITHUB_TOKEN")

__all__ = [
    "find_github_token",
    "get_github_token",
    "resolve_github_token",
    "get_github_client",
    "GitHubClient",
    "DEFAULT_GITHUB_RATE_LIMIT",
    "DEFAULT_GITHUB_RATE_PERIOD",
]

logger = get_logger(__name__)

T = TypeVar("T")


def get_github_token() -> str:
    """Get GitHub authentication token from gh CLI.

    Returns:
        GitHub authentication token string.

    Raises:
        GitHubCLINotFoundError: If gh CLI is not installed.
        GitHubAuthError: If gh CLI is not authenticated.
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
        token = result.stdout.strip()
        if not token:
            raise GitHubAuthError()
        return token
    except FileNotFoundError as e:
        raise GitHubCLINotFoundError() from e
    except subprocess.CalledProcessError as e:
        raise GitHubAuthError() from e
    except subprocess.TimeoutExpired as e:
        raise GitHubAuthError("gh auth token command timed out after 10 seconds") from e


def find_github_token(
    configured: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Return the configured token, else GH_TOKEN, else GITHUB_TOKEN, else None."""
    if configured:
        return configured
    source = os.environ if env is None else env
    for name in TOKEN_ENV_VARS:
        value = source.get(name)
        if value:
            logger.debug("github_token_from_env", variable=name)
            return value
    return None


def resolve_github_token(
    configured: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the token used for cross-repository write access.

    Order: explicit configuration, GH_TOKEN, GITHUB_TOKEN, ``gh auth token``.

    Raises:
        GitHubCLINotFoundError: If nothing is configured and gh is missing.
        GitHubAuthError: If nothing is configured and gh is not logged in.
    """
    return find_github_token(configured, env) or get_github_token()


def get_github_client(token: str | None = None) -> Github:
    """Create an authenticated PyGithub client.

    Args:
        token: Token to use; resolved with resolve_github_token() when None.
    """
    auth = Auth.Token(token or resolve_github_token())
    return Github(auth=auth)


class GitHubClient:
    """Async-friendly wrapper around PyGithub for pull request operations.

    Blocking PyGithub calls run in a thread pool so that concurrent targets
    do not block each other.

    Attributes:
        github: The underlying PyGithub client instance.
        rate_limiter: Optional AsyncLimiter for rate limiting API calls.
    """

    def __init__(
        self,
        github: Github | None = None,
        token: str | None = None,
        rate_limit: int | None = None,
        rate_period: float | None = None,
    ) -> None:
        """Initialize the GitHubClient.

        Args:
            github: Optional PyGithub client. If not provided, one is created
                lazily from ``token``.
            token: Token for the lazily created client.
            rate_limit: Optional maximum number of requests per rate_period.
                Rate limiting is disabled when None.
            rate_period: Time period in seconds for rate limiting.
                Defaults to DEFAULT_GITHUB_RATE_PERIOD (1 hour).
        """
        self._github: Github | None = github
        self._token = token

        if rate_limit is not None:
            period = (
                rate_period if rate_period is not None else DEFAULT_GITHUB_RATE_PERIOD
            )
            self._rate_limiter: AsyncLimiter | None = AsyncLimiter(rate_limit, period)
        else:
            self._rate_limiter = None

    @property
    def rate_limiter(self) -> AsyncLimiter | None:
        return self._rate_limiter

    @property
    def github(self) -> Github:
        """Get the PyGithub client, initializing lazily if needed."""
        if self._github is None:
            self._github = get_github_client(self._token)
        return self._github

    def _get_repo(self, repo_name: str) -> Repository:
        """Get a repository by full name (owner/repo)."""
        return self.github.get_repo(repo_name)

    async def _call(self, func: Callable[[], T]) -> T:
        if self._rate_limiter is not None:
            async with self._rate_limiter:
                return await asyncio.to_thread(func)
        return await asyncio.to_thread(func)

    # =========================================================================
    # Pull Request Operations
    # =========================================================================

    async def find_open_pull_request(
        self,
        repo_name: str,
        head: str,
        base: str,
    ) -> PullRequest | None:
        """Find the open pull request from branch ``head`` into ``base``.

        Args:
            repo_name: Full repository name (owner/repo).
            head: Source branch name in the same repository.
            base: Target branch name.

        Returns:
            The pull request, or None if there is none open.

        Raises:
            GitHubError: On API errors.
        """

        def _find() -> PullRequest | None:
            try:
                repo = self._get_repo(repo_name)
                owner = repo_name.split("/")[0]
                pulls = repo.get_pulls(state="open", head=f"{owner}:{head}", base=base)
                for pr in pulls:
                    return pr
                return None
            except GithubException as e:
                raise GitHubError(
                    f"Failed to list pull requests of {repo_name}: {e}"
                ) from e

        return await self._call(_find)

    async def create_pull_request(
        self,
        repo_name: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        """Create a new pull request.

        Raises:
            GitHubError: On API errors.
        """

        def _create() -> PullRequest:
            try:
                repo = self._get_repo(repo_name)
                return repo.create_pull(title=title, body=body, head=head, base=base)
            except GithubException as e:
                raise GitHubError(
                    f"Failed to create pull request in {repo_name}: {e}"
                ) from e

        return await self._call(_create)

    async def update_pull_request(
        self,
        repo_name: str,
        pr_number: int,
        title: str,
        body: str,
    ) -> PullRequest:
        """Replace the title and body of an existing pull request.

        Raises:
            GitHubError: On API errors.
        """

        def _update() -> PullRequest:
            try:
                repo = self._get_repo(repo_name)
                pr = repo.get_pull(pr_number)
                pr.edit(title=title, body=body)
                return pr
            except GithubException as e:
                raise GitHubError(
                    f"Failed to update PR #{pr_number} in {repo_name}: {e}",
                    pr_number=pr_number,
                ) from e

        return await self._call(_update)

    async def add_labels(
        self,
        repo_name: str,
        pr_number: int,
        labels: Sequence[str],
    ) -> None:
        """Add labels to a pull request. No-op for an empty label list.

        Raises:
            GitHubError: On API errors.
        """
        if not labels:
            return

        def _add() -> None:
            try:
                repo = self._get_repo(repo_name)
                repo.get_pull(pr_number).add_to_labels(*labels)
            except GithubException as e:
                raise GitHubError(
                    f"Failed to label PR #{pr_number} in {repo_name}: {e}",
                    pr_number=pr_number,
                ) from e

        await self._call(_add)

    async def enable_auto_merge(
        self,
        repo_name: str,
        pr_number: int,
        merge_method: str = "SQUASH",
    ) -> None:
        """Queue a pull request for automatic merge once requirements pass.

        Args:
            repo_name: Full repository name (owner/repo).
            pr_number: Pull request number.
            merge_method: "MERGE", "SQUASH" or "REBASE".

        Raises:
            GitHubError: On API errors (e.g. auto-merge disabled on the repo).
        """

        def _enable() -> None:
            try:
                repo = self._get_repo(repo_name)
                repo.get_pull(pr_number).enable_automerge(merge_method=merge_method)
            except GithubException as e:
                raise GitHubError(
                    f"Failed to enable auto-merge on PR #{pr_number} "
                    f"in {repo_name}: {e}",
                    pr_number=pr_number,
                ) from e

        await self._call(_enable)

    def close(self) -> None:
        """Close the underlying GitHub client connection."""
        if self._github is not None:
            self._github.close()
            self._github = None
