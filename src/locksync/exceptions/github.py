from __future__ import annotations

from locksync.exceptions.base import LocksyncError


class GitHubError(LocksyncError):
    """Exception for GitHub API/CLI failures.

    Raised when pull request lookup, creation, labelling or auto-merge fails.

    Attributes:
        message: Human-readable error message.
        pr_number: Pull request number (if applicable).
        retry_after: Seconds to wait for rate limit (if applicable).
    """

    def __init__(
        self,
        message: str,
        pr_number: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        """Initialize the GitHubError.

        Args:
            message: Human-readable error message.
            pr_number: Pull request number (if applicable).
            retry_after: Seconds to wait for rate limit (if applicable).
        """
        self.pr_number = pr_number
        self.retry_after = retry_after
        super().__init__(message)


class GitHubCLINotFoundError(GitHubError):
    """GitHub CLI (gh) is not installed and no token was configured."""

    def __init__(self) -> None:
        super().__init__(
            "No GitHub token configured and GitHub CLI (gh) not installed. "
            "Set LOCKSYNC_GITHUB__TOKEN or install gh from https://cli.github.com/"
        )


class GitHubAuthError(GitHubError):
    """GitHub CLI is not authenticated.

    Attributes:
        message: Custom error message (optional, default provides auth instructions).
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "GitHub CLI not authenticated. Run: gh auth login")
