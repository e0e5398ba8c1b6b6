from __future__ import annotations

from pathlib import Path

from locksync.exceptions.base import LocksyncError


class GitError(LocksyncError):
    """Exception for git operation failures.

    Attributes:
        message: Human-readable error message.
        operation: Git operation that failed (e.g., "clone", "push").
        recoverable: True if error might be recoverable.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize the GitError.

        Args:
            message: Human-readable error message.
            operation: Git operation that failed.
            recoverable: True if error might be recoverable.
        """
        self.operation = operation
        self.recoverable = recoverable
        super().__init__(message)


class GitNotFoundError(GitError):
    """Exception raised when git CLI is not installed or not in PATH."""

    def __init__(self, message: str = "Git CLI not found") -> None:
        super().__init__(message, operation="git_check", recoverable=False)


class NotARepositoryError(GitError):
    """Exception raised when operating outside a git repository.

    Attributes:
        message: Human-readable error message.
        path: Directory that is not a repo.
    """

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
    ) -> None:
        """Initialize the NotARepositoryError.

        Args:
            message: Human-readable error message.
            path: Directory that is not a repo.
        """
        self.path = path
        super().__init__(message, operation="repo_check", recoverable=False)


class CloneError(GitError):
    """Exception raised when a repository cannot be cloned.

    Attributes:
        message: Human-readable error message.
        url: Remote URL with credentials removed.
        branch: Requested branch, if any.
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        branch: str | None = None,
    ) -> None:
        """Initialize the CloneError.

        Args:
            message: Human-readable error message.
            url: Remote URL with credentials removed.
            branch: Requested branch, if any.
        """
        self.url = url
        self.branch = branch
        super().__init__(message, operation="clone", recoverable=False)


class PushRejectedError(GitError):
    """Exception raised when remote rejects a push.

    Attributes:
        message: Human-readable error message.
        reason: Rejection reason from git.
    """

    def __init__(self, message: str, reason: str = "") -> None:
        self.reason = reason
        super().__init__(message, operation="push", recoverable=True)


class NothingToCommitError(GitError):
    """Exception raised when attempting to commit with no staged changes."""

    def __init__(self, message: str = "Nothing to commit") -> None:
        super().__init__(message, operation="commit", recoverable=False)
