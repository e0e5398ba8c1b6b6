"""locksync exception hierarchy.

All exceptions can be imported from this package:
    from locksync.exceptions import ConfigError, FetchError, GitError
"""

from __future__ import annotations

from locksync.exceptions.base import LocksyncError
from locksync.exceptions.config import ConfigError
from locksync.exceptions.git import (
    CloneError,
    GitError,
    GitNotFoundError,
    NotARepositoryError,
    NothingToCommitError,
    PushRejectedError,
)
from locksync.exceptions.github import (
    GitHubAuthError,
    GitHubCLINotFoundError,
    GitHubError,
)
from locksync.exceptions.runner import (
    CommandFailedError,
    RunnerError,
    WorkingDirectoryError,
)
from locksync.exceptions.sync import FetchError, ManifestNotFoundError, SyncError

__all__ = [
    # Base
    "LocksyncError",
    # Config
    "ConfigError",
    # Git
    "CloneError",
    "GitError",
    "GitNotFoundError",
    "NotARepositoryError",
    "NothingToCommitError",
    "PushRejectedError",
    # GitHub
    "GitHubAuthError",
    "GitHubCLINotFoundError",
    "GitHubError",
    # Runner
    "CommandFailedError",
    "RunnerError",
    "WorkingDirectoryError",
    # Sync
    "FetchError",
    "ManifestNotFoundError",
    "SyncError",
]
