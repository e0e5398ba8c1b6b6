"""Git operations package using GitPython.

Usage:
    ```python
    from locksync.git import AsyncGitRepository, GitIdentity

    repo = await AsyncGitRepository.clone(url, path, submodules=True)
    revision = await repo.head_revision()
    ```
"""

from __future__ import annotations

from locksync.git.repository import (
    AsyncGitRepository,
    GitIdentity,
    GitRepository,
    authenticated_url,
    redact_url,
)

__all__ = [
    "AsyncGitRepository",
    "GitIdentity",
    "GitRepository",
    "authenticated_url",
    "redact_url",
]
