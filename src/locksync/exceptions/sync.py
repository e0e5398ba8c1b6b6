from __future__ import annotations

from pathlib import Path

from locksync.exceptions.base import LocksyncError


class SyncError(LocksyncError):
    """Base exception for lockfile synchronization failures.

    Attributes:
        message: Human-readable error message.
        target: Dependant name the failure belongs to, if any.
    """

    def __init__(self, message: str, target: str | None = None) -> None:
        self.target = target
        super().__init__(message)


class FetchError(SyncError):
    """The upstream lockfile or its revision could not be fetched.

    Fatal for the whole run: no dependant can be synced without it.

    Attributes:
        message: Human-readable error message.
        repository: Upstream repository (owner/name).
    """

    def __init__(self, message: str, repository: str | None = None) -> None:
        self.repository = repository
        super().__init__(message)


class ManifestNotFoundError(SyncError):
    """The resolved manifest directory holds no Cargo manifest.

    Attributes:
        message: Human-readable error message.
        target: Dependant name.
        path: Manifest path that was expected.
    """

    def __init__(self, message: str, target: str, path: Path) -> None:
        self.path = path
        super().__init__(message, target=target)
