"""Data models for a lockfile synchronization run.

Frozen dataclasses with slots, following the value-object style used for
git and command results:
- Upstream side: Revision, LockfileArtifact, FetchResult
- Downstream side: Target, PullRequestOperation, SyncOutcome
- Aggregation: SyncReport
- Environment: RunContext (GitHub Actions run metadata)
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "Revision",
    "LockfileArtifact",
    "FetchResult",
    "Target",
    "PullRequestOperation",
    "SyncOutcome",
    "SyncReport",
    "RunContext",
]


@dataclass(frozen=True, slots=True)
class Revision:
    """Upstream commit the lockfile was taken from.

    Attributes:
        short_hash: Abbreviated SHA as printed by ``git log --format=%h``.
        date: Author date as printed by ``git log --format=%ad``.
    """

    short_hash: str
    date: str


@dataclass(frozen=True, slots=True)
class LockfileArtifact:
    """The upstream lockfile, as committed at the fetched revision.

    Attributes:
        name: File name, written unchanged into every dependant.
        content: Raw bytes; never decoded or merged.
    """

    name: str
    content: bytes

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content).hexdigest()


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Output of the fetch stage, consumed by every sync instance.

    Attributes:
        repository: Upstream repository (owner/name).
        artifact: The upstream lockfile.
        revision: Tip commit of the fetched branch.
        branch: Branch that was checked out upstream.
    """

    repository: str
    artifact: LockfileArtifact
    revision: Revision
    branch: str


@dataclass(frozen=True, slots=True)
class Target:
    """A dependant repository to sync.

    Attributes:
        name: Repository name (e.g. ``zenoh-c``).
        repository: Full name (owner/name).
        manifest_dir: Crate directory relative to the repository root.
    """

    name: str
    repository: str
    manifest_dir: str = "."


class PullRequestOperation(str, Enum):
    """What happened to the sync pull request of one dependant."""

    CREATED = "created"
    UPDATED = "updated"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """Result of syncing one dependant.

    Attributes:
        target: The dependant.
        operation: Pull request operation performed (NONE on failure or no diff).
        changed: True if the rectified lockfile differed from the committed one.
        pr_number: Pull request number, when one was created or updated.
        pr_url: Pull request URL, when one was created or updated.
        auto_merge: True if auto-merge was enabled during this run.
        error: Failure message; None when the sync succeeded.
        duration_ms: Wall time spent on this dependant.
    """

    target: Target
    operation: PullRequestOperation = PullRequestOperation.NONE
    changed: bool = False
    pr_number: int | None = None
    pr_url: str | None = None
    auto_merge: bool = False
    error: str | None = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.name,
            "repository": self.target.repository,
            "manifest_dir": self.target.manifest_dir,
            "operation": self.operation.value,
            "changed": self.changed,
            "pr_number": self.pr_number,
            "pr_url": self.pr_url,
            "auto_merge": self.auto_merge,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Aggregated outcome of a fan-out run.

    Attributes:
        revision: Upstream revision that was propagated.
        outcomes: One outcome per target, in target order.
    """

    revision: Revision
    outcomes: tuple[SyncOutcome, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> tuple[SyncOutcome, ...]:
        return tuple(o for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> tuple[SyncOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.succeeded)

    @property
    def created(self) -> tuple[SyncOutcome, ...]:
        return tuple(
            o for o in self.outcomes if o.operation is PullRequestOperation.CREATED
        )

    @property
    def updated(self) -> tuple[SyncOutcome, ...]:
        return tuple(
            o for o in self.outcomes if o.operation is PullRequestOperation.UPDATED
        )

    @property
    def exit_code(self) -> int:
        """0 when every target succeeded, 2 on partial failure, 1 otherwise."""
        if not self.failed:
            return 0
        if self.succeeded:
            return 2
        return 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": {
                "short_hash": self.revision.short_hash,
                "date": self.revision.date,
            },
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass(frozen=True, slots=True)
class RunContext:
    """Metadata of the CI run driving the sync, if any.

    Attributes:
        server_url: GitHub server URL.
        repository: Repository hosting the workflow (owner/name).
        run_id: Workflow run id; None outside GitHub Actions.
    """

    server_url: str = "https://github.com"
    repository: str | None = None
    run_id: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RunContext:
        """Read GITHUB_SERVER_URL, GITHUB_REPOSITORY and GITHUB_RUN_ID."""
        source = os.environ if env is None else env
        return cls(
            server_url=source.get("GITHUB_SERVER_URL") or "https://github.com",
            repository=source.get("GITHUB_REPOSITORY") or None,
            run_id=source.get("GITHUB_RUN_ID") or None,
        )

    def run_url(self, fallback_repository: str) -> str | None:
        """Link to the workflow run, or None when no run id is known."""
        if self.run_id is None:
            return None
        repository = self.repository or fallback_repository
        return f"{self.server_url}/{repository}/actions/runs/{self.run_id}"
