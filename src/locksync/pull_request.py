"""Standardized pull request title, body and commit message."""

from __future__ import annotations

from dataclasses import dataclass

from locksync.config import PullRequestConfig
from locksync.models import FetchResult, RunContext, Target

__all__ = ["PullRequestContent", "render_title", "render_body", "build_content"]


@dataclass(frozen=True, slots=True)
class PullRequestContent:
    """Text of the sync commit and pull request.

    Attributes:
        title: Pull request title.
        body: Pull request body (markdown).
        commit_message: Message of the lockfile commit.
    """

    title: str
    body: str
    commit_message: str


def render_title(fetched: FetchResult) -> str:
    revision = fetched.revision
    return (
        f"Sync `{fetched.artifact.name}` with "
        f"`{fetched.repository}@{revision.short_hash}` from `{revision.date}`"
    )


def render_body(target: Target, fetched: FetchResult, run: RunContext) -> str:
    """Render the pull request description.

    The hash and date are embedded verbatim so reviewers can match the PR to
    the upstream commit. The workflow run line is dropped outside CI.
    """
    upstream_name = fetched.repository.split("/")[-1]
    revision = fetched.revision
    lines = [
        f"This pull request synchronizes {target.name}'s Cargo lockfile with "
        f"{upstream_name}'s. This is done to ensure ABI compatibility between "
        "Zenoh applications, backends & plugins.",
        "",
        f"- **Zenoh HEAD hash**: {fetched.repository}@{revision.short_hash}",
        f"- **Zenoh HEAD date**: {revision.date}",
    ]
    run_url = run.run_url(fetched.repository)
    if run_url is not None:
        lines.append(f"- **Workflow run**: [{run.run_id}]({run_url})")
    return "\n".join(lines) + "\n"


def build_content(
    target: Target,
    fetched: FetchResult,
    settings: PullRequestConfig,
    run: RunContext,
) -> PullRequestContent:
    return PullRequestContent(
        title=render_title(fetched),
        body=render_body(target, fetched, run),
        commit_message=settings.commit_message,
    )
