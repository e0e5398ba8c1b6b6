"""GitHub API access for pull request upserts."""

from __future__ import annotations

from locksync.github.client import (
    DEFAULT_GITHUB_RATE_LIMIT,
    DEFAULT_GITHUB_RATE_PERIOD,
    GitHubClient,
    find_github_token,
    get_github_client,
    get_github_token,
    resolve_github_token,
)

__all__ = [
    "DEFAULT_GITHUB_RATE_LIMIT",
    "DEFAULT_GITHUB_RATE_PERIOD",
    "GitHubClient",
    "find_github_token",
    "get_github_client",
    "get_github_token",
    "resolve_github_token",
]
