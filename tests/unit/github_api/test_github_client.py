"""Tests for the PyGithub wrapper."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from github import GithubException

from locksync.exceptions import GitHubAuthError, GitHubCLINotFoundError, GitHubError
from locksync.github import (
    GitHubClient,
    find_github_token,
    get_github_token,
    resolve_github_token,
)

REPO = "eclipse-zenoh/zenoh-c"


@pytest.fixture
def mock_github() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_repo(mock_github: MagicMock) -> MagicMock:
    repo = MagicMock()
    mock_github.get_repo.return_value = repo
    return repo


@pytest.fixture
def client(mock_github: MagicMock) -> GitHubClient:
    return GitHubClient(github=mock_github)


class TestTokens:
    def test_configured_token_wins(self) -> None:
        assert find_github_token("cfg", {"GH_TOKEN": "env"}) == "cfg"

    def test_gh_token_before_github_token(self) -> None:
        env = {"GH_TOKEN": "gh", "GITHUB_TOKEN": "actions"}
        assert find_github_token(None, env) == "gh"
        assert find_github_token(None, {"GITHUB_TOKEN": "actions"}) == "actions"

    def test_no_token(self) -> None:
        assert find_github_token(None, {}) is None

    def test_resolve_falls_back_to_gh_cli(self) -> None:
        with patch(
            "locksync.github.client.get_github_token", return_value="from-gh"
        ) as gh:
            assert resolve_github_token(None, {}) == "from-gh"
            assert resolve_github_token("cfg", {}) == "cfg"
        gh.assert_called_once()

    def test_gh_cli_token(self) -> None:
        completed = subprocess.CompletedProcess([], 0, stdout="gho_abc\n", stderr="")
        with patch("subprocess.run", return_value=completed):
            assert get_github_token() == "gho_abc"

    def test_gh_cli_missing(self) -> None:
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(GitHubCLINotFoundError):
                get_github_token()

    def test_gh_cli_not_logged_in(self) -> None:
        error = subprocess.CalledProcessError(1, ["gh", "auth", "token"])
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(GitHubAuthError):
                get_github_token()


class TestPullRequests:
    @pytest.mark.asyncio
    async def test_find_open_pull_request(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        pr = MagicMock(number=5)
        mock_repo.get_pulls.return_value = [pr]

        found = await client.find_open_pull_request(
            REPO, "eclipse-zenoh-bot/sync-lockfile", "main"
        )

        assert found is pr
        mock_repo.get_pulls.assert_called_once_with(
            state="open",
            head="eclipse-zenoh:eclipse-zenoh-bot/sync-lockfile",
            base="main",
        )

    @pytest.mark.asyncio
    async def test_find_open_pull_request_none(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        mock_repo.get_pulls.return_value = []
        assert await client.find_open_pull_request(REPO, "b", "main") is None

    @pytest.mark.asyncio
    async def test_create_pull_request(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        mock_repo.create_pull.return_value = MagicMock(number=9)

        pr = await client.create_pull_request(REPO, "title", "body", "head", "main")

        assert pr.number == 9
        mock_repo.create_pull.assert_called_once_with(
            title="title", body="body", head="head", base="main"
        )

    @pytest.mark.asyncio
    async def test_update_pull_request(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        pr = MagicMock(number=9)
        mock_repo.get_pull.return_value = pr

        updated = await client.update_pull_request(REPO, 9, "new title", "new body")

        assert updated is pr
        mock_repo.get_pull.assert_called_once_with(9)
        pr.edit.assert_called_once_with(title="new title", body="new body")

    @pytest.mark.asyncio
    async def test_add_labels(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        await client.add_labels(REPO, 9, ["dependencies"])
        mock_repo.get_pull.return_value.add_to_labels.assert_called_once_with(
            "dependencies"
        )

    @pytest.mark.asyncio
    async def test_add_no_labels_skips_api(
        self, client: GitHubClient, mock_github: MagicMock
    ) -> None:
        await client.add_labels(REPO, 9, [])
        mock_github.get_repo.assert_not_called()

    @pytest.mark.asyncio
    async def test_enable_auto_merge(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        await client.enable_auto_merge(REPO, 9)
        mock_repo.get_pull.return_value.enable_automerge.assert_called_once_with(
            merge_method="SQUASH"
        )

    @pytest.mark.asyncio
    async def test_api_errors_are_converted(
        self, client: GitHubClient, mock_repo: MagicMock
    ) -> None:
        mock_repo.get_pull.return_value.enable_automerge.side_effect = (
            GithubException(422, {"message": "Auto merge is not allowed"}, None)
        )

        with pytest.raises(GitHubError, match="auto-merge") as exc_info:
            await client.enable_auto_merge(REPO, 9)
        assert exc_info.value.pr_number == 9

    @pytest.mark.asyncio
    async def test_rate_limiter(self, mock_github: MagicMock, mock_repo) -> None:
        client = GitHubClient(github=mock_github, rate_limit=10, rate_period=1.0)
        assert client.rate_limiter is not None
        mock_repo.get_pulls.return_value = []

        assert await client.find_open_pull_request(REPO, "b", "main") is None


def test_close(mock_github: MagicMock) -> None:
    client = GitHubClient(github=mock_github)
    client.close()
    mock_github.close.assert_called_once()
    client.close()
    mock_github.close.assert_called_once()
