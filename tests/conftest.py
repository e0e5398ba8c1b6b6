from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from git import Repo

from locksync.models import FetchResult, LockfileArtifact, Revision

UPSTREAM_LOCKFILE = b'# upstream\nversion = 3\n\n[[package]]\nname = "zenoh"\n'


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for test environment.

    Logs go to stderr at WARNING level so they never mix with CLI stdout.
    """
    from locksync.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env(tmp_path: Path) -> Generator[None, None, None]:
    """Remove LOCKSYNC_, GitHub token and Actions variables for clean testing.

    HOME points to an empty directory so no user config is picked up.
    """
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith(("LOCKSYNC_", "GITHUB_")) or key == "GH_TOKEN":
            del os.environ[key]
    home = tmp_path / "home"
    home.mkdir()
    os.environ["HOME"] = str(home)
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fetched() -> FetchResult:
    return FetchResult(
        repository="eclipse-zenoh/zenoh",
        artifact=LockfileArtifact(name="Cargo.lock", content=UPSTREAM_LOCKFILE),
        revision=Revision(short_hash="abc1234", date="Mon Oct 12 10:00:00 2026 +0200"),
        branch="main",
    )


def _configure_user(repo: Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("user", "name", "Test User")


def make_remote(
    base: Path,
    repository: str,
    files: dict[str, bytes | str],
    branch: str = "main",
) -> Path:
    """Create ``<base>/<repository>.git`` as a bare repo holding ``files``.

    Mirrors the ``<git_base_url>/<owner>/<name>.git`` layout used for clones.
    """
    remote_path = base / f"{repository}.git"
    remote_path.parent.mkdir(parents=True, exist_ok=True)
    Repo.init(remote_path, bare=True, initial_branch=branch)

    seed_path = base / ".seed" / repository
    seed = Repo.init(seed_path, initial_branch=branch)
    _configure_user(seed)
    for name, content in files.items():
        path = seed_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    seed.git.add("--all")
    seed.index.commit("Initial commit")
    seed.create_remote("origin", str(remote_path))
    seed.git.push("origin", f"HEAD:refs/heads/{branch}")
    return remote_path


@pytest.fixture
def git_base(tmp_path: Path) -> Path:
    """Directory standing in for https://github.com in clone URLs."""
    base = tmp_path / "remotes"
    base.mkdir()
    return base


@pytest.fixture
def remote_factory(git_base: Path):
    """Return ``make_remote`` bound to ``git_base``."""

    def _factory(
        repository: str, files: dict[str, bytes | str], branch: str = "main"
    ) -> Path:
        return make_remote(git_base, repository, files, branch=branch)

    return _factory
