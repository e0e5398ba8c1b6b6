from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from locksync import constants
from locksync.exceptions import ConfigError
from locksync.logging import get_logger

__all__ = [
    "LocksyncConfig",
    "UpstreamConfig",
    "DependantsConfig",
    "PullRequestConfig",
    "CommandsConfig",
    "GitHubConfig",
    "ParallelConfig",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "locksync.yaml"

#: Set by load_config() for the duration of one LocksyncConfig() call
_project_config_override: Path | None = None


class UpstreamConfig(BaseModel):
    """Settings for the repository whose lockfile is propagated."""

    repository: str = constants.UPSTREAM_REPOSITORY
    lockfile: str = constants.LOCKFILE_NAME

    @field_validator("repository")
    @classmethod
    def check_full_name(cls, v: str) -> str:
        if v.count("/") != 1 or v.startswith("/") or v.endswith("/"):
            raise ValueError(f"repository must be 'owner/name', got {v!r}")
        return v


class DependantsConfig(BaseModel):
    """Settings for the downstream repositories.

    Attributes:
        owner: GitHub organisation or user owning every dependant.
        names: Repository names to sync, in matrix order.
        alternate_manifest_pattern: Regex searched in a dependant's name; a
            match means its crate lives in ``alternate_manifest_dir``.
        alternate_manifest_dir: Crate directory for matching dependants.
    """

    owner: str = constants.DEPENDANT_OWNER
    names: list[str] = Field(default_factory=lambda: list(constants.DEPENDANTS))
    alternate_manifest_pattern: str = constants.ALTERNATE_MANIFEST_PATTERN
    alternate_manifest_dir: str = constants.ALTERNATE_MANIFEST_DIR

    @field_validator("names")
    @classmethod
    def check_unique(cls, v: list[str]) -> list[str]:
        duplicates = sorted({name for name in v if v.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate dependants: {', '.join(duplicates)}")
        return v

    @field_validator("alternate_manifest_pattern")
    @classmethod
    def check_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return v


class PullRequestConfig(BaseModel):
    """Settings for the sync branch, commit and pull request."""

    branch: str = constants.SYNC_BRANCH
    labels: list[str] = Field(default_factory=lambda: list(constants.PR_LABELS))
    commit_message: str = constants.COMMIT_MESSAGE
    author_name: str = constants.BOT_NAME
    author_email: str = constants.BOT_EMAIL
    auto_merge: bool = True
    merge_method: Literal["MERGE", "SQUASH", "REBASE"] = "SQUASH"


class CommandsConfig(BaseModel):
    """Settings for the toolchain and lockfile rectification commands.

    Attributes:
        toolchain_cmd: Run in the checkout before anything else (empty to skip).
        check_cmd: Rectifies the lockfile; ``{manifest_path}`` is substituted.
        timeout_seconds: Maximum time per command.
    """

    toolchain_cmd: list[str] = Field(
        default_factory=lambda: list(constants.TOOLCHAIN_COMMAND)
    )
    check_cmd: list[str] = Field(default_factory=lambda: list(constants.CHECK_COMMAND))
    timeout_seconds: float = Field(default=constants.DEFAULT_COMMAND_TIMEOUT, gt=0)

    @field_validator("check_cmd")
    @classmethod
    def check_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("check_cmd cannot be empty")
        return v


class GitHubConfig(BaseModel):
    """Settings for GitHub access.

    Attributes:
        token: Token with write access to every dependant. Falls back to
            GH_TOKEN, GITHUB_TOKEN, then ``gh auth token``.
        git_base_url: Prefix for clone URLs; ``<base>/<owner>/<name>.git``.
        clone_depth: Shallow clone depth (None for full history).
    """

    token: SecretStr | None = None
    git_base_url: str = constants.GITHUB_BASE_URL
    clone_depth: int | None = Field(default=1, ge=1)


class ParallelConfig(BaseModel):
    """Settings for concurrency limits."""

    max_targets: int = Field(default=4, gt=0, le=32)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    value=type(loaded).__name__,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class LocksyncConfig(BaseSettings):
    """Root configuration object containing all locksync settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOCKSYNC_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    dependants: DependantsConfig = Field(default_factory=DependantsConfig)
    pull_request: PullRequestConfig = Field(default_factory=PullRequestConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "info"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init settings (explicit keyword arguments)
        2. Environment variables (LOCKSYNC_*)
        3. Project YAML config (./locksync.yaml or --config)
        4. User YAML config (~/.config/locksync/config.yaml)
        5. Model defaults
        """
        project_config_path = (
            _project_config_override or Path.cwd() / PROJECT_CONFIG_NAME
        )

        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/locksync/config.yaml
    """
    return Path.home() / ".config" / "locksync" / "config.yaml"


def load_config(config_path: Path | None = None) -> LocksyncConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to project config file. Defaults to
            ./locksync.yaml

    Returns:
        LocksyncConfig instance with merged configuration

    Raises:
        ConfigError: If configuration is invalid or config_path is missing.
    """
    global _project_config_override

    if config_path is not None and not config_path.exists():
        raise ConfigError(
            message=f"Config file not found: {config_path}",
            field="config",
            value=str(config_path),
        )
    if config_path is None and not (Path.cwd() / PROJECT_CONFIG_NAME).exists():
        logger.debug("no_project_config", using="defaults")

    _project_config_override = config_path
    try:
        return LocksyncConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_override = None
