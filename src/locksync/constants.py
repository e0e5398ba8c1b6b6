"""locksync defaults.

Single source of truth for the upstream project, the dependant list and the
pull request conventions. Everything here can be overridden through
``locksync.yaml`` or ``LOCKSYNC_*`` environment variables.
"""

from __future__ import annotations

# =============================================================================
# Upstream
# =============================================================================

#: Repository whose lockfile is propagated
UPSTREAM_REPOSITORY: str = "eclipse-zenoh/zenoh"

#: Lockfile name, identical in upstream and dependants
LOCKFILE_NAME: str = "Cargo.lock"

#: Manifest read by ``cargo check --manifest-path``
MANIFEST_NAME: str = "Cargo.toml"

# =============================================================================
# Dependants
# =============================================================================

DEPENDANT_OWNER: str = "eclipse-zenoh"

DEPENDANTS: tuple[str, ...] = (
    "zenoh-c",
    "zenoh-python",
    "zenoh-java",
    "zenoh-kotlin",
    "zenoh-plugin-dds",
    "zenoh-plugin-mqtt",
    "zenoh-plugin-ros1",
    "zenoh-plugin-ros2dds",
    "zenoh-plugin-webserver",
    "zenoh-backend-filesystem",
    "zenoh-backend-influxdb",
    "zenoh-backend-rocksdb",
    "zenoh-backend-s3",
)

#: Dependants whose crate does not live at the repository root
ALTERNATE_MANIFEST_PATTERN: str = r"zenoh-(java|kotlin)"

#: Where those dependants keep their crate
ALTERNATE_MANIFEST_DIR: str = "zenoh-jni"

ROOT_MANIFEST_DIR: str = "."

# =============================================================================
# Pull requests
# =============================================================================

BOT_NAME: str = "eclipse-zenoh-bot"

BOT_EMAIL: str = "eclipse-zenoh-bot@users.noreply.github.com"

SYNC_BRANCH: str = "eclipse-zenoh-bot/sync-lockfile"

COMMIT_MESSAGE: str = "chore: Sync Cargo lockfile with Zenoh's"

PR_LABELS: tuple[str, ...] = ("dependencies",)

# =============================================================================
# Commands
# =============================================================================

#: Showing the active toolchain installs the one pinned by rust-toolchain.toml
TOOLCHAIN_COMMAND: tuple[str, ...] = ("rustup", "show")

#: Checking the crate rectifies Cargo.lock while keeping the pinned versions
CHECK_COMMAND: tuple[str, ...] = ("cargo", "check", "--manifest-path", "{manifest_path}")

DEFAULT_COMMAND_TIMEOUT: float = 1800.0

GITHUB_BASE_URL: str = "https://github.com"
