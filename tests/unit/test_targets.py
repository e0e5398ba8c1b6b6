from __future__ import annotations

import pytest

from locksync.config import DependantsConfig, LocksyncConfig
from locksync.exceptions import ConfigError
from locksync.models import Target
from locksync.targets import build_targets, resolve_manifest_dir


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("zenoh-java", "zenoh-jni"),
        ("zenoh-kotlin", "zenoh-jni"),
        ("zenoh-c", "."),
        ("zenoh-python", "."),
        ("zenoh-plugin-ros2dds", "."),
        ("zenoh-backend-s3", "."),
        # Substring search, not a full match
        ("fork-zenoh-java-extras", "zenoh-jni"),
    ],
)
def test_resolve_manifest_dir(name: str, expected: str) -> None:
    assert resolve_manifest_dir(name) == expected


def test_resolve_manifest_dir_custom_rule() -> None:
    assert resolve_manifest_dir("bindings-go", r"-go$", "ffi") == "ffi"
    assert resolve_manifest_dir("bindings-rs", r"-go$", "ffi") == "."


def test_build_targets_defaults(clean_env: None) -> None:
    targets = build_targets(LocksyncConfig())

    assert len(targets) == 13
    assert targets[0] == Target("zenoh-c", "eclipse-zenoh/zenoh-c", ".")
    by_name = {t.name: t for t in targets}
    assert by_name["zenoh-java"].manifest_dir == "zenoh-jni"
    assert by_name["zenoh-kotlin"].manifest_dir == "zenoh-jni"
    jni = {t.name for t in targets if t.manifest_dir != "."}
    assert jni == {"zenoh-java", "zenoh-kotlin"}


def test_build_targets_only_keeps_config_order(clean_env: None) -> None:
    config = LocksyncConfig(
        dependants=DependantsConfig(owner="acme", names=["a", "b-kotlin", "c"])
    )

    targets = build_targets(config, only=["c", "a"])
    assert [t.repository for t in targets] == ["acme/a", "acme/c"]


def test_build_targets_unknown_name(clean_env: None) -> None:
    with pytest.raises(ConfigError, match="zenoh-go") as exc_info:
        build_targets(LocksyncConfig(), only=["zenoh-c", "zenoh-go"])
    assert exc_info.value.field == "only"
    assert exc_info.value.value == ["zenoh-go"]
