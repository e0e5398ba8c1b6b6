"""Dependant enumeration and manifest directory lookup.

Not every dependant keeps its Cargo manifest and lockfile at the repository
root: the JNI-based bindings (zenoh-java, zenoh-kotlin) keep their crate in
``zenoh-jni``. This is a static name lookup, not a discovery.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from locksync.config import LocksyncConfig
from locksync.constants import (
    ALTERNATE_MANIFEST_DIR,
    ALTERNATE_MANIFEST_PATTERN,
    ROOT_MANIFEST_DIR,
)
from locksync.exceptions import ConfigError
from locksync.models import Target

__all__ = ["resolve_manifest_dir", "build_targets"]


def resolve_manifest_dir(
    name: str,
    pattern: str = ALTERNATE_MANIFEST_PATTERN,
    alternate: str = ALTERNATE_MANIFEST_DIR,
) -> str:
    """Return the crate directory of a dependant, relative to its root.

    Args:
        name: Dependant repository name.
        pattern: Regex searched in ``name``.
        alternate: Directory returned on a match.

    Returns:
        ``alternate`` if ``pattern`` matches anywhere in ``name``, else ``"."``.

    Example:
        >>> resolve_manifest_dir("zenoh-kotlin")
        'zenoh-jni'
        >>> resolve_manifest_dir("zenoh-c")
        '.'
    """
    if re.search(pattern, name):
        return alternate
    return ROOT_MANIFEST_DIR


def build_targets(
    config: LocksyncConfig,
    only: Iterable[str] | None = None,
) -> list[Target]:
    """Expand the configured dependant list into target descriptors.

    Args:
        config: Loaded configuration.
        only: Optional subset of dependant names to keep.

    Returns:
        Targets in configuration order.

    Raises:
        ConfigError: If ``only`` names a dependant that is not configured.
    """
    dependants = config.dependants
    names = list(dependants.names)

    if only is not None:
        wanted = list(only)
        unknown = [name for name in wanted if name not in names]
        if unknown:
            raise ConfigError(
                f"Unknown dependant(s): {', '.join(unknown)}",
                field="only",
                value=unknown,
            )
        names = [name for name in names if name in wanted]

    return [
        Target(
            name=name,
            repository=f"{dependants.owner}/{name}",
            manifest_dir=resolve_manifest_dir(
                name,
                dependants.alternate_manifest_pattern,
                dependants.alternate_manifest_dir,
            ),
        )
        for name in names
    ]
