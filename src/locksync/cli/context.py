"""CLI context and utilities for locksync.

This module provides context management, exit codes, and the bridge from
Click's synchronous interface to the async orchestration.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

from locksync.config import LocksyncConfig

__all__ = [
    "ExitCode",
    "CLIContext",
    "async_command",
]


class ExitCode(IntEnum):
    """Standard exit codes for the locksync CLI.

    - 0 every target succeeded
    - 1 failure (fetch failed, bad configuration, or every target failed)
    - 2 partial success (some targets failed)
    - 130 keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    PARTIAL = 2
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Type-safe CLI context containing global options and configuration.

    Attributes:
        config: Loaded configuration.
        config_path: Path to config file (if specified via --config).
        verbosity: Verbosity level (0=config default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    config: LocksyncConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Decorator to run async Click commands with asyncio.run().

    Example:
        >>> @click.command()
        >>> @click.pass_context
        >>> @async_command
        >>> async def run(ctx: click.Context, branch: str | None) -> None:
        >>>     await orchestrator.run(branch)
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
