"""Async subprocess execution for toolchain and cargo commands.

For git operations, use locksync.git instead.
"""

from __future__ import annotations

from locksync.runners.command import CommandRunner
from locksync.runners.models import CommandResult

__all__ = [
    "CommandResult",
    "CommandRunner",
]
