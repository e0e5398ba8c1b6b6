from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from locksync.exceptions.base import LocksyncError

if TYPE_CHECKING:
    from locksync.runners.models import CommandResult


class RunnerError(LocksyncError):
    """Base exception for runner failures."""

    pass


class WorkingDirectoryError(RunnerError):
    """Working directory does not exist or is not accessible.

    Attributes:
        message: Human-readable error message.
        path: The path that was not found.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message)


class CommandFailedError(RunnerError):
    """External command exited unsuccessfully.

    Attributes:
        message: Human-readable error message.
        command: The command that failed.
        result: The captured result, including stderr.
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        result: CommandResult | None = None,
    ) -> None:
        """Initialize the CommandFailedError.

        Args:
            message: Human-readable error message.
            command: The command that failed.
            result: The captured result, including stderr.
        """
        self.command = list(command)
        self.result = result
        super().__init__(message)
