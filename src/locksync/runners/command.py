"""Command runner for safe async subprocess execution.

This module provides the CommandRunner class for executing external commands
(``rustup``, ``cargo``) with timeout handling and proper error management.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from locksync.exceptions import CommandFailedError, WorkingDirectoryError
from locksync.logging import get_logger
from locksync.runners.models import CommandResult

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["CommandRunner"]

logger = get_logger(__name__)

TERMINATION_GRACE_PERIOD: float = 2.0


class CommandRunner:
    """Execute commands safely with timeout and environment control.

    Provides async command execution with:
    - Timeout handling with graceful termination (SIGTERM + grace period + SIGKILL)
    - Working directory validation
    - Environment variable inheritance and override
    - Duration measurement

    Example:
        ```python
        runner = CommandRunner(cwd=Path("/checkout"), timeout=1800.0)
        result = await runner.run(["cargo", "check"])
        if result.success:
            print(f"Checked in {result.duration_ms}ms")
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        timeout: float | None = 120.0,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the CommandRunner.

        Args:
            cwd: Working directory for commands. If None, uses current directory.
            timeout: Default timeout in seconds. Use None for no timeout.
            env: Additional environment variables to merge with os.environ.
        """
        self._cwd = cwd
        self._timeout = timeout
        self._extra_env = env or {}

    @property
    def cwd(self) -> Path | None:
        return self._cwd

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def _validate_cwd(self, cwd: Path | None) -> None:
        if cwd is not None and not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                path=cwd,
            )

    def _build_env(self, extra_env: dict[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command once and return the result.

        Args:
            command: Command and arguments as a sequence (no shell expansion).
            cwd: Override working directory for this command.
            timeout: Override timeout. Use 0 or negative for no timeout.
            env: Additional environment variables for this command.

        Returns:
            CommandResult with returncode, stdout, stderr, duration_ms, timed_out.

        Raises:
            WorkingDirectoryError: If working directory does not exist.
        """
        effective_cwd = cwd if cwd is not None else self._cwd
        self._validate_cwd(effective_cwd)

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        return await self._execute_once(
            command, effective_cwd, effective_timeout, self._build_env(env)
        )

    async def run_checked(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command and raise if it does not succeed.

        Raises:
            CommandFailedError: On non-zero exit or timeout.
            WorkingDirectoryError: If working directory does not exist.
        """
        result = await self.run(command, cwd=cwd, timeout=timeout, env=env)
        if not result.success:
            reason = "timed out" if result.timed_out else f"exit {result.returncode}"
            detail = result.tail()
            message = f"Command failed ({reason}): {' '.join(command)}"
            if detail:
                message = f"{message}\n{detail}"
            raise CommandFailedError(message, command=command, result=result)
        return result

    async def _execute_once(
        self,
        command: Sequence[str],
        cwd: Path | None,
        timeout: float | None,
        env: dict[str, str],
    ) -> CommandResult:
        start_time = time.monotonic()
        log = logger.bind(command=list(command), cwd=str(cwd))
        log.debug("command_started")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
        except FileNotFoundError:
            return self._spawn_failure(
                127, f"Command not found: {command[0]}", start_time
            )
        except PermissionError:
            return self._spawn_failure(
                126, f"Permission denied: {command[0]}", start_time
            )

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except TimeoutError:
            await _terminate(process)
            result = CommandResult(
                returncode=-1,
                stdout="",
                stderr=f"Timed out after {timeout}s",
                duration_ms=_elapsed_ms(start_time),
                timed_out=True,
            )
        else:
            result = CommandResult(
                returncode=process.returncode or 0,
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
                duration_ms=_elapsed_ms(start_time),
            )

        log.debug(
            "command_finished",
            returncode=result.returncode,
            duration_ms=result.duration_ms,
            timed_out=result.timed_out,
        )
        return result

    @staticmethod
    def _spawn_failure(
        returncode: int, message: str, start_time: float
    ) -> CommandResult:
        return CommandResult(
            returncode=returncode,
            stdout="",
            stderr=message,
            duration_ms=_elapsed_ms(start_time),
        )


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """SIGTERM, then SIGKILL if the process outlives the grace period."""
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATION_GRACE_PERIOD)
    except TimeoutError:
        process.kill()
        await process.wait()
