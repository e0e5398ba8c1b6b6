"""Shared Rich Console instance for locksync CLI output.

Rich Console handles TTY detection: styled output in terminals, plain text
when piped (as in CI logs).
"""

from __future__ import annotations

from rich.console import Console

__all__ = ["console"]

console = Console()
