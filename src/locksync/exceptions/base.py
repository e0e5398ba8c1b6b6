from __future__ import annotations


class LocksyncError(Exception):
    """Base exception class for all locksync-specific errors.

    All custom exceptions inherit from this class so the CLI boundary and the
    per-target fan-out can catch locksync failures while letting system
    exceptions propagate.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            report = await orchestrator.run()
        except LocksyncError as e:
            logger.error("run_failed", error=e.message)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the LocksyncError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
