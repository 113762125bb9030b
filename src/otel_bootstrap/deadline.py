"""Deadline-bearing operation context for blocking setup steps.

Setup has no event loop to cancel, so the caller bounds it with a timeout.
A Deadline converts that timeout into an absolute monotonic instant that each
blocking step (exporter construction, resource detection) can consult.
"""

from __future__ import annotations

import time


class Deadline:
    """Absolute monotonic deadline.

    Args:
        timeout: Seconds from now, or None for no deadline.

    Example:
        >>> deadline = Deadline(5.0)
        >>> deadline.expired
        False
        >>> deadline.check("otlp exporter construction")
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining(self, default: float | None = None) -> float | None:
        """Seconds left before expiry (never negative).

        Args:
            default: Value returned when there is no deadline.
        """
        if self._expires_at is None:
            return default
        return max(0.0, self._expires_at - time.monotonic())

    def check(self, operation: str) -> None:
        """Raise if the deadline has passed.

        Args:
            operation: Description of the step, used in the error message.

        Raises:
            TimeoutError: If the deadline has expired.
        """
        if self.expired:
            raise TimeoutError(f"deadline exceeded during {operation}")


__all__ = ["Deadline"]
