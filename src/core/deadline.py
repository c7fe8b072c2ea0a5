"""Invocation deadline shared by every stage of a pipeline."""

import time
from collections.abc import Callable


class Deadline:
    """
    Wall-clock budget for one invocation.

    Created when the dispatcher starts a pipeline. Pagination checks it
    between pages and enrichment uses the remaining time as the fan-in
    timeout.
    """

    def __init__(
        self,
        seconds: float | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize deadline.

        Args:
            seconds: Budget in seconds, None or <= 0 for no deadline
            clock: Monotonic clock (injectable for tests)
        """
        self._clock = clock
        self._expires_at = (
            clock() + seconds if seconds is not None and seconds > 0 else None
        )

    def remaining(self) -> float | None:
        """Seconds left, 0.0 once expired, None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0
