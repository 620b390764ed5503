"""Wall-clock budget shared by the outbound calls of a single request."""

import time
from collections.abc import Callable


class Deadline:
    """A monotonic end time that loops consult before each outbound call."""

    def __init__(
        self,
        budget_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self.end_time = clock() + max(0.0, budget_seconds)

    def remaining(self) -> float:
        return max(0.0, self.end_time - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def allows(self, minimum: float) -> bool:
        """True while at least ``minimum`` seconds are left."""
        return self.remaining() >= minimum

    def timeout(self, default: float) -> float:
        """Per-call timeout: ``default`` capped by the remaining budget."""
        return min(default, self.remaining())
