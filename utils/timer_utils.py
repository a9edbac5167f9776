"""
Cooperative one-shot timers.

The Playwright sync API is bound to one thread, so timers never fire on
their own: the owner calls fire_if_due() from its loop (see
DownloadInterceptor.tick()) and the callback runs on that thread.
"""

import time
from typing import Callable, Optional


class CooperativeTimer:
    """A restartable, cancellable deadline that runs a callback when polled after expiry."""

    def __init__(self, callback: Callable[[], None], clock: Callable[[], float] = time.monotonic) -> None:
        self._callback = callback
        self._clock = clock
        self._deadline: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._deadline is not None

    def start(self, delay_s: float) -> None:
        """Arm (or re-arm) the timer delay_s seconds from now."""
        self._deadline = self._clock() + delay_s

    def cancel(self) -> None:
        self._deadline = None

    def remaining(self) -> Optional[float]:
        """Seconds until expiry, or None when not armed."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def fire_if_due(self) -> bool:
        """Run the callback once if the deadline has passed. Returns True if it fired."""
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._callback()
        return True
