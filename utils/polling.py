"""
Bounded polling for UI conditions.

poll_until() re-evaluates a predicate at a fixed interval until it returns a
truthy value or a ceiling elapses. Used for overlay detection and for
confirming that an overlay went away.
"""

import time
from typing import Any, Callable, NamedTuple, Optional


class PollResult(NamedTuple):
    """Outcome of poll_until: found is False when the ceiling elapsed first."""

    found: bool
    value: Any = None


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000.0)


def poll_until(
    predicate: Callable[[], Any],
    interval_ms: float,
    ceiling_ms: float,
    *,
    sleep: Optional[Callable[[float], None]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> PollResult:
    """
    Poll predicate until it returns a truthy value or ceiling_ms elapses.

    The predicate is always evaluated at least once, and once more at the
    ceiling. Sleeping goes through sleep(ms) so a browser page can supply
    page.wait_for_timeout and keep its event loop running.

    Args:
        predicate: Zero-argument callable; a truthy return ends the poll.
        interval_ms: Delay between evaluations.
        ceiling_ms: Total time budget.
        sleep: Callable taking milliseconds; defaults to time.sleep.
        clock: Monotonic clock in seconds.

    Returns:
        PollResult(True, value) or PollResult(False, None).
    """
    sleep = sleep or _sleep_ms
    deadline = clock() + ceiling_ms / 1000.0
    while True:
        value = predicate()
        if value:
            return PollResult(True, value)
        remaining_ms = (deadline - clock()) * 1000.0
        if remaining_ms <= 0:
            return PollResult(False, None)
        sleep(min(interval_ms, remaining_ms))
