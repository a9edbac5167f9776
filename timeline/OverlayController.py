"""
Overlay lifecycle for one timeline item.

    Closed -> Opening -> (Open | TimedOut) -> Closing -> Closed

Opening clicks the item and polls for the overlay; Closing escalates from
backdrop clicks to the close button, each attempt followed by a bounded
"overlay gone" check. Neither direction raises: a missing overlay skips the
item, a stuck overlay is logged and superseded by the next item.
"""

import time
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from settings.RunSettings import Timings
from timeline.TimelineProtocol import OverlayCandidate, TimelineHost
from utils.Errors import record_warning
from utils.Logger import Logger
from utils.polling import poll_until

GONE_POLL_INTERVAL_MS = 40
BACKDROP_ATTEMPTS = 2


class OverlayState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    TIMED_OUT = "timed_out"
    CLOSING = "closing"


def select_active_overlay(candidates: Iterable[OverlayCandidate], prefer_close_control: bool = True) -> Optional[Any]:
    """
    Pick the overlay among candidates: largest area wins, containing a close
    control adds 1e6 so nested or ghost containers lose to the real panel.

    Returns:
        The winning candidate's handle, or None for no candidates.
    """
    best: Optional[OverlayCandidate] = None
    best_score = -1.0
    for candidate in candidates:
        score = candidate.score if prefer_close_control else candidate.area
        if score > best_score:
            best, best_score = candidate, score
    return best.handle if best is not None else None


class OverlayController:
    """
    Opens and closes item overlays on a TimelineHost.

    wait(ms) is used for every delay so the caller can keep cooperative
    timers running; it defaults to host.wait. clock must advance with wait.
    """

    def __init__(
        self,
        host: TimelineHost,
        timings: Timings,
        wait: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._host = host
        self._clock = clock
        self._timings = timings
        self._wait = wait or host.wait
        self.state = OverlayState.CLOSED
        self.overlay: Optional[Any] = None

    def open(self, index: int) -> Optional[Any]:
        """
        Click item index and wait for its overlay.

        Returns:
            The overlay handle, or None if none appeared within the ceiling
            (state TIMED_OUT).
        """
        self.state = OverlayState.OPENING
        self.overlay = None
        if not self._host.click_item(index):
            Logger.debug(f"Click on list item {index} failed")
        self._wait(self._timings.wait_after_open_item)

        result = poll_until(
            lambda: select_active_overlay(self._host.overlay_candidates()),
            interval_ms=self._timings.modal_poll_interval,
            ceiling_ms=self._timings.overlay_open_ceiling,
            sleep=self._wait,
            clock=self._clock,
        )
        if not result.found or not self._host.is_overlay_visible(result.value):
            self.state = OverlayState.TIMED_OUT
            Logger.info(f"No overlay for item {index}")
            return None
        self.state = OverlayState.OPEN
        self.overlay = result.value
        Logger.debug(f"Overlay open for item {index}")
        return self.overlay

    def close(self, index: Optional[int] = None) -> bool:
        """
        Close the open overlay: backdrop center click twice, then the close button.

        Returns:
            True if the overlay is gone (or there was nothing to close).
        """
        self.state = OverlayState.CLOSING
        overlay = self.overlay
        if overlay is None or not self._host.is_overlay_visible(overlay):
            overlay = select_active_overlay(self._host.overlay_candidates(), prefer_close_control=False)
        backdrop = self._host.backdrop()
        if overlay is None or backdrop is None:
            Logger.debug("Close: no active overlay or backdrop, nothing to do")
            return self._finish(True)

        for attempt in range(1, BACKDROP_ATTEMPTS + 1):
            self._host.click_center(backdrop)
            self._wait(self._timings.backdrop_click_gap)
            if self._wait_gone(overlay):
                Logger.debug(f"Close: overlay gone after backdrop click {attempt}")
                return self._finish(True)

        button = self._host.close_button(overlay)
        if button is not None:
            self._host.click(button)
            self._wait(self._timings.focus_delay)
            if self._wait_gone(overlay):
                Logger.debug("Close: overlay gone after close button")
                return self._finish(True)

        record_warning(index, "Overlay stayed open after backdrop and close button")
        return self._finish(False)

    def _wait_gone(self, overlay: Any) -> bool:
        return poll_until(
            lambda: not self._host.is_overlay_visible(overlay),
            interval_ms=GONE_POLL_INTERVAL_MS,
            ceiling_ms=self._timings.close_check_window,
            sleep=self._wait,
            clock=self._clock,
        ).found

    def _finish(self, closed: bool) -> bool:
        self.state = OverlayState.CLOSED
        self.overlay = None
        return closed
