"""
Single-slot mailbox for the download currently expected to be intercepted.

At most one PendingDownloadMeta exists at a time. arm() fills the slot and
starts the expiry timer; consume() empties it when a navigation is captured;
if nothing is captured before the timer runs out the slot clears itself.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from utils.Logger import Logger
from utils.timer_utils import CooperativeTimer


@dataclass(frozen=True)
class PendingDownloadMeta:
    """Everything needed to name the file of the document being clicked."""

    doc_title: str
    doc_index: int
    doc_total: int
    item_title: str = ""
    item_date: str = ""
    item_subtitle: str = ""
    item_year: Optional[int] = None
    modal_year: Optional[int] = None
    modal_hour: Optional[int] = None
    modal_minute: Optional[int] = None
    doc_date: Optional[str] = None


class CaptureSlot:
    """
    Holds zero or one PendingDownloadMeta with a cooperative auto-expiry.

    on_expire runs (on the polling thread) when the timeout passes without a
    capture; on_armed_changed(True/False) runs whenever the slot goes from
    empty to filled or back.
    """

    def __init__(
        self,
        timeout_s: float = 10.0,
        on_expire: Optional[Callable[[PendingDownloadMeta], None]] = None,
        on_armed_changed: Optional[Callable[[bool], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout_s = timeout_s
        self._on_expire = on_expire
        self._on_armed_changed = on_armed_changed
        self._pending: Optional[PendingDownloadMeta] = None
        self._timer = CooperativeTimer(self._expire, clock=clock)

    def arm(self, meta: PendingDownloadMeta) -> None:
        """Fill the slot. An outstanding capture is overwritten with a warning."""
        was_armed = self._pending is not None
        if was_armed:
            Logger.warning(
                f"Capture slot still pending for '{self._pending.doc_title}'; "
                f"replacing it with '{meta.doc_title}'"
            )
        self._pending = meta
        self._timer.start(self._timeout_s)
        Logger.debug(f"Capture armed: {meta.doc_title} ({meta.doc_index + 1}/{meta.doc_total})")
        if not was_armed:
            self._notify(True)

    def consume(self) -> Optional[PendingDownloadMeta]:
        """Return the pending meta and empty the slot (None if nothing was pending)."""
        meta = self._pending
        self._release()
        return meta

    def clear(self) -> None:
        """Empty the slot without capturing."""
        self._release()

    def has_pending(self) -> bool:
        return self._pending is not None

    def peek(self) -> Optional[PendingDownloadMeta]:
        return self._pending

    def expire_if_due(self) -> bool:
        """Clear the slot if its timeout has passed. Returns True if it expired now."""
        return self._timer.fire_if_due()

    def _expire(self) -> None:
        meta = self._pending
        self._release()
        if meta is None:
            return
        Logger.warning(f"No download captured for '{meta.doc_title}' within {self._timeout_s:g}s")
        if self._on_expire is not None:
            self._on_expire(meta)

    def _release(self) -> None:
        self._timer.cancel()
        if self._pending is None:
            return
        self._pending = None
        self._notify(False)

    def _notify(self, armed: bool) -> None:
        if self._on_armed_changed is not None:
            self._on_armed_changed(armed)
