"""
Turns page navigations into managed, named downloads.

DownloadInterceptor decorates a NavigationHost: open_window() and navigate()
behave like the host's primitives unless a capture slot is armed, in which
case the target URL is saved through the Downloader under a name built from
the pending metadata, and the visible navigation never happens.

Capture paths while armed:
  1. open_window(url) with a URL: saved directly, no window is created.
  2. open_window(None) (blank popup): the window is tracked; its first
     navigation through navigate() is captured.
  3. navigate() on a tracked window. Navigations of untracked windows are
     never intercepted.

Popups that appear while nothing is armed are closed after a grace period
unless a capture gets armed in the meantime.

All timers are cooperative: call tick() regularly from the browser thread.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from download.CaptureSlot import CaptureSlot, PendingDownloadMeta
from download.NavigationProtocol import (
    Downloader,
    DownloadStartError,
    ManagedDownloadRequest,
    NavigationHost,
    WindowHandle,
)
from utils.Errors import record_warning
from utils.Logger import Logger
from utils.timer_utils import CooperativeTimer

NameBuilder = Callable[[Optional[PendingDownloadMeta], str], str]


class DownloadInterceptor:
    """Navigation Intent Interceptor with a single capture slot."""

    def __init__(
        self,
        host: NavigationHost,
        downloader: Downloader,
        name_builder: NameBuilder,
        capture_timeout_s: float = 10.0,
        popup_grace_s: float = 1.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._host = host
        self._downloader = downloader
        self._name_builder = name_builder
        self._popup_grace_s = popup_grace_s
        self._clock = clock
        self.slot = CaptureSlot(
            timeout_s=capture_timeout_s,
            on_expire=self._on_capture_expired,
            on_armed_changed=host.set_capture_active,
            clock=clock,
        )
        self._popups: List[WindowHandle] = []
        self._tracked: List[WindowHandle] = []
        self._grace_timers: Dict[int, CooperativeTimer] = {}
        self.stats: Dict[str, int] = {"captured": 0, "fallbacks": 0, "expired": 0}

    # ---- arming ----

    def arm(self, meta: PendingDownloadMeta) -> None:
        """Expect the next navigation to be the document described by meta."""
        self.slot.arm(meta)

    @property
    def pending(self) -> Optional[PendingDownloadMeta]:
        return self.slot.peek()

    # ---- decorated navigation primitives ----

    def open_window(self, url: Optional[str]) -> Optional[WindowHandle]:
        """
        window.open replacement.

        Returns None when the URL was captured (the caller sees no window).
        """
        if self.slot.has_pending() and isinstance(url, str) and url:
            if self._capture(url, fallback=lambda: self._host.open_window(url)):
                return None
            return self._host.open_window(url)
        window = self._host.open_window(url)
        if window is not None:
            self.adopt_window(window)
        return window

    def navigate(self, window: WindowHandle, url: str) -> bool:
        """
        Location assign/replace/href replacement for window.

        Returns True when the navigation was captured instead of performed.
        """
        if self.intercept_navigation(window, url):
            return True
        self._host.navigate(window, url)
        return False

    # ---- entry points for hosts that observe navigations themselves ----

    def adopt_window(self, window: WindowHandle) -> None:
        """Register a popup the page opened (without a capturable URL)."""
        if window in self._popups:
            return
        self._popups.append(window)
        if self.slot.has_pending():
            self._tracked.append(window)
            Logger.debug("Tracking popup opened during capture")
        else:
            timer = CooperativeTimer(lambda w=window: self._grace_expired(w), clock=self._clock)
            timer.start(self._popup_grace_s)
            self._grace_timers[id(window)] = timer

    def intercept_navigation(self, window: WindowHandle, url: Optional[str]) -> bool:
        """
        Decide about an observed navigation of window. True means: captured, block it.

        A failed capture start returns False so the navigation proceeds normally.
        A captured popup is closed right away, so a later timeout or error
        reopens the URL in a fresh window.
        """
        if not (self.slot.has_pending() and url and window in self._tracked):
            return False
        return self._capture(url, fallback=lambda: self._host.open_window(url))

    def forget_window(self, window: WindowHandle) -> None:
        """Drop a window that closed on its own."""
        self._remove(window)

    # ---- housekeeping ----

    def tick(self) -> None:
        """Run due timers and finished-download callbacks. Call from the browser thread."""
        if self.slot.expire_if_due():
            self.stats["expired"] += 1
        for timer in list(self._grace_timers.values()):
            timer.fire_if_due()
        self._downloader.poll()

    def close_popups(self) -> None:
        """Close every popup opened since the last cleanup."""
        windows, self._popups = self._popups, []
        self._tracked = []
        self._grace_timers.clear()
        if windows:
            Logger.debug(f"Closing {len(windows)} popup(s)")
        for window in windows:
            self._close(window)

    def reset(self) -> None:
        """Disarm and close everything (run end)."""
        self.slot.clear()
        self.close_popups()

    # ---- internals ----

    def _capture(self, url: str, fallback: Callable[[], Any]) -> bool:
        meta = self.slot.peek()
        name = self._name_builder(meta, url)
        index = meta.doc_index if meta is not None else None
        request = ManagedDownloadRequest(url=url, suggested_name=name)

        def on_timeout() -> None:
            self.stats["fallbacks"] += 1
            record_warning(None, f"Managed save of '{name}' timed out; opening the document normally")
            fallback()

        def on_error(reason: str) -> None:
            self.stats["fallbacks"] += 1
            record_warning(None, f"Managed save of '{name}' failed ({reason}); opening the document normally")
            fallback()

        try:
            self._downloader.download(request, on_timeout=on_timeout, on_error=on_error)
        except DownloadStartError as e:
            record_warning(None, f"Could not start managed save of '{name}' (doc {index}): {e}")
            return False
        Logger.info(f"Download captured: {name}")
        self.stats["captured"] += 1
        self.slot.consume()
        self.close_popups()
        return True

    def _on_capture_expired(self, meta: PendingDownloadMeta) -> None:
        self.close_popups()

    def _grace_expired(self, window: WindowHandle) -> None:
        self._grace_timers.pop(id(window), None)
        if self.slot.has_pending() or window not in self._popups:
            return
        Logger.debug("Closing untracked popup after grace period")
        self._remove(window)
        self._close(window)

    def _cancel_grace(self, window: WindowHandle) -> None:
        timer = self._grace_timers.pop(id(window), None)
        if timer is not None:
            timer.cancel()

    def _remove(self, window: WindowHandle) -> None:
        self._cancel_grace(window)
        if window in self._popups:
            self._popups.remove(window)
        if window in self._tracked:
            self._tracked.remove(window)

    @staticmethod
    def _close(window: WindowHandle) -> None:
        try:
            window.close()
        except Exception as e:  # window may already be gone; host error types vary
            Logger.debug(f"Popup close failed: {e}")
