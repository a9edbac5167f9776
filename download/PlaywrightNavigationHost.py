"""
Playwright binding for the download interceptor.

The page gets a small bridge script: while a capture is armed, window.open()
with a URL is reported to Python through an exposed binding and returns
null instead of opening a tab. Popups the page opens anyway are handed to the
interceptor, and navigations of tracked popups are checked in a context-wide
route handler that aborts the request when the URL was captured.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from playwright.sync_api import BrowserContext, Error as PlaywrightError, Page, Request, Route

from utils.Logger import Logger

BINDING_NAME = "__tbdNavigationIntent"

# Popups later than this after a fallback open are treated as the page's own.
FALLBACK_POPUP_WINDOW_S = 3.0

BRIDGE_SCRIPT = """
(() => {
  if (window.__tbdBridgeInstalled) return;
  window.__tbdBridgeInstalled = true;
  window.__tbdCaptureActive = false;
  const originalOpen = window.open.bind(window);
  window.__tbdOriginalOpen = originalOpen;
  window.open = function(url, ...rest) {
    const target = (url === undefined || url === null) ? '' : String(url);
    if (window.__tbdCaptureActive && target && typeof window.__tbdNavigationIntent === 'function') {
      let absolute = target;
      try { absolute = new URL(target, location.href).href; } catch (e) {}
      window.__tbdNavigationIntent({ kind: 'open', url: absolute });
      return null;
    }
    return originalOpen(url, ...rest);
  };
})();
"""

SET_CAPTURE_ACTIVE_JS = "active => { window.__tbdCaptureActive = !!active; }"

ORIGINAL_OPEN_JS = """
url => {
  const open = window.__tbdOriginalOpen || window.open;
  open(url, '_blank');
}
"""


class PlaywrightNavigationHost:
    """
    NavigationHost for one timeline page and its browser context.

    Call install(interceptor) once before the run and uninstall() after it.
    """

    def __init__(self, page: Page, clock: Callable[[], float] = time.monotonic) -> None:
        self._page = page
        self._context: BrowserContext = page.context
        self._interceptor: Optional[Any] = None
        self._clock = clock
        self._fallback_deadlines: List[float] = []
        self._user_agent: Optional[str] = None
        self._installed = False

    # ---- NavigationHost ----

    def open_window(self, url: Optional[str]) -> Optional[Page]:
        """Run the page's original window.open; the popup (if any) arrives via the popup event."""
        self._fallback_deadlines.append(self._clock() + FALLBACK_POPUP_WINDOW_S)
        try:
            self._page.evaluate(ORIGINAL_OPEN_JS, url or "")
        except PlaywrightError as e:
            self._fallback_deadlines.pop()
            Logger.warning(f"Fallback window.open failed: {e}")
        return None

    def navigate(self, window: Page, url: str) -> None:
        """Let window load url normally."""
        try:
            window.goto(url, wait_until="commit")
        except PlaywrightError as e:
            # Chromium reports PDF/attachment responses as aborted navigations
            Logger.debug(f"Fallback navigation ended with: {e}")

    def set_capture_active(self, active: bool) -> None:
        try:
            self._page.evaluate(SET_CAPTURE_ACTIVE_JS, active)
        except PlaywrightError as e:
            Logger.warning(f"Could not {'arm' if active else 'disarm'} page capture hook: {e}")

    # ---- managed download inputs ----

    def cookies(self) -> Any:
        return self._context.cookies()

    def headers(self) -> Dict[str, str]:
        headers = {"Referer": self._page.url}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        return headers

    # ---- lifecycle ----

    def install(self, interceptor: Any) -> None:
        """Inject the bridge, expose the binding and start observing popups and navigations."""
        self._interceptor = interceptor
        if self._installed:
            return
        try:
            self._user_agent = self._page.evaluate("navigator.userAgent")
        except PlaywrightError:
            self._user_agent = None
        try:
            self._context.expose_binding(BINDING_NAME, self._on_navigation_intent)
        except PlaywrightError as e:
            # Already registered on this context by an earlier run in the same process
            Logger.debug(f"Navigation binding not re-registered: {e}")
        self._context.add_init_script(BRIDGE_SCRIPT)
        self._page.evaluate(BRIDGE_SCRIPT)
        self._context.route("**/*", self._on_route)
        self._page.on("popup", self._on_popup)
        self._installed = True
        Logger.debug("Navigation interception installed")

    def uninstall(self) -> None:
        if not self._installed:
            return
        self.set_capture_active(False)
        try:
            self._page.remove_listener("popup", self._on_popup)
            self._context.unroute("**/*", self._on_route)
        except PlaywrightError as e:
            Logger.debug(f"Navigation interception cleanup: {e}")
        self._installed = False
        self._interceptor = None
        self._fallback_deadlines.clear()

    # ---- event handlers ----

    def _on_navigation_intent(self, source: Dict[str, Any], payload: Dict[str, Any]) -> None:
        if self._interceptor is None:
            return
        url = (payload or {}).get("url")
        Logger.debug(f"Page requested window.open({url!r}) while capture armed")
        self._interceptor.open_window(url)

    def _on_popup(self, popup: Page) -> None:
        now = self._clock()
        self._fallback_deadlines = [d for d in self._fallback_deadlines if d > now]
        if self._fallback_deadlines:
            self._fallback_deadlines.pop(0)
            return
        if self._interceptor is None:
            return
        self._interceptor.adopt_window(popup)
        popup.on("close", lambda p=popup: self._interceptor and self._interceptor.forget_window(p))

    def _on_route(self, route: Route, request: Request) -> None:
        try:
            if (
                self._interceptor is not None
                and request.is_navigation_request()
                and request.frame.parent_frame is None
                and request.frame.page is not self._page
                and self._interceptor.intercept_navigation(request.frame.page, request.url)
            ):
                route.abort()
                return
            route.continue_()
        except PlaywrightError as e:
            Logger.debug(f"Route handling for {request.url} failed: {e}")
