"""
Playwright browser session for the broker timeline.

The login is kept in a persistent Chromium profile (user_data_dir) so the
user signs in once by hand; alternatively an already running Chrome started
with --remote-debugging-port is attached over CDP (cdp_url).
"""

from typing import Callable, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    sync_playwright,
)

from utils.Args import Args
from utils.Logger import Logger

LOGIN_POLL_MS = 1000


class BrowserSession:
    """
    Shared Playwright browser session for timeline runs.

    Reads Args.headless, Args.cdp_url, Args.user_data_dir, Args.start_url and
    Args.login_timeout_s. Call ensure_page() then wait_for_login() before
    using the page; call close() when done.
    """

    def __init__(self) -> None:
        """Initialize session. Browser is created on first ensure_page()."""
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Optional[Page]:
        return self._page

    def ensure_page(self) -> Page:
        """Ensure the browser is up and return the timeline page."""
        if self._page is not None:
            return self._page

        Logger.debug("Initializing Playwright browser")
        self._playwright = sync_playwright().start()
        cdp_url = getattr(Args, "cdp_url", None)
        if cdp_url:
            Logger.info(f"Attaching to Chrome at {cdp_url}")
            self._browser = self._playwright.chromium.connect_over_cdp(cdp_url)
            self._context = self._browser.contexts[0] if self._browser.contexts else self._browser.new_context()
        else:
            self._context = self._playwright.chromium.launch_persistent_context(
                str(Args.user_data_dir),
                headless=bool(Args.headless),
                accept_downloads=True,
                viewport={"width": 1440, "height": 1000},
                args=["--disable-blink-features=AutomationControlled"],
            )

        self._page = self._find_timeline_page() or self._context.new_page()
        if "/profile/" not in (self._page.url or ""):
            self._page.goto(Args.start_url, wait_until="domcontentloaded")
        return self._page

    def _find_timeline_page(self) -> Optional[Page]:
        for page in self._context.pages:
            if "/profile/" in (page.url or ""):
                return page
        return self._context.pages[0] if self._context.pages else None

    def wait_for_login(self, is_ready: Callable[[], bool], timeout_s: Optional[float] = None) -> bool:
        """
        Wait until is_ready() reports the authenticated timeline (the user may be logging in by hand).

        Returns:
            True if ready within timeout_s (default Args.login_timeout_s).
        """
        page = self.ensure_page()
        timeout_s = float(Args.login_timeout_s if timeout_s is None else timeout_s)
        waited_ms = 0.0
        announced = False
        while True:
            try:
                if is_ready():
                    return True
            except PlaywrightError as e:
                Logger.debug(f"Login check failed: {e}")
            if waited_ms >= timeout_s * 1000:
                return False
            if not announced:
                Logger.info(f"Waiting up to {timeout_s:g}s for the timeline (log in in the browser window)")
                announced = True
            page.wait_for_timeout(LOGIN_POLL_MS)
            waited_ms += LOGIN_POLL_MS

    def close(self) -> None:
        """Close the browser and clean up resources. An attached Chrome is left running."""
        attached = self._browser is not None
        if self._context is not None and not attached:
            try:
                self._context.close()
            except PlaywrightError as e:
                Logger.debug(f"Context close: {e}")
        self._context = None
        self._page = None

        # stopping the driver drops the CDP connection
        self._browser = None

        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as e:
                Logger.debug(f"Playwright stop: {e}")
            self._playwright = None

        Logger.debug("Browser resources cleaned up")
