"""
Capabilities the download interceptor needs from its environment.

The browser binding (PlaywrightNavigationHost) implements NavigationHost and
WindowHandle; ManagedDownloader implements Downloader. Tests supply fakes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol


class WindowHandle(Protocol):
    """A popup window/tab created by the page."""

    def close(self) -> None:
        ...


class NavigationHost(Protocol):
    """Un-intercepted navigation primitives of the host page."""

    def open_window(self, url: Optional[str]) -> Optional[WindowHandle]:
        """Open a window exactly as the page would have without interception."""
        ...

    def navigate(self, window: WindowHandle, url: str) -> None:
        """Send window to url exactly as the page would have without interception."""
        ...

    def set_capture_active(self, active: bool) -> None:
        """Tell the page-side hooks whether a capture slot is armed."""
        ...


class DownloadOutcome(Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class ManagedDownloadRequest:
    """A background save: no dialog, the file goes straight to suggested_name."""

    url: str
    suggested_name: str
    save_as_dialog: bool = False


class DownloadStartError(Exception):
    """The managed save could not even be started."""


class Downloader(Protocol):
    """Performs managed saves and reports their outcome later."""

    def download(
        self,
        request: ManagedDownloadRequest,
        on_timeout: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """
        Start a save in the background.

        Raises:
            DownloadStartError: If the save cannot be started.
        """
        ...

    def poll(self) -> int:
        """Run callbacks of finished saves on the caller's thread; return how many ran."""
        ...
