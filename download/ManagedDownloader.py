"""
Background saves for captured document URLs.

Each save streams the URL with the browser's cookies in a daemon thread.
Outcomes are queued and their callbacks run on the browser thread when
poll() is called, so timeout/error fallbacks can touch the page safely.
"""

import queue
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import requests

from download.NavigationProtocol import DownloadOutcome, DownloadStartError, ManagedDownloadRequest
from utils.download_with_progress import download_via_url
from utils.file_utils import unique_destination
from utils.Logger import Logger

_Result = Tuple[DownloadOutcome, str, Optional[Callable[[], None]], Optional[Callable[[str], None]]]


class ManagedDownloader:
    """
    Fire-and-forget file saves into download_dir.

    cookie_source is called on the browser thread when a save starts (e.g.
    BrowserContext.cookies); headers_source likewise (User-Agent, Referer).
    """

    def __init__(
        self,
        download_dir: Path,
        cookie_source: Callable[[], Any],
        headers_source: Optional[Callable[[], Dict[str, str]]] = None,
        timeout_s: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._download_dir = Path(download_dir)
        self._cookie_source = cookie_source
        self._headers_source = headers_source
        self._timeout_s = timeout_s
        self._session = session
        self._results: "queue.Queue[_Result]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._reserved: Set[Path] = set()
        self._lock = threading.Lock()
        self.saved: List[Path] = []
        self.failed: List[str] = []

    def download(
        self,
        request: ManagedDownloadRequest,
        on_timeout: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """
        Start saving request.url as request.suggested_name.

        Raises:
            DownloadStartError: Destination or cookies unavailable.
        """
        if request.save_as_dialog:
            raise DownloadStartError("save dialogs are not supported")
        try:
            destination = self._reserve(request.suggested_name)
        except OSError as e:
            raise DownloadStartError(f"cannot use download folder {self._download_dir}: {e}") from e
        try:
            cookies = self._cookie_source()
            headers = self._headers_source() if self._headers_source else None
        except Exception as e:  # browser-side errors surface with driver-specific types
            self._release(destination)
            raise DownloadStartError(f"cannot read browser cookies: {e}") from e

        thread = threading.Thread(
            target=self._worker,
            args=(request.url, destination, cookies, headers, on_timeout, on_error),
            name=f"save-{destination.name}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        Logger.debug(f"Managed save started: {destination}")
        thread.start()

    def poll(self) -> int:
        """Run callbacks of finished saves on the calling thread."""
        count = 0
        while True:
            try:
                outcome, detail, on_timeout, on_error = self._results.get_nowait()
            except queue.Empty:
                return count
            count += 1
            if outcome is DownloadOutcome.TIMEOUT and on_timeout is not None:
                on_timeout()
            elif outcome is DownloadOutcome.ERROR and on_error is not None:
                on_error(detail)

    def wait_idle(self, timeout_s: Optional[float] = None) -> bool:
        """
        Wait for running saves, then run their callbacks.

        Returns:
            True if no save is still running.
        """
        timeout_s = self._timeout_s if timeout_s is None else timeout_s
        deadline = time.monotonic() + timeout_s
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))
        self.poll()
        still_running = [t for t in threads if t.is_alive()]
        if still_running:
            Logger.warning(f"{len(still_running)} download(s) still running")
        return not still_running

    def _reserve(self, name: str) -> Path:
        with self._lock:
            destination = unique_destination(self._download_dir, name)
            stem, suffix = Path(name).stem, Path(name).suffix
            counter = 1
            while destination in self._reserved or destination.exists():
                destination = self._download_dir / f"{stem}_{counter}{suffix}"
                counter += 1
            self._reserved.add(destination)
            return destination

    def _release(self, destination: Path) -> None:
        with self._lock:
            self._reserved.discard(destination)

    def _worker(
        self,
        url: str,
        destination: Path,
        cookies: Any,
        headers: Optional[Dict[str, str]],
        on_timeout: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        try:
            _, ok = download_via_url(
                url, destination, cookies=cookies, headers=headers,
                timeout_sec=self._timeout_s, session=self._session,
            )
            if ok:
                self.saved.append(destination)
                self._results.put((DownloadOutcome.SUCCESS, str(destination), None, None))
            else:
                self.failed.append(destination.name)
                self._results.put((DownloadOutcome.ERROR, "transfer failed", on_timeout, on_error))
        except requests.Timeout:
            self.failed.append(destination.name)
            Logger.warning(f"Download of {destination.name} timed out")
            self._results.put((DownloadOutcome.TIMEOUT, "timeout", on_timeout, on_error))
        except requests.RequestException as e:
            self.failed.append(destination.name)
            Logger.error(f"Download of {destination.name} failed: {e}")
            self._results.put((DownloadOutcome.ERROR, str(e), on_timeout, on_error))
        except Exception as e:  # disk errors and driver bugs
            self.failed.append(destination.name)
            Logger.error(f"Download of {destination.name} crashed: {e}")
            destination.unlink(missing_ok=True)
            self._results.put((DownloadOutcome.ERROR, str(e), on_timeout, on_error))
        finally:
            self._release(destination)
