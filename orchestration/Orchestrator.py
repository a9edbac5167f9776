"""
Orchestrator for the timeline batch downloader.

Resolves the module from MODULES, initializes Storage and runs it. The
timeline modules wire the browser session, the timeline page, the download
interceptor and the managed downloader together and hand them to TimelineRun.
"""

import dataclasses
from functools import partial
from pathlib import Path
from typing import Any, Dict, Optional

from storage import Storage
from utils.Args import Args
from utils.Logger import Logger


def _noop_run() -> None:
    """No-op module: does nothing, used for tests and entrypoints that don't need a real module."""
    pass


def _text_arg(value: Any) -> str:
    return "" if value is None else str(value)


def _timeline_run(by_index: bool) -> Any:
    """Run the timeline downloader in the browser. Returns the RunResult (None if never logged in)."""
    from browser.BrowserSession import BrowserSession
    from download.DownloadInterceptor import DownloadInterceptor
    from download.ManagedDownloader import ManagedDownloader
    from download.PlaywrightNavigationHost import PlaywrightNavigationHost
    from naming.FilenameBuilder import build_download_name
    from orchestration.RunState import Severity
    from orchestration.StatusChannel import StatusChannel
    from orchestration.TimelineRun import TimelineRun
    from settings.RunSettings import RunSettings
    from timeline.TimelinePage import TimelinePage
    from utils.Errors import record_error

    settings = RunSettings.snapshot()
    if by_index:
        # Index bounds never come from the stored date bounds
        settings = dataclasses.replace(settings, start_text=_text_arg(Args.start), end_text=_text_arg(Args.end))
    else:
        settings.remember_last_used()

    session = BrowserSession()
    host: Optional[PlaywrightNavigationHost] = None
    try:
        page = session.ensure_page()
        timeline = TimelinePage(page, settings.timings)
        if not session.wait_for_login(timeline.is_session_alive):
            status = StatusChannel(settings.lang, settings.status_file)
            status.set("statusNotLoggedIn", Severity.FATAL)
            record_error(None, "Timeline not reached; log in and start again")
            return None

        host = PlaywrightNavigationHost(page)
        downloader = ManagedDownloader(
            settings.download_dir,
            cookie_source=host.cookies,
            headers_source=host.headers,
            timeout_s=settings.download_timeout_s,
        )
        interceptor = DownloadInterceptor(
            host,
            downloader,
            name_builder=lambda meta, url: build_download_name(meta, url, settings),
            capture_timeout_s=settings.capture_timeout_s,
            popup_grace_s=settings.popup_grace_s,
        )
        host.install(interceptor)
        run = TimelineRun(timeline, interceptor, settings, downloader=downloader)
        result = run.run(by_index=by_index)
        Logger.info(f"Saved {len(downloader.saved)} file(s) to {settings.download_dir}")
        if downloader.failed:
            Logger.warning(f"{len(downloader.failed)} managed save(s) failed: {', '.join(downloader.failed)}")
        return result
    finally:
        if host is not None:
            host.uninstall()
        session.close()


def _control_run() -> None:
    """Serve the control API (start/stop/status and settings) until interrupted."""
    from control.app import create_app

    app = create_app()
    Logger.info(f"Control API on http://{Args.control_host}:{Args.control_port}")
    app.run(host=Args.control_host, port=int(Args.control_port), threaded=True)


MODULES: Dict[str, Dict[str, Any]] = {
    "noop": {
        "run": _noop_run,
    },
    "timeline": {
        "run": partial(_timeline_run, by_index=False),
    },
    "timeline_index": {
        "run": partial(_timeline_run, by_index=True),
    },
    "control": {
        "run": _control_run,
    },
}


class Orchestrator:
    """Runs a single module (timeline, timeline_index, control, noop)."""

    @classmethod
    def run(cls, module: str) -> Any:
        """
        Run the named module.

        Args:
            module: Module name (e.g. "timeline").

        Returns:
            Whatever the module's run returns (a RunResult for timeline modules).

        Raises:
            ValueError: If module is not in MODULES.
        """
        if module not in MODULES:
            valid = ", ".join(sorted(MODULES.keys()))
            raise ValueError(f"Unknown module {module!r}. Valid: {valid}")
        db_path: Optional[Path] = Path(Args.db_path) if getattr(Args, "db_path", None) else None
        impl = getattr(Args, "storage_implementation", None) or "StorageSQLLite"
        Storage.initialize(impl, db_path=db_path)
        Logger.info(f"Orchestrator running module={module!r}")
        result = MODULES[module]["run"]()
        Logger.info(f"Orchestrator finished module={module!r}")
        return result
