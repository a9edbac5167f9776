"""
Run orchestrator: walks the timeline and downloads every document in range.

One item at a time: session check, tab lock, date filter, open overlay,
enrich the item context from the overlay header, click each document with
the capture slot armed, close the overlay, pace. A stop request is honored
at the top of the next item. Every wait goes through wait(), which slices
the delay and ticks the download interceptor so capture expiry, popup grace
and finished-save callbacks run on the browser thread.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from download.DownloadInterceptor import DownloadInterceptor
from orchestration.RunRange import RunRange, resolve_index_range, resolve_run_range
from orchestration.RunState import RunState, RunStatus, Severity
from orchestration.StatusChannel import StatusChannel
from settings.RunSettings import RunSettings
from timeline.OverlayController import OverlayController
from timeline.TimelineProtocol import ItemContext, TimelineHost
from utils.date_utils import extract_modal_time_info, resolve_date_parts
from utils.Errors import (
    InvalidDateInputError,
    InvalidIndexRangeError,
    SessionLostError,
    record_error,
    record_warning,
)
from utils.Logger import Logger

TICK_MS = 100

_TERMINAL_SEVERITY = {
    RunStatus.COMPLETED: Severity.SUCCESS,
    RunStatus.ABORTED: Severity.SUCCESS,
    RunStatus.NO_MATCHES: Severity.WARN,
    RunStatus.NO_ENTRIES: Severity.ERROR,
    RunStatus.INVALID_DATE: Severity.ERROR,
    RunStatus.INVALID_RANGE: Severity.ERROR,
    RunStatus.SESSION_LOST: Severity.FATAL,
}


@dataclass
class RunResult:
    """Terminal status of a run plus what it did."""

    status: RunStatus
    processed: List[int] = field(default_factory=list)
    documents: int = 0
    index: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)


class TimelineRun:
    """
    One run over the timeline.

    downloader, when given, is waited on at run end so in-flight saves can
    finish (and their fallbacks run) before the interceptor is reset.
    """

    def __init__(
        self,
        timeline: TimelineHost,
        interceptor: DownloadInterceptor,
        settings: RunSettings,
        status: Optional[StatusChannel] = None,
        state: Optional[RunState] = None,
        downloader: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
        today: Optional[date] = None,
    ) -> None:
        self._timeline = timeline
        self._interceptor = interceptor
        self._settings = settings
        self._timings = settings.timings
        self.state = state or RunState()
        self.status = status or StatusChannel(settings.lang, settings.status_file, self.state)
        self._downloader = downloader
        self._today = today
        self._end_index = 0
        self._documents = 0
        self._processed: List[int] = []
        self.overlay = OverlayController(timeline, self._timings, wait=self.wait, clock=clock)

    # ---- control ----

    def request_stop(self) -> None:
        """Cooperative stop: takes effect before the next item."""
        self.state.request_stop()
        self.status.set("statusStopRequested", Severity.WARN)

    def stop_requested(self) -> bool:
        stop_file = self._settings.stop_file
        if not self.state.stop_requested and stop_file is not None and stop_file.exists():
            Logger.info(f"Stop file found: {stop_file}")
            self.request_stop()
        return self.state.stop_requested

    def wait(self, ms: float) -> None:
        """Wait ms on the page, ticking the interceptor at least every TICK_MS."""
        remaining = float(ms)
        while remaining > 0:
            step = min(TICK_MS, remaining)
            self._timeline.wait(step)
            self._interceptor.tick()
            remaining -= step
        self._interceptor.tick()

    # ---- run ----

    def run(self, by_index: bool = False) -> RunResult:
        """
        Execute the run and report its terminal status.

        Args:
            by_index: Walk an index range (start/end are item indices)
                instead of filtering by date.
        """
        self.state.start()
        self._documents = 0
        self._processed = []
        self.status.set("statusSearch")
        try:
            result = self._run_by_index() if by_index else self._run_by_date()
        except InvalidDateInputError as e:
            result = RunResult(
                RunStatus.INVALID_DATE,
                context={"label": self.status.field_label(e.label), "value": e.value},
            )
        except InvalidIndexRangeError as e:
            result = RunResult(RunStatus.INVALID_RANGE, context={"start": e.start, "end": e.end})
        except SessionLostError as e:
            Logger.error(str(e))
            result = RunResult(RunStatus.SESSION_LOST, index=e.index, context={"i": e.index, "end": self._end_index})
        finally:
            self._teardown()
        result.processed = list(self._processed)
        result.documents = self._documents
        self.status.set(result.status.value, _TERMINAL_SEVERITY[result.status], **result.context)
        Logger.info(
            f"Run ended: {result.status.name} ({len(result.processed)} item(s) opened, "
            f"{result.documents} document click(s), {self._interceptor.stats['captured']} captured)"
        )
        return result

    def _run_by_date(self) -> RunResult:
        run_range = resolve_run_range(self._settings.start_text, self._settings.end_text, self._today)
        desired_path = self._timeline.desired_path()
        Logger.info(f"Pinning tab to {desired_path}")
        self._lock_tab(desired_path)
        self.status.set("statusFilter", **{
            "from": self.status.bound_label(run_range.lower, lower=True),
            "to": self.status.bound_label(run_range.upper, lower=False),
        })

        count = self._preload(run_range)
        Logger.info(f"List entries: {count}")
        if count == 0:
            return RunResult(RunStatus.NO_ENTRIES)
        self.status.set("statusSearch")
        self._end_index = count - 1

        matched = 0
        for i in range(count):
            if self.stop_requested():
                return RunResult(RunStatus.ABORTED)
            ctx = self._enter_item(i, desired_path)
            if ctx is None:
                continue
            parts = resolve_date_parts(ctx)
            if parts is not None and not run_range.contains(parts.to_date()):
                Logger.debug(f"Item {i} ({parts.to_date()}) outside range")
                continue
            matched += 1
            self._process_item(i, ctx, desired_path)

        if matched == 0:
            return RunResult(RunStatus.NO_MATCHES)
        return RunResult(RunStatus.COMPLETED)

    def _run_by_index(self) -> RunResult:
        desired_path = self._timeline.desired_path()
        self._lock_tab(desired_path)
        count = self._timeline.item_count()
        if self._settings.auto_load_more:
            self.status.set("statusLoadMore", Severity.WARN)
            count = self._timeline.load_more()
        Logger.info(f"List entries: {count}")
        if count == 0:
            return RunResult(RunStatus.NO_ENTRIES)
        index_range = resolve_index_range(self._settings.start_text, self._settings.end_text, count)
        self._end_index = index_range.end
        Logger.info(f"Index range: {index_range.start}..{index_range.end}")

        for i in index_range:
            if self.stop_requested():
                return RunResult(RunStatus.ABORTED)
            if i >= self._timeline.item_count() and self._settings.auto_load_more:
                self._timeline.load_more()
            ctx = self._enter_item(i, desired_path)
            if ctx is None:
                continue
            self._process_item(i, ctx, desired_path)
        return RunResult(RunStatus.COMPLETED)

    # ---- steps ----

    def _lock_tab(self, desired_path: str) -> None:
        if self._settings.lock_tab and not self._timeline.ensure_active_tab(desired_path):
            record_warning(self.state.current_index, f"Could not return to {desired_path}")

    def _preload(self, run_range: RunRange) -> int:
        """Load more list entries until no growth, the lower bound is reached, or the ceiling."""
        count = self._timeline.item_count()
        if not self._settings.auto_load_more:
            return count
        self.status.set("statusLoadMore", Severity.WARN)
        for rounds in range(1, self._settings.max_load_more + 1):
            before = count
            count = self._timeline.load_more()
            self._interceptor.tick()
            if run_range.lower is not None:
                last = self._item_date(count - 1)
                if last is not None and last <= run_range.lower:
                    Logger.info(f"Preload stop: last item {last} reached the lower bound")
                    return count
            if count <= before:
                Logger.info(f"Preload done after {rounds} round(s): {count} entries")
                return count
        Logger.warning(f"Preload stopped after {self._settings.max_load_more} rounds")
        return count

    def _item_date(self, index: int) -> Optional[date]:
        if index < 0:
            return None
        ctx = self._timeline.item_context(index)
        parts = resolve_date_parts(ctx) if ctx is not None else None
        return parts.to_date() if parts is not None else None

    def _enter_item(self, index: int, desired_path: str) -> Optional[ItemContext]:
        """Session check and tab lock for item index; returns its context or None if not loaded."""
        self.state.current_index = index
        Logger.set_current_item(index)
        if not self._timeline.is_session_alive():
            raise SessionLostError(index, "authenticated timeline no longer present")
        self._lock_tab(desired_path)
        ctx = self._timeline.item_context(index)
        if ctx is None:
            Logger.info(f"({index}/{self._end_index}) item not loaded, skipping")
        return ctx

    def _process_item(self, index: int, ctx: ItemContext, desired_path: str) -> int:
        progress = {"i": index, "end": self._end_index}
        self.status.set("statusOpenItem", **progress)
        if self.overlay.open(index) is None:
            self.status.set("statusNoOverlay", Severity.WARN, **progress)
            record_error(index, "No overlay appeared; item skipped")
            return 0
        self._processed.append(index)

        ctx = ctx.with_modal(extract_modal_time_info(self._timeline.modal_header_text()))
        Logger.debug(f"Item context: {ctx}")

        self.status.set("statusOpenDocs", **progress)
        count = self._click_documents(index, ctx)
        if count == 0:
            Logger.info("No documents in this entry")

        self.status.set("statusCloseOverlay", **progress)
        self.overlay.close(index)
        self._lock_tab(desired_path)

        self.wait(self._timings.after_each_item_pace)
        self.status.set("statusDoneItem", count=count, **progress)
        self.wait(self._timings.wait_after_close_overlay)
        return count

    def _click_documents(self, index: int, ctx: ItemContext) -> int:
        docs = self._timeline.document_actions()
        Logger.info(f"Documents found: {len(docs)}")
        clicked = 0
        for doc in docs:
            self._interceptor.arm(ctx.meta_for(doc))
            self._timeline.focus_document(doc.index)
            self.wait(self._timings.focus_delay)
            if not self._timeline.click_document(doc.index):
                record_warning(index, f"Could not click document {doc.index + 1}/{doc.total} '{doc.title}'")
                self._interceptor.slot.clear()
                continue
            Logger.debug(f"Doc {doc.index + 1}/{doc.total} clicked")
            clicked += 1
            self._documents += 1
            self.wait(self._timings.wait_between_doc_clicks)
        return clicked

    def _teardown(self) -> None:
        self.state.finish()
        if self._downloader is not None:
            self._downloader.wait_idle()
        self._interceptor.reset()
        Logger.clear_current_item()
