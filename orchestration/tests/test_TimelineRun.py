"""
Run-level tests for orchestration.TimelineRun against an in-memory timeline.
"""

import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path
from typing import List, Optional

from download.DownloadInterceptor import DownloadInterceptor
from naming.FilenameBuilder import build_download_name
from orchestration.RunState import RunStatus, Severity
from orchestration.TimelineRun import TimelineRun
from settings.RunSettings import RunSettings, Timings
from timeline.tests.fakes import FakeClock, FakeItem, FakeTimeline
from utils.Logger import Logger


class FakeNavHost:
    def __init__(self) -> None:
        self.opened: List[Optional[str]] = []

    def open_window(self, url: Optional[str]):
        self.opened.append(url)
        return None

    def navigate(self, window, url: str) -> None:
        pass

    def set_capture_active(self, active: bool) -> None:
        pass


class RecordingDownloader:
    def __init__(self) -> None:
        self.requests = []
        self.idle_waits = 0

    def download(self, request, on_timeout, on_error) -> None:
        self.requests.append(request)

    def poll(self) -> int:
        return 0

    def wait_idle(self) -> None:
        self.idle_waits += 1


def _dated_items(n: int) -> List[FakeItem]:
    return [FakeItem(title="Apple", date_fragment=f"{i + 1:02d}.01.2024", subtitle="Kauf") for i in range(n)]


class TestTimelineRun(unittest.TestCase):
    """Test date filtering, terminal statuses and capture wiring of a run."""

    def setUp(self) -> None:
        Logger.initialize(log_level="WARNING", log_file=False)
        self.temp_dir = Path(tempfile.mkdtemp())
        self.clock = FakeClock()
        self.host = FakeNavHost()
        self.downloader = RecordingDownloader()

    def tearDown(self) -> None:
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _run(self, timeline: FakeTimeline, start: str = "", end: str = "", **overrides) -> TimelineRun:
        settings = RunSettings(start_text=start, end_text=end, timings=Timings.fast(), lang="en", **overrides)
        interceptor = DownloadInterceptor(
            self.host,
            self.downloader,
            name_builder=lambda meta, url: build_download_name(meta, url, settings),
            clock=self.clock,
        )
        timeline.on_document_click = lambda i, d, url: interceptor.open_window(url)
        return TimelineRun(
            timeline,
            interceptor,
            settings,
            downloader=self.downloader,
            clock=self.clock,
            today=date(2025, 6, 15),
        )

    def test_only_items_in_range_are_opened(self) -> None:
        timeline = FakeTimeline(_dated_items(5), self.clock)
        run = self._run(timeline, "02.01.2024", "04.01.2024")
        result = run.run()
        self.assertEqual(result.status, RunStatus.COMPLETED)
        self.assertEqual(timeline.opened, [1, 2, 3])
        self.assertEqual(result.processed, [1, 2, 3])
        self.assertEqual(result.documents, 3)
        self.assertEqual(run.status.key, "statusRunDone")
        self.assertEqual(run.status.severity, Severity.SUCCESS)
        self.assertFalse(run.state.running)

    def test_captured_downloads_are_named_from_the_item(self) -> None:
        timeline = FakeTimeline(_dated_items(2), self.clock)
        self._run(timeline).run()
        names = [r.suggested_name for r in self.downloader.requests]
        self.assertEqual(names, ["2024-01-01_Apple_Kauf_Abrechnung.pdf", "2024-01-02_Apple_Kauf_Abrechnung.pdf"])
        self.assertEqual(self.host.opened, [])
        self.assertEqual(self.downloader.idle_waits, 1)

    def test_reversed_bounds_give_same_selection(self) -> None:
        timeline = FakeTimeline(_dated_items(5), self.clock)
        self._run(timeline, "04.01.2024", "02.01.2024").run()
        self.assertEqual(timeline.opened, [1, 2, 3])

    def test_session_lost_stops_before_next_item(self) -> None:
        timeline = FakeTimeline(_dated_items(10), self.clock)
        timeline.lose_session_at = 3
        run = self._run(timeline)
        result = run.run()
        self.assertEqual(result.status, RunStatus.SESSION_LOST)
        self.assertEqual(result.index, 3)
        self.assertEqual(timeline.opened, [0, 1, 2])
        self.assertEqual(run.status.severity, Severity.FATAL)
        self.assertIn("3/9", run.status.message)
        self.assertIsNone(run._interceptor.pending)

    def test_stop_request_takes_effect_at_next_item(self) -> None:
        timeline = FakeTimeline(_dated_items(5), self.clock)
        run = self._run(timeline)
        inner = timeline.on_document_click

        def click(i: int, d: int, url: str) -> None:
            inner(i, d, url)
            if i == 1:
                run.request_stop()

        timeline.on_document_click = click
        result = run.run()
        self.assertEqual(result.status, RunStatus.ABORTED)
        self.assertEqual(timeline.opened, [0, 1])
        self.assertEqual(run.status.key, "statusAborted")

    def test_stop_file_aborts_before_first_item(self) -> None:
        stop_file = self.temp_dir / "stop"
        stop_file.touch()
        timeline = FakeTimeline(_dated_items(3), self.clock)
        result = self._run(timeline, stop_file=stop_file).run()
        self.assertEqual(result.status, RunStatus.ABORTED)
        self.assertEqual(timeline.opened, [])

    def test_no_matches(self) -> None:
        timeline = FakeTimeline(_dated_items(3), self.clock)
        run = self._run(timeline, "01.01.2030", "heute")
        result = run.run()
        self.assertEqual(result.status, RunStatus.NO_MATCHES)
        self.assertEqual(timeline.opened, [])
        self.assertEqual(run.status.severity, Severity.WARN)

    def test_invalid_date_touches_nothing(self) -> None:
        timeline = FakeTimeline(_dated_items(3), self.clock)
        timeline.path = "/profile/activities/x"
        run = self._run(timeline, "bogus", "")
        result = run.run()
        self.assertEqual(result.status, RunStatus.INVALID_DATE)
        self.assertEqual(result.context, {"label": "From (date)", "value": "bogus"})
        self.assertIn("bogus", run.status.message)
        self.assertEqual(timeline.session_checks, 0)
        self.assertEqual(timeline.load_more_calls, 0)
        self.assertEqual(timeline.opened, [])

    def test_out_of_calendar_year_is_an_invalid_date(self) -> None:
        timeline = FakeTimeline(_dated_items(3), self.clock)
        run = self._run(timeline, "0000-05-01", "")
        result = run.run()
        self.assertEqual(result.status, RunStatus.INVALID_DATE)
        self.assertEqual(result.context["value"], "0000-05-01")
        self.assertEqual(timeline.opened, [])

    def test_no_entries(self) -> None:
        timeline = FakeTimeline([], self.clock)
        result = self._run(timeline).run()
        self.assertEqual(result.status, RunStatus.NO_ENTRIES)

    def test_unparseable_item_date_is_processed(self) -> None:
        items = _dated_items(2) + [FakeItem(title="Zins", date_fragment="Gestern")]
        timeline = FakeTimeline(items, self.clock)
        self._run(timeline, "02.01.2024", "31.12.2024").run()
        self.assertEqual(timeline.opened, [1, 2])

    def test_item_without_overlay_is_skipped(self) -> None:
        items = _dated_items(3)
        items[1].has_overlay = False
        timeline = FakeTimeline(items, self.clock)
        result = self._run(timeline).run()
        self.assertEqual(result.status, RunStatus.COMPLETED)
        self.assertEqual(timeline.opened, [0, 1, 2])
        self.assertEqual(result.processed, [0, 2])

    def test_preload_loads_until_no_growth(self) -> None:
        timeline = FakeTimeline(_dated_items(6), self.clock, loaded=2, load_step=2)
        result = self._run(timeline).run()
        self.assertEqual(timeline.load_more_calls, 3)
        self.assertEqual(result.processed, list(range(6)))

    def test_preload_disabled(self) -> None:
        timeline = FakeTimeline(_dated_items(6), self.clock, loaded=2, load_step=2)
        result = self._run(timeline, auto_load_more=False).run()
        self.assertEqual(timeline.load_more_calls, 0)
        self.assertEqual(result.processed, [0, 1])

    def test_modal_header_year_and_time_reach_the_name(self) -> None:
        items = [FakeItem(title="Apple", date_fragment="15.03.", subtitle="Kauf", year=2023,
                          header="15. März 2024 um 10:39")]
        timeline = FakeTimeline(items, self.clock)
        self._run(timeline).run()
        self.assertEqual(self.downloader.requests[0].suggested_name, "2024-03-15_1039_Apple_Kauf_Abrechnung.pdf")

    def test_index_mode(self) -> None:
        timeline = FakeTimeline(_dated_items(5), self.clock)
        result = self._run(timeline, "1", "2").run(by_index=True)
        self.assertEqual(result.status, RunStatus.COMPLETED)
        self.assertEqual(timeline.opened, [1, 2])

    def test_index_mode_invalid_range(self) -> None:
        timeline = FakeTimeline(_dated_items(5), self.clock)
        run = self._run(timeline, "3", "1")
        result = run.run(by_index=True)
        self.assertEqual(result.status, RunStatus.INVALID_RANGE)
        self.assertEqual(run.status.message, "Invalid range (3 > 1).")
        self.assertEqual(timeline.opened, [])


if __name__ == "__main__":
    unittest.main()
