"""
Unit tests for timeline.TimelinePage (Playwright page mocked).
"""

import unittest
from unittest.mock import MagicMock

from playwright.sync_api import Error as PlaywrightError

from settings.RunSettings import Timings
from timeline import TimelineSelectors as sel
from timeline.TimelinePage import PUSH_PATH_JS, TimelinePage
from utils.Logger import Logger


def _handle(visible: bool = True, box=None, has_close: bool = False) -> MagicMock:
    handle = MagicMock()
    handle.is_visible.return_value = visible
    handle.bounding_box.return_value = box
    handle.query_selector.return_value = MagicMock() if has_close else None
    return handle


class TestTimelinePage(unittest.TestCase):
    """Test reading and driving the timeline through a mocked page."""

    def setUp(self) -> None:
        Logger.initialize(log_level="WARNING", log_file=False)
        self.page = MagicMock()
        self.page.url = "https://app.example/profile/transactions"
        self.timeline = TimelinePage(self.page, Timings.fast())

    def test_item_context_splits_subtitle_and_heading_year(self) -> None:
        self.page.evaluate.return_value = {
            "title": "Apple",
            "subtitle": "15.03. - Kauf",
            "heading": "März 2023",
        }
        ctx = self.timeline.item_context(4)
        self.assertEqual(ctx.title, "Apple")
        self.assertEqual(ctx.date_fragment, "15.03")
        self.assertEqual(ctx.subtitle, "Kauf")
        self.assertEqual(ctx.year, 2023)
        self.assertEqual(self.page.evaluate.call_args.args[1][-1], 4)

    def test_item_context_missing_item(self) -> None:
        self.page.evaluate.return_value = None
        self.assertIsNone(self.timeline.item_context(99))

    def test_item_count_guarded(self) -> None:
        self.page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")
        self.assertEqual(self.timeline.item_count(), 0)

    def test_load_more_scrolls_waits_and_recounts(self) -> None:
        self.page.evaluate.side_effect = [None, 42]
        self.assertEqual(self.timeline.load_more(), 42)
        self.page.wait_for_timeout.assert_called_once_with(Timings.fast().auto_scroll_delay)

    def test_session_alive(self) -> None:
        self.page.query_selector.return_value = MagicMock()
        self.assertTrue(self.timeline.is_session_alive())

    def test_session_lost_on_route_change(self) -> None:
        self.page.url = "https://app.example/login"
        self.assertFalse(self.timeline.is_session_alive())

    def test_session_lost_without_timeline(self) -> None:
        self.page.query_selector.return_value = None
        self.assertFalse(self.timeline.is_session_alive())
        self.page.query_selector.assert_called_with(sel.TIMELINE_CONTAINER)

    def test_desired_path(self) -> None:
        self.assertEqual(self.timeline.desired_path(), "/profile/transactions")
        self.page.url = "https://app.example/profile/activities?x=1"
        self.assertEqual(self.timeline.desired_path(), "/profile/activities")

    def test_ensure_active_tab_noop_on_right_path(self) -> None:
        self.assertTrue(self.timeline.ensure_active_tab("/profile/transactions"))
        self.page.evaluate.assert_not_called()

    def test_ensure_active_tab_pushes_path_when_no_tab(self) -> None:
        self.page.url = "https://app.example/profile/settings"
        pushed = []

        def evaluate(script, arg=None):
            if script == PUSH_PATH_JS:
                pushed.append(arg)
                self.page.url = "https://app.example" + arg
                return None
            return False

        self.page.evaluate.side_effect = evaluate
        self.assertTrue(self.timeline.ensure_active_tab("/profile/transactions"))
        self.assertEqual(pushed, ["/profile/transactions"])

    def test_overlay_candidates_skip_hidden_and_boxless(self) -> None:
        panel = _handle(box={"x": 0, "y": 0, "width": 400, "height": 800}, has_close=True)
        hidden = _handle(visible=False)
        boxless = _handle(box=None)
        self.page.query_selector_all.return_value = [panel, hidden, boxless]
        candidates = self.timeline.overlay_candidates()
        self.assertEqual(len(candidates), 1)
        self.assertIs(candidates[0].handle, panel)
        self.assertEqual(candidates[0].area, 320000)
        self.assertTrue(candidates[0].has_close)

    def test_click_center_uses_mouse_at_box_center(self) -> None:
        backdrop = _handle(box={"x": 10, "y": 20, "width": 100, "height": 50})
        self.assertTrue(self.timeline.click_center(backdrop))
        self.page.mouse.click.assert_called_once_with(60, 45)

    def test_click_falls_back_to_dom_click(self) -> None:
        element = MagicMock()
        element.click.side_effect = PlaywrightError("element is covered")
        self.assertTrue(self.timeline.click(element))
        element.evaluate.assert_called_once()

    def test_document_actions_default_title(self) -> None:
        buttons = [_handle(), _handle(), _handle(visible=False)]
        self.page.query_selector_all.return_value = buttons
        self.page.evaluate.side_effect = [
            {"title": "Abrechnung", "date": "15.03.2024"},
            {"title": "", "date": ""},
        ]
        actions = self.timeline.document_actions()
        self.assertEqual([a.title for a in actions], ["Abrechnung", "Dokument 2"])
        self.assertEqual(actions[0].date_text, "15.03.2024")
        self.assertIsNone(actions[1].date_text)
        self.assertEqual({a.total for a in actions}, {2})

    def test_modal_header_text(self) -> None:
        header = MagicMock()
        header.text_content.return_value = "  25. Juni 2025 um 10:39 "
        self.page.query_selector.return_value = header
        self.assertEqual(self.timeline.modal_header_text(), "25. Juni 2025 um 10:39")


if __name__ == "__main__":
    unittest.main()
