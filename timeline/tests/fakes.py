"""
In-memory timeline host for overlay and run tests.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from timeline.TimelineProtocol import DocumentAction, ItemContext, OverlayCandidate


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@dataclass
class FakeItem:
    title: str
    date_fragment: str = ""
    subtitle: str = ""
    year: Optional[int] = None
    docs: List[str] = field(default_factory=lambda: ["Abrechnung"])
    doc_dates: List[Optional[str]] = field(default_factory=list)
    header: str = ""
    has_overlay: bool = True
    closes_on_backdrop: bool = True
    closes_on_button: bool = True


class FakeTimeline:
    """
    TimelineHost backed by a list of FakeItem.

    loaded limits how many items are visible; load_more() reveals
    load_step more. lose_session_at makes the n-th session check (0-based)
    fail. on_document_click(item_index, doc_index, url) simulates the page
    reacting to a document click.
    """

    def __init__(
        self,
        items: List[FakeItem],
        clock: Optional[FakeClock] = None,
        loaded: Optional[int] = None,
        load_step: int = 0,
    ) -> None:
        self.items = items
        self.clock = clock or FakeClock()
        self.loaded = len(items) if loaded is None else loaded
        self.load_step = load_step
        self.path = "/profile/transactions"
        self.lose_session_at: Optional[int] = None
        self.on_document_click: Optional[Callable[[int, int, str], None]] = None
        self.on_wait: Optional[Callable[[float], None]] = None

        self.session_checks = 0
        self.opened: List[int] = []
        self.clicked_docs: List[tuple] = []
        self.tab_fixes = 0
        self.load_more_calls = 0
        self.backdrop_clicks = 0
        self.button_clicks = 0
        self._open_index: Optional[int] = None

    # ---- list ----

    def item_count(self) -> int:
        return self.loaded

    def item_context(self, index: int) -> Optional[ItemContext]:
        if index >= self.loaded:
            return None
        item = self.items[index]
        return ItemContext(title=item.title, date_fragment=item.date_fragment, subtitle=item.subtitle, year=item.year)

    def load_more(self) -> int:
        self.load_more_calls += 1
        self.loaded = min(len(self.items), self.loaded + self.load_step)
        self.wait(300)
        return self.loaded

    # ---- session and route ----

    def is_session_alive(self) -> bool:
        check = self.session_checks
        self.session_checks += 1
        return self.lose_session_at is None or check < self.lose_session_at

    def desired_path(self) -> str:
        return "/profile/activities" if "/activities" in self.path else "/profile/transactions"

    def ensure_active_tab(self, path: str) -> bool:
        if self.path != path:
            self.tab_fixes += 1
            self.path = path
        return True

    # ---- overlay ----

    def click_item(self, index: int) -> bool:
        if index >= self.loaded:
            return False
        self.opened.append(index)
        if self.items[index].has_overlay:
            self._open_index = index
        return True

    def _overlay_handle(self) -> Optional[str]:
        return None if self._open_index is None else f"overlay-{self._open_index}"

    def overlay_candidates(self) -> List[OverlayCandidate]:
        handle = self._overlay_handle()
        if handle is None:
            return []
        return [
            OverlayCandidate(handle="ghost", area=900_000, has_close=False),
            OverlayCandidate(handle=handle, area=400 * 900, has_close=True),
        ]

    def is_overlay_visible(self, overlay) -> bool:
        return overlay is not None and overlay == self._overlay_handle()

    def backdrop(self):
        return "backdrop" if self._open_index is not None else None

    def click_center(self, element) -> bool:
        self.backdrop_clicks += 1
        if self._open_index is not None and self.items[self._open_index].closes_on_backdrop:
            self._open_index = None
        return True

    def close_button(self, overlay):
        return "close-button" if self._open_index is not None else None

    def click(self, element) -> bool:
        if element == "close-button":
            self.button_clicks += 1
            if self._open_index is not None and self.items[self._open_index].closes_on_button:
                self._open_index = None
        return True

    def modal_header_text(self) -> str:
        return self.items[self._open_index].header if self._open_index is not None else ""

    # ---- documents ----

    def document_actions(self) -> List[DocumentAction]:
        if self._open_index is None:
            return []
        item = self.items[self._open_index]
        dates = item.doc_dates + [None] * (len(item.docs) - len(item.doc_dates))
        return [
            DocumentAction(title=title, index=i, total=len(item.docs), date_text=dates[i])
            for i, title in enumerate(item.docs)
        ]

    def focus_document(self, index: int) -> bool:
        return self._open_index is not None

    def click_document(self, index: int) -> bool:
        if self._open_index is None:
            return False
        self.clicked_docs.append((self._open_index, index))
        if self.on_document_click is not None:
            url = f"https://cdn.example/{self._open_index}/{index}.pdf"
            self.on_document_click(self._open_index, index, url)
        return True

    # ---- time ----

    def wait(self, ms: float) -> None:
        self.clock.advance_ms(ms)
        if self.on_wait is not None:
            self.on_wait(ms)
