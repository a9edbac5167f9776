"""
Host DOM contract of the timeline page.

TimelinePage implements TimelineHost against a live Playwright page; the run
and overlay tests implement it in memory. Element handles are opaque to
everything outside the host.
"""

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Protocol

from download.CaptureSlot import PendingDownloadMeta
from utils.date_utils import ModalTimeInfo


@dataclass(frozen=True)
class ItemContext:
    """What a timeline row tells about its entry, enriched from the overlay header once open."""

    title: str = ""
    date_fragment: str = ""
    subtitle: str = ""
    year: Optional[int] = None
    modal_year: Optional[int] = None
    modal_hour: Optional[int] = None
    modal_minute: Optional[int] = None

    # Attribute names read by resolve_date_parts()
    @property
    def item_date(self) -> str:
        return self.date_fragment

    @property
    def item_year(self) -> Optional[int]:
        return self.year

    def with_modal(self, info: ModalTimeInfo) -> "ItemContext":
        """Return a copy with the overlay header's year/time applied where present."""
        return replace(
            self,
            modal_year=info.year if info.year is not None else self.modal_year,
            modal_hour=info.hour if info.hour is not None else self.modal_hour,
            modal_minute=info.minute if info.minute is not None else self.modal_minute,
        )

    def meta_for(self, doc: "DocumentAction") -> PendingDownloadMeta:
        """Capture record for clicking doc inside this item's overlay."""
        return PendingDownloadMeta(
            doc_title=doc.title,
            doc_index=doc.index,
            doc_total=doc.total,
            item_title=self.title,
            item_date=self.date_fragment,
            item_subtitle=self.subtitle,
            item_year=self.year,
            modal_year=self.modal_year,
            modal_hour=self.modal_hour,
            modal_minute=self.modal_minute,
            doc_date=doc.date_text,
        )


@dataclass(frozen=True)
class DocumentAction:
    """A document button inside the open overlay."""

    title: str
    index: int
    total: int
    date_text: Optional[str] = None


@dataclass(frozen=True)
class OverlayCandidate:
    """A visible element that may be the item's overlay."""

    handle: Any
    area: float
    has_close: bool

    @property
    def score(self) -> float:
        return self.area + (1e6 if self.has_close else 0)


class TimelineHost(Protocol):
    """Everything the run needs from the timeline page."""

    # ---- list ----

    def item_count(self) -> int:
        ...

    def item_context(self, index: int) -> Optional[ItemContext]:
        """Context of the index-th list item, or None if it is not loaded."""
        ...

    def load_more(self) -> int:
        """Scroll the list container to its end, wait, and return the new item count."""
        ...

    # ---- session and route ----

    def is_session_alive(self) -> bool:
        ...

    def desired_path(self) -> str:
        ...

    def ensure_active_tab(self, path: str) -> bool:
        """Bring the page back to path if it navigated away. Idempotent."""
        ...

    # ---- overlay ----

    def click_item(self, index: int) -> bool:
        ...

    def overlay_candidates(self) -> List[OverlayCandidate]:
        ...

    def is_overlay_visible(self, overlay: Any) -> bool:
        ...

    def backdrop(self) -> Optional[Any]:
        """The visible backdrop of the active overlay, if any."""
        ...

    def click_center(self, element: Any) -> bool:
        """Click whatever element is topmost at the center of element's box."""
        ...

    def close_button(self, overlay: Any) -> Optional[Any]:
        ...

    def click(self, element: Any) -> bool:
        ...

    def modal_header_text(self) -> str:
        ...

    # ---- documents ----

    def document_actions(self) -> List[DocumentAction]:
        ...

    def focus_document(self, index: int) -> bool:
        ...

    def click_document(self, index: int) -> bool:
        ...

    # ---- time ----

    def wait(self, ms: float) -> None:
        ...
