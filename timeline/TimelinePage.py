"""
Playwright implementation of the timeline host contract.

Reads list rows, overlay candidates and document buttons from the live page,
keeps the route pinned to the transactions/activities tab and scrolls the
list container to load more rows. Every Playwright call is guarded: a missing
or detached element degrades the step (False/None/empty), it never raises.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from playwright.sync_api import Error as PlaywrightError, Page

from settings.RunSettings import Timings
from timeline import TimelineSelectors as sel
from timeline.TimelineProtocol import DocumentAction, ItemContext, OverlayCandidate
from utils.date_utils import extract_year_from_heading, split_subtitle
from utils.Logger import Logger

CLICK_TIMEOUT_MS = 2000

ITEM_COUNT_JS = "selector => document.querySelectorAll(selector).length"

ITEM_CONTEXT_JS = """
([listSel, titleSel, subtitleSel, headingSel, index]) => {
  const item = document.querySelectorAll(listSel)[index];
  if (!item) return null;
  let heading = '';
  for (const h of document.querySelectorAll(headingSel)) {
    const rel = h.compareDocumentPosition(item);
    if (rel & Node.DOCUMENT_POSITION_FOLLOWING) heading = h.textContent || '';
    else break;
  }
  const text = (s) => ((item.querySelector(s) || {}).textContent || '').trim();
  return { title: text(titleSel), subtitle: text(subtitleSel), heading };
}
"""

SCROLL_LIST_JS = """
listSel => {
  const first = document.querySelector(listSel);
  let target = document.scrollingElement || document.documentElement;
  let p = first ? first.parentElement : null;
  while (p && p !== document.body) {
    const s = getComputedStyle(p);
    if (/(auto|scroll|overlay)/.test(s.overflowY) && p.scrollHeight > p.clientHeight) { target = p; break; }
    p = p.parentElement;
  }
  target.scrollTop = target.scrollHeight;
}
"""

DOCUMENT_INFO_JS = """
([el, titleSel, dateSel]) => {
  const text = (s) => ((el.querySelector(s) || {}).textContent || '').trim();
  return { title: text(titleSel) || el.getAttribute('title') || '', date: text(dateSel) };
}
"""

CLICK_TAB_JS = """
([tabSel, path, labels]) => {
  const visible = (el) => { const r = el.getBoundingClientRect(); return r.width > 0 && r.height > 0; };
  const tab = Array.from(document.querySelectorAll(tabSel)).find(el => {
    const href = el.getAttribute('href') || '';
    const txt = (el.textContent || '').trim();
    return visible(el) && (href.endsWith(path) || labels.includes(txt));
  });
  if (!tab) return false;
  tab.click();
  return true;
}
"""

PUSH_PATH_JS = """
path => {
  history.pushState({}, '', path);
  window.dispatchEvent(new Event('popstate'));
}
"""

DOM_CLICK_JS = "el => { el.scrollIntoView({ block: 'center', inline: 'nearest' }); el.click(); }"


class TimelinePage:
    """TimelineHost over a logged-in Playwright page."""

    def __init__(self, page: Page, timings: Timings) -> None:
        self._page = page
        self._timings = timings

    # ---- list ----

    def item_count(self) -> int:
        try:
            return int(self._page.evaluate(ITEM_COUNT_JS, sel.LIST_ITEM))
        except PlaywrightError as e:
            Logger.warning(f"Could not count timeline items: {e}")
            return 0

    def item_context(self, index: int) -> Optional[ItemContext]:
        try:
            raw: Optional[Dict[str, str]] = self._page.evaluate(
                ITEM_CONTEXT_JS,
                [sel.LIST_ITEM, sel.ITEM_TITLE, sel.ITEM_SUBTITLE, sel.YEAR_HEADING, index],
            )
        except PlaywrightError as e:
            Logger.warning(f"Could not read timeline item {index}: {e}")
            return None
        if raw is None:
            return None
        date_fragment, subtitle = split_subtitle(raw.get("subtitle"))
        return ItemContext(
            title=raw.get("title") or "",
            date_fragment=date_fragment,
            subtitle=subtitle,
            year=extract_year_from_heading(raw.get("heading")),
        )

    def load_more(self) -> int:
        try:
            self._page.evaluate(SCROLL_LIST_JS, sel.LIST_ITEM)
        except PlaywrightError as e:
            Logger.warning(f"Scrolling the timeline failed: {e}")
        self.wait(self._timings.auto_scroll_delay)
        return self.item_count()

    # ---- session and route ----

    def _path(self) -> str:
        return urlsplit(self._page.url).path

    def is_session_alive(self) -> bool:
        path = self._path()
        if not sel.SESSION_PATH_RE.search(path):
            Logger.info(f"Session check: route changed to {path}")
            return False
        try:
            if self._page.query_selector(sel.TIMELINE_CONTAINER) is None:
                Logger.info("Session check: timeline element no longer in the DOM")
                return False
        except PlaywrightError as e:
            Logger.info(f"Session check failed: {e}")
            return False
        return True

    def desired_path(self) -> str:
        return sel.ACTIVITIES_PATH if "/activities" in self._path() else sel.TRANSACTIONS_PATH

    def ensure_active_tab(self, path: str) -> bool:
        if self._path() == path:
            return True
        Logger.info(f"Tab lock: returning to {path}")
        labels = list(sel.TAB_LABELS.get(path, ()))
        try:
            if self._page.evaluate(CLICK_TAB_JS, [sel.TAB_CANDIDATES, path, labels]):
                self.wait(self._timings.tab_fix_timeout)
                if self._path() == path:
                    return True
            self._page.evaluate(PUSH_PATH_JS, path)
        except PlaywrightError as e:
            Logger.warning(f"Tab lock: could not restore {path}: {e}")
        self.wait(self._timings.tab_fix_timeout)
        return self._path() == path

    # ---- overlay ----

    def click_item(self, index: int) -> bool:
        try:
            items = self._page.query_selector_all(sel.LIST_ITEM)
        except PlaywrightError as e:
            Logger.warning(f"Could not list timeline items: {e}")
            return False
        if index >= len(items):
            return False
        return self.click(items[index])

    def overlay_candidates(self) -> List[OverlayCandidate]:
        candidates: List[OverlayCandidate] = []
        try:
            handles = self._page.query_selector_all(sel.OVERLAY_CANDIDATES)
        except PlaywrightError:
            return candidates
        for handle in handles:
            try:
                if not handle.is_visible():
                    continue
                box = handle.bounding_box()
                if not box:
                    continue
                has_close = handle.query_selector(sel.OVERLAY_CLOSE) is not None
            except PlaywrightError:
                continue
            candidates.append(OverlayCandidate(handle=handle, area=box["width"] * box["height"], has_close=has_close))
        return candidates

    def is_overlay_visible(self, overlay: Any) -> bool:
        try:
            return bool(overlay.is_visible())
        except PlaywrightError:
            return False

    def backdrop(self) -> Optional[Any]:
        try:
            for handle in self._page.query_selector_all(sel.OVERLAY_BACKDROP):
                if handle.is_visible():
                    return handle
        except PlaywrightError as e:
            Logger.debug(f"Backdrop lookup failed: {e}")
        return None

    def click_center(self, element: Any) -> bool:
        """Mouse click at the center of element's box; the topmost element there receives it."""
        try:
            box = element.bounding_box()
            if not box:
                return False
            self._page.mouse.click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
            return True
        except PlaywrightError as e:
            Logger.debug(f"Center click failed: {e}")
            return False

    def close_button(self, overlay: Any) -> Optional[Any]:
        try:
            return overlay.query_selector(sel.OVERLAY_CLOSE) or self._page.query_selector(sel.OVERLAY_CLOSE)
        except PlaywrightError:
            return None

    def click(self, element: Any) -> bool:
        """Real mouse click; falls back to a DOM click when the element is covered or moving."""
        try:
            element.scroll_into_view_if_needed(timeout=CLICK_TIMEOUT_MS)
            element.click(timeout=CLICK_TIMEOUT_MS)
            return True
        except PlaywrightError as e:
            Logger.debug(f"Pointer click failed ({e}); using DOM click")
        try:
            element.evaluate(DOM_CLICK_JS)
            return True
        except PlaywrightError as e:
            Logger.debug(f"DOM click failed: {e}")
            return False

    def modal_header_text(self) -> str:
        try:
            header = self._page.query_selector(sel.MODAL_HEADER)
            return (header.text_content() or "").strip() if header else ""
        except PlaywrightError:
            return ""

    # ---- documents ----

    def _document_buttons(self) -> List[Any]:
        try:
            return [h for h in self._page.query_selector_all(sel.DOCUMENT_BUTTON) if h.is_visible()]
        except PlaywrightError as e:
            Logger.warning(f"Could not list document buttons: {e}")
            return []

    def document_actions(self) -> List[DocumentAction]:
        buttons = self._document_buttons()
        actions: List[DocumentAction] = []
        for i, button in enumerate(buttons):
            try:
                info = self._page.evaluate(DOCUMENT_INFO_JS, [button, sel.DOCUMENT_TITLE, sel.DOCUMENT_DATE])
            except PlaywrightError:
                info = {}
            actions.append(DocumentAction(
                title=(info or {}).get("title") or f"Dokument {i + 1}",
                index=i,
                total=len(buttons),
                date_text=(info or {}).get("date") or None,
            ))
        return actions

    def focus_document(self, index: int) -> bool:
        buttons = self._document_buttons()
        if index >= len(buttons):
            return False
        try:
            buttons[index].scroll_into_view_if_needed(timeout=CLICK_TIMEOUT_MS)
            buttons[index].focus()
            return True
        except PlaywrightError as e:
            Logger.debug(f"Focusing document {index} failed: {e}")
            return False

    def click_document(self, index: int) -> bool:
        buttons = self._document_buttons()
        if index >= len(buttons):
            return False
        return self.click(buttons[index])

    # ---- time ----

    def wait(self, ms: float) -> None:
        self._page.wait_for_timeout(ms)
