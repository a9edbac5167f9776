"""
CSS selectors and route patterns of the broker timeline.

Only this module knows the site's markup; everything else goes through
TimelinePage.
"""

import re

LIST_ITEM = ".clickable.timelineEventAction:not(.detailDocuments__action)"
ITEM_TITLE = ".timelineV2Event__title"
ITEM_SUBTITLE = ".timelineV2Event__subtitle"
YEAR_HEADING = "h2.timelineMonthDivider"
TIMELINE_CONTAINER = ".timeline, .timeline__entries, ol.timeline__entries"

OVERLAY_CANDIDATES = '.sideModal, [class*="sideModal"], [role="dialog"], .modal, [class*="Modal"]'
OVERLAY_CLOSE = (
    'button.closeButton.sideModal__close, .closeButton.sideModal__close, '
    '.sideModal__close, [aria-label="Close"], [aria-label="Schließen"]'
)
OVERLAY_BACKDROP = '.sideModal__backdrop, .barrier.-sideModal, [class*="backdrop"]'
MODAL_HEADER = ".detailHeader__subheading.-time, p.detailHeader__subheading"

DOCUMENT_BUTTON = ".clickable.timelineEventAction.detailDocuments__action"
DOCUMENT_TITLE = ".detailDocuments__documentTitle"
DOCUMENT_DATE = ".detailDocuments__documentDate"

TAB_CANDIDATES = 'a[href], button, [role="tab"], [data-qa*="tab"]'
TRANSACTIONS_PATH = "/profile/transactions"
ACTIVITIES_PATH = "/profile/activities"
TAB_LABELS = {
    TRANSACTIONS_PATH: ("Transaktionen", "Transactions"),
    ACTIVITIES_PATH: ("Aktivität", "Activity"),
}

SESSION_PATH_RE = re.compile(r"/profile/(transactions|activities)")
