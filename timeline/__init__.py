"""
Timeline page access: selectors, the host DOM contract, its Playwright
implementation and the overlay lifecycle controller.
"""

from timeline.OverlayController import OverlayController, OverlayState, select_active_overlay
from timeline.TimelineProtocol import DocumentAction, ItemContext, OverlayCandidate, TimelineHost

__all__ = [
    "DocumentAction",
    "ItemContext",
    "OverlayCandidate",
    "OverlayController",
    "OverlayState",
    "TimelineHost",
    "select_active_overlay",
]
