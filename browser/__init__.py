"""
Browser session for the timeline: a persistent Chromium profile or an
existing Chrome attached over CDP.
"""

from browser.BrowserSession import BrowserSession

__all__ = ["BrowserSession"]
