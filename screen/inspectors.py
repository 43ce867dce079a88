"""
Point-in-time inspectors for running apps and open browser tabs.

Both inspectors fail safe: any query error is reported as a negative
result and never raised, because a missed detection only delays
enforcement by one pass.
"""

import logging
from typing import List, Optional

from core.targets import BrowserHost, PatternSet
from screen.automation import AutomationBridge, AutomationError

logger = logging.getLogger(__name__)


class ProcessInspector:
    """Answers "is application X running right now?"."""

    def __init__(self, bridge: AutomationBridge):
        self.bridge = bridge

    def is_running(self, name: str) -> bool:
        """
        Check whether a process matching `name` exists.

        Args:
            name: Process or display name, matched case-insensitively
                  as a substring.

        Returns:
            True if running, False if not running or the query failed.
        """
        if not name or not name.strip():
            return False
        try:
            return bool(self.bridge.is_running(name))
        except AutomationError as e:
            logger.debug(f"Process query for {name} failed: {e}")
            return False
        except Exception as e:
            logger.debug(f"Unexpected error querying process {name}: {e}")
            return False


class TabInspector:
    """Checks a browser's open tabs against the short-form pattern set."""

    def __init__(self, bridge: AutomationBridge, patterns: Optional[PatternSet] = None):
        self.bridge = bridge
        self.patterns = patterns or PatternSet()

    def offending_urls(self, browser: BrowserHost) -> List[str]:
        """
        Return the open tab URLs that match the pattern set.

        Returns:
            Matching URLs, or an empty list if the tabs could not be read.
        """
        try:
            urls = self.bridge.list_tabs(browser.application)
        except AutomationError as e:
            logger.debug(f"Could not list {browser.name} tabs: {e}")
            return []
        except Exception as e:
            logger.debug(f"Unexpected error listing {browser.name} tabs: {e}")
            return []

        return self.patterns.matching([url.strip() for url in urls if url and url.strip()])

    def has_offending_tab(self, browser: BrowserHost) -> bool:
        """True if any open tab of the browser shows short-form content."""
        matches = self.offending_urls(browser)
        if matches:
            logger.debug(f"{browser.name} short-form tabs: {matches}")
        return bool(matches)
