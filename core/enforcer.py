"""
Enforcement of detected short-form usage.

Browsers only lose the matching tabs; native short-form apps are quit.
Enforcement is best effort: the app may quit on its own between
detection and enforcement, so failures are logged and reported, never
raised.
"""

import logging

from core.targets import BrowserHost, NativeApp, PatternSet, Target
from screen.automation import AutomationBridge, AutomationError

logger = logging.getLogger(__name__)


class Enforcer:
    """Closes short-form tabs and quits short-form apps."""

    def __init__(self, bridge: AutomationBridge, patterns: PatternSet = None):
        self.bridge = bridge
        self.patterns = patterns or PatternSet()

    def enforce(self, target: Target) -> bool:
        """
        Close the offending content for a target.

        Args:
            target: The detected NativeApp or BrowserHost.

        Returns:
            True if the close/quit command ran, False if it failed.
        """
        try:
            if isinstance(target, BrowserHost):
                closed = self.bridge.close_tabs(target.application, tuple(self.patterns))
                logger.info(f"Closed {closed} short-form tab(s) in {target.name}")
            elif isinstance(target, NativeApp):
                self.bridge.quit_app(target.name, target.bundle_id)
                logger.info(f"Quit {target.name}")
            else:
                logger.warning(f"Unknown target type: {target!r}")
                return False
            return True
        except AutomationError as e:
            logger.warning(f"Error closing {target.label}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error closing {target.label}: {e}")
            return False
