"""
ShortFormBlocker — wires the monitoring core together.

Builds the monitoring context, inspectors, enforcer, popup manager,
monitor loop, lifecycle guard and command interface from a scheduler,
an automation bridge and an optional overlay factory.

This module has ZERO UI dependencies. The GUI host supplies the Tk root
as scheduler and its overlay window factory; headless callers pass
their own scheduler and no factory.
"""

import logging
from typing import Any, List, Optional

import config
from core.commands import CommandInterface
from core.enforcer import Enforcer
from core.lifecycle import LifecycleGuard
from core.monitor import MonitorLoop
from core.popup_manager import OverlayFactory, PopupManager
from core.state import MonitoringContext
from core.targets import PatternSet, Target
from screen.automation import AutomationBridge, MacOSAutomationBridge
from screen.inspectors import ProcessInspector, TabInspector

logger = logging.getLogger(__name__)


class ShortFormBlocker:
    """
    Owns one MonitoringContext and every component that uses it.

    Attributes:
        context: The shared monitoring state
        monitor: Detection loop
        popup_manager: Overlay bookkeeping
        guard: Shutdown veto logic
        commands: Command/event interface for the UI
    """

    def __init__(
        self,
        scheduler: Any,
        bridge: Optional[AutomationBridge] = None,
        overlay_factory: Optional[OverlayFactory] = None,
        targets: Optional[List[Target]] = None,
        patterns: Optional[PatternSet] = None,
        interval_ms: int = config.MONITOR_INTERVAL_MS,
        stay_resident: Optional[bool] = None,
    ) -> None:
        self.context = MonitoringContext()
        self.bridge = bridge if bridge is not None else MacOSAutomationBridge()
        self.patterns = patterns or PatternSet()

        self.popup_manager = PopupManager(self.context, overlay_factory)
        self.monitor = MonitorLoop(
            self.context,
            scheduler,
            ProcessInspector(self.bridge),
            TabInspector(self.bridge, self.patterns),
            Enforcer(self.bridge, self.patterns),
            self.popup_manager,
            targets=targets,
            interval_ms=interval_ms,
        )
        self.guard = LifecycleGuard(self.context, self.monitor, self.popup_manager, stay_resident)
        self.commands = CommandInterface(self.monitor, self.popup_manager)

    def attach_main_surface(self, surface: Any) -> None:
        """Register the window overlays are anchored to."""
        self.context.main_surface = surface
        logger.debug("Main surface attached")

    def detach_main_surface(self) -> None:
        """
        Tear down after the main surface closed.

        Destroys every overlay and stops the monitor timer.
        """
        logger.info("Main window closed")
        self.popup_manager.destroy_all()
        self.monitor.stop()
        self.context.main_surface = None

    def set_overlay_factory(self, overlay_factory: Optional[OverlayFactory]) -> None:
        self.popup_manager.overlay_factory = overlay_factory
