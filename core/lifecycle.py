"""
Lifecycle guard for the host process.

Decides whether the host may exit when its last window closes, and
cleans up monitoring when the host is about to quit.
"""

import logging
from enum import Enum
from typing import Optional

import config
from core.monitor import MonitorLoop
from core.popup_manager import PopupManager
from core.state import MonitoringContext

logger = logging.getLogger(__name__)


class ShutdownDecision(Enum):
    VETO_OVERLAYS = "veto_overlays"
    VETO_MAIN_SURFACE = "veto_main_surface"
    STAY_RESIDENT = "stay_resident"
    QUIT = "quit"


class LifecycleGuard:
    """Vetoes shutdown while blocking overlays or the dashboard are alive."""

    def __init__(
        self,
        context: MonitoringContext,
        monitor: MonitorLoop,
        popup_manager: PopupManager,
        stay_resident: Optional[bool] = None,
    ) -> None:
        """
        Args:
            context: Shared monitoring context
            monitor: Loop to stop before quitting
            popup_manager: Used to destroy overlays on quit
            stay_resident: Keep the host alive once everything is closed
                           (default: config.STAY_RESIDENT)
        """
        self.context = context
        self.monitor = monitor
        self.popup_manager = popup_manager
        self.stay_resident = config.STAY_RESIDENT if stay_resident is None else stay_resident

    def on_all_surfaces_closed(self) -> ShutdownDecision:
        """
        Handle the "every window closed" signal.

        Returns:
            The decision; only ShutdownDecision.QUIT lets the host exit.
        """
        if self.context.overlays:
            logger.info(f"Preventing quit - {len(self.context.overlays)} blocking window(s) still open")
            return ShutdownDecision.VETO_OVERLAYS

        if self.context.main_surface_alive():
            logger.info("Preventing quit - main window still exists")
            return ShutdownDecision.VETO_MAIN_SURFACE

        if self.stay_resident:
            logger.info("No windows remain - staying resident")
            return ShutdownDecision.STAY_RESIDENT

        logger.info("Allowing quit - no windows remain")
        return ShutdownDecision.QUIT

    def on_before_quit(self) -> None:
        """Stop monitoring and tear down overlays. Never vetoes."""
        try:
            self.monitor.stop()
        except Exception as e:
            logger.warning(f"Error stopping monitor on quit: {e}")
        self.popup_manager.destroy_all()

    @staticmethod
    def should_quit(decision: ShutdownDecision) -> bool:
        return decision is ShutdownDecision.QUIT
