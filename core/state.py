"""
Monitoring context shared by the monitor loop, popup manager and commands.

There is exactly one context per host. It is created at startup and
passed explicitly to every component that reads or mutates it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set


def iso_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision ("...Z")."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class MonitoringContext:
    """
    Process-wide monitoring state.

    Attributes:
        active: Whether the monitor loop is running
        timer_handle: Scheduler handle of the next pending pass
        overlays: Live overlay per target label
        acknowledgements_in_flight: Window ids being dismissed by the user
        main_surface: The dashboard window overlays are anchored to
    """
    active: bool = False
    timer_handle: Optional[Any] = None
    overlays: Dict[str, Any] = field(default_factory=dict)
    acknowledgements_in_flight: Set[Any] = field(default_factory=set)
    main_surface: Optional[Any] = None

    def main_surface_alive(self) -> bool:
        """True if the main surface exists and has not been destroyed."""
        surface = self.main_surface
        if surface is None:
            return False
        try:
            return bool(surface.winfo_exists())
        except Exception:
            return False
