"""
Popup manager for blocking overlays.

Owns the mapping from target label to its live overlay window and keeps
at most one overlay per target. Overlay windows are built by an injected
factory so this module has no UI dependencies:

    overlay_factory(owner, target_name, details, on_destroyed) -> overlay

The returned overlay must provide:
    target_name, window_id, show(), destroy(), winfo_exists()

and must call on_destroyed(overlay) when the window system destroys it.
That callback is the single place where an overlay leaves the map.
"""

import logging
from typing import Any, Callable, Dict, Optional

from core.state import MonitoringContext

logger = logging.getLogger(__name__)

OverlayFactory = Callable[[Any, str, Dict[str, Any], Callable[[Any], None]], Any]


def _is_live(overlay: Any) -> bool:
    """True if the overlay window still exists."""
    try:
        return bool(overlay.winfo_exists())
    except Exception:
        return False


class PopupManager:
    """Creates, replaces and destroys blocking overlays."""

    def __init__(self, context: MonitoringContext, overlay_factory: Optional[OverlayFactory] = None):
        """
        Args:
            context: Shared monitoring context (holds the overlay map)
            overlay_factory: Builds overlay windows; without one no overlay
                             is ever shown (headless mode).
        """
        self.context = context
        self.overlay_factory = overlay_factory

    @property
    def count(self) -> int:
        return len(self.context.overlays)

    def has_overlay(self, target_name: str) -> bool:
        return target_name in self.context.overlays

    def overlay_for(self, target_name: str) -> Optional[Any]:
        return self.context.overlays.get(target_name)

    def show_overlay(self, target_name: str, details: Dict[str, Any]) -> Optional[Any]:
        """
        Show the blocking overlay for a target, replacing any existing one.

        Args:
            target_name: Target label the overlay belongs to
            details: {"timestamp": ISO8601, "category": "browser" | "app"}

        Returns:
            The new overlay, or None if there is no live main surface
            to anchor it to (or no overlay factory).
        """
        existing = self.context.overlays.pop(target_name, None)
        if existing is not None:
            logger.debug(f"Replacing existing overlay for {target_name}")
            self._destroy_window(existing)

        if not self.context.main_surface_alive():
            logger.error(f"Cannot show overlay for {target_name}: main window not available")
            return None

        if self.overlay_factory is None:
            logger.debug(f"No overlay factory configured, skipping overlay for {target_name}")
            return None

        try:
            overlay = self.overlay_factory(
                self.context.main_surface,
                target_name,
                dict(details),
                self._handle_overlay_destroyed,
            )
        except Exception as e:
            logger.error(f"Failed to create overlay for {target_name}: {e}")
            return None

        self.context.overlays[target_name] = overlay

        try:
            overlay.show()
        except Exception as e:
            logger.warning(f"Overlay for {target_name} could not be raised: {e}")

        logger.info(f"Showing overlay for {target_name}")
        return overlay

    def dismiss(self, target_name: str) -> bool:
        """
        Destroy the overlay the user acknowledged.

        Falls back to scanning overlays by their own target_name tag when
        the key does not match.

        Returns:
            True if a live overlay was destroyed, False if none was found.
        """
        overlays = self.context.overlays
        logger.debug(f"Dismiss requested for {target_name}; open overlays: {list(overlays)}")

        key = target_name if target_name in overlays else None
        if key is None:
            for name, overlay in overlays.items():
                if getattr(overlay, "target_name", None) == target_name:
                    key = name
                    break

        overlay = overlays.get(key) if key is not None else None
        if overlay is None or not _is_live(overlay):
            if key is not None:
                overlays.pop(key, None)
            overlays.pop(target_name, None)
            logger.info(f"No live overlay found for {target_name}")
            return False

        window_id = getattr(overlay, "window_id", None)
        self.context.acknowledgements_in_flight.add(window_id)
        overlays.pop(key, None)
        self._destroy_window(overlay)
        self.context.acknowledgements_in_flight.discard(window_id)
        logger.info(f"Overlay for {target_name} dismissed by user")
        return True

    def close(self, target_name: str) -> bool:
        """
        Remove the overlay of a target whose condition has cleared.

        Returns:
            True if an overlay was tracked for the target.
        """
        overlay = self.context.overlays.pop(target_name, None)
        if overlay is None:
            return False
        self._destroy_window(overlay)
        logger.info(f"Overlay for {target_name} closed (no longer detected)")
        return True

    def destroy_all(self) -> None:
        """Unregister and destroy every overlay."""
        overlays = list(self.context.overlays.items())
        self.context.overlays.clear()
        for name, overlay in overlays:
            self._destroy_window(overlay)
        self.context.acknowledgements_in_flight.clear()
        if overlays:
            logger.info(f"Destroyed {len(overlays)} overlay(s)")

    def _handle_overlay_destroyed(self, overlay: Any) -> None:
        """
        Teardown for overlays destroyed by the window system.

        Only unregisters the overlay if the map still points at this
        exact window, so a replacement overlay is never dropped.
        """
        name = getattr(overlay, "target_name", None)
        if name is not None and self.context.overlays.get(name) is overlay:
            del self.context.overlays[name]
            logger.debug(f"Overlay for {name} unregistered after destroy")
        self.context.acknowledgements_in_flight.discard(getattr(overlay, "window_id", None))

    @staticmethod
    def _destroy_window(overlay: Any) -> None:
        if not _is_live(overlay):
            return
        try:
            overlay.destroy()
        except Exception as e:
            logger.debug(f"Error destroying overlay window: {e}")
