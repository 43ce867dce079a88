"""
Monitor loop — detection and enforcement orchestration.

On a fixed interval the loop asks the inspectors about every target,
drives the enforcer and popup manager on state transitions, and emits a
short-form-detected event when targets are newly detected.

The loop has no thread of its own. It runs on a scheduler exposing the
Tk timer interface:

    scheduler.after(ms, callback) -> handle
    scheduler.after_cancel(handle)

so passes, commands and window events all share one event loop and
never mutate the monitoring context concurrently. The next pass is only
armed after the current one finishes, so passes cannot overlap.

Callbacks:
    on_short_form_detected(payload: dict)   {"apps": [...], "timestamp": ...}
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import config
from core.enforcer import Enforcer
from core.popup_manager import PopupManager
from core.state import MonitoringContext, iso_timestamp
from core.targets import BrowserHost, Target, default_targets
from screen.inspectors import ProcessInspector, TabInspector

logger = logging.getLogger(__name__)


class MonitorLoop:
    """
    Stopped/Running state machine around periodic detection passes.
    """

    def __init__(
        self,
        context: MonitoringContext,
        scheduler: Any,
        process_inspector: ProcessInspector,
        tab_inspector: TabInspector,
        enforcer: Enforcer,
        popup_manager: PopupManager,
        targets: Optional[List[Target]] = None,
        interval_ms: int = config.MONITOR_INTERVAL_MS,
    ) -> None:
        self.context = context
        self.scheduler = scheduler
        self.process_inspector = process_inspector
        self.tab_inspector = tab_inspector
        self.enforcer = enforcer
        self.popup_manager = popup_manager
        self.targets: List[Target] = list(targets) if targets is not None else default_targets()
        self.interval_ms = interval_ms

        self.pass_count: int = 0
        self.last_result: Optional[Dict[str, Any]] = None

        # ---- Callbacks (set by the UI) ----
        self.on_short_form_detected: Optional[Callable[[Dict[str, Any]], None]] = None
        self.on_monitoring_changed: Optional[Callable[[bool], None]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.context.active

    def start(self) -> None:
        """Run a pass immediately, then every interval. No-op when running."""
        if self.context.active:
            return

        self.context.active = True
        logger.info("Starting short-form app monitoring...")
        self._notify_monitoring_changed(True)

        self.run_pass()
        self._arm_timer()

    def stop(self) -> None:
        """
        Cancel future passes. No-op when stopped.

        Open overlays stay up until their target clears or the user
        acknowledges them.
        """
        if not self.context.active:
            return

        self.context.active = False
        self._cancel_timer()
        logger.info("Stopped short-form app monitoring")
        self._notify_monitoring_changed(False)

    # ------------------------------------------------------------------
    # Detection pass
    # ------------------------------------------------------------------

    def run_pass(self) -> Dict[str, Any]:
        """
        Evaluate every target once, in configured order.

        Returns:
            {"detected": [labels currently offending], "timestamp": ISO8601}
        """
        detected: List[str] = []
        newly_detected: List[str] = []

        for target in self.targets:
            label = target.label
            if self._is_offending(target):
                detected.append(label)
                if not self.popup_manager.has_overlay(label):
                    newly_detected.append(label)
                    self.popup_manager.show_overlay(label, {
                        "timestamp": iso_timestamp(),
                        "category": target.category,
                    })
                self.enforcer.enforce(target)
                logger.info(f"Blocked {label}")
            elif self.popup_manager.has_overlay(label):
                self.popup_manager.close(label)

        timestamp = iso_timestamp()
        if newly_detected:
            self._emit_detected({"apps": newly_detected, "timestamp": timestamp})

        self.pass_count += 1
        self.last_result = {"detected": detected, "timestamp": timestamp}
        return {"detected": list(detected), "timestamp": timestamp}

    def _is_offending(self, target: Target) -> bool:
        if isinstance(target, BrowserHost):
            if not any(self.process_inspector.is_running(p) for p in target.process_names):
                return False
            return self.tab_inspector.has_offending_tab(target)
        return self.process_inspector.is_running(target.name)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm_timer(self) -> None:
        if not self.context.active:
            return
        self.context.timer_handle = self.scheduler.after(self.interval_ms, self._on_tick)

    def _cancel_timer(self) -> None:
        handle = self.context.timer_handle
        self.context.timer_handle = None
        if handle is None:
            return
        try:
            self.scheduler.after_cancel(handle)
        except Exception as e:
            logger.debug(f"Could not cancel monitor timer: {e}")

    def _on_tick(self) -> None:
        self.context.timer_handle = None
        if not self.context.active:
            return
        try:
            self.run_pass()
        except Exception as e:
            logger.error(f"Detection pass error: {e}")
        finally:
            self._arm_timer()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _emit_detected(self, payload: Dict[str, Any]) -> None:
        logger.info(f"Short-form content detected: {payload['apps']}")
        if self.on_short_form_detected:
            try:
                self.on_short_form_detected(payload)
            except Exception as e:
                logger.debug(f"on_short_form_detected callback error: {e}")

    def _notify_monitoring_changed(self, monitoring: bool) -> None:
        if self.on_monitoring_changed:
            try:
                self.on_monitoring_changed(monitoring)
            except Exception as e:
                logger.debug(f"on_monitoring_changed callback error: {e}")
