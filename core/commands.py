"""
Command interface between the UI and the monitoring core.

Exposes the request/response commands the dashboard and overlays call,
and fans out the short-form-detected event to subscribed listeners.

Commands:
    start-monitoring       -> {"success": True, "monitoring": True}
    stop-monitoring        -> {"success": True, "monitoring": False}
    get-monitoring-status  -> {"monitoring": bool}
    check-apps-now         -> {"detected": [str], "timestamp": ISO8601}
    dismiss-overlay(name)  -> {"success": bool, "error"?: str}
"""

import copy
import logging
from typing import Any, Callable, Dict, List

import config
from core.monitor import MonitorLoop
from core.popup_manager import PopupManager

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class UnknownCommandError(KeyError):
    """Raised when handle() is given a command name that does not exist."""


class CommandInterface:
    """Serialised command handlers plus the detection event channel."""

    def __init__(self, monitor: MonitorLoop, popup_manager: PopupManager) -> None:
        self.monitor = monitor
        self.popup_manager = popup_manager
        self._listeners: Dict[str, List[Listener]] = {config.EVENT_SHORT_FORM_DETECTED: []}
        self.monitor.on_short_form_detected = self._broadcast_detected

        self._handlers: Dict[str, Callable[..., Dict[str, Any]]] = {
            "start-monitoring": self.start_monitoring,
            "stop-monitoring": self.stop_monitoring,
            "get-monitoring-status": self.get_monitoring_status,
            "check-apps-now": self.check_apps_now,
            "dismiss-overlay": self.dismiss_overlay,
        }

    @property
    def commands(self) -> List[str]:
        return list(self._handlers)

    def handle(self, command: str, *args: Any) -> Dict[str, Any]:
        """
        Dispatch a command by name.

        Raises:
            UnknownCommandError: If the command is not registered.
        """
        handler = self._handlers.get(command)
        if handler is None:
            raise UnknownCommandError(command)
        logger.debug(f"Command {command} {args if args else ''}")
        return handler(*args)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_monitoring(self) -> Dict[str, Any]:
        self.monitor.start()
        return {"success": True, "monitoring": True}

    def stop_monitoring(self) -> Dict[str, Any]:
        self.monitor.stop()
        return {"success": True, "monitoring": False}

    def get_monitoring_status(self) -> Dict[str, Any]:
        return {"monitoring": self.monitor.is_running}

    def check_apps_now(self) -> Dict[str, Any]:
        return self.monitor.run_pass()

    def dismiss_overlay(self, target_name: str) -> Dict[str, Any]:
        if self.popup_manager.dismiss(target_name):
            return {"success": True}
        return {"success": False, "error": config.DISMISS_NOT_FOUND_ERROR}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, event: str, listener: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)

    def unsubscribe(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def _broadcast_detected(self, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners[config.EVENT_SHORT_FORM_DETECTED]):
            try:
                listener(copy.deepcopy(payload))
            except Exception as e:
                logger.debug(f"short-form-detected listener error: {e}")
