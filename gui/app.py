"""
Short-Form Blocker GUI host - CustomTkinter Edition

Owns the Tk event loop. A hidden root window acts as the host process
and as the scheduler for the monitor loop; the dashboard is the main
interaction surface that blocking overlays are anchored to.

The dashboard only talks to the core through the command interface and
the short-form-detected event.
"""

import sys
import logging
from typing import Any, Callable, Dict, Optional

import customtkinter as ctk

import config
from core.blocker import ShortFormBlocker
from core.commands import CommandInterface
from gui.overlay import make_overlay_factory
from gui.ui_components import COLORS, RoundedButton, format_timestamp, get_ctk_font

logger = logging.getLogger(__name__)

# How often the dashboard refreshes its monitoring status (ms)
STATUS_REFRESH_MS = 1000
# Detections kept in the dashboard log
MAX_LOG_LINES = 200


class Dashboard:
    """
    Main interaction surface.

    Shows monitoring status, start/stop and check-now controls, and a
    running log of detections.
    """

    def __init__(self, root: ctk.CTk, commands: CommandInterface, on_closed: Callable[[], None]):
        """
        Args:
            root: Hidden host root window
            commands: Command interface into the core
            on_closed: Called after the dashboard window is destroyed
        """
        self.commands = commands
        self._on_closed = on_closed
        self._refresh_after_id: Optional[str] = None

        self.window = ctk.CTkToplevel(root)
        self.window.title("Short-Form Blocker")
        self.window.geometry("520x560")
        self.window.minsize(420, 420)
        self.window.configure(fg_color=COLORS["bg"])
        self.window.protocol("WM_DELETE_WINDOW", self.close)

        self._create_widgets()
        self.commands.subscribe(config.EVENT_SHORT_FORM_DETECTED, self._on_detected)
        self._refresh_status()

        self.window.lift()
        self.window.focus_force()

    def _create_widgets(self):
        """Build the dashboard layout."""
        ctk.CTkLabel(
            self.window,
            text="Short-Form Blocker",
            font=get_ctk_font("title"),
            text_color=COLORS["text_primary"],
        ).pack(pady=(28, 4))

        ctk.CTkLabel(
            self.window,
            text="Blocks short videos and reels while you work.",
            font=get_ctk_font("small"),
            text_color=COLORS["text_secondary"],
        ).pack(pady=(0, 16))

        self.status_label = ctk.CTkLabel(
            self.window,
            text="",
            font=get_ctk_font("status"),
            text_color=COLORS["text_primary"],
        )
        self.status_label.pack(pady=(0, 16))

        buttons = ctk.CTkFrame(self.window, fg_color="transparent")
        buttons.pack(pady=(0, 16))

        self.toggle_button = RoundedButton(buttons, text="Start Monitoring", command=self._toggle_monitoring)
        self.toggle_button.pack(side="left", padx=6)

        RoundedButton(
            buttons,
            text="Check Now",
            command=self._check_now,
            bg_color=COLORS["surface"],
            hover_color=COLORS["border"],
            text_color=COLORS["text_primary"],
        ).pack(side="left", padx=6)

        self.log_box = ctk.CTkTextbox(
            self.window,
            font=get_ctk_font("small"),
            fg_color=COLORS["surface"],
            text_color=COLORS["text_primary"],
            border_color=COLORS["border"],
            border_width=1,
            corner_radius=12,
        )
        self.log_box.pack(fill="both", expand=True, padx=24, pady=(0, 24))
        self.log_box.configure(state="disabled")

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _toggle_monitoring(self):
        if self.commands.get_monitoring_status()["monitoring"]:
            self.commands.stop_monitoring()
            self._append_log("Monitoring stopped")
        else:
            self.commands.start_monitoring()
            self._append_log("Monitoring started")
        self._update_status_display()

    def _check_now(self):
        result = self.commands.check_apps_now()
        detected = result["detected"]
        when = format_timestamp(result["timestamp"])
        if detected:
            self._append_log(f"[{when}] Currently blocked: {', '.join(detected)}")
        else:
            self._append_log(f"[{when}] Nothing detected")

    def _on_detected(self, payload: Dict[str, Any]):
        when = format_timestamp(payload.get("timestamp"))
        self._append_log(f"[{when}] Detected: {', '.join(payload.get('apps', []))}")

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _refresh_status(self):
        self._update_status_display()
        self._refresh_after_id = self.window.after(STATUS_REFRESH_MS, self._refresh_status)

    def _update_status_display(self):
        if not self.window.winfo_exists():
            return
        if self.commands.get_monitoring_status()["monitoring"]:
            self.status_label.configure(text="Monitoring is on", text_color=COLORS["success"])
            self.toggle_button.configure(text="Stop Monitoring")
        else:
            self.status_label.configure(text="Monitoring is off", text_color=COLORS["text_secondary"])
            self.toggle_button.configure(text="Start Monitoring")

    def _append_log(self, line: str):
        if not self.window.winfo_exists():
            return
        self.log_box.configure(state="normal")
        self.log_box.insert("end", line + "\n")
        excess = int(self.log_box.index("end-1c").split(".")[0]) - MAX_LOG_LINES
        if excess > 0:
            self.log_box.delete("1.0", f"{excess + 1}.0")
        self.log_box.see("end")
        self.log_box.configure(state="disabled")

    def winfo_exists(self) -> bool:
        try:
            return bool(self.window.winfo_exists())
        except Exception:
            return False

    def close(self):
        """Destroy the dashboard and notify the host."""
        self.commands.unsubscribe(config.EVENT_SHORT_FORM_DETECTED, self._on_detected)
        if self._refresh_after_id:
            try:
                self.window.after_cancel(self._refresh_after_id)
            except Exception as e:
                logger.debug(f"Could not cancel status refresh: {e}")
            self._refresh_after_id = None
        self.window.destroy()
        self._on_closed()


class ShortFormBlockerApp:
    """
    GUI host application.

    Creates the hidden root, the monitoring core and the dashboard, and
    routes window-lifecycle signals through the lifecycle guard.
    """

    def __init__(self):
        """Initialize the host, core and macOS application handlers."""
        ctk.set_appearance_mode("light")

        self.root = ctk.CTk()
        self.root.withdraw()
        self.root.title("Short-Form Blocker")

        self.blocker = ShortFormBlocker(scheduler=self.root)
        self.blocker.set_overlay_factory(make_overlay_factory(self.blocker.commands.dismiss_overlay))
        self.commands = self.blocker.commands
        self.dashboard: Optional[Dashboard] = None
        self._quitting = False

        self.root.protocol("WM_DELETE_WINDOW", self.quit)

        if sys.platform == "darwin":
            # Dock icon click / Cmd+Q
            self.root.createcommand("::tk::mac::ReopenApplication", self._on_reopen)
            self.root.createcommand("::tk::mac::Quit", self.quit)

    def run(self):
        """Open the dashboard, start monitoring and enter the event loop."""
        self.open_dashboard()
        if config.AUTO_START_MONITORING:
            self.commands.start_monitoring()
        logger.info("Short-Form Blocker running")
        self.root.mainloop()

    def open_dashboard(self):
        """Create the dashboard (main surface) if it is not open."""
        if self.dashboard is not None and self.dashboard.winfo_exists():
            self.dashboard.window.lift()
            return
        self.dashboard = Dashboard(self.root, self.commands, on_closed=self._on_dashboard_closed)
        self.blocker.attach_main_surface(self.dashboard.window)

    def _on_dashboard_closed(self):
        self.dashboard = None
        self.blocker.detach_main_surface()

        decision = self.blocker.guard.on_all_surfaces_closed()
        if self.blocker.guard.should_quit(decision):
            self.quit()

    def _on_reopen(self):
        """Recreate the dashboard after it was closed and resume monitoring."""
        if self._quitting:
            return
        if self.dashboard is None:
            logger.info("Reopening dashboard")
            self.open_dashboard()
            if config.AUTO_START_MONITORING:
                self.commands.start_monitoring()
        else:
            self.dashboard.window.lift()

    def quit(self):
        """Stop monitoring, destroy every window and leave the event loop."""
        if self._quitting:
            return
        self._quitting = True
        logger.info("Quitting Short-Form Blocker")
        self.blocker.guard.on_before_quit()
        try:
            self.root.quit()
            self.root.destroy()
        except Exception as e:
            logger.debug(f"Error destroying root window: {e}")


def run_app() -> None:
    """Launch the GUI host."""
    app = ShortFormBlockerApp()
    app.run()
