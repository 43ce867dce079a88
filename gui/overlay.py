"""
Blocking overlay window shown while a short-form target is detected.

The overlay is frameless, always on top, joins every Space (including
full-screen apps on macOS) and ignores the window manager's close
request. The only way out is the acknowledge button, which calls the
dismiss-overlay command with the overlay's own target name.
"""

import sys
import itertools
import logging
from typing import Any, Callable, Dict

import customtkinter as ctk

import config
from gui.ui_components import COLORS, RoundedButton, format_timestamp, get_ctk_font

logger = logging.getLogger(__name__)

_window_ids = itertools.count(1)

# NSWindowCollectionBehaviorCanJoinAllSpaces | NSWindowCollectionBehaviorFullScreenAuxiliary
_MACOS_COLLECTION_BEHAVIOR = (1 << 0) | (1 << 8)
# NSScreenSaverWindowLevel
_MACOS_WINDOW_LEVEL = 1000


class BlockingOverlay:
    """
    Overlay window for one detected target.

    Attributes:
        target_name: Label of the target this overlay blocks
        window_id: Unique id of this overlay window
        details: {"timestamp": ISO8601, "category": "browser" | "app"}
    """

    def __init__(
        self,
        owner,
        target_name: str,
        details: Dict[str, Any],
        on_destroyed: Callable[["BlockingOverlay"], None],
        on_acknowledge: Callable[[str], Dict[str, Any]],
    ):
        """
        Build (but do not show) the overlay.

        Args:
            owner: Main surface window the overlay belongs to
            target_name: Target label shown in the overlay
            details: Detection details
            on_destroyed: Called once when the window is destroyed
            on_acknowledge: Dismiss command, called with target_name
        """
        self.target_name = target_name
        self.window_id = next(_window_ids)
        self.details = details
        self._on_destroyed = on_destroyed
        self._on_acknowledge = on_acknowledge
        self._destroy_reported = False

        self.window = ctk.CTkToplevel(owner)
        self.window.withdraw()
        self.window.title(f"{config.OVERLAY_TITLE}: {target_name}")
        self.window.overrideredirect(True)
        self.window.resizable(False, False)
        self.window.attributes('-topmost', True)
        self.window.protocol("WM_DELETE_WINDOW", self._ignore_close)
        self.window.configure(fg_color=COLORS["surface"])

        width, height = config.OVERLAY_WIDTH, config.OVERLAY_HEIGHT
        x = (self.window.winfo_screenwidth() - width) // 2
        y = (self.window.winfo_screenheight() - height) // 2
        self.window.geometry(f"{width}x{height}+{x}+{y}")

        self._create_ui()
        self.window.bind("<Destroy>", self._on_window_destroy)

    def _create_ui(self):
        """Build the overlay content."""
        is_browser = self.details.get("category") == config.CATEGORY_BROWSER
        if is_browser:
            message = "Short-form tabs were closed.\nYour other tabs are untouched."
        else:
            message = f"{self.target_name} was closed.\nTake a breath and get back to what matters."

        frame = ctk.CTkFrame(
            self.window,
            fg_color=COLORS["surface"],
            border_color=COLORS["danger"],
            border_width=3,
            corner_radius=16
        )
        frame.pack(fill="both", expand=True, padx=8, pady=8)

        ctk.CTkLabel(
            frame,
            text=config.OVERLAY_TITLE,
            font=get_ctk_font("display"),
            text_color=COLORS["danger"],
        ).pack(pady=(48, 12))

        ctk.CTkLabel(
            frame,
            text=self.target_name,
            font=get_ctk_font("title"),
            text_color=COLORS["text_primary"],
        ).pack(pady=(0, 12))

        ctk.CTkLabel(
            frame,
            text=message,
            font=get_ctk_font("body"),
            text_color=COLORS["text_secondary"],
            justify="center",
        ).pack(pady=(0, 8))

        detected_at = format_timestamp(self.details.get("timestamp"))
        if detected_at:
            ctk.CTkLabel(
                frame,
                text=f"Detected at {detected_at}",
                font=get_ctk_font("small"),
                text_color=COLORS["text_secondary"],
            ).pack(pady=(0, 16))

        self.error_label = ctk.CTkLabel(
            frame,
            text="",
            font=get_ctk_font("small"),
            text_color=COLORS["danger"],
        )
        self.error_label.pack(side="bottom", pady=(0, 12))

        RoundedButton(
            frame,
            text="I understand",
            command=self._acknowledge,
            bg_color=COLORS["danger"],
            hover_color=COLORS["danger_hover"],
            width=200,
            height=44,
        ).pack(side="bottom", pady=(0, 8))

    def show(self):
        """Show the overlay and keep it above everything else."""
        self.window.deiconify()
        self.window.lift()
        self.window.attributes('-topmost', True)
        self.window.focus_force()
        if sys.platform == "darwin":
            self.window.after(50, self._join_all_spaces_macos)

    def _join_all_spaces_macos(self):
        """
        Make the overlay visible on every Space and over full-screen apps.

        Uses PyObjC if available.
        """
        if not self.winfo_exists():
            return
        try:
            from AppKit import NSApplication  # type: ignore[import-not-found]

            title = self.window.title()
            for ns_window in NSApplication.sharedApplication().windows():
                if ns_window.title() == title:
                    ns_window.setCollectionBehavior_(_MACOS_COLLECTION_BEHAVIOR)
                    ns_window.setLevel_(_MACOS_WINDOW_LEVEL)
                    logger.debug(f"Overlay for {self.target_name} joined all Spaces")
                    break
        except ImportError:
            logger.debug("PyObjC not available - overlay stays on the current Space")
        except Exception as e:
            logger.debug(f"Could not configure overlay Spaces behaviour: {e}")

    def _ignore_close(self):
        logger.debug(f"Ignoring close request for overlay {self.target_name}")

    def _acknowledge(self):
        """Acknowledge button handler."""
        try:
            result = self._on_acknowledge(self.target_name)
        except Exception as e:
            logger.error(f"Dismiss failed for {self.target_name}: {e}")
            result = {"success": False, "error": str(e)}

        if not result.get("success") and self.winfo_exists():
            self.error_label.configure(text=f"Could not dismiss: {result.get('error', 'unknown error')}")

    def _on_window_destroy(self, event):
        # <Destroy> also fires for every child widget
        if event.widget is not self.window or self._destroy_reported:
            return
        self._destroy_reported = True
        self._on_destroyed(self)

    def winfo_exists(self) -> bool:
        try:
            return bool(self.window.winfo_exists())
        except Exception:
            return False

    def destroy(self):
        self.window.destroy()


def make_overlay_factory(on_acknowledge: Callable[[str], Dict[str, Any]]):
    """
    Build the overlay factory the popup manager calls.

    Args:
        on_acknowledge: The dismiss-overlay command

    Returns:
        factory(owner, target_name, details, on_destroyed) -> BlockingOverlay
    """
    def factory(owner, target_name, details, on_destroyed) -> BlockingOverlay:
        return BlockingOverlay(owner, target_name, details, on_destroyed, on_acknowledge)

    return factory
