"""
Short-Form Blocker UI Components - CustomTkinter Edition

Shared colours, fonts and button styling for the dashboard and the
blocking overlays.
"""
import sys
import logging
from datetime import datetime
from typing import Callable, Optional
import customtkinter as ctk
from customtkinter import CTkFont

logger = logging.getLogger(__name__)


COLORS = {
    "bg": "#F9F8F4",           # Warm Cream
    "surface": "#FFFFFF",       # White Cards
    "text_primary": "#1C1C1E",  # Sharp Black
    "text_secondary": "#8E8E93", # System Gray
    "button_bg": "#1C1C1E",     # Black for primary actions
    "button_bg_hover": "#333333",
    "button_text": "#FFFFFF",
    "border": "#E5E5EA",
    "success": "#34C759",
    "danger": "#EF4444",        # Blocking overlay accent
    "danger_hover": "#DC2626",
    "transparent": "transparent",
}

# (size, weight) per font key
FONT_SPECS = {
    "display": (30, "bold"),
    "title": (22, "bold"),
    "status": (17, "normal"),
    "body": (15, "normal"),
    "button": (13, "bold"),
    "small": (12, "normal"),
}


def get_font_family() -> str:
    """System UI font for the current platform."""
    if sys.platform == "darwin":
        return "Helvetica Neue"
    return "Helvetica"


def get_ctk_font(font_key: str) -> CTkFont:
    """
    Get a CTkFont object for the given font key.

    Args:
        font_key: Key from FONT_SPECS (unknown keys fall back to "body").

    Returns:
        CTkFont object.
    """
    size, weight = FONT_SPECS.get(font_key, FONT_SPECS["body"])
    return CTkFont(family=get_font_family(), size=size, weight=weight)


def format_timestamp(timestamp: Optional[str]) -> str:
    """Render an ISO 8601 timestamp as local HH:MM:SS."""
    if not timestamp:
        return ""
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return parsed.astimezone().strftime("%H:%M:%S")
    except ValueError:
        return timestamp


class RoundedButton(ctk.CTkButton):
    """CTkButton with the app's default styling."""

    def __init__(
        self,
        parent,
        text: str,
        command: Optional[Callable] = None,
        bg_color: str = COLORS["button_bg"],
        hover_color: str = COLORS["button_bg_hover"],
        text_color: str = COLORS["button_text"],
        width: int = 160,
        height: int = 40,
        **kwargs
    ):
        super().__init__(
            parent,
            text=text,
            command=command,
            fg_color=bg_color,
            hover_color=hover_color,
            text_color=text_color,
            width=width,
            height=height,
            corner_radius=height // 2,
            font=get_ctk_font("button"),
            **kwargs
        )
