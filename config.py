"""Configuration settings for Short-Form Blocker."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv


def is_bundled() -> bool:
    """
    Check if the application is running from a PyInstaller bundle.

    Returns:
        True if running from a bundled executable, False otherwise.
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_base_dir() -> Path:
    """
    Get the base directory for the application.

    For development: Returns the directory containing this file.
    For bundled apps: Returns _MEIPASS (where bundled resources live).

    Returns:
        Path to the base directory.
    """
    if is_bundled():
        meipass = getattr(sys, '_MEIPASS', None)
        if meipass:
            return Path(meipass)
        return Path(__file__).parent
    else:
        return Path(__file__).parent


def get_user_data_dir() -> Path:
    """
    Get the directory for user-writable data (lock file, etc.).

    For development: Same as BASE_DIR/data
    For bundled apps: ~/Library/Application Support/ShortFormBlocker on macOS,
                      ~/.local/share/ShortFormBlocker elsewhere.

    The directory is not created here; callers that write to it do so.

    Returns:
        Path to the user data directory.
    """
    if is_bundled():
        if sys.platform == 'darwin':
            return Path.home() / "Library" / "Application Support" / "ShortFormBlocker"
        return Path.home() / ".local" / "share" / "ShortFormBlocker"
    else:
        return Path(__file__).parent / "data"


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("true", "1", "yes")."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("true", "1", "yes")


def _env_float(name: str, default: float) -> float:
    """Read a positive float from the environment, falling back on bad input."""
    value = os.getenv(name, "")
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# Load environment variables from .env file (only in development)
if not is_bundled():
    _env_path = Path(__file__).parent / ".env"
    load_dotenv(_env_path)

# Base directory (for bundled resources like assets)
BASE_DIR = get_base_dir()

# User data directory (for writable data like the instance lock)
USER_DATA_DIR = get_user_data_dir()
LOCK_FILE = USER_DATA_DIR / ".shortform_blocker.lock"

# --- Monitored targets (fixed at build time) ---

# Native short-form apps: (display/process name, bundle identifier)
SHORT_FORM_APPS = [
    ("TikTok", "com.zhiliaoapp.musically"),
    ("Instagram", "com.burbn.instagram"),
]

# Browsers whose tabs are inspected: (short name, AppleScript application, process names)
BROWSERS = [
    ("Safari", "Safari", ("Safari",)),
    ("Chrome", "Google Chrome", ("Google Chrome", "Chrome")),
]

# URL substrings that mark short-form content (case-sensitive substring match)
SHORT_FORM_URL_PATTERNS = (
    "youtube.com/shorts",
    "instagram.com/reels",
    "tiktok.com",
    "vm.tiktok.com",
)

# Suffix appended to a browser name to build its detection label
BROWSER_LABEL_SUFFIX = " (short-form tabs)"

# Target categories (passed to overlays)
CATEGORY_APP = "app"
CATEGORY_BROWSER = "browser"

# --- Monitoring ---

MONITOR_INTERVAL_MS = 2000  # Milliseconds between detection passes
AUTO_START_MONITORING = _env_flag("AUTO_START_MONITORING", True)

# Seconds before an osascript call is abandoned
OSASCRIPT_TIMEOUT = _env_float("OSASCRIPT_TIMEOUT", 5.0)

# Keep the host running after every window is gone (macOS dock behaviour)
STAY_RESIDENT = _env_flag("STAY_RESIDENT", sys.platform == "darwin")

# --- Overlay window ---

OVERLAY_WIDTH = 600
OVERLAY_HEIGHT = 400
OVERLAY_TITLE = "Short-form content blocked"

# --- Events / commands ---

EVENT_SHORT_FORM_DETECTED = "short-form-detected"
DISMISS_NOT_FOUND_ERROR = "not found"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # Can override in .env: DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
