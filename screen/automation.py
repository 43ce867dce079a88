"""
OS automation bridge for process and browser-tab control.

All platform scripting lives behind this module so the rest of the
application stays platform-agnostic:
- Process table: psutil
- Browser tabs and app quitting: AppleScript via osascript (macOS)

Every failure is raised as AutomationError. Callers decide whether a
failure means "not detected" or "enforcement failed".
"""

import os
import subprocess
import logging
from typing import List, Optional, Protocol, Sequence

import psutil

import config

logger = logging.getLogger(__name__)


class AutomationError(Exception):
    """Raised when an OS query or command cannot be completed."""


class AutomationBridge(Protocol):
    """Operations the inspectors and enforcer need from the OS."""

    def is_running(self, name: str) -> bool:
        ...

    def list_tabs(self, application: str) -> List[str]:
        ...

    def close_tabs(self, application: str, patterns: Sequence[str]) -> int:
        ...

    def quit_app(self, name: str, bundle_id: Optional[str] = None) -> None:
        ...


def applescript_quote(text: str) -> str:
    """
    Quote a Python string as an AppleScript string literal.

    Args:
        text: Raw text (application name, URL pattern, ...)

    Returns:
        The text wrapped in double quotes with backslashes and quotes escaped.
    """
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_list_tabs_script(application: str) -> str:
    """
    Build the AppleScript that lists every tab URL of a browser.

    The script only talks to the browser when it is already running,
    so a query never launches it.
    """
    app = applescript_quote(application)
    return f'''
    if application {app} is running then
        tell application {app}
            set tabURLs to {{}}
            repeat with w in windows
                repeat with t in tabs of w
                    try
                        set end of tabURLs to (URL of t as string)
                    end try
                end repeat
            end repeat
        end tell
        set AppleScript's text item delimiters to linefeed
        set urlText to tabURLs as text
        set AppleScript's text item delimiters to ""
        return urlText
    end if
    return ""
    '''


def build_close_tabs_script(application: str, patterns: Sequence[str]) -> str:
    """
    Build the AppleScript that closes tabs whose URL contains a pattern.

    Tabs are walked from last to first so closing one does not shift the
    index of the tabs still to be checked. The script returns the number
    of tabs closed.
    """
    if not patterns:
        raise ValueError("At least one URL pattern is required")

    app = applescript_quote(application)
    condition = " or ".join(
        f"tabURL contains {applescript_quote(pattern)}" for pattern in patterns
    )
    return f'''
    set closedCount to 0
    if application {app} is running then
        tell application {app}
            repeat with w in windows
                set tabCount to count of tabs of w
                repeat with i from tabCount to 1 by -1
                    try
                        set tabURL to (URL of tab i of w) as string
                        if {condition} then
                            close tab i of w
                            set closedCount to closedCount + 1
                        end if
                    end try
                end repeat
            end repeat
        end tell
    end if
    return closedCount
    '''


def build_quit_script(name: str, bundle_id: Optional[str] = None) -> str:
    """Build the AppleScript that quits an application by bundle id or name."""
    if bundle_id:
        return f"tell application id {applescript_quote(bundle_id)} to quit"
    return f"tell application {applescript_quote(name)} to quit"


def split_tab_output(output: str) -> List[str]:
    """
    Normalise osascript tab output into individual URL strings.

    Accepts both the linefeed-delimited output of our own script and the
    ", "-joined form osascript uses when it prints a list.
    """
    urls = []
    for line in output.splitlines():
        for part in line.split(", "):
            url = part.strip()
            if url and url != "missing value":
                urls.append(url)
    return urls


class MacOSAutomationBridge:
    """
    AutomationBridge implementation for macOS.

    Process lookups go through psutil; browser and app control goes
    through osascript with a timeout.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize the bridge.

        Args:
            timeout: Seconds before an osascript call is abandoned
                     (default: config.OSASCRIPT_TIMEOUT)
        """
        self.timeout = timeout if timeout is not None else config.OSASCRIPT_TIMEOUT
        self._own_pid = os.getpid()

    def is_running(self, name: str) -> bool:
        """
        Check whether any process name or command line contains `name`.

        Matching is a case-insensitive substring test, so "tiktok" matches
        "/Applications/TikTok.app/Contents/MacOS/TikTok".
        """
        needle = name.strip().lower()
        if not needle:
            raise AutomationError("Process name must not be empty")

        try:
            for proc in psutil.process_iter(attrs=["pid", "name", "cmdline"]):
                try:
                    info = proc.info
                    if info.get("pid") == self._own_pid:
                        continue
                    proc_name = (info.get("name") or "").lower()
                    cmdline = " ".join(info.get("cmdline") or []).lower()
                    if needle in proc_name or needle in cmdline:
                        return True
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
        except psutil.Error as e:
            raise AutomationError(f"Process query failed: {e}") from e
        return False

    def list_tabs(self, application: str) -> List[str]:
        """Return the URL of every open tab in the browser."""
        output = self._run_osascript(build_list_tabs_script(application))
        return split_tab_output(output)

    def close_tabs(self, application: str, patterns: Sequence[str]) -> int:
        """Close every tab whose URL contains one of the patterns."""
        output = self._run_osascript(build_close_tabs_script(application, patterns))
        try:
            return int(output.strip() or 0)
        except ValueError:
            logger.debug(f"Unexpected close_tabs output from {application}: {output!r}")
            return 0

    def quit_app(self, name: str, bundle_id: Optional[str] = None) -> None:
        """Ask the application to quit."""
        self._run_osascript(build_quit_script(name, bundle_id))

    def _run_osascript(self, script: str) -> str:
        """
        Run an AppleScript and return its stdout.

        Raises:
            AutomationError: On timeout, missing osascript, or non-zero exit.
        """
        try:
            result = subprocess.run(
                ["osascript", "-e", script],
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise AutomationError(f"AppleScript timed out after {self.timeout}s") from e
        except OSError as e:
            raise AutomationError(f"Could not run osascript: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            stderr_lower = stderr.lower()
            if "not allowed" in stderr_lower or "-1743" in stderr_lower:
                logger.warning("Automation permission required for browser control")
            raise AutomationError(f"AppleScript failed with code {result.returncode}: {stderr}")

        return result.stdout.strip()


class DryRunBridge:
    """
    Wraps a bridge so queries run but close/quit commands are only logged.

    Used by the headless --check --dry-run mode.
    """

    def __init__(self, bridge: AutomationBridge):
        self.bridge = bridge

    def is_running(self, name: str) -> bool:
        return self.bridge.is_running(name)

    def list_tabs(self, application: str) -> List[str]:
        return self.bridge.list_tabs(application)

    def close_tabs(self, application: str, patterns: Sequence[str]) -> int:
        logger.info(f"[dry run] Would close short-form tabs in {application}")
        return 0

    def quit_app(self, name: str, bundle_id: Optional[str] = None) -> None:
        logger.info(f"[dry run] Would quit {name}")
