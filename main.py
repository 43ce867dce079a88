#!/usr/bin/env python3
"""
Short-Form Blocker - Main Entry Point

Watches for short-form video apps (TikTok, Instagram) and short-form
browser tabs (Shorts, Reels, TikTok), closes them, and shows a blocking
overlay until the user acknowledges it.

Usage:
    python main.py                    # Launch the dashboard and start monitoring
    python main.py --check            # Run one detection pass and print the result
    python main.py --check --dry-run  # Same, without closing anything
"""

# =============================================================================
# PyInstaller bundled app path fix - MUST BE BEFORE ANY OTHER IMPORTS
# =============================================================================
import os
import sys

if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
    _bundle_dir = sys._MEIPASS
    os.chdir(_bundle_dir)
    if _bundle_dir not in sys.path:
        sys.path.insert(0, _bundle_dir)

import json
import logging
import argparse

import config
from instance_lock import InstanceLock, check_single_instance

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def run_check(dry_run: bool = False) -> dict:
    """
    Run one headless detection pass.

    No overlays are shown (there is no window to anchor them to).

    Args:
        dry_run: Only report what would be closed

    Returns:
        {"detected": [...], "timestamp": ISO8601}
    """
    from core.blocker import ShortFormBlocker
    from screen.automation import DryRunBridge, MacOSAutomationBridge

    bridge = MacOSAutomationBridge()
    if dry_run:
        bridge = DryRunBridge(bridge)

    blocker = ShortFormBlocker(scheduler=None, bridge=bridge)
    return blocker.commands.handle("check-apps-now")


def main_gui():
    """Run the dashboard + monitoring host."""
    from gui.app import run_app
    run_app()


def main():
    """
    Main entry point — parses arguments and launches the appropriate mode.
    """
    parser = argparse.ArgumentParser(
        description="Short-Form Blocker - closes short-form video apps and tabs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                    Launch the dashboard (default)
  python main.py --check            Run one detection pass
  python main.py --check --dry-run  Detect without closing anything
        """
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run a single detection pass and print the result as JSON",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="With --check: detect only, do not close tabs or quit apps",
    )

    args = parser.parse_args()

    if args.dry_run and not args.check:
        parser.error("--dry-run requires --check")

    if sys.platform != "darwin":
        logger.warning(f"Short-Form Blocker targets macOS; browser control is unavailable on {sys.platform}")

    if args.check:
        try:
            result = run_check(dry_run=args.dry_run)
        except Exception as e:
            logger.error(f"Fatal error: {e}", exc_info=True)
            sys.exit(1)
        print(json.dumps(result, indent=2))
        sys.exit(0)

    # Single instance enforcement
    lock = InstanceLock()
    if check_single_instance(lock) is None:
        existing_pid = lock.read_owner_pid()
        pid_info = f" (PID: {existing_pid})" if existing_pid else ""
        print(f"\nShort-Form Blocker is already running{pid_info}.")
        print("Only one instance can run at a time.\n")
        sys.exit(1)

    try:
        main_gui()
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"\nFatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
