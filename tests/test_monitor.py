"""
Tests for core/monitor.py — detection passes, state transitions, events
and the timer, driven end to end through ShortFormBlocker with a fake
OS bridge and a manual scheduler.
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

# Ensure project root and tests directory are on the path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.blocker import ShortFormBlocker
from fakes import FakeBridge, FakeScheduler, FakeSurface, RecordingOverlayFactory

SAFARI_LABEL = "Safari (short-form tabs)"
CHROME_LABEL = "Chrome (short-form tabs)"


class MonitorTestCase(unittest.TestCase):

    def setUp(self):
        self.bridge = FakeBridge()
        self.scheduler = FakeScheduler()
        self.factory = RecordingOverlayFactory()
        self.blocker = ShortFormBlocker(
            self.scheduler,
            bridge=self.bridge,
            overlay_factory=self.factory,
            interval_ms=2000,
            stay_resident=False,
        )
        self.surface = FakeSurface()
        self.blocker.attach_main_surface(self.surface)
        self.monitor = self.blocker.monitor
        self.popups = self.blocker.popup_manager

        self.events = []
        self.blocker.commands.subscribe(config.EVENT_SHORT_FORM_DETECTED, self.events.append)


class TestDetectionPass(MonitorTestCase):
    """Single-pass behaviour."""

    def test_nothing_running(self):
        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], [])
        self.assertTrue(result["timestamp"].endswith("Z"))
        self.assertEqual(self.popups.count, 0)
        self.assertEqual(self.events, [])

    def test_native_app_detected(self):
        """Running TikTok gets an overlay, a quit and one event."""
        self.bridge.running.add("tiktok")

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], ["TikTok"])
        self.assertTrue(self.popups.has_overlay("TikTok"))
        overlay = self.popups.overlay_for("TikTok")
        self.assertEqual(overlay.details["category"], config.CATEGORY_APP)
        self.assertTrue(overlay.details["timestamp"].endswith("Z"))
        self.assertEqual(self.bridge.quit_calls, [("TikTok", "com.zhiliaoapp.musically")])
        self.assertEqual(len(self.events), 1)
        self.assertEqual(self.events[0]["apps"], ["TikTok"])
        self.assertEqual(self.events[0]["timestamp"], result["timestamp"])

    def test_browser_with_short_form_tab(self):
        self.bridge.running.add("safari")
        self.bridge.tabs["Safari"] = [
            "https://news.example.com",
            "https://www.youtube.com/shorts/xyz",
        ]

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], [SAFARI_LABEL])
        self.assertEqual(self.popups.overlay_for(SAFARI_LABEL).details["category"], config.CATEGORY_BROWSER)
        self.assertEqual(self.bridge.tabs["Safari"], ["https://news.example.com"])
        self.assertEqual(self.bridge.quit_calls, [])

    def test_browser_without_short_form_tab(self):
        self.bridge.running.add("safari")
        self.bridge.tabs["Safari"] = ["https://www.youtube.com/watch?v=1"]

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], [])
        self.assertEqual(self.bridge.closed_calls, [])

    def test_browser_not_running_is_not_queried(self):
        """Tabs are only listed for browsers whose process is running."""
        self.bridge.tabs["Safari"] = ["https://www.tiktok.com/"]
        self.bridge.list_tabs = MagicMock(return_value=["https://www.tiktok.com/"])

        self.assertEqual(self.monitor.run_pass()["detected"], [])
        self.bridge.list_tabs.assert_not_called()

    def test_chrome_found_by_alternate_process_name(self):
        self.bridge.running.add("chrome")
        self.bridge.tabs["Google Chrome"] = ["https://vm.tiktok.com/abc"]

        self.assertEqual(self.monitor.run_pass()["detected"], [CHROME_LABEL])

    def test_detection_order_follows_targets(self):
        self.bridge.running.update({"instagram", "tiktok", "safari"})
        self.bridge.tabs["Safari"] = ["https://www.instagram.com/reels/1"]

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], ["TikTok", "Instagram", SAFARI_LABEL])
        self.assertEqual(self.events[0]["apps"], ["TikTok", "Instagram", SAFARI_LABEL])

    def test_still_offending_does_not_recreate_overlay(self):
        """A target that stays offending keeps its overlay and is re-enforced."""
        self.bridge.running.add("tiktok")

        self.monitor.run_pass()
        first = self.popups.overlay_for("TikTok")
        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], ["TikTok"])
        self.assertIs(self.popups.overlay_for("TikTok"), first)
        self.assertEqual(len(self.factory.created), 1)
        self.assertEqual(len(self.events), 1)
        self.assertEqual(len(self.bridge.quit_calls), 2)

    def test_cleared_target_closes_overlay(self):
        self.bridge.running.add("tiktok")
        self.monitor.run_pass()
        overlay = self.popups.overlay_for("TikTok")

        self.bridge.running.discard("tiktok")
        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], [])
        self.assertFalse(overlay.alive)
        self.assertFalse(self.popups.has_overlay("TikTok"))

    def test_closed_tabs_clear_browser_overlay_next_pass(self):
        self.bridge.running.add("safari")
        self.bridge.tabs["Safari"] = ["https://www.tiktok.com/@x"]

        self.monitor.run_pass()
        self.assertTrue(self.popups.has_overlay(SAFARI_LABEL))

        self.monitor.run_pass()
        self.assertFalse(self.popups.has_overlay(SAFARI_LABEL))

    def test_enforcement_failure_keeps_overlay(self):
        self.bridge.running.add("tiktok")
        self.bridge.fail_commands = True

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], ["TikTok"])
        self.assertTrue(self.popups.has_overlay("TikTok"))

    def test_query_failure_is_not_detected(self):
        self.bridge.running.add("tiktok")
        self.bridge.fail_queries = True

        self.assertEqual(self.monitor.run_pass()["detected"], [])
        self.assertEqual(self.events, [])

    def test_no_main_surface_still_enforces(self):
        """Without a window no overlay appears, but apps are still closed."""
        self.blocker.context.main_surface = None
        self.bridge.running.add("tiktok")

        result = self.monitor.run_pass()

        self.assertEqual(result["detected"], ["TikTok"])
        self.assertEqual(self.popups.count, 0)
        self.assertEqual(self.bridge.quit_calls, [("TikTok", "com.zhiliaoapp.musically")])

    def test_pass_bookkeeping(self):
        self.monitor.run_pass()
        result = self.monitor.run_pass()
        self.assertEqual(self.monitor.pass_count, 2)
        self.assertEqual(self.monitor.last_result, result)

    def test_listener_error_does_not_break_pass(self):
        def bad_listener(payload):
            raise RuntimeError("listener failed")

        self.blocker.commands.subscribe(config.EVENT_SHORT_FORM_DETECTED, bad_listener)
        self.bridge.running.add("tiktok")

        self.assertEqual(self.monitor.run_pass()["detected"], ["TikTok"])
        self.assertEqual(len(self.events), 1)


class TestDismissFlow(MonitorTestCase):
    """User acknowledgement followed by further passes."""

    def test_dismiss_then_still_running_shows_new_overlay(self):
        self.bridge.running.add("tiktok")
        self.monitor.run_pass()
        first = self.popups.overlay_for("TikTok")

        response = self.blocker.commands.handle("dismiss-overlay", "TikTok")
        self.assertEqual(response, {"success": True})
        self.assertFalse(first.alive)

        self.monitor.run_pass()
        second = self.popups.overlay_for("TikTok")
        self.assertIsNotNone(second)
        self.assertIsNot(second, first)
        self.assertEqual(len(self.events), 2)

    def test_dismiss_then_gone_stays_clear(self):
        self.bridge.running.add("tiktok")
        self.monitor.run_pass()
        self.blocker.commands.handle("dismiss-overlay", "TikTok")

        self.bridge.running.discard("tiktok")
        self.monitor.run_pass()

        self.assertEqual(self.popups.count, 0)
        self.assertEqual(len(self.events), 1)


class TestMonitorTimer(MonitorTestCase):
    """Start/stop state machine on the scheduler."""

    def test_start_runs_pass_and_arms_timer(self):
        self.bridge.running.add("tiktok")

        self.monitor.start()

        self.assertTrue(self.monitor.is_running)
        self.assertEqual(self.monitor.pass_count, 1)
        self.assertEqual(len(self.scheduler.pending), 1)
        ms, _ = next(iter(self.scheduler.pending.values()))
        self.assertEqual(ms, 2000)
        self.assertTrue(self.popups.has_overlay("TikTok"))

    def test_tick_runs_pass_and_rearms(self):
        self.monitor.start()
        self.scheduler.fire()
        self.scheduler.fire()

        self.assertEqual(self.monitor.pass_count, 3)
        self.assertEqual(len(self.scheduler.pending), 1)

    def test_start_is_idempotent(self):
        self.monitor.start()
        self.monitor.start()

        self.assertEqual(self.monitor.pass_count, 1)
        self.assertEqual(len(self.scheduler.pending), 1)

    def test_stop_cancels_timer(self):
        self.monitor.start()
        self.monitor.stop()

        self.assertFalse(self.monitor.is_running)
        self.assertEqual(self.scheduler.pending, {})
        self.assertIsNone(self.blocker.context.timer_handle)

    def test_stop_is_idempotent(self):
        self.monitor.stop()
        self.monitor.start()
        self.monitor.stop()
        self.monitor.stop()
        self.assertFalse(self.monitor.is_running)

    def test_stop_keeps_overlays(self):
        self.bridge.running.add("tiktok")
        self.monitor.start()
        self.monitor.stop()
        self.assertTrue(self.popups.has_overlay("TikTok"))

    def test_pass_error_still_rearms(self):
        self.monitor.start()
        self.monitor.run_pass = MagicMock(side_effect=RuntimeError("boom"))

        self.scheduler.fire()

        self.assertEqual(len(self.scheduler.pending), 1)

    def test_monitoring_changed_callback(self):
        changes = []
        self.monitor.on_monitoring_changed = changes.append

        self.monitor.start()
        self.monitor.start()
        self.monitor.stop()

        self.assertEqual(changes, [True, False])


if __name__ == "__main__":
    unittest.main()
