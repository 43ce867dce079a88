"""
Tests for instance_lock.py — single-instance enforcement.
"""

import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from instance_lock import InstanceLock, check_single_instance


class TestInstanceLock(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.lock_path = Path(self.tmpdir.name) / "nested" / "blocker.lock"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_acquire_writes_pid(self):
        lock = InstanceLock(self.lock_path)
        try:
            self.assertTrue(lock.acquire())
            self.assertTrue(lock.is_acquired())
            self.assertEqual(lock.read_owner_pid(), os.getpid())
        finally:
            lock.release()

    def test_second_lock_is_refused(self):
        first = InstanceLock(self.lock_path)
        second = InstanceLock(self.lock_path)
        try:
            self.assertTrue(first.acquire())
            self.assertFalse(second.acquire())
            self.assertFalse(second.is_acquired())
            self.assertEqual(second.read_owner_pid(), os.getpid())
        finally:
            first.release()

    def test_release_allows_reacquire(self):
        first = InstanceLock(self.lock_path)
        self.assertTrue(first.acquire())
        first.release()

        self.assertFalse(self.lock_path.exists())
        second = InstanceLock(self.lock_path)
        try:
            self.assertTrue(second.acquire())
        finally:
            second.release()

    def test_acquire_twice_is_noop(self):
        lock = InstanceLock(self.lock_path)
        try:
            self.assertTrue(lock.acquire())
            self.assertTrue(lock.acquire())
        finally:
            lock.release()

    def test_release_without_acquire(self):
        InstanceLock(self.lock_path).release()

    def test_context_manager(self):
        with InstanceLock(self.lock_path) as lock:
            self.assertTrue(lock.is_acquired())
        self.assertFalse(lock.is_acquired())

    def test_read_owner_pid_missing_file(self):
        self.assertIsNone(InstanceLock(self.lock_path).read_owner_pid())

    @patch("instance_lock.atexit.register")
    def test_check_single_instance(self, mock_register):
        lock = check_single_instance(InstanceLock(self.lock_path))
        try:
            self.assertIsNotNone(lock)
            mock_register.assert_called_once_with(lock.release)
            self.assertIsNone(check_single_instance(InstanceLock(self.lock_path)))
        finally:
            lock.release()


if __name__ == "__main__":
    unittest.main()
