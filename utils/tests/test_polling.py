"""
Unit tests for utils.polling and utils.timer_utils.
"""

import unittest

from utils.polling import poll_until
from utils.timer_utils import CooperativeTimer


class FakeClock:
    """Manually advanced monotonic clock; sleep(ms) advances it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.now += ms / 1000.0


class TestPollUntil(unittest.TestCase):
    """Test poll_until."""

    def test_immediate_success_does_not_sleep(self) -> None:
        clock = FakeClock()
        result = poll_until(lambda: "overlay", 50, 5000, sleep=clock.sleep, clock=clock)
        self.assertEqual(result, (True, "overlay"))
        self.assertEqual(clock.sleeps, [])

    def test_found_after_some_polls(self) -> None:
        clock = FakeClock()
        calls = iter([None, None, {"id": 1}])
        result = poll_until(lambda: next(calls), 50, 5000, sleep=clock.sleep, clock=clock)
        self.assertTrue(result.found)
        self.assertEqual(result.value, {"id": 1})
        self.assertEqual(clock.sleeps, [50, 50])

    def test_times_out_at_ceiling(self) -> None:
        clock = FakeClock()
        result = poll_until(lambda: False, 40, 300, sleep=clock.sleep, clock=clock)
        self.assertFalse(result.found)
        self.assertIsNone(result.value)
        self.assertAlmostEqual(sum(clock.sleeps), 300)
        self.assertLessEqual(max(clock.sleeps), 40)


class TestCooperativeTimer(unittest.TestCase):
    """Test CooperativeTimer."""

    def test_fires_once_after_deadline(self) -> None:
        clock = FakeClock()
        fired = []
        timer = CooperativeTimer(lambda: fired.append(clock.now), clock=clock)
        timer.start(10)
        clock.now = 9.9
        self.assertFalse(timer.fire_if_due())
        clock.now = 10.0
        self.assertTrue(timer.fire_if_due())
        self.assertFalse(timer.fire_if_due())
        self.assertEqual(fired, [10.0])
        self.assertFalse(timer.active)

    def test_restart_pushes_deadline(self) -> None:
        clock = FakeClock()
        fired = []
        timer = CooperativeTimer(lambda: fired.append(True), clock=clock)
        timer.start(10)
        clock.now = 8
        timer.start(10)
        clock.now = 12
        self.assertFalse(timer.fire_if_due())
        self.assertAlmostEqual(timer.remaining(), 6)

    def test_cancel(self) -> None:
        clock = FakeClock()
        fired = []
        timer = CooperativeTimer(lambda: fired.append(True), clock=clock)
        timer.start(1)
        timer.cancel()
        clock.now = 5
        self.assertFalse(timer.fire_if_due())
        self.assertIsNone(timer.remaining())
        self.assertEqual(fired, [])


if __name__ == "__main__":
    unittest.main()
