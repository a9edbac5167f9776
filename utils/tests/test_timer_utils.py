"""
Unit tests for utils.timer_utils.
"""

import unittest

from utils.timer_utils import CooperativeTimer


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestCooperativeTimer(unittest.TestCase):
    """Test polled deadlines."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.fired = []
        self.timer = CooperativeTimer(lambda: self.fired.append(self.clock.now), clock=self.clock)

    def test_fires_once_when_due(self) -> None:
        self.timer.start(1.5)
        self.assertTrue(self.timer.active)
        self.clock.now += 1.4
        self.assertFalse(self.timer.fire_if_due())
        self.clock.now += 0.1
        self.assertTrue(self.timer.fire_if_due())
        self.assertFalse(self.timer.fire_if_due())
        self.assertEqual(len(self.fired), 1)
        self.assertFalse(self.timer.active)

    def test_cancel(self) -> None:
        self.timer.start(1.0)
        self.timer.cancel()
        self.clock.now += 5
        self.assertFalse(self.timer.fire_if_due())
        self.assertIsNone(self.timer.remaining())
        self.assertEqual(self.fired, [])

    def test_restart_moves_deadline(self) -> None:
        self.timer.start(1.0)
        self.clock.now += 0.8
        self.timer.start(1.0)
        self.assertAlmostEqual(self.timer.remaining(), 1.0)
        self.clock.now += 0.5
        self.assertFalse(self.timer.fire_if_due())

    def test_unarmed_never_fires(self) -> None:
        self.clock.now += 100
        self.assertFalse(self.timer.fire_if_due())


if __name__ == "__main__":
    unittest.main()
