"""
Tests for the size estimator.
"""

import unittest

from imgsqueeze.estimator import PRESET_FACTORS, estimate_size, preset_quality
from imgsqueeze.utils import round_half_up


class TestEstimator(unittest.TestCase):

    def test_named_presets(self):
        """Named presets multiply by a fixed factor."""
        for size in (0, 1, 999, 123_457, 1_000_000):
            self.assertEqual(estimate_size(size, 'high'), round_half_up(size * 0.70))
            self.assertEqual(estimate_size(size, 'medium'), round_half_up(size * 0.45))
            self.assertEqual(estimate_size(size, 'low'), round_half_up(size * 0.25))

    def test_named_presets_ignore_quality(self):
        self.assertEqual(estimate_size(1000, 'low', 99), estimate_size(1000, 'low', 10))

    def test_factors(self):
        self.assertEqual(PRESET_FACTORS, {'high': 0.70, 'medium': 0.45, 'low': 0.25})

    def test_custom_endpoints(self):
        self.assertEqual(estimate_size(1_000_000, 'custom', 10), 160_000)
        self.assertEqual(estimate_size(1_000_000, 'custom', 100), 700_000)

    def test_custom_monotonic(self):
        sizes = [estimate_size(2_345_678, 'custom', q) for q in range(10, 101)]
        self.assertEqual(sizes, sorted(sizes))

    def test_scenario_medium_then_custom(self):
        self.assertEqual(estimate_size(1_000_000, 'medium'), 450_000)
        self.assertEqual(estimate_size(1_000_000, 'custom', 55), 430_000)

    def test_idempotent(self):
        first = estimate_size(777_777, 'custom', 42)
        for _ in range(5):
            self.assertEqual(estimate_size(777_777, 'custom', 42), first)

    def test_rounds_half_up(self):
        # 10 * 0.25 = 2.5
        self.assertEqual(estimate_size(10, 'low'), 3)

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError):
            estimate_size(-1, 'high')
        with self.assertRaises(ValueError):
            estimate_size(100, 'ultra')
        with self.assertRaises(ValueError):
            estimate_size(100, 'custom', 5)
        with self.assertRaises(ValueError):
            estimate_size(100, 'custom', 101)

    def test_preset_quality(self):
        self.assertEqual(preset_quality('high'), 90)
        self.assertEqual(preset_quality('medium'), 70)
        self.assertEqual(preset_quality('low'), 50)
        with self.assertRaises(ValueError):
            preset_quality('custom')


if __name__ == '__main__':
    unittest.main()
