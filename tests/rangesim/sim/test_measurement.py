"""Unit tests for rangesim.sim.measurement."""

import unittest

import numpy as np
from scipy import stats

from rangesim.errors import ConfigurationError, DimensionMismatchError
from rangesim.models import build_model
from rangesim.sim.measurement import MeasurementSimulator
from rangesim.sim.noise import GaussianNoiseSampler


class TestMeasurementSimulator(unittest.TestCase):
    """Test MeasurementSimulator.simulate_meas."""

    def setUp(self):
        _, self.meas_structure = build_model(0, 0.1)

    def test_noise_free_selects_x(self):
        sim = MeasurementSimulator(
            self.meas_structure, GaussianNoiseSampler(np.zeros(1), np.zeros((1, 1)), seed=0)
        )
        z = sim.simulate_meas(np.array([2.0, 5.0, 1.0]))
        self.assertIsInstance(z, float)
        self.assertEqual(z, 2.0)
        self.assertEqual(sim.last_measurement, 2.0)

    def test_noise_mean_is_added(self):
        sim = MeasurementSimulator(
            self.meas_structure, GaussianNoiseSampler(np.array([0.25]), np.zeros((1, 1)), seed=0)
        )
        self.assertAlmostEqual(sim.simulate_meas(np.array([1.0, 0.0, 0.0])), 1.25)

    def test_statistics_at_fixed_state(self):
        """Measurements of x = 2.0 with variance 0.01 are centered at 2.0 with variance 0.01."""
        sigma2 = 0.01
        N = 20000
        sim = MeasurementSimulator(
            self.meas_structure, GaussianNoiseSampler(np.zeros(1), np.array([[sigma2]]), seed=11)
        )
        state = np.array([2.0, 0.0, 0.0])
        z = np.array([sim.simulate_meas(state) for _ in range(N)])

        # Mean within 4.5 standard errors
        self.assertLess(abs(z.mean() - 2.0), 4.5 * np.sqrt(sigma2 / N))

        s2 = z.var(ddof=1)
        lo = sigma2 * stats.chi2.ppf(0.0005, N - 1) / (N - 1)
        hi = sigma2 * stats.chi2.ppf(0.9995, N - 1) / (N - 1)
        self.assertTrue(lo < s2 < hi)

        # Input state is never modified
        np.testing.assert_array_equal(state, [2.0, 0.0, 0.0])

    def test_vector_measurement(self):
        _, meas = build_model(1, 0.1, meas_dimension=2)
        sim = MeasurementSimulator(meas, GaussianNoiseSampler(np.zeros(2), np.zeros((2, 2)), seed=0))
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        np.testing.assert_array_equal(sim.simulate_meas(x), [1.0, 2.0])

    def test_wrong_state_shape(self):
        sim = MeasurementSimulator(
            self.meas_structure, GaussianNoiseSampler(np.zeros(1), np.eye(1), seed=0)
        )
        with self.assertRaises(DimensionMismatchError):
            sim.simulate_meas(np.zeros(6))
        self.assertIsNone(sim.last_measurement)

    def test_noise_dimension_mismatch(self):
        with self.assertRaises(ConfigurationError):
            MeasurementSimulator(
                self.meas_structure, GaussianNoiseSampler(np.zeros(2), np.eye(2), seed=0)
            )


if __name__ == "__main__":
    unittest.main()
