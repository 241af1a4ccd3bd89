"""
Unit tests for rangesim.models.model_builder.

Tests the Taylor-series transition structure, input coupling and measurement
projection built from a continuity level and update period.
"""

import unittest
import warnings

import numpy as np

from rangesim.errors import ConfigurationError
from rangesim.models import (
    MAX_CONTINUITY_LEVEL,
    build_model,
    factorial,
    state_dimension,
    taylor_block,
)


class TestFactorial(unittest.TestCase):
    """Test factorial() helper."""

    def test_small_values(self):
        self.assertEqual([factorial(k) for k in range(6)], [1, 1, 2, 6, 24, 120])

    def test_negative_raises(self):
        with self.assertRaises(ValueError):
            factorial(-1)


class TestStateDimension(unittest.TestCase):
    """Test state_dimension() mapping."""

    def test_supported_levels(self):
        for level in range(MAX_CONTINUITY_LEVEL + 1):
            self.assertEqual(state_dimension(level), 3 * (level + 1))

    def test_unsupported_levels(self):
        for level in (-1, MAX_CONTINUITY_LEVEL + 1, 1.5, "1", True):
            with self.assertRaises(ConfigurationError):
                state_dimension(level)


class TestTransitionStructure(unittest.TestCase):
    """Test F and B built by build_model()."""

    def test_shape_and_taylor_entries(self):
        """(i, j) sub-block equals T^(j-i)/(j-i)! * I3 above the diagonal, zero below."""
        T = 0.1
        for level in range(MAX_CONTINUITY_LEVEL + 1):
            transition, _ = build_model(level, T)
            n = 3 * (level + 1)
            self.assertEqual(transition.F.shape, (n, n))

            for i in range(level + 1):
                for j in range(level + 1):
                    block = transition.F[3 * i:3 * i + 3, 3 * j:3 * j + 3]
                    if j >= i:
                        expected = T ** (j - i) / factorial(j - i) * np.eye(3)
                    else:
                        expected = np.zeros((3, 3))
                    np.testing.assert_allclose(block, expected, atol=1e-15)

    def test_level_one_matches_constant_velocity(self):
        """Level 1 reproduces the constant-velocity transition per axis."""
        dt = 0.5
        transition, _ = build_model(1, dt)
        expected = np.array([
            [1, 0, 0, dt, 0, 0],
            [0, 1, 0, 0, dt, 0],
            [0, 0, 1, 0, 0, dt],
            [0, 0, 0, 1, 0, 0],
            [0, 0, 0, 0, 1, 0],
            [0, 0, 0, 0, 0, 1],
        ])
        np.testing.assert_allclose(transition.F, expected)

    def test_taylor_block_level_two(self):
        T = 0.2
        np.testing.assert_allclose(
            taylor_block(2, T),
            [[1, T, T**2 / 2], [0, 1, T], [0, 0, 1]],
        )

    def test_input_coupling_position_only(self):
        """Level 0: linear velocity drives x and angular velocity heading, gain T."""
        T = 0.1
        transition, _ = build_model(0, T)
        np.testing.assert_allclose(transition.B, [[T, 0], [0, 0], [0, T]])
        np.testing.assert_array_equal(transition.A, transition.F)

    def test_input_coupling(self):
        """Level >= 1: the command sets ẋ and θ̇ and never touches position."""
        T = 0.1
        for level in range(1, 4):
            transition, _ = build_model(level, T)
            B = transition.B
            self.assertEqual(B.shape, (3 * (level + 1), 2))

            expected = np.zeros_like(B)
            expected[3, 0] = 1.0
            expected[5, 1] = 1.0
            np.testing.assert_array_equal(B, expected)
            np.testing.assert_array_equal(B[:3], np.zeros((3, 2)))

    def test_commanded_rows_cleared_in_A(self):
        transition, _ = build_model(2, 0.1)
        A, F = transition.A, transition.F

        np.testing.assert_array_equal(A[[3, 5]], np.zeros((2, 9)))
        keep = [0, 1, 2, 4, 6, 7, 8]
        np.testing.assert_array_equal(A[keep], F[keep])

        unicycle, _ = build_model(2, 0.1, coupling="unicycle")
        np.testing.assert_array_equal(unicycle.A[[3, 4, 5]], np.zeros((3, 9)))
        np.testing.assert_array_equal(unicycle.F, F)

    def test_structures_are_read_only(self):
        transition, meas = build_model(1, 0.1)
        with self.assertRaises(ValueError):
            transition.F[0, 0] = 2.0
        with self.assertRaises(ValueError):
            transition.A[0, 0] = 2.0
        with self.assertRaises(ValueError):
            transition.B[0, 0] = 2.0
        with self.assertRaises(ValueError):
            meas.H[0, 0] = 2.0

    def test_deterministic(self):
        t1, m1 = build_model(2, 0.05)
        t2, m2 = build_model(2, 0.05)
        np.testing.assert_array_equal(t1.F, t2.F)
        np.testing.assert_array_equal(t1.B, t2.B)
        np.testing.assert_array_equal(m1.H, m2.H)

    def test_unicycle_input_matrix(self):
        T = 0.1
        transition, _ = build_model(0, T, coupling="unicycle")

        np.testing.assert_allclose(
            transition.input_matrix(0.0), [[T, 0], [0, 0], [0, T]], atol=1e-15
        )
        np.testing.assert_allclose(
            transition.input_matrix(np.pi / 2), [[0, 0], [T, 0], [0, T]], atol=1e-15
        )
        # B itself stays untouched
        np.testing.assert_allclose(transition.B, [[T, 0], [0, 0], [0, T]])

    def test_unicycle_input_matrix_velocity_order(self):
        transition, _ = build_model(1, 0.1, coupling="unicycle")
        G = transition.input_matrix(np.pi / 2)

        expected = np.zeros((6, 2))
        expected[4, 0] = 1.0
        expected[5, 1] = 1.0
        np.testing.assert_allclose(G, expected, atol=1e-15)

    def test_linear_input_matrix_ignores_heading(self):
        transition, _ = build_model(1, 0.1)
        np.testing.assert_array_equal(transition.input_matrix(1.0), transition.B)


class TestMeasurementStructure(unittest.TestCase):
    """Test H built by build_model()."""

    def test_default_selects_x(self):
        for level in range(3):
            _, meas = build_model(level, 0.1)
            expected = np.zeros((1, 3 * (level + 1)))
            expected[0, 0] = 1.0
            np.testing.assert_array_equal(meas.H, expected)

    def test_only_position_rows_observed(self):
        _, meas = build_model(2, 0.1, meas_dimension=3)
        self.assertEqual(meas.H.shape, (3, 9))
        np.testing.assert_array_equal(meas.H[:, :3], np.eye(3))
        np.testing.assert_array_equal(meas.H[:, 3:], np.zeros((3, 6)))


class TestBuildModelValidation(unittest.TestCase):
    """Test configuration errors raised by build_model()."""

    def test_unsupported_level(self):
        with self.assertRaises(ConfigurationError):
            build_model(MAX_CONTINUITY_LEVEL + 1, 0.1)
        with self.assertRaises(ConfigurationError):
            build_model(-1, 0.1)

    def test_invalid_period(self):
        for period in (0.0, -0.1, float("nan"), float("inf"), "0.1"):
            with self.assertRaises(ConfigurationError):
                build_model(0, period)

    def test_pos_state_dimension_mismatch(self):
        build_model(1, 0.1, pos_state_dimension=3)
        with self.assertRaises(ConfigurationError):
            build_model(1, 0.1, pos_state_dimension=2)

    def test_meas_dimension_out_of_range(self):
        for m in (0, 4):
            with self.assertRaises(ConfigurationError):
                build_model(0, 0.1, meas_dimension=m)

    def test_unknown_coupling(self):
        with self.assertRaises(ConfigurationError):
            build_model(0, 0.1, coupling="ackermann")

    def test_large_period_warns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            build_model(0, 20.0)
        self.assertTrue(any(issubclass(w.category, RuntimeWarning) for w in caught))


if __name__ == "__main__":
    unittest.main()
