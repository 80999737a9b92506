"""
tests/priority/test_membership.py

Covers:
  - trimf / trapmf values on slopes, peaks and plateaus
  - Scalar in → scalar out, array in → array out
  - Coincident breakpoints (vertical edges, open shoulders)
  - Breakpoint validation
"""

import numpy as np
import pytest

from loadguard import InvalidInputError
from loadguard.priority import trapmf, trimf


# ── trimf ─────────────────────────────────────────────────────────────────────

class TestTrimf:

    def test_peak_is_one(self):
        assert trimf(6.0, (3, 6, 10)) == 1.0

    def test_rising_slope(self):
        assert trimf(4.5, (3, 6, 10)) == pytest.approx(0.5)

    def test_falling_slope(self):
        assert trimf(8.0, (3, 6, 10)) == pytest.approx(0.5)

    @pytest.mark.parametrize("x", [0.0, 3.0, 10.0, 50.0])
    def test_outside_and_feet_are_zero(self, x):
        assert trimf(x, (3, 6, 10)) == 0.0

    def test_scalar_returns_float(self):
        assert isinstance(trimf(5.0, (3, 6, 10)), float)

    def test_array_in_array_out(self):
        y = trimf(np.array([3.0, 4.5, 6.0, 8.0, 10.0]), (3, 6, 10))
        assert isinstance(y, np.ndarray)
        np.testing.assert_allclose(y, [0.0, 0.5, 1.0, 0.5, 0.0])

    def test_left_vertical_edge(self):
        assert trimf(0.0, (0, 0, 1)) == 1.0
        assert trimf(0.5, (0, 0, 1)) == pytest.approx(0.5)

    def test_right_vertical_edge(self):
        assert trimf(1.0, (0, 1, 1)) == 1.0
        assert trimf(0.25, (0, 1, 1)) == pytest.approx(0.25)

    def test_degenerate_spike(self):
        y = trimf(np.array([0.9, 1.0, 1.1]), (1, 1, 1))
        np.testing.assert_array_equal(y, [0.0, 1.0, 0.0])


# ── trapmf ────────────────────────────────────────────────────────────────────

class TestTrapmf:

    def test_plateau(self):
        assert trapmf(100.0, (30, 50, 120, 150)) == 1.0
        assert trapmf(50.0, (30, 50, 120, 150)) == 1.0
        assert trapmf(120.0, (30, 50, 120, 150)) == 1.0

    def test_slopes(self):
        assert trapmf(40.0, (30, 50, 120, 150)) == pytest.approx(0.5)
        assert trapmf(135.0, (30, 50, 120, 150)) == pytest.approx(0.5)

    def test_outside_is_zero(self):
        assert trapmf(10.0, (30, 50, 120, 150)) == 0.0
        assert trapmf(200.0, (30, 50, 120, 150)) == 0.0

    def test_open_left(self):
        y = trapmf(np.array([-1.0, 0.0, 2.0, 3.0, 4.0]), (0, 0, 2, 4))
        np.testing.assert_allclose(y, [1.0, 1.0, 1.0, 0.5, 0.0])

    def test_open_right(self):
        y = trapmf(np.array([550.0, 575.0, 600.0, 900.0, 1500.0]), (550, 600, 900, 900))
        np.testing.assert_allclose(y, [0.0, 0.5, 1.0, 1.0, 1.0])

    def test_values_in_unit_interval(self):
        x = np.linspace(-10, 1000, 2021)
        y = trapmf(x, (120, 150, 300, 350))
        assert y.min() >= 0.0
        assert y.max() <= 1.0


# ── Validation ────────────────────────────────────────────────────────────────

class TestValidation:

    def test_wrong_count_raises(self):
        with pytest.raises(InvalidInputError):
            trimf(1.0, (0, 1))
        with pytest.raises(InvalidInputError):
            trapmf(1.0, (0, 1, 2))

    def test_decreasing_raises(self):
        with pytest.raises(InvalidInputError):
            trimf(1.0, (2, 1, 3))
        with pytest.raises(InvalidInputError):
            trapmf(1.0, (0, 2, 1, 3))
