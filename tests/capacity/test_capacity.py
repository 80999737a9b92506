"""
tests/capacity/test_capacity.py

Covers:
  - Construction and validation
  - Load profile shape and values
  - Simulation violations, peak and half-open overlap
  - span_load and fits
  - derate_capacity
  - Invariants (empty input, inputs not mutated)
"""

import numpy as np
import pytest

from loadguard import InvalidInputError, LoadInterval
from loadguard.capacity import Capacity, derate_capacity, simulate, span_load


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def cap():
    """1000 W ceiling, 5-minute steps."""
    return Capacity(1000.0)

@pytest.fixture
def heater():
    return LoadInterval("heater", 700.0, "08:00", "10:00")

@pytest.fixture
def pump():
    return LoadInterval("pump", 400.0, "09:00", "11:00")


# ── Construction ──────────────────────────────────────────────────────────────

class TestConstruction:

    def test_negative_ceiling_raises(self):
        with pytest.raises(InvalidInputError):
            Capacity(-1.0)

    def test_infinite_ceiling_raises(self):
        with pytest.raises(InvalidInputError):
            Capacity(float("inf"))

    def test_zero_ceiling_allowed(self):
        assert Capacity(0.0).ceiling_w == 0.0

    @pytest.mark.parametrize("step", [0, -5, 1441, 2.5])
    def test_bad_step_raises(self, step):
        with pytest.raises(InvalidInputError):
            Capacity(1000.0, step_minutes=step)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            Capacity(-1.0)

    def test_properties(self, cap):
        assert cap.ceiling_w == 1000.0
        assert cap.step_minutes == 5

    def test_slice_starts(self, cap):
        starts = cap.slice_starts
        assert starts.size == 288
        assert starts[0] == 0
        assert starts[-1] == 1435

    def test_slice_starts_is_copy(self, cap):
        cap.slice_starts[0] = 99
        assert cap.slice_starts[0] == 0

    def test_uneven_step_truncates_last_slice(self):
        c = Capacity(100.0, step_minutes=7)
        result = c.simulate([LoadInterval("x", 200.0, "23:55", "24:00")])
        last = result.violations[-1]
        assert last.end_minute == 1440

    def test_repr(self, cap):
        r = repr(cap)
        assert "Capacity(ceiling_w=1000.0" in r
        assert "step_minutes=5" in r
        assert "slices=288" in r


# ── Load profile ──────────────────────────────────────────────────────────────

class TestLoadProfile:

    def test_empty_is_zero(self, cap):
        profile = cap.load_profile([])
        assert profile.shape == (288,)
        assert not profile.any()

    def test_single_interval(self, cap, heater):
        profile = cap.load_profile([heater])
        on = np.flatnonzero(profile)
        assert on[0] == 8 * 12
        assert on[-1] == 10 * 12 - 1
        assert profile[on].tolist() == [700.0] * 24

    def test_overlap_sums(self, cap, heater, pump):
        profile = cap.load_profile([heater, pump])
        assert profile[9 * 12] == pytest.approx(1100.0)
        assert profile[8 * 12] == pytest.approx(700.0)
        assert profile[10 * 12] == pytest.approx(400.0)

    def test_partial_slice_counts(self):
        c = Capacity(1000.0, step_minutes=15)
        profile = c.load_profile([LoadInterval("x", 300.0, "08:10", "08:20")])
        # 08:00-08:15 and 08:15-08:30 both touched
        assert profile[32] == 300.0
        assert profile[33] == 300.0
        assert profile[34] == 0.0


# ── Simulation ────────────────────────────────────────────────────────────────

class TestSimulate:

    def test_clean_day(self, cap, heater):
        result = cap.simulate([heater])
        assert result.clean
        assert result.peak_load_w == 700.0
        assert result.overloaded_minutes == 0

    def test_overlap_violations(self, cap, heater, pump):
        result = cap.simulate([heater, pump])
        assert not result.clean
        assert len(result.violations) == 12
        first = result.violations[0]
        assert (first.start_minute, first.end_minute) == (540, 545)
        assert first.load_w == pytest.approx(1100.0)
        assert first.ceiling_w == 1000.0
        assert first.excess_w == pytest.approx(100.0)
        assert result.violations[-1].end_minute == 600
        assert result.overloaded_minutes == 60
        assert result.peak_load_w == pytest.approx(1100.0)

    def test_violation_str(self, cap, heater, pump):
        v = cap.simulate([heater, pump]).violations[0]
        assert str(v) == "09:00–09:05 load 1100W > 1000W"

    def test_back_to_back_do_not_overlap(self, cap):
        a = LoadInterval("a", 700.0, "08:00", "09:00")
        b = LoadInterval("b", 700.0, "09:00", "10:00")
        assert cap.simulate([a, b]).clean

    def test_load_equal_to_ceiling_is_fine(self, cap):
        a = LoadInterval("a", 600.0, "08:00", "09:00")
        b = LoadInterval("b", 400.0, "08:00", "09:00")
        assert cap.simulate([a, b]).clean

    def test_functional_wrapper(self, heater, pump):
        result = simulate([heater, pump], 1000.0, step_minutes=60)
        assert len(result.violations) == 1
        assert result.step_minutes == 60
        assert result.violations[0].start_minute == 540

    def test_zero_ceiling_flags_any_load(self):
        result = simulate([LoadInterval("x", 1.0, "00:00", "00:05")], 0.0)
        assert len(result.violations) == 1


# ── span_load / fits ──────────────────────────────────────────────────────────

class TestSpanLoad:

    def test_counts_overlapping_only(self, heater, pump):
        assert span_load([heater, pump], 420, 480) == 0.0
        assert span_load([heater, pump], 600, 660) == 400.0
        assert span_load([heater, pump], 570, 600) == 1100.0

    def test_counts_non_coexisting_intervals(self):
        a = LoadInterval("a", 500.0, "08:00", "09:00")
        b = LoadInterval("b", 500.0, "10:00", "11:00")
        # both touch the span even though they never run together
        assert span_load([a, b], 480, 660) == 1000.0

    def test_fits(self, cap, heater):
        assert cap.fits([heater], 480, 600, 300.0)
        assert not cap.fits([heater], 480, 600, 301.0)
        assert cap.fits([heater], 600, 720, 1000.0)


# ── derate_capacity ───────────────────────────────────────────────────────────

class TestDerate:

    def test_default_factor(self):
        assert derate_capacity(1300.0) == pytest.approx(1040.0)

    def test_custom_factor(self):
        assert derate_capacity(2000.0, factor=1.0) == 2000.0

    @pytest.mark.parametrize("factor", [0.0, -0.1, 1.5])
    def test_bad_factor_raises(self, factor):
        with pytest.raises(InvalidInputError):
            derate_capacity(1000.0, factor=factor)

    def test_negative_nameplate_raises(self):
        with pytest.raises(InvalidInputError):
            derate_capacity(-1.0)


# ── Invariants ────────────────────────────────────────────────────────────────

class TestInvariants:

    @pytest.mark.parametrize("ceiling", [0.0, 1.0, 1000.0])
    def test_empty_never_violates(self, ceiling):
        result = simulate([], ceiling)
        assert result.clean
        assert result.peak_load_w == 0.0

    def test_inputs_not_mutated(self, cap, heater, pump):
        intervals = [heater, pump]
        cap.simulate(intervals)
        assert intervals == [heater, pump]
        assert heater.start_minute == 480

    def test_accepts_tuple(self, cap, heater):
        assert cap.simulate((heater,)).clean
