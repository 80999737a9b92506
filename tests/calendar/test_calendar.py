"""
tests/calendar/test_calendar.py

Covers:
  - Date iteration
  - Per-date slicing of single- and multi-day schedules, boundary dates
  - Lossless slicing (per-date parts sum to the whole)
  - Booked hours and load intervals for a date
  - Same-device schedule clashes
"""

import math
from datetime import date

import pytest

from loadguard import Device, Schedule
from loadguard.calendar import (
    energy_kwh_on_date,
    find_schedule_clashes,
    hours_on_date,
    intervals_for_date,
    iter_dates,
    minutes_on_date,
    scheduled_hours_for_date,
    segment_on_date,
)

D6, D7, D8, D9 = (date(2025, 1, d) for d in (6, 7, 8, 9))


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def overnight():
    """22:00 on the 6th to 02:00 on the 8th."""
    return Schedule.create("heater", D6, D8, "22:00", "02:00", schedule_id="s1")

@pytest.fixture
def morning():
    return Schedule.create("pump", D7, D7, "08:00", "10:30", schedule_id="s2")

@pytest.fixture
def devices():
    return {
        "heater": Device("heater", 2000.0, "Interrupt", priority_score=0.7),
        "pump": Device("pump", 400.0, "Non Interrupt", priority_score=0.4),
    }


# ── iter_dates ────────────────────────────────────────────────────────────────

class TestIterDates:

    def test_inclusive(self):
        assert list(iter_dates(D6, D8)) == [D6, D7, D8]

    def test_single(self):
        assert list(iter_dates(D7, D7)) == [D7]

    def test_reversed_is_empty(self):
        assert list(iter_dates(D8, D6)) == []

    def test_month_boundary(self):
        days = list(iter_dates(date(2025, 1, 30), date(2025, 2, 2)))
        assert len(days) == 4
        assert days[-1] == date(2025, 2, 2)


# ── Slicing ───────────────────────────────────────────────────────────────────

class TestSegments:

    def test_single_day(self, morning):
        assert segment_on_date(morning, D7) == (480, 630)
        assert minutes_on_date(morning, D7) == 150

    def test_start_date(self, overnight):
        assert segment_on_date(overnight, D6) == (1320, 1440)

    def test_middle_date(self, overnight):
        assert segment_on_date(overnight, D7) == (0, 1440)

    def test_end_date(self, overnight):
        assert segment_on_date(overnight, D8) == (0, 120)

    def test_outside(self, overnight):
        assert segment_on_date(overnight, D9) is None
        assert minutes_on_date(overnight, D9) == 0

    def test_hours_and_energy(self, overnight):
        assert hours_on_date(overnight, D6) == 2.0
        assert energy_kwh_on_date(overnight, 2000.0, D7) == pytest.approx(48.0)

    def test_start_at_midnight_gives_full_first_day(self):
        s = Schedule.create("x", D6, D7, "00:00", "06:00")
        assert minutes_on_date(s, D6) == 1440

    def test_end_at_midnight_gives_empty_last_day(self):
        s = Schedule.create("x", D6, D7, "18:00", "00:00")
        assert minutes_on_date(s, D6) == 360
        assert minutes_on_date(s, D7) == 0

    def test_end_at_2400(self):
        s = Schedule.create("x", D6, D7, "18:00", "24:00")
        assert minutes_on_date(s, D7) == 1440

    @pytest.mark.parametrize("start, end, start_time, end_time", [
        (D6, D8, "22:00", "02:00"),
        (D6, D8, "10:00", "14:00"),
        (D6, D9, "00:00", "24:00"),
        (D6, D6, "07:15", "19:45"),
        (date(2024, 2, 28), date(2024, 3, 1), "12:00", "12:00"),
    ])
    def test_slicing_is_lossless(self, start, end, start_time, end_time):
        s = Schedule.create("x", start, end, start_time, end_time)
        per_day = [energy_kwh_on_date(s, 1000.0, d) for d in iter_dates(start, end)]
        assert math.fsum(per_day) == pytest.approx(1000.0 * s.duration_minutes / 60 / 1000)


# ── Booked hours / intervals ──────────────────────────────────────────────────

class TestScheduledHours:

    def test_per_device(self, overnight, morning):
        hours = scheduled_hours_for_date([overnight, morning], D7)
        assert hours == {"heater": 24.0, "pump": 2.5}

    def test_same_device_summed(self):
        a = Schedule.create("pump", D7, D7, "08:00", "09:00")
        b = Schedule.create("pump", D7, D7, "12:00", "12:30")
        assert scheduled_hours_for_date([a, b], D7) == {"pump": 1.5}

    def test_inactive_skipped(self):
        s = Schedule.create("pump", D7, D7, "08:00", "09:00", active=False)
        assert scheduled_hours_for_date([s], D7) == {}
        assert scheduled_hours_for_date([s], D7, active_only=False) == {"pump": 1.0}

    def test_zero_contribution_omitted(self):
        s = Schedule.create("x", D6, D7, "18:00", "00:00")
        assert scheduled_hours_for_date([s], D7) == {}


class TestIntervalsForDate:

    def test_multi_day_split(self, overnight, devices):
        (first,) = intervals_for_date([overnight], devices, D6)
        assert (first.start_minute, first.end_minute) == (1320, 1440)
        assert first.power_w == 2000.0
        assert first.interruptible
        assert first.priority_score == 0.7

    def test_mixed_day(self, overnight, morning, devices):
        intervals = intervals_for_date([overnight, morning], devices, D7)
        assert [(iv.device_id, iv.start_minute, iv.end_minute) for iv in intervals] == [
            ("heater", 0, 1440),
            ("pump", 480, 630),
        ]
        assert not intervals[1].interruptible

    def test_unknown_device_skipped(self, devices):
        s = Schedule.create("ghost", D7, D7, "08:00", "09:00")
        assert intervals_for_date([s], devices, D7) == ()

    def test_empty_segment_skipped(self, devices):
        s = Schedule.create("heater", D6, D7, "18:00", "00:00")
        assert intervals_for_date([s], devices, D7) == ()


# ── Clashes ───────────────────────────────────────────────────────────────────

class TestScheduleClashes:

    def test_exact_duplicate(self, morning):
        dup = Schedule.create("pump", D7, D7, "08:00", "10:30")
        assert find_schedule_clashes(dup, [morning]) == (morning,)

    def test_overlap_across_days(self, overnight):
        inside = Schedule.create("heater", D7, D7, "12:00", "13:00")
        assert find_schedule_clashes(inside, [overnight]) == (overnight,)

    def test_back_to_back_no_clash(self, morning):
        after = Schedule.create("pump", D7, D7, "10:30", "11:00")
        assert find_schedule_clashes(after, [morning]) == ()

    def test_other_device_ignored(self, morning):
        other = Schedule.create("heater", D7, D7, "08:00", "10:30")
        assert find_schedule_clashes(other, [morning]) == ()

    def test_edit_ignores_itself(self, morning):
        edited = Schedule.create("pump", D7, D7, "09:00", "11:00", schedule_id="s2")
        assert find_schedule_clashes(edited, [morning]) == ()
