"""
loadguard.calendar
~~~~~~~~~~~~~~~~~~

Calendar arithmetic for schedules that may span several days, and validation
of planned energy against per-date kWh limits.

A multi-day schedule contributes ``24:00 − start`` on its start date,
``end − 00:00`` on its end date and a full day on every date in between; a
single-day schedule contributes ``end − start``.

Basic usage::

    from datetime import date
    from loadguard.calendar import validate_against_limit
    from loadguard.models import Device, EnergyLimit, Schedule

    heater = Device("heater", 2000.0, "Interrupt", target_hours=4)
    booking = Schedule.create("heater", "2025-01-06", "2025-01-08", "22:00", "02:00")
    limit = EnergyLimit(date(2025, 1, 1), date(2025, 1, 31), daily_budget_kwh=20.0)

    check = validate_against_limit(booking, [], {"heater": heater}, [limit])
    check.ok                      # → False: 48 kWh on 2025-01-07
    check.violations[0].day       # → date(2025, 1, 7)

Splitting schedules into single-day intervals for the capacity simulator::

    from loadguard.calendar import intervals_for_date
    intervals = intervals_for_date(schedules, devices_by_id, date(2025, 1, 7))

Public API
----------
validate_against_limit   Per-date limit check for candidate schedule(s).
resolve_limit            Limit governing a date.
intervals_for_date       Schedules → single-day LoadIntervals.
scheduled_hours_for_date Booked hours per device on a date.
find_schedule_clashes    Same-device duplicates / overlaps.
"""

from __future__ import annotations

from loadguard.calendar.calendar import (
    energy_kwh_on_date,
    find_schedule_clashes,
    hours_on_date,
    intervals_for_date,
    iter_dates,
    minutes_on_date,
    scheduled_hours_for_date,
    segment_on_date,
)
from loadguard.calendar.limits import (
    LimitCheck,
    LimitViolation,
    find_overlapping_limits,
    resolve_limit,
    validate_against_limit,
)

__all__ = [
    "LimitCheck",
    "LimitViolation",
    "energy_kwh_on_date",
    "find_overlapping_limits",
    "find_schedule_clashes",
    "hours_on_date",
    "intervals_for_date",
    "iter_dates",
    "minutes_on_date",
    "resolve_limit",
    "scheduled_hours_for_date",
    "segment_on_date",
    "validate_against_limit",
]
