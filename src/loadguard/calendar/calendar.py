from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Iterator, Mapping

from loadguard.const import MINUTES_PER_DAY
from loadguard.models import Device, LoadInterval, Schedule

_LOGGER = logging.getLogger(__name__)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date in ``[start, end]``, inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def segment_on_date(schedule: Schedule, day: date) -> tuple[int, int] | None:
    """
    The ``(start_minute, end_minute)`` part of a schedule that falls on ``day``.

    Single-day schedules keep their own span.  A multi-day schedule runs from
    its start time to 24:00 on the start date, from 00:00 to its end time on
    the end date, and covers days in between in full.
    """
    if not schedule.covers(day):
        return None
    if schedule.is_single_day:
        return schedule.start_minute, schedule.end_minute
    if day == schedule.start_date:
        return schedule.start_minute, MINUTES_PER_DAY
    if day == schedule.end_date:
        return 0, schedule.end_minute
    return 0, MINUTES_PER_DAY


def minutes_on_date(schedule: Schedule, day: date) -> int:
    segment = segment_on_date(schedule, day)
    if segment is None:
        return 0
    start, end = segment
    return max(0, end - start)


def hours_on_date(schedule: Schedule, day: date) -> float:
    return minutes_on_date(schedule, day) / 60.0


def energy_kwh_on_date(schedule: Schedule, power_w: float, day: date) -> float:
    return power_w / 1000.0 * hours_on_date(schedule, day)


def scheduled_hours_for_date(
    schedules: Iterable[Schedule],
    day: date,
    *,
    active_only: bool = True,
) -> dict[str, float]:
    """Total booked hours per device on ``day``."""
    hours: dict[str, float] = defaultdict(float)
    for schedule in schedules:
        if active_only and not schedule.active:
            continue
        minutes = minutes_on_date(schedule, day)
        if minutes > 0:
            hours[schedule.device_id] += minutes / 60.0
    return dict(hours)


def intervals_for_date(
    schedules: Iterable[Schedule],
    devices: Mapping[str, Device],
    day: date,
    *,
    active_only: bool = True,
) -> tuple[LoadInterval, ...]:
    """
    Single-day load intervals for every schedule covering ``day``.

    Schedules whose device is not in ``devices`` are skipped.
    """
    intervals = []
    for schedule in schedules:
        if active_only and not schedule.active:
            continue
        segment = segment_on_date(schedule, day)
        if segment is None or segment[0] >= segment[1]:
            continue
        device = devices.get(schedule.device_id)
        if device is None:
            _LOGGER.debug("Skipping schedule %s: unknown device %r", schedule.schedule_id, schedule.device_id)
            continue
        intervals.append(LoadInterval.for_device(device, segment[0], segment[1]))
    return tuple(intervals)


def find_schedule_clashes(candidate: Schedule, existing: Iterable[Schedule]) -> tuple[Schedule, ...]:
    """
    Existing schedules of the same device that duplicate or overlap ``candidate``.

    Overlap is judged on the full date-time span, so a multi-day booking
    clashes with anything that falls inside it.  A schedule with the same
    ``schedule_id`` as the candidate is the candidate itself and is ignored.
    """
    clashes = []
    for other in existing:
        if other.device_id != candidate.device_id:
            continue
        if candidate.schedule_id is not None and other.schedule_id == candidate.schedule_id:
            continue
        if candidate.starts_at < other.ends_at and candidate.ends_at > other.starts_at:
            clashes.append(other)
    return tuple(clashes)
