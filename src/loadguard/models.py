"""
loadguard.models
~~~~~~~~~~~~~~~~

Immutable snapshots handed to the engine by its caller.  Nothing in this
module performs I/O; the caller loads devices, schedules and limits from its
own store and passes them in.

Times of day are held as integer minutes since midnight (``0`` … ``1440``,
where ``1440`` is 24:00).  ``to_minutes`` accepts ``datetime.time`` objects,
``"HH:MM"`` / ``"HH:MM:SS"`` strings and plain integers.
"""

from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Union

from loadguard._exceptions import InvalidInputError, TimeFormatError
from loadguard.const import MINUTES_PER_DAY

TimeLike = Union[int, str, time]
DateLike = Union[date, str]

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")
_NON_INTERRUPT_RE = re.compile(r"non[\s_-]*interrupt", re.IGNORECASE)
_INTERRUPT_RE = re.compile(r"(^|[\s_-])interrupt", re.IGNORECASE)


# ── time helpers ─────────────────────────────────────────────────────────────

def to_minutes(value: TimeLike) -> int:
    """Normalise a time of day to minutes since midnight (seconds are dropped)."""
    if isinstance(value, bool):
        raise TimeFormatError(f"Not a time of day: {value!r}.")
    if isinstance(value, numbers.Integral):
        minutes = int(value)
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        match = _TIME_RE.match(value)
        if match is None:
            raise TimeFormatError(f"Cannot parse time of day {value!r}; expected HH:MM.")
        hours, mins = int(match.group(1)), int(match.group(2))
        if mins >= 60:
            raise TimeFormatError(f"Minute field out of range in {value!r}.")
        minutes = hours * 60 + mins
    else:
        raise TimeFormatError(f"Unsupported time of day type: {type(value).__name__}.")

    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise TimeFormatError(f"Time of day must lie within 00:00–24:00; got {value!r}.")
    return minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidInputError(f"Cannot parse date {value!r}; expected YYYY-MM-DD.") from exc


def _check_non_negative(name: str, value: float, *, allow_inf: bool = False) -> float:
    value = float(value)
    if math.isnan(value) or value < 0.0:
        raise InvalidInputError(f"{name} must be non-negative; got {value}.")
    if math.isinf(value) and not allow_inf:
        raise InvalidInputError(f"{name} must be finite; got {value}.")
    return value


# ── devices ──────────────────────────────────────────────────────────────────

class OperatingClass(str, Enum):
    NON_INTERRUPTIBLE = "non_interruptible"
    INTERRUPTIBLE = "interruptible"

    @classmethod
    def parse(cls, value: OperatingClass | str) -> OperatingClass:
        """
        Accept the enum itself or a loose label such as ``"Interrupt"``,
        ``"Non Interrupt"``, ``"NI"`` or ``"I"``.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text.upper() == "NI" or _NON_INTERRUPT_RE.search(text):
            return cls.NON_INTERRUPTIBLE
        if text.upper() == "I" or _INTERRUPT_RE.search(text):
            return cls.INTERRUPTIBLE
        raise InvalidInputError(f"Unknown operating class {value!r}.")


@dataclass(frozen=True, slots=True)
class Device:
    """
    Snapshot of one managed device.

    ``target_hours`` of ``None`` means the desired daily runtime is unbounded.
    ``quota_hours`` and ``consumed_hours`` are the caller's stored values for
    the current day; the allocator never mutates them, it returns new quotas.
    Once a positive finite quota is set, consumption may not exceed it; a
    zero quota means none has been allocated yet.
    """

    device_id: str
    power_w: float
    operating_class: OperatingClass
    target_hours: float | None = None
    priority_score: float = 0.0
    quota_hours: float = 0.0
    consumed_hours: float = 0.0
    is_running: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "operating_class", OperatingClass.parse(self.operating_class))
        object.__setattr__(self, "power_w", _check_non_negative("power_w", self.power_w))
        if self.target_hours is not None:
            object.__setattr__(
                self, "target_hours",
                _check_non_negative("target_hours", self.target_hours, allow_inf=True),
            )
        score = float(self.priority_score)
        if not 0.0 <= score <= 1.0:
            raise InvalidInputError(f"priority_score must lie in [0, 1]; got {score}.")
        object.__setattr__(self, "priority_score", score)
        object.__setattr__(
            self, "quota_hours",
            _check_non_negative("quota_hours", self.quota_hours, allow_inf=True),
        )
        object.__setattr__(
            self, "consumed_hours", _check_non_negative("consumed_hours", self.consumed_hours)
        )
        if 0.0 < self.quota_hours < math.inf and self.consumed_hours > self.quota_hours:
            raise InvalidInputError(
                f"consumed_hours ({self.consumed_hours}) exceeds quota_hours ({self.quota_hours}) "
                f"for {self.device_id!r}."
            )

    @property
    def interruptible(self) -> bool:
        return self.operating_class is OperatingClass.INTERRUPTIBLE

    @property
    def target(self) -> float:
        """Target runtime with ``None`` mapped to infinity."""
        return math.inf if self.target_hours is None else self.target_hours

    @property
    def remaining_target_hours(self) -> float:
        return max(0.0, self.target - self.consumed_hours)

    @property
    def label(self) -> str:
        return self.name or self.device_id

    def with_quota(self, quota_hours: float) -> Device:
        return replace(self, quota_hours=quota_hours)


# ── schedules and limits ─────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Schedule:
    """
    A booked time window for one device, possibly spanning several days.

    ``start_minute`` applies to ``start_date`` and ``end_minute`` to
    ``end_date``; days strictly in between are covered in full.
    """

    device_id: str
    start_date: date
    end_date: date
    start_minute: int
    end_minute: int
    active: bool = True
    schedule_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", to_date(self.start_date))
        object.__setattr__(self, "end_date", to_date(self.end_date))
        object.__setattr__(self, "start_minute", to_minutes(self.start_minute))
        object.__setattr__(self, "end_minute", to_minutes(self.end_minute))

        if self.start_date > self.end_date:
            raise InvalidInputError(
                f"Schedule for {self.device_id!r} starts on {self.start_date} "
                f"after it ends on {self.end_date}."
            )
        if self.is_single_day and self.start_minute >= self.end_minute:
            raise InvalidInputError(
                f"Schedule for {self.device_id!r} on {self.start_date}: start "
                f"{format_minutes(self.start_minute)} must be before end "
                f"{format_minutes(self.end_minute)}."
            )

    @classmethod
    def create(
        cls,
        device_id: str,
        start_date: DateLike,
        end_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        *,
        active: bool = True,
        schedule_id: str | None = None,
    ) -> Schedule:
        return cls(
            device_id=device_id,
            start_date=to_date(start_date),
            end_date=to_date(end_date),
            start_minute=to_minutes(start_time),
            end_minute=to_minutes(end_time),
            active=active,
            schedule_id=schedule_id,
        )

    @property
    def is_single_day(self) -> bool:
        return self.start_date == self.end_date

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def duration_minutes(self) -> int:
        return (self.end_date - self.start_date).days * MINUTES_PER_DAY + self.end_minute - self.start_minute

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.start_date, time()) + timedelta(minutes=self.start_minute)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.end_date, time()) + timedelta(minutes=self.end_minute)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True, slots=True)
class EnergyLimit:
    """Daily energy budget applying to every date in an inclusive range."""

    start_date: date
    end_date: date
    daily_budget_kwh: float
    limit_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", to_date(self.start_date))
        object.__setattr__(self, "end_date", to_date(self.end_date))
        object.__setattr__(
            self, "daily_budget_kwh", _check_non_negative("daily_budget_kwh", self.daily_budget_kwh)
        )
        if self.start_date > self.end_date:
            raise InvalidInputError(
                f"Energy limit starts on {self.start_date} after it ends on {self.end_date}."
            )

    @property
    def daily_budget_wh(self) -> float:
        return self.daily_budget_kwh * 1000.0

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


# ── single-day load intervals ────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class LoadInterval:
    """
    A time-boxed load within one calendar day: ``[start_minute, end_minute)``.

    This is the unit the capacity simulator and the admission controller work
    on.  Multi-day schedules are split into one interval per day by
    ``loadguard.calendar.intervals_for_date``.
    """

    device_id: str
    power_w: float
    start_minute: int
    end_minute: int
    interruptible: bool = True
    priority_score: float = 0.0
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "power_w", _check_non_negative("power_w", self.power_w))
        object.__setattr__(self, "start_minute", to_minutes(self.start_minute))
        object.__setattr__(self, "end_minute", to_minutes(self.end_minute))
        if self.start_minute >= self.end_minute:
            raise InvalidInputError(
                f"Load interval for {self.device_id!r}: start "
                f"{format_minutes(self.start_minute)} must be before end "
                f"{format_minutes(self.end_minute)}."
            )

    @classmethod
    def for_device(cls, device: Device, start: TimeLike, end: TimeLike) -> LoadInterval:
        return cls(
            device_id=device.device_id,
            power_w=device.power_w,
            start_minute=to_minutes(start),
            end_minute=to_minutes(end),
            interruptible=device.interruptible,
            priority_score=device.priority_score,
            name=device.name,
        )

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def label(self) -> str:
        return self.name or self.device_id

    def overlaps(self, start_minute: int, end_minute: int) -> bool:
        return self.start_minute < end_minute and start_minute < self.end_minute

    def shifted_to(self, start_minute: int) -> LoadInterval:
        return replace(
            self,
            start_minute=start_minute,
            end_minute=start_minute + self.duration_minutes,
        )

    def __str__(self) -> str:
        return (
            f"{self.label} {format_minutes(self.start_minute)}–"
            f"{format_minutes(self.end_minute)} @ {self.power_w:g}W"
        )
