from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Sequence

from loadguard._exceptions import InvalidInputError
from loadguard.models import Device, EnergyLimit, Schedule

from .calendar import energy_kwh_on_date, iter_dates

_LOGGER = logging.getLogger(__name__)

# Sums of float slices should not trip a limit they meet exactly.
_KWH_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class LimitViolation:
    day: date
    existing_kwh: float
    request_kwh: float
    cap_kwh: float

    @property
    def total_kwh(self) -> float:
        return self.existing_kwh + self.request_kwh

    @property
    def excess_kwh(self) -> float:
        return self.total_kwh - self.cap_kwh

    def __str__(self) -> str:
        return (
            f"{self.day.isoformat()}: existing {self.existing_kwh:.2f} kWh + "
            f"request {self.request_kwh:.2f} kWh > limit {self.cap_kwh:.2f} kWh"
        )


@dataclass(frozen=True)
class LimitCheck:
    violations: tuple[LimitViolation, ...] = ()
    checked_dates: tuple[date, ...] = ()
    unchecked_dates: tuple[date, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations


def resolve_limit(limits: Iterable[EnergyLimit], day: date) -> EnergyLimit | None:
    """
    The limit governing ``day``: the narrowest covering date range, with the
    later-supplied limit winning a tie.
    """
    best: EnergyLimit | None = None
    for limit in limits:
        if not limit.covers(day):
            continue
        if best is None or limit.span_days <= best.span_days:
            best = limit
    return best


def find_overlapping_limits(new: EnergyLimit, limits: Iterable[EnergyLimit]) -> tuple[EnergyLimit, ...]:
    """Limits whose date range intersects ``new`` (excluding ``new`` itself by id)."""
    return tuple(
        limit for limit in limits
        if not (new.limit_id is not None and limit.limit_id == new.limit_id)
        and limit.start_date <= new.end_date
        and limit.end_date >= new.start_date
    )


def _power_of(device_id: str, devices: Mapping[str, Device]) -> float | None:
    device = devices.get(device_id)
    return None if device is None else device.power_w


def validate_against_limit(
    candidates: Schedule | Sequence[Schedule],
    existing: Iterable[Schedule],
    devices: Mapping[str, Device],
    limits: Sequence[EnergyLimit],
) -> LimitCheck:
    """
    Check planned energy on every date the candidate schedule(s) touch.

    For each date with a positive limit, the contribution of every existing
    schedule covering that date is added to the candidates' contribution and
    compared with the daily budget.  Existing schedules sharing a
    ``schedule_id`` with a candidate are left out, so an edit is validated
    against everything but its own previous version.  Dates without a limit
    are not checked.
    """
    if isinstance(candidates, Schedule):
        candidates = (candidates,)
    existing = tuple(existing)

    request_kwh: dict[date, float] = defaultdict(float)
    for candidate in candidates:
        power = _power_of(candidate.device_id, devices)
        if power is None:
            raise InvalidInputError(f"Unknown device {candidate.device_id!r} in candidate schedule.")
        for day in iter_dates(candidate.start_date, candidate.end_date):
            kwh = energy_kwh_on_date(candidate, power, day)
            if kwh > 0:
                request_kwh[day] += kwh

    excluded = {c.schedule_id for c in candidates if c.schedule_id is not None}
    others = [s for s in existing if s.schedule_id is None or s.schedule_id not in excluded]

    violations: list[LimitViolation] = []
    checked: list[date] = []
    unchecked: list[date] = []

    for day in sorted(request_kwh):
        limit = resolve_limit(limits, day)
        if limit is None or limit.daily_budget_kwh <= 0:
            unchecked.append(day)
            continue
        checked.append(day)

        existing_kwh = math.fsum(
            energy_kwh_on_date(s, _power_of(s.device_id, devices) or 0.0, day)
            for s in others
            if s.covers(day)
        )
        requested = request_kwh[day]
        if existing_kwh + requested > limit.daily_budget_kwh + _KWH_TOLERANCE:
            violation = LimitViolation(
                day=day,
                existing_kwh=existing_kwh,
                request_kwh=requested,
                cap_kwh=limit.daily_budget_kwh,
            )
            _LOGGER.info("Energy limit exceeded: %s", violation)
            violations.append(violation)

    return LimitCheck(
        violations=tuple(violations),
        checked_dates=tuple(checked),
        unchecked_dates=tuple(unchecked),
    )
