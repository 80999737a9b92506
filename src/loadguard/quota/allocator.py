from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Mapping, Sequence

import numpy as np

from loadguard._exceptions import InvalidInputError
from loadguard.calendar import intervals_for_date, resolve_limit, scheduled_hours_for_date
from loadguard.capacity import Violation, simulate
from loadguard.const import DEFAULT_SIMULATION_STEP_MIN, QUOTA_DECIMALS
from loadguard.models import Device, EnergyLimit, Schedule

_LOGGER = logging.getLogger(__name__)

# Absorbs representation error (3.2 * 100 = 319.99999...) before flooring.
_FLOOR_EPS = 1e-9


class QuotaReason(str, Enum):
    FULL_QUOTA = "full_quota"
    SCHEDULED_QUOTA = "scheduled_quota"
    FAIR_SHARE = "fair_share"
    STARVED = "starved"


@dataclass(frozen=True, slots=True)
class QuotaAllocation:
    device_id: str
    quota_hours: float
    reason: QuotaReason
    energy_wh: float = 0.0


@dataclass(frozen=True)
class AllocationReport:
    """
    Fresh quota for every device plus the day's energy bookkeeping.

    ``energy_wh`` on each allocation is what that device claims from the
    budget: full NI energy, committed scheduled energy, or the newly granted
    fair share.
    """

    allocations: Mapping[str, QuotaAllocation]
    budget_wh: float | None
    non_interruptible_wh: float = 0.0
    scheduled_interruptible_wh: float = 0.0
    remaining_wh: float = 0.0
    fair_share_wh: float = 0.0
    peak_violations: tuple[Violation, ...] = field(default_factory=tuple)

    def __getitem__(self, device_id: str) -> QuotaAllocation:
        return self.allocations[device_id]

    def quota(self, device_id: str) -> float:
        return self.allocations[device_id].quota_hours

    @property
    def limited(self) -> bool:
        return self.budget_wh is not None

    @property
    def committed_wh(self) -> float:
        return self.non_interruptible_wh + self.scheduled_interruptible_wh + self.fair_share_wh

    @property
    def exceeds_peak(self) -> bool:
        return bool(self.peak_violations)

    def apply(self, devices: Iterable[Device]) -> tuple[Device, ...]:
        """Copies of ``devices`` carrying their new quota; unknown devices pass through."""
        return tuple(
            d.with_quota(self.allocations[d.device_id].quota_hours)
            if d.device_id in self.allocations else d
            for d in devices
        )


def _energy_wh(power_w: float, hours: float) -> float:
    # An idle device with an unbounded target draws nothing.
    if power_w == 0.0 or hours == 0.0:
        return 0.0
    return power_w * hours


def _round_hours(hours: float, decimals: int) -> float:
    if math.isinf(hours):
        return hours
    return round(hours, decimals)


def _floor_hours(hours: float, decimals: int) -> float:
    if math.isinf(hours):
        return hours
    factor = 10 ** decimals
    return math.floor(hours * factor + _FLOOR_EPS) / factor


def allocate(
    devices: Sequence[Device],
    daily_budget_wh: float | None,
    scheduled_hours: Mapping[str, float] | None = None,
    *,
    decimals: int = QUOTA_DECIMALS,
) -> AllocationReport:
    """
    Compute today's quota (hours at rated power) for every device.

    Non-interruptible devices are charged their scheduled hours, or their full
    target when unscheduled.  Interruptible devices with a booking are charged
    their booked hours.  Whatever budget remains is split among the other
    interruptible devices in proportion to their priority score, capped at
    each device's remaining target.  A quota never drops below the hours a
    device has already consumed today.

    Committed devices are charged for the quota they are granted, so rounding
    a booking up never lets them draw more than the budget accounts for.

    With ``daily_budget_wh=None`` (no limit for the day) bookings are
    ignored: non-interruptible devices get their full target and every
    interruptible device is frozen at its consumed hours.
    """
    if daily_budget_wh is not None:
        daily_budget_wh = float(daily_budget_wh)
        if not math.isfinite(daily_budget_wh) or daily_budget_wh < 0:
            raise InvalidInputError(f"Daily budget must be finite and non-negative; got {daily_budget_wh}.")

    seen: set[str] = set()
    for device in devices:
        if device.device_id in seen:
            raise InvalidInputError(f"Duplicate device id {device.device_id!r} in roster.")
        seen.add(device.device_id)

    scheduled: dict[str, float] = {}
    for device_id, hours in (scheduled_hours or {}).items():
        if hours < 0 or math.isnan(hours):
            raise InvalidInputError(f"Scheduled hours for {device_id!r} must be non-negative; got {hours}.")
        if hours > 0:
            scheduled[device_id] = float(hours)
    if daily_budget_wh is None and scheduled:
        _LOGGER.debug("No energy limit: ignoring bookings for %d devices", len(scheduled))
        scheduled = {}

    allocations: dict[str, QuotaAllocation] = {}
    ni_wh = 0.0
    scheduled_i_wh = 0.0

    non_interruptible = [d for d in devices if not d.interruptible]
    interruptible = [d for d in devices if d.interruptible]

    for device in non_interruptible:
        booked = scheduled.get(device.device_id, 0.0)
        if booked > 0:
            hours, reason = booked, QuotaReason.SCHEDULED_QUOTA
        else:
            hours, reason = device.target, QuotaReason.FULL_QUOTA
        quota = max(device.consumed_hours, _round_hours(hours, decimals))
        energy = _energy_wh(device.power_w, quota)
        ni_wh += energy
        allocations[device.device_id] = QuotaAllocation(device.device_id, quota, reason, energy)
        _LOGGER.debug("%s (NI) -> %s: %.2fh", device.label, reason.value, quota)

    unscheduled: list[Device] = []
    for device in interruptible:
        booked = scheduled.get(device.device_id, 0.0)
        if booked <= 0:
            unscheduled.append(device)
            continue
        quota = max(device.consumed_hours, _round_hours(booked, decimals))
        energy = _energy_wh(device.power_w, quota)
        scheduled_i_wh += energy
        allocations[device.device_id] = QuotaAllocation(
            device.device_id, quota, QuotaReason.SCHEDULED_QUOTA, energy
        )
        _LOGGER.debug("%s (I) -> scheduled_quota: %.2fh", device.label, quota)

    if daily_budget_wh is None:
        remaining_wh = 0.0
        _LOGGER.debug("No energy limit: %d unscheduled interruptible devices frozen", len(unscheduled))
    else:
        remaining_wh = max(0.0, daily_budget_wh - ni_wh - scheduled_i_wh)

    eligible = [
        d for d in unscheduled
        if d.power_w > 0 and d.priority_score > 0 and d.remaining_target_hours > 0
    ]

    fair_share_wh = 0.0
    granted: dict[str, float] = {}
    if remaining_wh > 0 and eligible:
        scores = np.fromiter((d.priority_score for d in eligible), dtype=np.float64, count=len(eligible))
        powers = np.fromiter((d.power_w for d in eligible), dtype=np.float64, count=len(eligible))
        headroom = np.fromiter(
            (d.remaining_target_hours for d in eligible), dtype=np.float64, count=len(eligible)
        )
        shares_wh = scores / scores.sum() * remaining_wh
        extra_hours = np.minimum(shares_wh / powers, headroom)
        granted = {d.device_id: float(h) for d, h in zip(eligible, extra_hours)}

    for device in unscheduled:
        extra = granted.get(device.device_id)
        if extra is None:
            allocations[device.device_id] = QuotaAllocation(
                device.device_id, device.consumed_hours, QuotaReason.STARVED
            )
            _LOGGER.debug("%s (I) -> starved at %.2fh", device.label, device.consumed_hours)
            continue

        quota = max(device.consumed_hours, _floor_hours(device.consumed_hours + extra, decimals))
        energy = _energy_wh(device.power_w, quota - device.consumed_hours)
        fair_share_wh += energy
        allocations[device.device_id] = QuotaAllocation(
            device.device_id, quota, QuotaReason.FAIR_SHARE, energy
        )
        _LOGGER.debug(
            "%s (I, score %.4f) -> fair_share: +%.2f Wh, quota %.2fh",
            device.label, device.priority_score, energy, quota,
        )

    _LOGGER.info(
        "Allocated quotas for %d devices: NI %.0f Wh, scheduled I %.0f Wh, remaining %.0f Wh",
        len(allocations), ni_wh, scheduled_i_wh, remaining_wh,
    )
    return AllocationReport(
        allocations=allocations,
        budget_wh=daily_budget_wh,
        non_interruptible_wh=ni_wh,
        scheduled_interruptible_wh=scheduled_i_wh,
        remaining_wh=remaining_wh,
        fair_share_wh=fair_share_wh,
    )


def allocate_for_date(
    devices: Sequence[Device],
    schedules: Iterable[Schedule],
    limits: Sequence[EnergyLimit],
    day: date,
    *,
    ceiling_w: float | None = None,
    step_minutes: int = DEFAULT_SIMULATION_STEP_MIN,
    decimals: int = QUOTA_DECIMALS,
) -> AllocationReport:
    """
    Resolve the day's limit and booked hours from snapshots, then ``allocate``.

    With ``ceiling_w`` the day's booked intervals are also run through the
    capacity simulator and any overloaded slices are attached to the report.
    """
    schedules = tuple(schedules)
    limit = resolve_limit(limits, day)
    budget_wh = None if limit is None else limit.daily_budget_wh
    if limit is None:
        _LOGGER.info("No energy limit covers %s", day.isoformat())

    report = allocate(
        devices,
        budget_wh,
        scheduled_hours_for_date(schedules, day),
        decimals=decimals,
    )
    if ceiling_w is None:
        return report

    by_id = {d.device_id: d for d in devices}
    sim = simulate(intervals_for_date(schedules, by_id, day), ceiling_w, step_minutes)
    if not sim.clean:
        _LOGGER.warning(
            "Booked load on %s exceeds %.0fW in %d slices (peak %.0fW)",
            day.isoformat(), ceiling_w, len(sim.violations), sim.peak_load_w,
        )
    return AllocationReport(
        allocations=report.allocations,
        budget_wh=report.budget_wh,
        non_interruptible_wh=report.non_interruptible_wh,
        scheduled_interruptible_wh=report.scheduled_interruptible_wh,
        remaining_wh=report.remaining_wh,
        fair_share_wh=report.fair_share_wh,
        peak_violations=sim.violations,
    )
