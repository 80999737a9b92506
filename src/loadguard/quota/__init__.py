"""
loadguard.quota
~~~~~~~~~~~~~~~

Daily quota allocation: how many hours at rated power each device may run
today without overspending the day's energy budget.

Non-interruptible devices and anything already booked are charged first;
what is left of the budget is shared among unscheduled interruptible devices
in proportion to their priority score.

Basic usage::

    from loadguard.models import Device
    from loadguard.quota import allocate

    devices = [
        Device("A", 1000.0, "Interrupt", target_hours=5, priority_score=0.8),
        Device("B", 500.0, "Interrupt", target_hours=5, priority_score=0.2),
    ]
    report = allocate(devices, daily_budget_wh=4000.0)
    report.quota("A")            # → 3.2
    report.quota("B")            # → 1.6
    report["A"].reason           # → QuotaReason.FAIR_SHARE

From stored snapshots for a given date::

    report = allocate_for_date(devices, schedules, limits, date(2025, 1, 7),
                               ceiling_w=2200.0)
    updated = report.apply(devices)

Public API
----------
allocate            Quotas from a budget and booked hours.
allocate_for_date   Same, resolving the limit and bookings for a date.
reset_consumption   Consumed hours → 0 (limit created or updated).
clear_quotas        Quota and consumed → 0 (limit deleted).
"""

from loadguard.quota.allocator import (
    AllocationReport,
    QuotaAllocation,
    QuotaReason,
    allocate,
    allocate_for_date,
)
from loadguard.quota.lifecycle import clear_quotas, reset_consumption

__all__ = [
    "AllocationReport",
    "QuotaAllocation",
    "QuotaReason",
    "allocate",
    "allocate_for_date",
    "clear_quotas",
    "reset_consumption",
]
