"""
loadguard.admission
~~~~~~~~~~~~~~~~~~~

Admission control against the instantaneous power ceiling.

``check_admission`` decides whether a batch of time-boxed requests can join
the day's existing load.  Requests that overload their own span are returned
as conflicts with the nearest later slot that fits; a batch without conflicts
is simulated over the whole day and, if still overloaded, comes back with
shift suggestions for interruptible load.

``check_immediate`` answers the "switch it on now" question and picks which
running interruptible devices would have to pause.

Basic usage::

    from loadguard.admission import check_admission
    from loadguard.models import LoadInterval

    x = LoadInterval("X", 700.0, "08:00", "10:00")
    y = LoadInterval("Y", 400.0, "09:00", "11:00")
    result = check_admission([y], [x], ceiling_w=1000.0)
    result.status                          # → AdmissionStatus.CONFLICT
    str(result.conflicts[0].recommendation)  # → '10:00–12:00'

Immediate-on::

    decision = check_immediate(800.0, devices, ceiling_w=2200.0,
                               scheduled_device_ids={"pump"})
    decision.admit, decision.pause_candidates, decision.shortfall_w

Public API
----------
check_admission       Batch admission with conflicts / shift suggestions.
find_alternate_slot   Forward slot search for one request.
suggest_shifts        Lowest-priority-first shifting of overloaded load.
check_immediate       Immediate-on decision with pause candidates.
"""

from loadguard.admission.controller import (
    AdmissionResult,
    AdmissionStatus,
    Conflict,
    ShiftSuggestion,
    SlotRecommendation,
    check_admission,
    find_alternate_slot,
    order_requests,
    suggest_shifts,
)
from loadguard.admission.immediate import ImmediateDecision, check_immediate

__all__ = [
    "AdmissionResult",
    "AdmissionStatus",
    "Conflict",
    "ImmediateDecision",
    "ShiftSuggestion",
    "SlotRecommendation",
    "check_admission",
    "check_immediate",
    "find_alternate_slot",
    "order_requests",
    "suggest_shifts",
]
