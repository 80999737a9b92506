"""
loadguard.capacity
~~~~~~~~~~~~~~~~~~

Day-long capacity simulation.  A Capacity holds a watt ceiling and a step
size; simulating a set of single-day load intervals reports every step-sized
slice of the day where the summed power of the overlapping intervals exceeds
the ceiling.

Basic usage::

    from loadguard.capacity import Capacity
    from loadguard.models import LoadInterval

    cap = Capacity(1000.0, step_minutes=5)
    result = cap.simulate([
        LoadInterval("heater", 700.0, "08:00", "10:00"),
        LoadInterval("pump", 400.0, "09:00", "11:00"),
    ])
    result.clean                 # → False
    result.violations[0]         # → 09:00–09:05 load 1100W > 1000W

The per-slice profile is a NumPy array::

    profile = cap.load_profile(intervals)     # shape (288,)

Public API
----------
Capacity          Ceiling + step; simulate() and load_profile().
simulate          Functional shortcut for Capacity(...).simulate(...).
span_load         Summed power of intervals overlapping a span.
derate_capacity   Nameplate → safe ceiling (default 80 %).
"""

from loadguard.capacity.capacity import (
    Capacity,
    SimulationResult,
    Violation,
    derate_capacity,
    simulate,
    span_load,
)

__all__ = [
    "Capacity",
    "SimulationResult",
    "Violation",
    "derate_capacity",
    "simulate",
    "span_load",
]
