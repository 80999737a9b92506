"""
loadguard
~~~~~~~~~

Allocation and admission-control engine for a fleet of switchable loads.

Subpackages
-----------
priority    Fuzzy priority score from expected runtime and rated power.
quota       Daily quota allocation against an energy budget.
capacity    Day-long simulation against an instantaneous power ceiling.
admission   Batch and immediate-on admission control.
calendar    Multi-day schedule slicing and per-date energy limits.

Every function works on immutable snapshots from ``loadguard.models`` and
returns new values; nothing here performs I/O.
"""

from loadguard._exceptions import InvalidInputError, LoadGuardError, TimeFormatError
from loadguard.models import Device, EnergyLimit, LoadInterval, OperatingClass, Schedule

__version__ = "0.1.0"

__all__ = [
    "Device",
    "EnergyLimit",
    "InvalidInputError",
    "LoadGuardError",
    "LoadInterval",
    "OperatingClass",
    "Schedule",
    "TimeFormatError",
]
