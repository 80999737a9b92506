from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from loadguard.models import Device

_LOGGER = logging.getLogger(__name__)


def reset_consumption(devices: Iterable[Device]) -> tuple[Device, ...]:
    """Copies of ``devices`` with today's consumed hours set to 0.

    Called after an energy limit is created or updated; quotas are then
    recomputed from scratch by ``allocate``.
    """
    reset = tuple(replace(d, consumed_hours=0.0) for d in devices)
    _LOGGER.info("Reset consumed hours for %d devices", len(reset))
    return reset


def clear_quotas(devices: Iterable[Device]) -> tuple[Device, ...]:
    """Copies of ``devices`` with quota and consumed hours both set to 0.

    Called after an energy limit is deleted.  Values go to 0, not to an
    unbounded "no limit" state.
    """
    cleared = tuple(replace(d, quota_hours=0.0, consumed_hours=0.0) for d in devices)
    _LOGGER.info("Cleared quotas for %d devices", len(cleared))
    return cleared
