from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Collection, Iterable

from loadguard._exceptions import InvalidInputError
from loadguard.const import PAUSE_DURATION_OPTIONS_MIN
from loadguard.models import Device

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImmediateDecision:
    """
    Outcome of switching one device on right now.

    ``admit`` is True when the device fits, either directly or after pausing
    ``pause_candidates``.  A denial carries the ``shortfall_w`` that remains
    even with every eligible device paused.
    """

    admit: bool
    requested_w: float
    ceiling_w: float
    running_load_w: float
    spare_w: float
    pause_candidates: tuple[Device, ...] = ()
    shortfall_w: float = 0.0
    pause_duration_options: tuple[int, ...] = PAUSE_DURATION_OPTIONS_MIN
    reason: str = ""

    @property
    def requires_pause(self) -> bool:
        return self.admit and bool(self.pause_candidates)

    @property
    def denied(self) -> bool:
        return not self.admit

    @property
    def freed_w(self) -> float:
        return sum(d.power_w for d in self.pause_candidates)


def check_immediate(
    requested_power_w: float,
    devices: Iterable[Device],
    ceiling_w: float,
    scheduled_device_ids: Collection[str] = (),
) -> ImmediateDecision:
    """
    Can a device drawing ``requested_power_w`` be switched on now?

    Running load is the summed power of devices with ``is_running`` set.
    When the spare capacity is too small, running interruptible devices that
    are not under an active schedule (``scheduled_device_ids``) are picked
    lowest priority first until enough power would be freed.
    """
    requested_power_w = float(requested_power_w)
    if math.isnan(requested_power_w) or requested_power_w < 0:
        raise InvalidInputError(f"Requested power must be non-negative; got {requested_power_w}.")
    if not math.isfinite(ceiling_w) or ceiling_w < 0:
        raise InvalidInputError(f"Ceiling must be a finite non-negative wattage; got {ceiling_w}.")

    running = [d for d in devices if d.is_running]
    running_load = math.fsum(d.power_w for d in running)
    spare = ceiling_w - running_load
    base = dict(
        requested_w=requested_power_w,
        ceiling_w=float(ceiling_w),
        running_load_w=running_load,
        spare_w=spare,
    )

    if spare >= requested_power_w:
        _LOGGER.debug("Immediate on: %.0fW fits in %.0fW spare", requested_power_w, spare)
        return ImmediateDecision(admit=True, reason="spare capacity available", **base)

    scheduled = set(scheduled_device_ids)
    eligible = sorted(
        (d for d in running if d.interruptible and d.device_id not in scheduled),
        key=lambda d: d.priority_score,
    )

    freed = 0.0
    picked: list[Device] = []
    for device in eligible:
        picked.append(device)
        freed += device.power_w
        if spare + freed >= requested_power_w:
            break

    if spare + freed < requested_power_w:
        shortfall = requested_power_w - spare - freed
        _LOGGER.warning(
            "Immediate on denied: %.0fW requested, %.0fW short even with %d devices paused",
            requested_power_w, shortfall, len(eligible),
        )
        return ImmediateDecision(
            admit=False,
            shortfall_w=shortfall,
            reason="insufficient capacity even with every unscheduled interruptible device paused",
            **base,
        )

    _LOGGER.info(
        "Immediate on needs %d devices paused: %s",
        len(picked), ", ".join(d.label for d in picked),
    )
    return ImmediateDecision(
        admit=True,
        pause_candidates=tuple(picked),
        reason="pause lower-priority interruptible devices",
        **base,
    )
