from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from loadguard._exceptions import InvalidInputError
from loadguard.const import (
    DEFAULT_CAPACITY_DERATING,
    DEFAULT_SIMULATION_STEP_MIN,
    MINUTES_PER_DAY,
)
from loadguard.models import LoadInterval, format_minutes

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Violation:
    """One simulation slice whose aggregate load exceeds the ceiling."""

    start_minute: int
    end_minute: int
    load_w: float
    ceiling_w: float

    @property
    def excess_w(self) -> float:
        return self.load_w - self.ceiling_w

    def __str__(self) -> str:
        return (
            f"{format_minutes(self.start_minute)}–{format_minutes(self.end_minute)} "
            f"load {self.load_w:g}W > {self.ceiling_w:g}W"
        )


@dataclass(frozen=True)
class SimulationResult:
    ceiling_w: float
    step_minutes: int
    violations: tuple[Violation, ...] = ()
    peak_load_w: float = 0.0

    @property
    def clean(self) -> bool:
        return not self.violations

    @property
    def overloaded_minutes(self) -> int:
        return sum(v.end_minute - v.start_minute for v in self.violations)


def span_load(intervals: Iterable[LoadInterval], start_minute: int, end_minute: int) -> float:
    """
    Sum of the power of every interval overlapping ``[start_minute, end_minute)``.

    This is a conservative bound: intervals that overlap the span but not each
    other are still counted together.
    """
    return float(sum(iv.power_w for iv in intervals if iv.overlaps(start_minute, end_minute)))


def derate_capacity(nameplate_w: float, factor: float = DEFAULT_CAPACITY_DERATING) -> float:
    """Safe instantaneous ceiling for a supply rated at ``nameplate_w``."""
    if nameplate_w < 0:
        raise InvalidInputError(f"Nameplate capacity must be non-negative; got {nameplate_w}.")
    if not 0.0 < factor <= 1.0:
        raise InvalidInputError(f"Derating factor must lie in (0, 1]; got {factor}.")
    return float(nameplate_w) * factor


class Capacity:
    """
    Instantaneous power ceiling walked across one day in fixed steps.

    The day ``[00:00, 24:00)`` is cut into slices of ``step_minutes``; the
    last slice is truncated at midnight when the step does not divide the day.
    """

    def __init__(
        self,
        ceiling_w: float,
        step_minutes: int = DEFAULT_SIMULATION_STEP_MIN,
    ) -> None:
        if not np.isfinite(ceiling_w) or ceiling_w < 0:
            raise InvalidInputError(f"Ceiling must be a finite non-negative wattage; got {ceiling_w}.")
        if int(step_minutes) != step_minutes or not 1 <= step_minutes <= MINUTES_PER_DAY:
            raise InvalidInputError(
                f"Step must be a whole number of minutes in [1, {MINUTES_PER_DAY}]; got {step_minutes}."
            )
        self._ceiling_w = float(ceiling_w)
        self._step = int(step_minutes)
        self._starts: np.ndarray = np.arange(0, MINUTES_PER_DAY, self._step, dtype=np.int64)
        self._ends: np.ndarray = np.minimum(self._starts + self._step, MINUTES_PER_DAY)

    def load_profile(self, intervals: Sequence[LoadInterval]) -> np.ndarray:
        """Aggregate load (W) per slice."""
        n = len(intervals)
        if n == 0:
            return np.zeros(self._starts.size, dtype=np.float64)

        s = np.fromiter((iv.start_minute for iv in intervals), dtype=np.int64, count=n)
        e = np.fromiter((iv.end_minute for iv in intervals), dtype=np.int64, count=n)
        p = np.fromiter((iv.power_w for iv in intervals), dtype=np.float64, count=n)

        overlap = (s[:, None] < self._ends[None, :]) & (self._starts[None, :] < e[:, None])
        return p @ overlap.astype(np.float64)

    def simulate(self, intervals: Sequence[LoadInterval]) -> SimulationResult:
        intervals = tuple(intervals)
        profile = self.load_profile(intervals)
        over = np.flatnonzero(profile > self._ceiling_w)

        violations = tuple(
            Violation(
                start_minute=int(self._starts[i]),
                end_minute=int(self._ends[i]),
                load_w=float(profile[i]),
                ceiling_w=self._ceiling_w,
            )
            for i in over
        )
        if violations:
            _LOGGER.debug(
                "%d of %d slices over %.0fW (peak %.0fW)",
                len(violations), profile.size, self._ceiling_w, float(profile.max()),
            )
        return SimulationResult(
            ceiling_w=self._ceiling_w,
            step_minutes=self._step,
            violations=violations,
            peak_load_w=float(profile.max()),
        )

    def fits(
        self,
        intervals: Iterable[LoadInterval],
        start_minute: int,
        end_minute: int,
        power_w: float,
    ) -> bool:
        """Whether ``power_w`` can be added over the span without exceeding the ceiling."""
        return span_load(intervals, start_minute, end_minute) + power_w <= self._ceiling_w

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def ceiling_w(self) -> float:
        return self._ceiling_w

    @property
    def step_minutes(self) -> int:
        return self._step

    @property
    def slice_starts(self) -> np.ndarray:
        return self._starts.copy()

    def __repr__(self) -> str:
        return (
            f"Capacity(ceiling_w={self._ceiling_w}, "
            f"step_minutes={self._step}, "
            f"slices={self._starts.size})"
        )


def simulate(
    intervals: Sequence[LoadInterval],
    ceiling_w: float,
    step_minutes: int = DEFAULT_SIMULATION_STEP_MIN,
) -> SimulationResult:
    return Capacity(ceiling_w, step_minutes).simulate(intervals)
