from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from loadguard._exceptions import InvalidInputError
from loadguard.capacity import Capacity, SimulationResult, span_load
from loadguard.const import DEFAULT_SEARCH_STEP_MIN, DEFAULT_SIMULATION_STEP_MIN, MINUTES_PER_DAY
from loadguard.models import LoadInterval, format_minutes

_LOGGER = logging.getLogger(__name__)


class AdmissionStatus(str, Enum):
    ADMITTED = "admitted"
    CONFLICT = "conflict"
    SHIFT_REQUIRED = "shift_required"


@dataclass(frozen=True, slots=True)
class SlotRecommendation:
    """Nearest later slot where a conflicting request fits, or none today."""

    start_minute: int | None
    end_minute: int | None
    reason: str

    @property
    def found(self) -> bool:
        return self.start_minute is not None

    def __str__(self) -> str:
        if not self.found:
            return f"delay: {self.reason}"
        return f"{format_minutes(self.start_minute)}–{format_minutes(self.end_minute)}"


@dataclass(frozen=True, slots=True)
class Conflict:
    request: LoadInterval
    load_w: float
    ceiling_w: float
    recommendation: SlotRecommendation

    @property
    def excess_w(self) -> float:
        return self.load_w - self.ceiling_w


@dataclass(frozen=True, slots=True)
class ShiftSuggestion:
    original: LoadInterval
    shifted: LoadInterval | None
    load_w: float
    reason: str

    @property
    def action(self) -> str:
        return "shift" if self.shifted is not None else "delay"


@dataclass(frozen=True)
class AdmissionResult:
    status: AdmissionStatus
    conflicts: tuple[Conflict, ...] = ()
    suggestions: tuple[ShiftSuggestion, ...] = ()
    simulation_before: SimulationResult | None = None
    simulation_after: SimulationResult | None = None

    @property
    def admitted(self) -> bool:
        return self.status is AdmissionStatus.ADMITTED

    @property
    def post_shift_clean(self) -> bool:
        if self.simulation_after is None:
            return self.admitted
        return self.simulation_after.clean


def order_requests(requests: Sequence[LoadInterval]) -> list[LoadInterval]:
    """Non-interruptible requests first, then by descending priority score; stable."""
    return sorted(requests, key=lambda iv: (iv.interruptible, -iv.priority_score))


def _check_step(step_minutes: int) -> int:
    if int(step_minutes) != step_minutes or not 1 <= step_minutes <= MINUTES_PER_DAY:
        raise InvalidInputError(
            f"Search step must be a whole number of minutes in [1, {MINUTES_PER_DAY}]; got {step_minutes}."
        )
    return int(step_minutes)


def find_alternate_slot(
    request: LoadInterval,
    others: Sequence[LoadInterval],
    ceiling_w: float,
    *,
    step_minutes: int = DEFAULT_SEARCH_STEP_MIN,
) -> SlotRecommendation:
    """
    Search forward from ``request``'s start for the first slot where it fits.

    Candidates start one step after the original start and advance one step
    at a time for at most one day; the search stops at the first candidate
    that would run past midnight.  ``others`` must not contain ``request``.
    """
    step = _check_step(step_minutes)
    duration = request.duration_minutes

    for n in range(1, MINUTES_PER_DAY // step + 1):
        start = request.start_minute + n * step
        end = start + duration
        if end > MINUTES_PER_DAY:
            break
        if span_load(others, start, end) + request.power_w <= ceiling_w:
            _LOGGER.debug("Slot for %s found at %s", request.label, format_minutes(start))
            return SlotRecommendation(start, end, "nearest free slot")

    _LOGGER.debug("No slot for %s before midnight", request.label)
    return SlotRecommendation(None, None, "no free slot found today")


def suggest_shifts(
    intervals: Sequence[LoadInterval],
    ceiling_w: float,
    *,
    step_minutes: int = DEFAULT_SEARCH_STEP_MIN,
) -> tuple[tuple[ShiftSuggestion, ...], tuple[LoadInterval, ...]]:
    """
    Propose moving interruptible intervals out of overloaded spans.

    Candidates are visited lowest priority first.  A candidate is moved only
    when the load over its own span exceeds the ceiling; once moved it
    replaces the original in the working set seen by later candidates.
    Returns the suggestions and the resulting working set, in input order.
    """
    working = list(intervals)
    candidates = sorted(
        (i for i, iv in enumerate(working) if iv.interruptible),
        key=lambda i: working[i].priority_score,
    )

    suggestions = []
    for idx in candidates:
        current = working[idx]
        load = span_load(working, current.start_minute, current.end_minute)
        if load <= ceiling_w:
            continue

        others = working[:idx] + working[idx + 1:]
        slot = find_alternate_slot(current, others, ceiling_w, step_minutes=step_minutes)
        if slot.found:
            shifted = current.shifted_to(slot.start_minute)
            working[idx] = shifted
            suggestions.append(
                ShiftSuggestion(current, shifted, load, f"load {load:g}W > {ceiling_w:g}W")
            )
            _LOGGER.debug("Suggest shifting %s to %s", current, slot)
        else:
            suggestions.append(ShiftSuggestion(current, None, load, slot.reason))
            _LOGGER.debug("Suggest delaying %s", current)

    return tuple(suggestions), tuple(working)


def check_admission(
    requested: Sequence[LoadInterval],
    existing: Sequence[LoadInterval],
    ceiling_w: float,
    *,
    search_step_minutes: int = DEFAULT_SEARCH_STEP_MIN,
    simulation_step_minutes: int = DEFAULT_SIMULATION_STEP_MIN,
) -> AdmissionResult:
    """
    Decide whether ``requested`` intervals can join ``existing`` under the ceiling.

    Each request, in priority order, is checked against everything already
    present; all conflicts are collected with an alternate slot suggestion.
    Any conflict makes the whole batch ``CONFLICT``.  Otherwise the whole day
    is simulated; an overloaded day yields ``SHIFT_REQUIRED`` with shift
    suggestions for interruptible load and the simulation after shifting.
    """
    capacity = Capacity(ceiling_w, simulation_step_minutes)
    _check_step(search_step_minutes)

    working: list[LoadInterval] = list(existing)
    conflicts: list[Conflict] = []

    for request in order_requests(requested):
        load = span_load(working, request.start_minute, request.end_minute) + request.power_w
        if load > ceiling_w:
            slot = find_alternate_slot(request, working, ceiling_w, step_minutes=search_step_minutes)
            conflicts.append(Conflict(request, load, capacity.ceiling_w, slot))
            _LOGGER.warning(
                "Request %s conflicts: load %.0fW > %.0fW; recommendation %s",
                request, load, ceiling_w, slot,
            )
        working.append(request)

    if conflicts:
        _LOGGER.info("Admission refused: %d of %d requests conflict", len(conflicts), len(requested))
        return AdmissionResult(AdmissionStatus.CONFLICT, conflicts=tuple(conflicts))

    before = capacity.simulate(working)
    if before.clean:
        _LOGGER.info("Admitted %d requests", len(requested))
        return AdmissionResult(AdmissionStatus.ADMITTED, simulation_before=before)

    _LOGGER.warning(
        "Day overloaded in %d slices (peak %.0fW > %.0fW)",
        len(before.violations), before.peak_load_w, ceiling_w,
    )
    suggestions, shifted = suggest_shifts(working, ceiling_w, step_minutes=search_step_minutes)
    after = capacity.simulate(shifted)
    _LOGGER.info(
        "%d shift suggestions; %d overloaded slices remain",
        len(suggestions), len(after.violations),
    )
    return AdmissionResult(
        AdmissionStatus.SHIFT_REQUIRED,
        suggestions=suggestions,
        simulation_before=before,
        simulation_after=after,
    )
