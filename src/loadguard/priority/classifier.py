from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Sequence

import numpy as np

from loadguard._exceptions import InvalidInputError
from loadguard.const import CENTROID_RESOLUTION, LOW_PRIORITY_MAX, MEDIUM_PRIORITY_MAX

from .membership import ArrayLike, trapmf, trimf

_LOGGER = logging.getLogger(__name__)

MembershipFn = Callable[[ArrayLike, Sequence[float]], ArrayLike]


class PriorityCategory(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class FuzzySet:
    label: str
    shape: MembershipFn
    params: tuple[float, ...]

    def __call__(self, x: ArrayLike) -> ArrayLike:
        return self.shape(x, self.params)


@dataclass(frozen=True, slots=True)
class LinguisticVariable:
    name: str
    sets: tuple[FuzzySet, ...]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(s.label for s in self.sets)

    def fuzzify(self, x: float) -> dict[str, float]:
        return {s.label: float(s(x)) for s in self.sets}


@dataclass(frozen=True, slots=True)
class Rule:
    duration: str
    power: str
    priority: str


DURATION = LinguisticVariable(
    "duration",
    (
        FuzzySet("short", trapmf, (0.0, 0.0, 2.0, 4.0)),
        FuzzySet("medium", trimf, (3.0, 6.0, 10.0)),
        FuzzySet("long", trimf, (8.0, 12.0, 16.0)),
        FuzzySet("very_long", trapmf, (15.0, 18.0, 24.0, 24.0)),
    ),
)

POWER = LinguisticVariable(
    "power",
    (
        FuzzySet("very_low", trapmf, (0.0, 0.0, 30.0, 50.0)),
        FuzzySet("low", trapmf, (30.0, 50.0, 120.0, 150.0)),
        FuzzySet("medium", trapmf, (120.0, 150.0, 300.0, 350.0)),
        FuzzySet("high", trapmf, (300.0, 350.0, 550.0, 600.0)),
        FuzzySet("very_high", trapmf, (550.0, 600.0, 900.0, 900.0)),
    ),
)

PRIORITY = LinguisticVariable(
    "priority",
    (
        FuzzySet(PriorityCategory.LOW.value, trapmf, (0.0, 0.0, 0.2, 0.4)),
        FuzzySet(PriorityCategory.MEDIUM.value, trimf, (0.3, 0.55, 0.75)),
        FuzzySet(PriorityCategory.HIGH.value, trapmf, (0.65, 0.85, 1.0, 1.0)),
    ),
)

RULES: tuple[Rule, ...] = (
    Rule("short", "very_low", "low"),
    Rule("short", "low", "low"),
    Rule("short", "medium", "medium"),
    Rule("short", "high", "high"),

    Rule("medium", "very_low", "low"),
    Rule("medium", "low", "medium"),
    Rule("medium", "medium", "medium"),
    Rule("medium", "high", "high"),
    Rule("medium", "very_high", "high"),

    Rule("long", "low", "medium"),
    Rule("long", "medium", "medium"),
    Rule("long", "high", "high"),
    Rule("long", "very_high", "high"),

    Rule("very_long", "low", "medium"),
    Rule("very_long", "medium", "high"),
    Rule("very_long", "high", "high"),
    Rule("very_long", "very_high", "high"),
)


@dataclass(frozen=True)
class InferenceDetail:
    duration: Mapping[str, float] = field(default_factory=dict)
    power: Mapping[str, float] = field(default_factory=dict)
    strengths: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PriorityResult:
    score: float
    category: PriorityCategory
    detail: InferenceDetail = field(default_factory=InferenceDetail)


def _check_input(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise InvalidInputError(f"{name} must be a finite non-negative number; got {value}.")
    return value


def rule_strengths(
    duration: Mapping[str, float],
    power: Mapping[str, float],
    rules: Sequence[Rule] = RULES,
) -> dict[str, float]:
    """Fire every rule (AND = min) and merge rules per output label (OR = max)."""
    strengths = {label: 0.0 for label in PRIORITY.labels}
    for rule in rules:
        fired = min(duration[rule.duration], power[rule.power])
        strengths[rule.priority] = max(strengths[rule.priority], fired)
    return strengths


def defuzzify_centroid(
    strengths: Mapping[str, float],
    resolution: int = CENTROID_RESOLUTION,
) -> float:
    """
    Centroid of the aggregated output set over ``resolution + 1`` samples of
    ``[0, 1]``.  An empty aggregate (no rule fired) yields 0.
    """
    if resolution < 1:
        raise InvalidInputError(f"resolution must be at least 1; got {resolution}.")
    x = np.linspace(0.0, 1.0, resolution + 1)
    clipped = np.vstack([
        np.minimum(strengths.get(s.label, 0.0), s(x)) for s in PRIORITY.sets
    ])
    y = clipped.max(axis=0)

    den = float(y.sum())
    if den == 0.0:
        return 0.0
    return float((x * y).sum() / den)


def categorize(score: float) -> PriorityCategory:
    if score <= LOW_PRIORITY_MAX:
        return PriorityCategory.LOW
    if score <= MEDIUM_PRIORITY_MAX:
        return PriorityCategory.MEDIUM
    return PriorityCategory.HIGH


def classify(
    duration_hours: float,
    power_w: float,
    *,
    resolution: int = CENTROID_RESOLUTION,
) -> PriorityResult:
    """
    Score a device's scheduling priority from its daily runtime and power draw.

    Mamdani inference over the duration and power variables above, followed
    by centroid defuzzification.  Inputs outside the membership ranges are
    valid and simply fire fewer rules.
    """
    duration_hours = _check_input("duration_hours", duration_hours)
    power_w = _check_input("power_w", power_w)

    duration = DURATION.fuzzify(duration_hours)
    power = POWER.fuzzify(power_w)
    strengths = rule_strengths(duration, power)
    score = defuzzify_centroid(strengths, resolution)
    category = categorize(score)

    _LOGGER.debug(
        "Priority for %.2fh @ %.0fW: score=%.4f (%s), strengths=%s",
        duration_hours, power_w, score, category.value, strengths,
    )
    return PriorityResult(
        score=score,
        category=category,
        detail=InferenceDetail(duration=duration, power=power, strengths=strengths),
    )
