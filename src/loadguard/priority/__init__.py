"""
loadguard.priority
~~~~~~~~~~~~~~~~~~

Fuzzy priority classifier.  Maps a device's desired daily runtime (hours) and
rated power (watts) to a score in ``[0, 1]`` and a coarse category, using
Mamdani inference with centroid defuzzification.

Basic usage::

    from loadguard.priority import classify

    result = classify(duration_hours=8.0, power_w=400.0)
    result.score       # → about 0.85
    result.category    # → PriorityCategory.HIGH

The membership functions accept NumPy arrays as well as scalars::

    import numpy as np
    from loadguard.priority import trapmf

    trapmf(np.linspace(0, 1, 5), (0.0, 0.0, 0.2, 0.4))

Public API
----------
classify           Score one (duration, power) pair.
PriorityResult     Score, category and the inference detail.
PriorityCategory   LOW / MEDIUM / HIGH.
trimf, trapmf      Triangular / trapezoidal membership functions.
"""

from __future__ import annotations

from loadguard.priority.classifier import (
    DURATION,
    POWER,
    PRIORITY,
    RULES,
    InferenceDetail,
    PriorityCategory,
    PriorityResult,
    categorize,
    classify,
    defuzzify_centroid,
    rule_strengths,
)
from loadguard.priority.membership import trapmf, trimf

__all__ = [
    "DURATION",
    "POWER",
    "PRIORITY",
    "RULES",
    "InferenceDetail",
    "PriorityCategory",
    "PriorityResult",
    "categorize",
    "classify",
    "defuzzify_centroid",
    "rule_strengths",
    "trapmf",
    "trimf",
]
