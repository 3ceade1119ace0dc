"""Deterministic priority score for an issue.

``score = severity_weight ** 2 / effort_weight``. The score is never stored;
callers recompute it whenever severity or ease of fix changes.
"""

from __future__ import annotations

import logging

from .issue_models import EaseOfFix, PriorityTier, Severity

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.SERIOUS: 3,
    Severity.MODERATE: 2,
    Severity.MINOR: 1,
}

EFFORT_WEIGHTS: dict[EaseOfFix, int] = {
    EaseOfFix.EASY: 1,
    EaseOfFix.MODERATE: 2,
    EaseOfFix.HARD: 3,
}

DEFAULT_SEVERITY_WEIGHT = SEVERITY_WEIGHTS[Severity.MODERATE]
DEFAULT_EFFORT_WEIGHT = EFFORT_WEIGHTS[EaseOfFix.MODERATE]

# Tier thresholds, checked from the top.
TIER_THRESHOLDS: tuple[tuple[float, PriorityTier], ...] = (
    (10, PriorityTier.P0),
    (6, PriorityTier.P1),
    (3, PriorityTier.P2),
)

_EFFORT_ALIASES = {"quick win": EaseOfFix.EASY}


def severity_weight(severity: Severity | str | None) -> int:
    parsed = Severity.parse(severity)
    if parsed is None:
        logger.warning(
            "priority.unknown_severity",
            extra={"severity": severity, "fallback_weight": DEFAULT_SEVERITY_WEIGHT},
        )
        return DEFAULT_SEVERITY_WEIGHT
    return SEVERITY_WEIGHTS[parsed]


def effort_weight(ease_of_fix: EaseOfFix | str | None) -> int:
    parsed = EaseOfFix.parse(ease_of_fix)
    if parsed is None and isinstance(ease_of_fix, str):
        parsed = _EFFORT_ALIASES.get(ease_of_fix.strip().lower())
    if parsed is None:
        logger.warning(
            "priority.unknown_ease_of_fix",
            extra={"ease_of_fix": ease_of_fix, "fallback_weight": DEFAULT_EFFORT_WEIGHT},
        )
        return DEFAULT_EFFORT_WEIGHT
    return EFFORT_WEIGHTS[parsed]


def calculate_priority(
    severity: Severity | str | None, ease_of_fix: EaseOfFix | str | None
) -> float:
    return severity_weight(severity) ** 2 / effort_weight(ease_of_fix)


def priority_tier(score: float) -> PriorityTier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return PriorityTier.P3
