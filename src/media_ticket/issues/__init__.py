"""Issue records, priority scoring and severity tagging."""

from .impact import apply_impact_source, apply_impact_sources
from .issue_models import (
    EaseOfFix,
    ImpactSource,
    Issue,
    IssueStatus,
    PriorityTier,
    Severity,
)
from .priority import calculate_priority, priority_tier

__all__ = [
    "apply_impact_source",
    "apply_impact_sources",
    "EaseOfFix",
    "ImpactSource",
    "Issue",
    "IssueStatus",
    "PriorityTier",
    "Severity",
    "calculate_priority",
    "priority_tier",
]
