"""
SiteCascade - project delay cascade analysis

Given a project's phases and a reference instant, finds delayed
phases, propagates their delay through explicit and implicit
construction dependencies, scores the risk to each downstream phase
and writes mitigation recommendations.

Usage:
    from datetime import datetime, timezone
    from sitecascade import analyze_cascade

    report = analyze_cascade(phases, datetime.now(timezone.utc))
    payload = report.to_dict()
"""

from sitecascade.core import (
    Phase,
    PhaseStatus,
    RiskLevel,
    DelayedPhase,
    ImpactedPhase,
    CascadeReport,
)
from sitecascade.errors import (
    CascadeError,
    InvalidInputError,
    AdvisoryUnavailable,
)
from sitecascade.explain import (
    RecommendationAdvisor,
    TemplateRecommendationAdvisor,
)
from sitecascade.reporting import (
    ReportAssembler,
    analyze_cascade,
    analyze_cascade_async,
)

__version__ = "1.0.0"

__all__ = [
    "Phase",
    "PhaseStatus",
    "RiskLevel",
    "DelayedPhase",
    "ImpactedPhase",
    "CascadeReport",
    "CascadeError",
    "InvalidInputError",
    "AdvisoryUnavailable",
    "RecommendationAdvisor",
    "TemplateRecommendationAdvisor",
    "ReportAssembler",
    "analyze_cascade",
    "analyze_cascade_async",
]
