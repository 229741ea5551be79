"""
SiteCascade Core

Phase model, report entities and input coercion.
"""

from .enums import PhaseStatus, RiskLevel, EdgeKind
from .models import (
    Phase,
    DelayedPhase,
    ImpactedPhase,
    CascadeReport,
    HEALTHY_RECOMMENDATION,
    HEALTHY_IMPACT,
)
from .parsing import coerce_phase, parse_instant, parse_status, to_utc, try_utc

__all__ = [
    # Enums
    "PhaseStatus",
    "RiskLevel",
    "EdgeKind",
    # Models
    "Phase",
    "DelayedPhase",
    "ImpactedPhase",
    "CascadeReport",
    "HEALTHY_RECOMMENDATION",
    "HEALTHY_IMPACT",
    # Parsing
    "coerce_phase",
    "parse_instant",
    "parse_status",
    "to_utc",
    "try_utc",
]
