"""
explain/ - Recommendation & Narrative Engine

Turns propagation results into mitigation text, with an optional
pluggable advisor in front of deterministic templates.
"""

from .narrative import (
    TemplateRecommendationAdvisor,
    most_critical,
    most_overdue,
)

from .synthesizer import (
    RecommendationAdvisor,
    RecommendationSynthesizer,
    SynthesisResult,
    validate_advice,
    DEFAULT_ADVISOR_TIMEOUT_SECONDS,
    SOURCE_ADVISOR,
    SOURCE_TEMPLATE,
)

from .formatters import (
    BaseFormatter,
    ChatFormatter,
    ReportFormatter,
)

__all__ = [
    # Narrative
    "TemplateRecommendationAdvisor",
    "most_critical",
    "most_overdue",
    # Synthesizer
    "RecommendationAdvisor",
    "RecommendationSynthesizer",
    "SynthesisResult",
    "validate_advice",
    "DEFAULT_ADVISOR_TIMEOUT_SECONDS",
    "SOURCE_ADVISOR",
    "SOURCE_TEMPLATE",
    # Formatters
    "BaseFormatter",
    "ChatFormatter",
    "ReportFormatter",
]
