"""
sitecascade/llm/services - LLM Service Layer

Domain services that use LLM providers; each one leaves fallback to
its caller.
"""

from .recommendation_service import LLMRecommendationAdvisor

__all__ = [
    "LLMRecommendationAdvisor",
]
