"""
sitecascade/llm - LLM Provider Layer

Protocol-based abstraction over text generation providers (Claude,
Ollama) used by the optional recommendation advisor.

Usage:
    from sitecascade.llm import create_llm_provider, LLMRecommendationAdvisor

    advisor = LLMRecommendationAdvisor(create_llm_provider(), region="Israel")
    report = analyze_cascade(phases, now, advisor=advisor)
"""

from .protocol import (
    LLMProviderProtocol,
    LLMResponse,
    LLMOptions,
)
from .provider_factory import create_llm_provider, create_llm_provider_from_config
from .exceptions import (
    LLMError,
    ProviderUnavailableError,
    TimeoutError,
    TransientError,
    ValidationError,
)
from .services import LLMRecommendationAdvisor

__all__ = [
    # Protocol
    "LLMProviderProtocol",
    "LLMResponse",
    "LLMOptions",
    # Factory
    "create_llm_provider",
    "create_llm_provider_from_config",
    # Exceptions
    "LLMError",
    "ProviderUnavailableError",
    "TimeoutError",
    "TransientError",
    "ValidationError",
    # Services
    "LLMRecommendationAdvisor",
]
