"""
sitecascade/llm/protocol.py - Provider contract for the recommendation advisor

The advisor asks for one schema-validated JSON object per analysis;
complete() is the raw text call underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class LLMResponse:
    """Text returned by a provider, with token accounting."""

    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    stop_reason: str = "stop"

    # Filled in by BaseProvider.complete()
    latency_ms: int = 0
    request_id: str = ""

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class LLMOptions:
    """Per-request overrides. None means use the provider's default."""

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    timeout_seconds: Optional[float] = None

    def resolve(self, max_tokens: int, temperature: float, timeout_seconds: float) -> "LLMOptions":
        return replace(
            self,
            max_tokens=self.max_tokens or max_tokens,
            temperature=temperature if self.temperature is None else self.temperature,
            timeout_seconds=timeout_seconds if self.timeout_seconds is None else self.timeout_seconds,
        )


class LLMProviderProtocol(Protocol):
    """What LLMRecommendationAdvisor needs from a provider."""

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        options: Optional[LLMOptions] = None,
    ) -> LLMResponse:
        ...

    async def complete_json(
        self,
        prompt: str,
        response_model: Type[ModelT],
        system_prompt: Optional[str] = None,
        options: Optional[LLMOptions] = None,
    ) -> ModelT:
        """
        Raises:
            ValidationError: if the reply is not JSON matching response_model
        """
        ...
