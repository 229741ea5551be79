"""
sitecascade/llm/providers/base.py - Base Provider

Shared request handling for providers:
- per-attempt timeout
- retry with exponential backoff for retryable errors only
- JSON extraction and pydantic schema validation
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Type

from pydantic import ValidationError as PydanticValidationError

from ..protocol import LLMOptions, LLMResponse, ModelT
from ..exceptions import (
    LLMError,
    ValidationError,
    TimeoutError as LLMTimeoutError,
)

logger = logging.getLogger("llm.provider")

JSON_INSTRUCTION = "Respond with valid JSON only, with no prose or markdown fences."


def extract_json_text(content: str) -> str:
    """Pull the JSON object out of a reply that may be fenced or wrapped in prose."""
    text = content.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        text = text[start:end + 1]
    return text.strip()


class BaseProvider(ABC):
    """
    Base class for LLM providers.

    Subclasses implement _raw_complete() and raise TransientError for
    failures worth retrying. Anything else fails the request at once.

    Args:
        model: Model identifier
        max_tokens: Default completion budget
        temperature: Default sampling temperature
        timeout_seconds: Default per-attempt timeout
        retry_attempts: Extra attempts after the first
        retry_delay_ms: Backoff base; doubles per attempt
    """

    name = "base"

    def __init__(
        self,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.2,
        timeout_seconds: float = 30,
        retry_attempts: int = 1,
        retry_delay_ms: int = 500,
    ):
        self.model = model
        self.default_max_tokens = max_tokens
        self.default_temperature = temperature
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = retry_attempts
        self.retry_delay_ms = retry_delay_ms

    @abstractmethod
    async def _raw_complete(
        self,
        prompt: str,
        system_prompt: Optional[str],
        options: LLMOptions,
    ) -> LLMResponse:
        ...

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        options: Optional[LLMOptions] = None,
    ) -> LLMResponse:
        """
        Raises:
            LLMError: on a non-retryable failure, or once retries run out
        """
        opts = (options or LLMOptions()).resolve(
            self.default_max_tokens,
            self.default_temperature,
            self.timeout_seconds,
        )
        request_id = uuid.uuid4().hex[:8]
        started = time.monotonic()
        last_error: Optional[LLMError] = None

        for attempt in range(self.retry_attempts + 1):
            try:
                response = await self._attempt(prompt, system_prompt, opts, request_id)
            except LLMError as e:
                if not e.retryable:
                    raise
                last_error = e
                logger.warning(f"{self.name} attempt {attempt + 1} failed: {e}")
            else:
                response.latency_ms = int((time.monotonic() - started) * 1000)
                response.request_id = request_id
                logger.debug(
                    f"{self.name} completion {request_id}: "
                    f"{response.total_tokens} tokens in {response.latency_ms}ms"
                )
                return response

            if attempt < self.retry_attempts:
                await asyncio.sleep(self.retry_delay_ms * (2 ** attempt) / 1000)

        raise LLMError(
            f"Request failed after {self.retry_attempts + 1} attempts: {last_error}",
            request_id=request_id,
        )

    async def _attempt(
        self,
        prompt: str,
        system_prompt: Optional[str],
        options: LLMOptions,
        request_id: str,
    ) -> LLMResponse:
        try:
            return await asyncio.wait_for(
                self._raw_complete(prompt, system_prompt, options),
                timeout=options.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise LLMTimeoutError(options.timeout_seconds, request_id)
        except LLMError:
            raise
        except Exception as e:
            # Auth, bad request and other permanent SDK failures
            raise LLMError(f"{self.name} request failed: {e}", request_id=request_id) from e

    async def complete_json(
        self,
        prompt: str,
        response_model: Type[ModelT],
        system_prompt: Optional[str] = None,
        options: Optional[LLMOptions] = None,
    ) -> ModelT:
        """
        Complete and validate the reply against a pydantic model.

        Raises:
            ValidationError: if the reply is not JSON matching response_model
        """
        system = f"{system_prompt}\n\n{JSON_INSTRUCTION}" if system_prompt else JSON_INSTRUCTION

        response = await self.complete(prompt, system, options)
        try:
            return response_model.model_validate_json(extract_json_text(response.content))
        except PydanticValidationError as e:
            raise ValidationError(
                f"Reply does not match {response_model.__name__}: {e}",
                raw_response=response.content,
                request_id=response.request_id,
            )
