"""
sitecascade/llm/providers/anthropic.py - Anthropic Claude Provider

Claude models through the Anthropic Messages API.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..protocol import LLMResponse, LLMOptions
from ..exceptions import (
    ProviderUnavailableError,
    TransientError,
)
from .base import BaseProvider

logger = logging.getLogger("llm.anthropic")

DEFAULT_MODEL = "claude-sonnet-4-20250514"

TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504, 529}

TRANSIENT_PATTERNS = (
    "rate limit",
    "overloaded",
    "timeout",
    "connection",
    "temporarily unavailable",
)


class AnthropicProvider(BaseProvider):
    """
    Claude provider using the Anthropic API.

    Requires the optional `anthropic` package:
        pip install sitecascade[llm]

    The API key comes from the constructor or ANTHROPIC_API_KEY.
    """

    name = "anthropic"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(model=model, **kwargs)
        self._api_key = api_key
        self._client: Optional[Any] = None

    def _get_client(self) -> Any:
        """Lazily create the client so the package stays optional."""
        if self._client is not None:
            return self._client

        try:
            import anthropic
        except ImportError as e:
            raise ProviderUnavailableError(
                "anthropic",
                "anthropic package not installed. Run: pip install sitecascade[llm]",
            ) from e

        try:
            # Falls back to ANTHROPIC_API_KEY when api_key is None
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self.timeout_seconds,
            )
            return self._client

        except Exception as e:
            raise ProviderUnavailableError(
                "anthropic",
                f"Failed to initialize Anthropic client: {e}",
            ) from e

    async def _raw_complete(
        self,
        prompt: str,
        system_prompt: Optional[str],
        options: LLMOptions,
    ) -> LLMResponse:
        client = self._get_client()

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                system=system_prompt or "",
                messages=[{"role": "user", "content": prompt}],
                timeout=options.timeout_seconds,
            )

            content = ""
            for block in response.content or []:
                if hasattr(block, "text"):
                    content += block.text

            return LLMResponse(
                content=content,
                model=response.model,
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                stop_reason=response.stop_reason or "stop",
            )

        except Exception as e:
            if self._is_transient_error(e):
                raise TransientError(str(e), e)
            raise

    def _is_transient_error(self, error: Exception) -> bool:
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            return status_code in TRANSIENT_STATUS_CODES
        error_str = str(error).lower()
        return any(pattern in error_str for pattern in TRANSIENT_PATTERNS)

