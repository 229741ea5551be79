"""
sitecascade/llm/providers/local.py - Local LLM Provider (Ollama)

Local models served by Ollama over its HTTP API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..protocol import LLMResponse, LLMOptions
from ..exceptions import LLMError, TransientError
from .base import BaseProvider

logger = logging.getLogger("llm.local")

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3"

TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}

TRANSIENT_PATTERNS = (
    "connection",
    "timeout",
    "temporarily unavailable",
    "reset by peer",
)


class LocalProvider(BaseProvider):
    """
    Local LLM provider using Ollama's /api/generate endpoint.

    Args:
        model: Ollama model name (e.g. llama3, mistral)
        base_url: Ollama server URL
        client: Optional pre-built httpx.AsyncClient (tests use a mock transport)
    """

    name = "local"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ):
        super().__init__(model=model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
            )
        return self._client

    def _build_payload(
        self,
        prompt: str,
        system_prompt: Optional[str],
        options: LLMOptions,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": options.max_tokens,
                "temperature": options.temperature,
            },
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def _raw_complete(
        self,
        prompt: str,
        system_prompt: Optional[str],
        options: LLMOptions,
    ) -> LLMResponse:
        client = self._get_client()

        try:
            response = await client.post(
                "/api/generate",
                json=self._build_payload(prompt, system_prompt, options),
                timeout=options.timeout_seconds,
            )

            if response.status_code != 200:
                message = f"Ollama returned status {response.status_code}: {response.text}"
                if response.status_code in TRANSIENT_STATUS_CODES:
                    raise TransientError(message)
                raise LLMError(message)

            data = response.json()
            text = data.get("response", "")

            return LLMResponse(
                content=text,
                model=data.get("model", self.model),
                prompt_tokens=int(data.get("prompt_eval_count", 0)),
                completion_tokens=int(data.get("eval_count", 0)),
                stop_reason=data.get("done_reason", "stop"),
            )

        except LLMError:
            raise
        except Exception as e:
            if self._is_transient_error(e):
                raise TransientError(str(e), e)
            raise

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
            return True
        error_str = str(error).lower()
        return any(pattern in error_str for pattern in TRANSIENT_PATTERNS)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
