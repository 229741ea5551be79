"""
sitecascade/llm/provider_factory.py - LLM Provider Factory

Creates LLM providers from explicit arguments, an LLMConfig or
environment variables. Supports Anthropic (Claude) and local (Ollama).
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, TYPE_CHECKING

from .protocol import LLMProviderProtocol
from .providers.anthropic import AnthropicProvider, DEFAULT_MODEL as ANTHROPIC_DEFAULT_MODEL
from .providers.local import LocalProvider, DEFAULT_MODEL as LOCAL_DEFAULT_MODEL, DEFAULT_BASE_URL

if TYPE_CHECKING:
    from sitecascade.bootstrap.config import LLMConfig

logger = logging.getLogger("llm.factory")

PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_LOCAL = "local"
PROVIDER_OLLAMA = "ollama"  # Alias for local

ENV_PROVIDER = "SITECASCADE_LLM_PROVIDER"
ENV_MODEL = "SITECASCADE_LLM_MODEL"
ENV_API_KEY = "SITECASCADE_LLM_API_KEY"
ENV_BASE_URL = "SITECASCADE_LLM_BASE_URL"
ENV_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"


def create_llm_provider(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    max_tokens: int = 2048,
    temperature: float = 0.2,
    timeout_seconds: float = 30,
    retry_attempts: int = 1,
    retry_delay_ms: int = 500,
    **kwargs: Any,
) -> LLMProviderProtocol:
    """
    Create an LLM provider.

    Configuration priority:
    1. Explicit parameters
    2. Environment variables
    3. Defaults

    Raises:
        ValueError: If an unknown provider type is specified

    Examples:
        provider = create_llm_provider()
        provider = create_llm_provider(provider="local", model="llama3")
    """
    resolved_provider = (provider or os.getenv(ENV_PROVIDER, PROVIDER_ANTHROPIC)).lower()
    if resolved_provider == PROVIDER_OLLAMA:
        resolved_provider = PROVIDER_LOCAL

    logger.info(f"Creating LLM provider: {resolved_provider}")

    common_options = {
        "max_tokens": max_tokens,
        "temperature": temperature,
        "timeout_seconds": timeout_seconds,
        "retry_attempts": retry_attempts,
        "retry_delay_ms": retry_delay_ms,
        **kwargs,
    }

    if resolved_provider == PROVIDER_ANTHROPIC:
        resolved_model = model or os.getenv(ENV_MODEL, ANTHROPIC_DEFAULT_MODEL)
        resolved_key = api_key or os.getenv(ENV_API_KEY) or os.getenv(ENV_ANTHROPIC_API_KEY)
        if not resolved_key:
            logger.warning(
                "No Anthropic API key found. Set ANTHROPIC_API_KEY or SITECASCADE_LLM_API_KEY"
            )
        return AnthropicProvider(model=resolved_model, api_key=resolved_key, **common_options)

    if resolved_provider == PROVIDER_LOCAL:
        resolved_model = model or os.getenv(ENV_MODEL, LOCAL_DEFAULT_MODEL)
        resolved_url = base_url or os.getenv(ENV_BASE_URL, DEFAULT_BASE_URL)
        logger.info(f"Creating local provider with model: {resolved_model} at {resolved_url}")
        return LocalProvider(model=resolved_model, base_url=resolved_url, **common_options)

    raise ValueError(
        f"Unknown provider: {resolved_provider}. "
        f"Supported: {PROVIDER_ANTHROPIC}, {PROVIDER_LOCAL}"
    )


def create_llm_provider_from_config(config: "LLMConfig") -> LLMProviderProtocol:
    """Create a provider from the application's LLMConfig section."""
    return create_llm_provider(
        provider=config.provider,
        model=config.model or None,
        api_key=config.api_key or None,
        base_url=config.base_url,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        timeout_seconds=config.timeout_seconds,
        retry_attempts=config.retry_attempts,
        retry_delay_ms=config.retry_delay_ms,
    )
