"""
sitecascade/llm/providers - LLM Provider Implementations

Available providers:
- AnthropicProvider: Claude API (default)
- LocalProvider: Ollama for local models
"""

from .base import BaseProvider
from .anthropic import AnthropicProvider
from .local import LocalProvider

__all__ = [
    "BaseProvider",
    "AnthropicProvider",
    "LocalProvider",
]
