"""
sitecascade/llm/prompts - LLM Prompt Templates and Response Schemas
"""

from .schemas import CascadeAdvice
from .cascade import (
    CASCADE_SYSTEM_PROMPT,
    create_cascade_prompt,
    create_cascade_system_prompt,
)

__all__ = [
    "CascadeAdvice",
    "CASCADE_SYSTEM_PROMPT",
    "create_cascade_prompt",
    "create_cascade_system_prompt",
]
