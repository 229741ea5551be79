"""
sitecascade/llm/prompts/schemas.py - Pydantic Response Models

Structured response schemas for LLM outputs so advisor replies are
validated before they reach a report.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Cascade Advice Schemas
# =============================================================================


class CascadeAdvice(BaseModel):
    """Response schema for delay cascade mitigation advice."""

    model_config = ConfigDict(populate_by_name=True)

    recommendations: List[str] = Field(
        ...,
        description="Specific, actionable mitigation strategies, most important first",
        min_length=1,
        max_length=8,
    )
    cascade_impact: str = Field(
        ...,
        alias="cascadeImpact",
        description="Brief summary of the overall project impact",
        min_length=1,
    )
