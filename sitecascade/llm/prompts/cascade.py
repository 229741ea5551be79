"""
sitecascade/llm/prompts/cascade.py - Cascade Advice Prompt Templates

Templates asking a model for mitigation advice on an already analysed
delay cascade. The model never decides which phases are impacted; it
only writes recommendations and the summary.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sitecascade.core.models import DelayedPhase, ImpactedPhase
from sitecascade.dependencies.cascade import format_days

# =============================================================================
# System Prompts
# =============================================================================

CASCADE_SYSTEM_PROMPT = """You are a construction scheduling expert advising a site manager.

Your role:
- Explain how the listed delays cascade into upcoming phases
- Propose specific, actionable mitigation strategies
- Keep to typical construction sequencing (Foundation -> Skeleton -> Plumbing/Electrical -> Finishes)

Guidelines:
- Use the impacted phases and delays exactly as given; do not invent phases
- Most important recommendation first
- Be concise: one or two sentences per recommendation
- Summarise the overall project impact in one or two sentences"""

REGION_GUIDANCE = (
    "The project is located in {region}. Reference applicable local building "
    "standards where relevant."
)


# =============================================================================
# Prompt Templates
# =============================================================================

def _format_delayed(delayed_phases: Sequence[DelayedPhase]) -> str:
    return "\n".join(
        f"- {p.phase_name} (ID: {p.phase_id}): {format_days(p.delay_days)} overdue"
        for p in delayed_phases
    )


def _format_impacted(impacted_phases: Sequence[ImpactedPhase]) -> str:
    if not impacted_phases:
        return "None"
    return "\n".join(
        f"- {p.phase_name} (ID: {p.phase_id}): {p.risk_level.value} risk, "
        f"estimated delay {format_days(p.estimated_delay)}. {p.reason}"
        for p in impacted_phases
    )


def create_cascade_system_prompt(region: Optional[str] = None) -> str:
    if region:
        return f"{CASCADE_SYSTEM_PROMPT}\n\n{REGION_GUIDANCE.format(region=region)}"
    return CASCADE_SYSTEM_PROMPT


def create_cascade_prompt(
    delayed_phases: Sequence[DelayedPhase],
    impacted_phases: Sequence[ImpactedPhase],
    max_recommendations: int = 3,
) -> str:
    """
    Create a prompt asking for mitigation advice on a cascade.

    Args:
        delayed_phases: Phases past their end date
        impacted_phases: Downstream phases with risk and estimated delay
        max_recommendations: Number of strategies to request

    Returns:
        Formatted prompt string
    """
    return f"""Analyse this construction schedule delay cascade.

DELAYED PHASES:
{_format_delayed(delayed_phases)}

IMPACTED PHASES:
{_format_impacted(impacted_phases)}

Provide {max_recommendations} specific, actionable mitigation strategies
and a brief summary of the overall project impact.

Return JSON with fields "recommendations" (list of strings) and
"cascadeImpact" (string)."""
