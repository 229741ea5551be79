"""
explain/narrative.py - Deterministic recommendation templates

Turns a propagation result into ranked mitigation text and a one
sentence cascade summary. No network, no randomness: identical input
always produces identical text.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

from sitecascade.core.enums import RiskLevel
from sitecascade.core.models import DelayedPhase, ImpactedPhase
from sitecascade.dependencies.cascade import format_days

# Names listed before collapsing into "and N more"
MAX_LISTED_NAMES = 3


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _list_names(names: Sequence[str]) -> str:
    shown = list(names[:MAX_LISTED_NAMES])
    extra = len(names) - len(shown)
    if extra > 0:
        return f"{', '.join(shown)} and {extra} more"
    if len(shown) > 1:
        return f"{', '.join(shown[:-1])} and {shown[-1]}"
    return shown[0] if shown else ""


def most_critical(impacted: Sequence[ImpactedPhase]) -> Optional[ImpactedPhase]:
    """Largest estimated delay, then highest risk; first in input order on ties."""
    best: Optional[ImpactedPhase] = None
    for phase in impacted:
        if best is None:
            best = phase
            continue
        if (phase.estimated_delay, phase.risk_level.rank) > (best.estimated_delay, best.risk_level.rank):
            best = phase
    return best


def most_overdue(delayed: Sequence[DelayedPhase]) -> Optional[DelayedPhase]:
    best: Optional[DelayedPhase] = None
    for phase in delayed:
        if best is None or phase.delay_days > best.delay_days:
            best = phase
    return best


class TemplateRecommendationAdvisor:
    """
    Template-driven advisor.

    This is the guaranteed fallback for any other advisor and satisfies
    the same generate() interface.

    Args:
        standards_reference: Optional local building standard to cite,
            e.g. "Israeli Standard (SI)"
    """

    def __init__(self, standards_reference: Optional[str] = None):
        self.standards_reference = standards_reference or None

    def generate(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Tuple[List[str], str]:
        return (
            self.recommendations(delayed_phases, impacted_phases),
            self.summary(delayed_phases, impacted_phases),
        )

    def recommendations(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> List[str]:
        recommendations: List[str] = []

        overdue = most_overdue(delayed_phases)
        if overdue is not None:
            recommendations.append(
                f"Recover {overdue.phase_name} first: it is {format_days(overdue.delay_days)} "
                f"overdue. Add crews or extend shifts to close it out before "
                f"downstream work is released."
            )

        high = [p.phase_name for p in impacted_phases if p.risk_level == RiskLevel.HIGH]
        if high:
            recommendations.append(
                f"Prioritise {_plural(len(high), 'high-risk phase')} ({_list_names(high)}): "
                f"confirm start dates with subcontractors and hold crews and "
                f"materials ready."
            )

        critical = most_critical(impacted_phases)
        if critical is not None:
            recommendations.append(
                f"Resequence or add resources to {critical.phase_name}, which faces an "
                f"estimated {format_days(critical.estimated_delay)} slip. "
                f"{critical.reason}."
            )

        buffer_days = max(
            [p.estimated_delay for p in impacted_phases]
            + [p.delay_days for p in delayed_phases]
            + [0]
        )
        if buffer_days > 0:
            recommendations.append(
                f"Add a schedule buffer of at least {format_days(buffer_days)} ahead of "
                f"handover and rebaseline the affected phase dates."
            )

        if self.standards_reference:
            recommendations.append(
                f"Check the revised sequence against {self.standards_reference} "
                f"requirements before rescheduling inspections."
            )

        return recommendations

    def summary(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> str:
        delayed_text = _plural(len(delayed_phases), "delayed phase")

        if not impacted_phases:
            worst = most_overdue(delayed_phases)
            worst_days = worst.delay_days if worst else 0
            return (
                f"{delayed_text} detected with no downstream phases at risk. "
                f"Maximum delay: {format_days(worst_days)}."
            )

        counts = {level: 0 for level in RiskLevel}
        for phase in impacted_phases:
            counts[phase.risk_level] += 1
        max_slip = max(p.estimated_delay for p in impacted_phases)

        verb = "affects" if len(delayed_phases) == 1 else "affect"
        return (
            f"{delayed_text} {verb} {_plural(len(impacted_phases), 'downstream phase')} "
            f"({counts[RiskLevel.HIGH]} high, {counts[RiskLevel.MEDIUM]} medium, "
            f"{counts[RiskLevel.LOW]} low risk). "
            f"Maximum estimated slip: {format_days(max_slip)}."
        )
