"""
SiteCascade Cascade Propagator

Walks the phase graph forward from every delayed phase at once
(multi-source breadth-first traversal) and scores each reachable
phase.

Propagation rules:
- A successor inherits the MAXIMUM delay among its visited
  predecessors. The latest-finishing predecessor governs its
  earliest feasible start. There is no decay by depth.
- Completed phases neither receive nor pass on delay.
- Delayed phases can have their effective delay raised by an
  upstream delay but are never reported as impacted.
- Risk is upgraded on every improvement, never downgraded.

Termination: the graph is acyclic after cycle breaking, and a phase
is only re-queued when its delay strictly increases (bounded by the
largest source delay) or its depth strictly decreases (bounded by 1).
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

from sitecascade.core.enums import EdgeKind, RiskLevel
from sitecascade.core.models import DelayedPhase, ImpactedPhase
from .graph import PhaseGraph

logger = logging.getLogger(__name__)


def format_days(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


# =============================================================================
# RISK POLICY
# =============================================================================

@dataclass(frozen=True)
class RiskPolicy:
    """
    Thresholds for risk classification.

    HIGH:   a direct dependent of a delayed phase, or delay >= high_delay_days
    MEDIUM: reached at exactly medium_depth with
            medium_delay_days <= delay < high_delay_days
    LOW:    everything else
    """
    high_delay_days: int = 7
    medium_delay_days: int = 3
    medium_depth: int = 2

    def classify(self, direct: bool, depth: int, delay: int) -> RiskLevel:
        if direct or delay >= self.high_delay_days:
            return RiskLevel.HIGH
        if depth == self.medium_depth and delay >= self.medium_delay_days:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


# =============================================================================
# PROPAGATION STATE
# =============================================================================

@dataclass
class _Visit:
    delay: int
    depth: int
    is_source: bool = False
    direct: bool = False
    risk: Optional[RiskLevel] = None
    cause: Optional[str] = None
    cause_kind: Optional[EdgeKind] = None


@dataclass
class PropagationResult:
    """Outcome of a propagation run."""
    impacted: Dict[str, ImpactedPhase] = field(default_factory=dict)
    effective_delays: Dict[str, int] = field(default_factory=dict)
    depths: Dict[str, int] = field(default_factory=dict)
    expansions: int = 0

    def to_list(self) -> List[ImpactedPhase]:
        return list(self.impacted.values())

    @property
    def max_delay(self) -> int:
        return max((p.estimated_delay for p in self.impacted.values()), default=0)

    def count_by_risk(self) -> Dict[str, int]:
        counts = {level.value: 0 for level in RiskLevel}
        for phase in self.impacted.values():
            counts[phase.risk_level.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "impacted": [p.to_dict() for p in self.impacted.values()],
            "effectiveDelays": dict(self.effective_delays),
            "depths": dict(self.depths),
            "expansions": self.expansions,
        }


# =============================================================================
# PROPAGATOR
# =============================================================================

class CascadePropagator:
    """
    Propagates delays through a PhaseGraph.

    Usage:
        propagator = CascadePropagator(RiskPolicy())
        result = propagator.propagate(graph, delayed)
    """

    def __init__(self, policy: Optional[RiskPolicy] = None):
        self.policy = policy or RiskPolicy()

    def propagate(
        self,
        graph: PhaseGraph,
        delayed: Sequence[DelayedPhase],
    ) -> PropagationResult:
        state: Dict[str, _Visit] = {}
        queue: deque = deque()

        for item in delayed:
            phase = graph.phase(item.phase_id)
            if phase is None or phase.is_completed:
                continue
            if item.phase_id in state:
                existing = state[item.phase_id]
                existing.delay = max(existing.delay, item.delay_days)
                continue
            state[item.phase_id] = _Visit(delay=item.delay_days, depth=0, is_source=True)
            queue.append(item.phase_id)

        expansions = 0
        while queue:
            current = queue.popleft()
            expansions += 1
            visit = state[current]

            for successor in graph.successors_of(current):
                phase = graph.phase(successor)
                if phase is None or phase.is_completed:
                    continue
                if self._relax(graph, state, current, visit, successor):
                    queue.append(successor)

        result = PropagationResult(expansions=expansions)
        for phase_id in graph.phase_ids:
            visit = state.get(phase_id)
            if visit is None:
                continue
            result.effective_delays[phase_id] = visit.delay
            result.depths[phase_id] = visit.depth
            if visit.is_source:
                continue
            result.impacted[phase_id] = ImpactedPhase(
                phase_id=phase_id,
                phase_name=graph.phase(phase_id).name,
                risk_level=visit.risk,
                estimated_delay=max(0, visit.delay),
                reason=self._reason(graph, visit),
            )

        logger.info(
            f"Cascade propagated from {sum(1 for v in state.values() if v.is_source)} "
            f"delayed phase(s) to {len(result.impacted)} impacted phase(s) "
            f"in {expansions} expansion(s)"
        )
        return result

    def _relax(
        self,
        graph: PhaseGraph,
        state: Dict[str, _Visit],
        source_id: str,
        source: _Visit,
        target_id: str,
    ) -> bool:
        """Apply one edge. Returns True if the target must be re-expanded."""
        candidate_delay = source.delay
        candidate_depth = source.depth + 1
        kind = graph.edge_kind(source_id, target_id)

        target = state.get(target_id)
        if target is None:
            target = _Visit(
                delay=candidate_delay,
                depth=candidate_depth,
                direct=source.is_source,
                cause=source_id,
                cause_kind=kind,
            )
            target.risk = self.policy.classify(target.direct, target.depth, target.delay)
            state[target_id] = target
            return True

        requeue = False
        if candidate_delay > target.delay:
            target.delay = candidate_delay
            if not target.is_source:
                target.cause = source_id
                target.cause_kind = kind
            requeue = True
        if candidate_depth < target.depth:
            target.depth = candidate_depth
            requeue = True
        if source.is_source and not target.direct:
            target.direct = True

        if not target.is_source:
            risk = self.policy.classify(target.direct, target.depth, target.delay)
            if target.risk is None or risk > target.risk:
                target.risk = risk

        return requeue

    def _reason(self, graph: PhaseGraph, visit: _Visit) -> str:
        cause = graph.phase(visit.cause) if visit.cause else None
        cause_name = cause.name if cause else str(visit.cause)
        if visit.cause_kind == EdgeKind.IMPLICIT:
            return f"Follows {cause_name} in standard sequencing"
        return f"Depends on {cause_name}, delayed by {format_days(visit.delay)}"
