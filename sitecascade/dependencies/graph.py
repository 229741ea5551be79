"""
SiteCascade Phase Graph

Builds the dependency graph of a project's phases.

Edges come from two sources:
- EXPLICIT: ids listed in a phase's own dependencies
- IMPLICIT: standard category sequencing, only for phases that
  resolve no explicit dependency

Schedules are entered by people and cannot be assumed acyclic.
Cycles are broken with a three-colour depth-first traversal that
drops every edge closing a cycle (first-seen wins). Dangling ids,
self-references and dropped edges are recorded as diagnostics and
never abort construction.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple
import logging

from sitecascade.core.enums import EdgeKind
from sitecascade.core.models import Phase
from sitecascade.core.parsing import coerce_phase
from sitecascade.errors import (
    DiagnosticsCollector,
    ErrorCode,
    ErrorSeverity,
    InvalidInputError,
)
from .sequencing import CategoryTable, nearest_earlier_order

logger = logging.getLogger(__name__)


# =============================================================================
# GRAPH ELEMENTS
# =============================================================================

class _Color(Enum):
    WHITE = 0   # unvisited
    GRAY = 1    # on the current DFS path
    BLACK = 2   # fully explored


@dataclass(frozen=True)
class DependencyEdge:
    """An edge from a predecessor (source) to its dependent (target)."""
    source: str
    target: str
    kind: EdgeKind = EdgeKind.EXPLICIT

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "kind": self.kind.value}


@dataclass(frozen=True)
class DroppedEdge:
    """An edge removed because it would close a dependency cycle."""
    source: str
    target: str
    kind: EdgeKind

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "kind": self.kind.value}


# =============================================================================
# INPUT NORMALISATION
# =============================================================================

def normalize_phases(
    phases: Any,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> List[Phase]:
    """
    Validate the caller's collection and de-duplicate by id.

    The last occurrence of an id wins; it keeps the position of the
    first occurrence.

    Raises:
        InvalidInputError: if phases is None or not a sequence
    """
    if phases is None:
        raise InvalidInputError("Phases collection is required")
    if isinstance(phases, (str, bytes, bytearray, Mapping)) or not isinstance(phases, Iterable):
        raise InvalidInputError(
            f"Phases must be a sequence of phase records, got {type(phases).__name__}"
        )

    by_id: Dict[str, Phase] = {}
    for index, item in enumerate(list(phases)):
        phase = coerce_phase(item, index, diagnostics)
        if phase is None:
            continue
        if phase.id in by_id and diagnostics is not None:
            diagnostics.record(
                ErrorCode.INP_DUPLICATE_ID,
                f"Duplicate phase id '{phase.id}'; last occurrence wins",
                phase_id=phase.id,
                severity=ErrorSeverity.INFO,
            )
        by_id[phase.id] = phase

    return list(by_id.values())


# =============================================================================
# PHASE GRAPH
# =============================================================================

class PhaseGraph:
    """
    Immutable dependency graph over a project's phases.

    predecessors_of() and successors_of() are O(1) lookups into
    adjacency built once at construction.
    """

    def __init__(
        self,
        phases: Iterable[Phase],
        edges: Iterable[DependencyEdge],
        dropped_edges: Iterable[DroppedEdge] = (),
        categories: Optional[Dict[str, str]] = None,
    ):
        self._phases: Tuple[Phase, ...] = tuple(phases)
        self._by_id: Dict[str, Phase] = {p.id: p for p in self._phases}
        self._edges: Tuple[DependencyEdge, ...] = tuple(edges)
        self._dropped: Tuple[DroppedEdge, ...] = tuple(dropped_edges)
        self._categories: Dict[str, str] = dict(categories or {})

        preds: Dict[str, List[str]] = {p.id: [] for p in self._phases}
        succs: Dict[str, List[str]] = {p.id: [] for p in self._phases}
        self._kinds: Dict[Tuple[str, str], EdgeKind] = {}
        for edge in self._edges:
            preds[edge.target].append(edge.source)
            succs[edge.source].append(edge.target)
            self._kinds[(edge.source, edge.target)] = edge.kind

        self._preds: Dict[str, Tuple[str, ...]] = {k: tuple(v) for k, v in preds.items()}
        self._succs: Dict[str, Tuple[str, ...]] = {k: tuple(v) for k, v in succs.items()}

    @property
    def phases(self) -> Tuple[Phase, ...]:
        return self._phases

    @property
    def phase_ids(self) -> List[str]:
        return [p.id for p in self._phases]

    @property
    def edges(self) -> Tuple[DependencyEdge, ...]:
        return self._edges

    @property
    def dropped_edges(self) -> Tuple[DroppedEdge, ...]:
        return self._dropped

    def phase(self, phase_id: str) -> Optional[Phase]:
        return self._by_id.get(phase_id)

    def predecessors_of(self, phase_id: str) -> Tuple[str, ...]:
        """Resolved predecessors (explicit and implicit) of a phase."""
        return self._preds.get(phase_id, ())

    def successors_of(self, phase_id: str) -> Tuple[str, ...]:
        """Phases that depend on this phase."""
        return self._succs.get(phase_id, ())

    def edge_kind(self, source: str, target: str) -> Optional[EdgeKind]:
        return self._kinds.get((source, target))

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self._kinds

    def category_of(self, phase_id: str) -> Optional[str]:
        """Sequence category matched by the phase's name, if any."""
        return self._categories.get(phase_id)

    def __contains__(self, phase_id: object) -> bool:
        return phase_id in self._by_id

    def __len__(self) -> int:
        return len(self._phases)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise for diagnostics output."""
        return {
            "phases": self.phase_ids,
            "edges": [e.to_dict() for e in self._edges],
            "droppedEdges": [e.to_dict() for e in self._dropped],
            "categories": dict(self._categories),
        }


# =============================================================================
# BUILDER
# =============================================================================

class PhaseGraphBuilder:
    """
    Builds a PhaseGraph from a phase list.

    Args:
        categories: Implicit sequencing table (default table if None)
        use_implicit: Disable to resolve explicit dependencies only
    """

    def __init__(
        self,
        categories: Optional[CategoryTable] = None,
        use_implicit: bool = True,
    ):
        self._table = categories or CategoryTable.default()
        self._use_implicit = use_implicit

    def build(
        self,
        phases: Any,
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> PhaseGraph:
        """
        Build the graph.

        Raises:
            InvalidInputError: if phases is not a sequence
        """
        diagnostics = diagnostics if diagnostics is not None else DiagnosticsCollector()
        nodes = normalize_phases(phases, diagnostics)

        candidates, explicit_pairs = self._explicit_edges(nodes, diagnostics)

        categories: Dict[str, str] = {}
        if self._use_implicit:
            implicit, categories = self._implicit_edges(nodes, explicit_pairs)
            candidates.extend(implicit)

        kept, dropped = self._break_cycles(nodes, candidates)
        for edge in dropped:
            diagnostics.record(
                ErrorCode.DEP_CYCLE_EDGE,
                f"Dependency {edge.source} -> {edge.target} closes a cycle; ignored",
                phase_id=edge.target,
                source=edge.source,
                kind=edge.kind.value,
            )

        graph = PhaseGraph(nodes, kept, dropped, categories)
        logger.debug(
            f"Phase graph built: {len(nodes)} phases, {len(kept)} edges, "
            f"{len(dropped)} dropped"
        )
        return graph

    def _explicit_edges(
        self,
        nodes: List[Phase],
        diagnostics: DiagnosticsCollector,
    ) -> Tuple[List[DependencyEdge], Set[Tuple[str, str]]]:
        ids = {p.id for p in nodes}
        edges: List[DependencyEdge] = []
        pairs: Set[Tuple[str, str]] = set()

        for phase in nodes:
            for dep in phase.dependencies:
                if dep == phase.id:
                    diagnostics.record(
                        ErrorCode.DEP_SELF_LOOP,
                        f"Phase '{phase.id}' depends on itself; ignored",
                        phase_id=phase.id,
                    )
                    continue
                if dep not in ids:
                    diagnostics.record(
                        ErrorCode.DEP_DANGLING,
                        f"Phase '{phase.id}' depends on unknown phase '{dep}'; ignored",
                        phase_id=phase.id,
                        severity=ErrorSeverity.INFO,
                        dependency=dep,
                    )
                    continue
                if (dep, phase.id) in pairs:
                    continue
                edges.append(DependencyEdge(dep, phase.id, EdgeKind.EXPLICIT))
                pairs.add((dep, phase.id))

        return edges, pairs

    def _implicit_edges(
        self,
        nodes: List[Phase],
        explicit_pairs: Set[Tuple[str, str]],
    ) -> Tuple[List[DependencyEdge], Dict[str, str]]:
        orders: Dict[str, int] = {}
        categories: Dict[str, str] = {}
        by_order: Dict[int, List[str]] = {}

        for phase in nodes:
            category = self._table.match(phase.name)
            if category is None:
                continue
            orders[phase.id] = category.order
            categories[phase.id] = category.name
            by_order.setdefault(category.order, []).append(phase.id)

        has_explicit = {target for _, target in explicit_pairs}
        edges: List[DependencyEdge] = []

        for phase in nodes:
            if phase.id in has_explicit or phase.id not in orders:
                continue
            earlier = nearest_earlier_order(orders[phase.id], by_order.keys())
            if earlier is None:
                continue
            for source in by_order[earlier]:
                if (source, phase.id) in explicit_pairs or (phase.id, source) in explicit_pairs:
                    continue
                edges.append(DependencyEdge(source, phase.id, EdgeKind.IMPLICIT))

        return edges, categories

    def _break_cycles(
        self,
        nodes: List[Phase],
        candidates: List[DependencyEdge],
    ) -> Tuple[List[DependencyEdge], List[DroppedEdge]]:
        """Iterative three-colour DFS; edges into GRAY nodes are dropped."""
        adjacency: Dict[str, List[DependencyEdge]] = {p.id: [] for p in nodes}
        for edge in candidates:
            adjacency[edge.source].append(edge)

        color: Dict[str, _Color] = {p.id: _Color.WHITE for p in nodes}
        dropped_keys: Set[Tuple[str, str]] = set()
        dropped: List[DroppedEdge] = []

        for root in nodes:
            if color[root.id] is not _Color.WHITE:
                continue
            color[root.id] = _Color.GRAY
            stack = deque([(root.id, 0)])

            while stack:
                node, index = stack.pop()
                out = adjacency[node]
                if index >= len(out):
                    color[node] = _Color.BLACK
                    continue

                stack.append((node, index + 1))
                edge = out[index]
                target_color = color[edge.target]
                if target_color is _Color.GRAY:
                    dropped_keys.add((edge.source, edge.target))
                    dropped.append(DroppedEdge(edge.source, edge.target, edge.kind))
                elif target_color is _Color.WHITE:
                    color[edge.target] = _Color.GRAY
                    stack.append((edge.target, 0))

        kept = [e for e in candidates if (e.source, e.target) not in dropped_keys]
        return kept, dropped


def build_phase_graph(
    phases: Any,
    categories: Optional[CategoryTable] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
    use_implicit: bool = True,
) -> PhaseGraph:
    """Convenience wrapper around PhaseGraphBuilder."""
    builder = PhaseGraphBuilder(categories=categories, use_implicit=use_implicit)
    return builder.build(phases, diagnostics)
