"""
SiteCascade Dependency & Propagation Engine

Provides:
- CategoryTable: implicit construction sequencing
- PhaseGraph: dependency graph with cycle breaking
- detect_delays: delayed phase detection against an injected instant
- CascadePropagator: multi-source delay propagation with risk scoring
"""

from .sequencing import (
    SequenceCategory,
    CategoryTable,
    DEFAULT_CATEGORIES,
    nearest_earlier_order,
)
from .graph import (
    PhaseGraph,
    PhaseGraphBuilder,
    DependencyEdge,
    DroppedEdge,
    build_phase_graph,
    normalize_phases,
)
from .delays import (
    detect_delays,
    delay_days,
    normalize_now,
)
from .cascade import (
    CascadePropagator,
    PropagationResult,
    RiskPolicy,
    format_days,
)

__all__ = [
    # Sequencing
    "SequenceCategory",
    "CategoryTable",
    "DEFAULT_CATEGORIES",
    "nearest_earlier_order",
    # Graph
    "PhaseGraph",
    "PhaseGraphBuilder",
    "DependencyEdge",
    "DroppedEdge",
    "build_phase_graph",
    "normalize_phases",
    # Delays
    "detect_delays",
    "delay_days",
    "normalize_now",
    # Cascade
    "CascadePropagator",
    "PropagationResult",
    "RiskPolicy",
    "format_days",
]
