"""
SiteCascade Core Enumerations
"""

from enum import Enum


class PhaseStatus(str, Enum):
    """
    Lifecycle status of a construction phase.
    """
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class RiskLevel(str, Enum):
    """
    Exposure of a phase to a cascading delay.

    Ordered: LOW < MEDIUM < HIGH.
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class EdgeKind(str, Enum):
    """How a dependency edge was resolved."""
    EXPLICIT = "explicit"    # Declared in the phase's dependencies
    IMPLICIT = "implicit"    # Inferred from standard category sequencing


# Accepted spellings of each status, compared lower-cased with
# spaces, hyphens and underscores removed.
STATUS_ALIASES = {
    "pending": PhaseStatus.PENDING,
    "notstarted": PhaseStatus.PENDING,
    "planned": PhaseStatus.PENDING,
    "inprogress": PhaseStatus.IN_PROGRESS,
    "active": PhaseStatus.IN_PROGRESS,
    "started": PhaseStatus.IN_PROGRESS,
    "completed": PhaseStatus.COMPLETED,
    "complete": PhaseStatus.COMPLETED,
    "done": PhaseStatus.COMPLETED,
}
