"""
SiteCascade Data Model

Input phases and the entities of the cascade report. Each entity
serialises to the camelCase wire shape consumed by the web client.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sitecascade.core.enums import PhaseStatus, RiskLevel
from sitecascade.core.parsing import coerce_phase
from sitecascade.errors import Diagnostic


# ==================== Phase ====================

@dataclass(frozen=True)
class Phase:
    """
    A unit of construction work.

    Dates are UTC datetimes, or None when the source value could not
    be parsed.
    """
    id: str
    name: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: PhaseStatus = PhaseStatus.PENDING
    dependencies: Tuple[str, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.status == PhaseStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Phase":
        phase = coerce_phase(data, 0)
        if phase is None:
            raise ValueError("Phase record requires an 'id'")
        return phase


# ==================== DelayedPhase ====================

@dataclass(frozen=True)
class DelayedPhase:
    """A phase past its end date without being completed."""
    phase_id: str
    phase_name: str
    delay_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phaseId": self.phase_id,
            "phaseName": self.phase_name,
            "delayDays": self.delay_days,
        }


# ==================== ImpactedPhase ====================

@dataclass(frozen=True)
class ImpactedPhase:
    """A downstream phase exposed to a cascading delay."""
    phase_id: str
    phase_name: str
    risk_level: RiskLevel
    estimated_delay: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phaseId": self.phase_id,
            "phaseName": self.phase_name,
            "riskLevel": self.risk_level.value,
            "estimatedDelay": self.estimated_delay,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImpactedPhase":
        return cls(
            phase_id=str(data["phaseId"]),
            phase_name=str(data.get("phaseName", data["phaseId"])),
            risk_level=RiskLevel(data.get("riskLevel", "low")),
            estimated_delay=int(data.get("estimatedDelay", 0)),
            reason=str(data.get("reason", "")),
        )


# ==================== CascadeReport ====================

HEALTHY_RECOMMENDATION = "All phases are on schedule! Great work!"
HEALTHY_IMPACT = "No delays detected. Project timeline is healthy."
ERROR_IMPACT = "Cascade analysis could not be completed."


@dataclass
class CascadeReport:
    """
    Result of a single cascade analysis.

    Not persisted by the engine; callers may store to_dict() output.
    """
    delayed_phases: List[str] = field(default_factory=list)
    impacted_phases: List[ImpactedPhase] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    cascade_impact: str = ""

    # Side channels
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error: Optional[str] = None
    advisory_source: str = "template"

    @property
    def is_healthy(self) -> bool:
        return not self.delayed_phases and self.error is None

    @property
    def high_risk_phases(self) -> List[ImpactedPhase]:
        return [p for p in self.impacted_phases if p.risk_level == RiskLevel.HIGH]

    @classmethod
    def healthy(cls, diagnostics: Optional[List[Diagnostic]] = None) -> "CascadeReport":
        """The fixed report returned when nothing is delayed."""
        return cls(
            recommendations=[HEALTHY_RECOMMENDATION],
            cascade_impact=HEALTHY_IMPACT,
            diagnostics=list(diagnostics or []),
        )

    @classmethod
    def error_report(
        cls,
        message: str,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> "CascadeReport":
        """Report-shaped payload for an internal failure."""
        return cls(
            cascade_impact=ERROR_IMPACT,
            diagnostics=list(diagnostics or []),
            error=message,
        )

    def to_dict(self, include_diagnostics: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "delayedPhases": list(self.delayed_phases),
            "impactedPhases": [p.to_dict() for p in self.impacted_phases],
            "recommendations": list(self.recommendations),
            "cascadeImpact": self.cascade_impact,
        }
        if self.error is not None:
            data["error"] = self.error
        if include_diagnostics:
            data["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CascadeReport":
        return cls(
            delayed_phases=[str(p) for p in data.get("delayedPhases", [])],
            impacted_phases=[
                ImpactedPhase.from_dict(p) for p in data.get("impactedPhases", [])
            ],
            recommendations=[str(r) for r in data.get("recommendations", [])],
            cascade_impact=str(data.get("cascadeImpact", "")),
            error=data.get("error"),
        )
