"""
explain/formatters.py - Format cascade reports for different outputs
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from sitecascade.core.enums import RiskLevel
from sitecascade.core.models import CascadeReport
from sitecascade.dependencies.cascade import format_days

RISK_ICONS = {
    RiskLevel.HIGH: "[!!]",
    RiskLevel.MEDIUM: "[! ]",
    RiskLevel.LOW: "[. ]",
}


class BaseFormatter(ABC):
    """Base class for report formatters."""

    @abstractmethod
    def format(self, report: CascadeReport) -> str:
        pass


class ChatFormatter(BaseFormatter):
    """Compact text for terminals and chat panels."""

    def __init__(self, max_recommendations: Optional[int] = None):
        self.max_recommendations = max_recommendations

    def format(self, report: CascadeReport) -> str:
        lines = []

        if report.error is not None:
            lines.append(f"**Analysis failed:** {report.error}")
            return "\n".join(lines)

        if report.is_healthy:
            lines.append(f"**Status:** {report.cascade_impact}")
            for rec in report.recommendations:
                lines.append(f"- {rec}")
            return "\n".join(lines)

        lines.append(
            f"**{len(report.delayed_phases)} delayed phase(s) affect "
            f"{len(report.impacted_phases)} upcoming phase(s)**"
        )
        lines.append(report.cascade_impact)

        if report.impacted_phases:
            lines.append("")
            lines.append("**Impacted phases:**")
            for phase in report.impacted_phases:
                icon = RISK_ICONS[phase.risk_level]
                lines.append(
                    f"{icon} {phase.phase_name} (+{format_days(phase.estimated_delay)}): "
                    f"{phase.reason}"
                )

        recommendations = report.recommendations
        if self.max_recommendations is not None:
            recommendations = recommendations[: self.max_recommendations]
        if recommendations:
            lines.append("")
            lines.append("**Recommendations:**")
            for rec in recommendations:
                lines.append(f"- {rec}")

        return "\n".join(lines)


class ReportFormatter(BaseFormatter):
    """Markdown for written schedule reports."""

    def __init__(self, title: str = "Schedule Delay Cascade Report"):
        self.title = title

    def format(self, report: CascadeReport) -> str:
        sections = [f"# {self.title}"]

        if report.error is not None:
            sections.append("\n## Analysis Error")
            sections.append(report.error)

        sections.append("\n## Summary")
        sections.append(report.cascade_impact)

        if report.delayed_phases:
            sections.append("\n## Delayed Phases")
            for phase_id in report.delayed_phases:
                sections.append(f"- `{phase_id}`")

        if report.impacted_phases:
            sections.append("\n## Impacted Phases")
            sections.append("| Phase | Risk | Est. Delay | Reason |")
            sections.append("|-------|------|------------|--------|")
            for phase in report.impacted_phases:
                sections.append(
                    f"| {phase.phase_name} | {phase.risk_level.value} | "
                    f"{format_days(phase.estimated_delay)} | {phase.reason} |"
                )

        if report.recommendations:
            sections.append("\n## Recommendations")
            for i, rec in enumerate(report.recommendations, 1):
                sections.append(f"{i}. {rec}")

        if report.diagnostics:
            sections.append("\n## Diagnostics")
            for d in report.diagnostics:
                sections.append(f"- **{d.code.name}** ({d.severity.value}): {d.message}")

        sections.append(f"\n_Recommendations source: {report.advisory_source}_")
        return "\n".join(sections)
