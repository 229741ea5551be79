"""
errors/aggregator.py - Collect diagnostics across the analysis pipeline
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from .taxonomy import Diagnostic, ErrorCategory, ErrorCode, ErrorSeverity


class DiagnosticsCollector:
    """
    Side channel for recovered conditions.

    Each pipeline stage appends to the same collector; the report
    carries the final list.
    """

    def __init__(self):
        self._diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self._diagnostics.append(diagnostic)

    def record(
        self,
        code: ErrorCode,
        message: str,
        phase_id: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        **detail: Any,
    ) -> Diagnostic:
        """Create and add a diagnostic in one step."""
        diagnostic = Diagnostic(
            code=code,
            message=message,
            severity=severity,
            phase_id=phase_id,
            detail=detail,
        )
        self.add(diagnostic)
        return diagnostic

    def get_by_code(self, code: ErrorCode) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.code == code]

    def get_by_category(self, category: ErrorCategory) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.category == category]

    def get_by_severity(self, severity: ErrorSeverity) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == severity]

    def has_code(self, code: ErrorCode) -> bool:
        return any(d.code == code for d in self._diagnostics)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def summary(self) -> Dict[str, Any]:
        """Counts by category and severity."""
        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for d in self._diagnostics:
            by_category[d.category.value] = by_category.get(d.category.value, 0) + 1
            by_severity[d.severity.value] = by_severity.get(d.severity.value, 0) + 1
        return {
            "total": len(self._diagnostics),
            "by_category": by_category,
            "by_severity": by_severity,
        }
