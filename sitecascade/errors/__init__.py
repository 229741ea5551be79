"""
errors/ - Error Taxonomy & Diagnostics

Structured classification of recovered conditions and the
exceptions raised at the analysis boundary.
"""

from .taxonomy import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    Diagnostic,
    CascadeError,
    InvalidInputError,
    AdvisoryUnavailable,
    category_for_code,
)

from .aggregator import DiagnosticsCollector

__all__ = [
    # Taxonomy
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorCode",
    "Diagnostic",
    "CascadeError",
    "InvalidInputError",
    "AdvisoryUnavailable",
    "category_for_code",
    # Aggregator
    "DiagnosticsCollector",
]
