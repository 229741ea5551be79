"""
errors/taxonomy.py - Error classification for cascade analysis

Structured diagnostics for every condition the engine recovers from,
plus the two exceptions that can cross the analysis boundary.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from enum import Enum


class ErrorSeverity(Enum):
    """Diagnostic severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Diagnostic categories."""

    # Input errors (1xxx)
    INPUT = "input"

    # Dependency errors (2xxx)
    DEPENDENCY = "dependency"

    # Date errors (3xxx)
    DATE = "date"

    # Advisory errors (4xxx)
    ADVISORY = "advisory"

    # System errors (5xxx)
    SYSTEM = "system"


class ErrorCode(Enum):
    """Specific diagnostic codes."""

    # Input (1xxx)
    INP_NOT_SEQUENCE = 1001
    INP_BAD_PHASE = 1002
    INP_DUPLICATE_ID = 1003
    INP_UNKNOWN_STATUS = 1004
    INP_BAD_DEPENDENCIES = 1005

    # Dependency (2xxx)
    DEP_DANGLING = 2001
    DEP_SELF_LOOP = 2002
    DEP_CYCLE_EDGE = 2003

    # Date (3xxx)
    DAT_UNPARSEABLE = 3001
    DAT_INVERTED = 3002

    # Advisory (4xxx)
    ADV_FAILED = 4001
    ADV_TIMEOUT = 4002
    ADV_UNPARSABLE = 4003

    # System (5xxx)
    SYS_INTERNAL = 5001


_CODE_CATEGORY = {
    1: ErrorCategory.INPUT,
    2: ErrorCategory.DEPENDENCY,
    3: ErrorCategory.DATE,
    4: ErrorCategory.ADVISORY,
    5: ErrorCategory.SYSTEM,
}


def category_for_code(code: ErrorCode) -> ErrorCategory:
    """Map an error code to its category by its thousands digit."""
    return _CODE_CATEGORY.get(code.value // 1000, ErrorCategory.SYSTEM)


@dataclass
class Diagnostic:
    """A recovered condition recorded during analysis."""

    code: ErrorCode = ErrorCode.SYS_INTERNAL
    message: str = ""
    severity: ErrorSeverity = ErrorSeverity.WARNING
    category: Optional[ErrorCategory] = None

    # Context
    phase_id: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.category is None:
            self.category = category_for_code(self.code)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "code": self.code.name,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.phase_id is not None:
            data["phaseId"] = self.phase_id
        if self.detail:
            data["detail"] = dict(self.detail)
        return data


# =============================================================================
# EXCEPTIONS
# =============================================================================

class CascadeError(Exception):
    """Base exception for cascade analysis errors."""

    code: ErrorCode = ErrorCode.SYS_INTERNAL

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_diagnostic(self, severity: ErrorSeverity = ErrorSeverity.ERROR) -> Diagnostic:
        return Diagnostic(code=self.code, message=self.message, severity=severity)


class InvalidInputError(CascadeError):
    """Raised when the phase collection or reference instant is unusable."""

    code = ErrorCode.INP_NOT_SEQUENCE


class AdvisoryUnavailable(CascadeError):
    """Raised when a recommendation advisor fails, times out or returns junk."""

    code = ErrorCode.ADV_FAILED

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, code)
        self.original_error = original_error
