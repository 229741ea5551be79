"""
reporting/ - Cascade report assembly
"""

from .assembler import (
    ReportAssembler,
    analyze_cascade,
    analyze_cascade_async,
)

__all__ = [
    "ReportAssembler",
    "analyze_cascade",
    "analyze_cascade_async",
]
