"""
SiteCascade Delay Detector

Classifies phases as on time or delayed against an injected
reference instant. The system clock is never read here.
"""

from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional
import logging
import math

from sitecascade.core.models import DelayedPhase, Phase
from sitecascade.core.parsing import try_utc
from sitecascade.errors import (
    DiagnosticsCollector,
    ErrorCode,
    ErrorSeverity,
    InvalidInputError,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def normalize_now(now: Any) -> datetime:
    """
    Validate and normalise the reference instant to UTC.

    Raises:
        InvalidInputError: if now is missing or not a date/datetime
    """
    if isinstance(now, datetime):
        reference = try_utc(now)
        if reference is None:
            raise InvalidInputError(f"Reference instant {now!r} is outside the supported range")
        return reference
    if isinstance(now, date):
        return datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    raise InvalidInputError(
        f"Reference instant 'now' must be a datetime, got {type(now).__name__}"
    )


def delay_days(end_date: datetime, now: datetime) -> int:
    """Whole days overdue, rounded up, at least 1."""
    overdue = (now - end_date) / ONE_DAY
    return max(1, math.ceil(overdue))


def detect_delays(
    phases: Iterable[Phase],
    now: Any,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> List[DelayedPhase]:
    """
    Find delayed phases.

    Args:
        phases: Normalised phases (see normalize_phases)
        now: Reference instant
        diagnostics: Optional collector for unparseable or inverted dates

    Returns:
        DelayedPhase list in input order
    """
    reference = normalize_now(now)
    delayed: List[DelayedPhase] = []

    for phase in phases:
        end = try_utc(phase.end_date) if phase.end_date is not None else None
        if end is None:
            if diagnostics is not None:
                diagnostics.record(
                    ErrorCode.DAT_UNPARSEABLE,
                    f"Phase '{phase.id}' has no valid end date; treated as not delayed",
                    phase_id=phase.id,
                )
            continue

        start = try_utc(phase.start_date) if phase.start_date is not None else None
        if start is not None and diagnostics is not None:
            if start >= end:
                diagnostics.record(
                    ErrorCode.DAT_INVERTED,
                    f"Phase '{phase.id}' starts on or after its end date",
                    phase_id=phase.id,
                    severity=ErrorSeverity.INFO,
                )

        if phase.is_completed or end >= reference:
            continue

        days = delay_days(end, reference)
        delayed.append(DelayedPhase(phase.id, phase.name, days))
        logger.debug(f"Phase {phase.id} delayed by {days} day(s)")

    return delayed
