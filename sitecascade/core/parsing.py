"""
SiteCascade Input Coercion

Turns loosely-typed phase records (JSON bodies, document-store
snapshots, hand-built dicts) into Phase instances. Nothing in here
raises on bad field values: unusable values become None or defaults
and are reported through the diagnostics collector.
"""

from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Tuple, TYPE_CHECKING
import logging
import math

from sitecascade.core.enums import PhaseStatus, STATUS_ALIASES
from sitecascade.errors import ErrorCode, ErrorSeverity

if TYPE_CHECKING:
    from sitecascade.errors import DiagnosticsCollector

logger = logging.getLogger(__name__)


# Field aliases: camelCase from the web client, snake_case from Python callers
START_KEYS = ("startDate", "start_date", "start")
END_KEYS = ("endDate", "end_date", "end")
DEPENDENCY_KEYS = ("dependencies", "dependsOn", "depends_on")


def to_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def try_utc(value: datetime) -> Optional[datetime]:
    """to_utc(), or None when the shifted instant falls outside the datetime range."""
    try:
        return to_utc(value)
    except (OverflowError, ValueError):
        return None


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Parse a calendar instant.

    Accepts datetime, date, ISO-8601 strings, epoch seconds and
    document-store timestamps ({"seconds": ..., "nanoseconds": ...}).

    Returns:
        UTC datetime, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return try_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return try_utc(parsed)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None or isinstance(seconds, bool):
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        try:
            return _from_epoch(float(seconds) + float(nanos) / 1e9)
        except (TypeError, ValueError):
            return None

    return None


def _from_epoch(seconds: float) -> Optional[datetime]:
    if not math.isfinite(seconds):
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_status(value: Any) -> Optional[PhaseStatus]:
    """Resolve a status spelling; None if unrecognised."""
    if isinstance(value, PhaseStatus):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    for ch in (" ", "-", "_"):
        key = key.replace(ch, "")
    return STATUS_ALIASES.get(key)


def _first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_dependencies(
    value: Any,
    phase_id: str,
    diagnostics: Optional["DiagnosticsCollector"] = None,
) -> Tuple[str, ...]:
    """Normalise a dependency list to a tuple of unique id strings."""
    if value is None:
        return ()

    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable) or isinstance(value, Mapping):
        if diagnostics is not None:
            diagnostics.record(
                ErrorCode.INP_BAD_DEPENDENCIES,
                f"Phase '{phase_id}' has a non-list dependencies field; ignored",
                phase_id=phase_id,
            )
        return ()

    seen = []
    for dep in value:
        if dep is None:
            continue
        dep_id = str(dep)
        if dep_id not in seen:
            seen.append(dep_id)
    return tuple(seen)


def coerce_phase(
    item: Any,
    index: int,
    diagnostics: Optional["DiagnosticsCollector"] = None,
):
    """
    Coerce one element of the caller's phase list.

    Returns:
        Phase, or None when the element has no usable id
    """
    from sitecascade.core.models import Phase

    if isinstance(item, Phase):
        return item

    if not isinstance(item, Mapping):
        if diagnostics is not None:
            diagnostics.record(
                ErrorCode.INP_BAD_PHASE,
                f"Element {index} is not a phase record ({type(item).__name__}); skipped",
                index=index,
            )
        return None

    raw_id = item.get("id")
    if raw_id is None or (isinstance(raw_id, str) and not raw_id.strip()):
        if diagnostics is not None:
            diagnostics.record(
                ErrorCode.INP_BAD_PHASE,
                f"Element {index} has no id; skipped",
                index=index,
            )
        return None
    phase_id = str(raw_id)

    raw_status = item.get("status")
    status = parse_status(raw_status)
    if status is None:
        status = PhaseStatus.PENDING
        if diagnostics is not None:
            diagnostics.record(
                ErrorCode.INP_UNKNOWN_STATUS,
                f"Phase '{phase_id}' has unknown status {raw_status!r}; treated as Pending",
                phase_id=phase_id,
                severity=ErrorSeverity.INFO,
            )

    name = item.get("name")
    return Phase(
        id=phase_id,
        name=str(name) if name is not None else phase_id,
        start_date=parse_instant(_first_present(item, START_KEYS)),
        end_date=parse_instant(_first_present(item, END_KEYS)),
        status=status,
        dependencies=parse_dependencies(
            _first_present(item, DEPENDENCY_KEYS), phase_id, diagnostics
        ),
    )
