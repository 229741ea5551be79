"""
SiteCascade Test Configuration and Fixtures

Provides a fixed reference instant and a phase record factory so no
test depends on the system clock.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def days_from_now(days: float) -> str:
    """ISO timestamp `days` after NOW (negative for the past)."""
    return (NOW + timedelta(days=days)).isoformat()


def phase_record(
    phase_id: str,
    name: Optional[str] = None,
    end_in_days: float = 30,
    status: str = "Pending",
    dependencies: Optional[List[str]] = None,
    start_in_days: Optional[float] = None,
) -> Dict[str, Any]:
    """Phase dict in the camelCase shape the web client sends."""
    start = end_in_days - 10 if start_in_days is None else start_in_days
    return {
        "id": phase_id,
        "name": name or phase_id,
        "startDate": days_from_now(start),
        "endDate": days_from_now(end_in_days),
        "status": status,
        "dependencies": list(dependencies or []),
    }


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_phase():
    return phase_record


@pytest.fixture
def scenario_a() -> List[Dict[str, Any]]:
    """Foundation 10 days late; Skeleton depends on it."""
    return [
        phase_record("foundation", "Foundation", end_in_days=-10, status="In Progress"),
        phase_record("skeleton", "Skeleton", end_in_days=20, dependencies=["foundation"]),
    ]


@pytest.fixture
def scenario_c() -> List[Dict[str, Any]]:
    """Foundation 2 days late; Skeleton -> Finishes chain behind it."""
    return [
        phase_record("foundation", "Foundation", end_in_days=-2, status="In Progress"),
        phase_record("skeleton", "Skeleton", end_in_days=20, dependencies=["foundation"]),
        phase_record("finishes", "Finishes", end_in_days=40, dependencies=["skeleton"]),
    ]


@pytest.fixture
def israeli_project() -> List[Dict[str, Any]]:
    """Typical residential build with no explicit dependencies."""
    return [
        phase_record("p1", "Site Preparation & Excavation", end_in_days=-8, status="In Progress"),
        phase_record("p2", "Foundation Pouring", end_in_days=5),
        phase_record("p3", "Structural Frame", end_in_days=30),
        phase_record("p4", "Plumbing Rough-in", end_in_days=45),
        phase_record("p5", "Electrical Wiring", end_in_days=45),
        phase_record("p6", "Interior Finishes", end_in_days=70),
    ]
