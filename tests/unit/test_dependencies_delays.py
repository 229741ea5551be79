"""
Unit tests for dependencies/delays.py

Tests delayed phase detection against an injected reference instant.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from sitecascade.core.models import Phase, DelayedPhase
from sitecascade.core.enums import PhaseStatus
from sitecascade.dependencies.delays import delay_days, detect_delays, normalize_now
from sitecascade.dependencies.graph import normalize_phases
from sitecascade.errors import DiagnosticsCollector, ErrorCode, InvalidInputError


class TestNormalizeNow:
    """Test normalize_now()."""

    def test_aware_datetime_converted(self):
        tz = timezone(timedelta(hours=3))
        result = normalize_now(datetime(2024, 6, 15, 15, 0, tzinfo=tz))
        assert result == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert normalize_now(datetime(2024, 6, 15)).tzinfo == timezone.utc

    def test_date_is_midnight_utc(self):
        assert normalize_now(date(2024, 6, 15)) == datetime(2024, 6, 15, tzinfo=timezone.utc)

    def test_now_outside_utc_range_rejected(self):
        with pytest.raises(InvalidInputError):
            normalize_now(datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=5))))

    @pytest.mark.parametrize("value", [None, "2024-06-15", 1718400000])
    def test_non_instant_rejected(self, value):
        with pytest.raises(InvalidInputError):
            normalize_now(value)


class TestDelayDays:
    """Test delay_days() rounding."""

    def test_whole_days(self, now):
        assert delay_days(now - timedelta(days=10), now) == 10

    def test_partial_day_rounds_up(self, now):
        assert delay_days(now - timedelta(days=2, hours=1), now) == 3

    def test_minimum_one_day(self, now):
        assert delay_days(now - timedelta(minutes=5), now) == 1


class TestDetectDelays:
    """Test detect_delays()."""

    def _phases(self, records):
        return normalize_phases(records)

    def test_past_end_not_completed_is_delayed(self, make_phase, now):
        phases = self._phases([
            make_phase("a", "Foundation", end_in_days=-10, status="In Progress"),
            make_phase("b", "Skeleton", end_in_days=5),
        ])
        assert detect_delays(phases, now) == [DelayedPhase("a", "Foundation", 10)]

    def test_completed_never_delayed(self, make_phase, now):
        phases = self._phases([make_phase("a", end_in_days=-30, status="Completed")])
        assert detect_delays(phases, now) == []

    def test_pending_past_end_is_delayed(self, make_phase, now):
        phases = self._phases([make_phase("a", end_in_days=-1, status="Pending")])
        assert [d.phase_id for d in detect_delays(phases, now)] == ["a"]

    def test_end_equal_to_now_not_delayed(self, make_phase, now):
        phases = self._phases([make_phase("a", end_in_days=0)])
        assert detect_delays(phases, now) == []

    def test_input_order_preserved(self, make_phase, now):
        phases = self._phases([
            make_phase("late2", end_in_days=-2),
            make_phase("late9", end_in_days=-9),
            make_phase("late5", end_in_days=-5),
        ])
        assert [d.phase_id for d in detect_delays(phases, now)] == ["late2", "late9", "late5"]

    def test_missing_end_date_recorded(self, now):
        diagnostics = DiagnosticsCollector()
        phases = [Phase(id="a", name="A", end_date=None)]
        assert detect_delays(phases, now, diagnostics) == []
        assert diagnostics.has_code(ErrorCode.DAT_UNPARSEABLE)

    def test_phase_date_outside_utc_range_recorded(self, now):
        """Phase instances built by callers skip coercion; conversion is still guarded."""
        diagnostics = DiagnosticsCollector()
        edge = datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=5)))
        phases = [
            Phase(id="a", name="A", end_date=edge),
            Phase(id="b", name="B", start_date=edge, end_date=now - timedelta(days=2)),
        ]
        delayed = detect_delays(phases, now, diagnostics)
        assert [(d.phase_id, d.delay_days) for d in delayed] == [("b", 2)]
        assert [d.phase_id for d in diagnostics.get_by_code(ErrorCode.DAT_UNPARSEABLE)] == ["a"]

    def test_inverted_range_recorded_not_fatal(self, make_phase, now):
        diagnostics = DiagnosticsCollector()
        phases = self._phases([make_phase("a", end_in_days=-3, start_in_days=2)])
        delayed = detect_delays(phases, now, diagnostics)
        assert [d.delay_days for d in delayed] == [3]
        assert diagnostics.has_code(ErrorCode.DAT_INVERTED)

    def test_uses_injected_now_only(self, make_phase, now):
        phases = self._phases([make_phase("a", end_in_days=-3)])
        earlier = now - timedelta(days=30)
        assert detect_delays(phases, earlier) == []
        assert detect_delays(phases, now)[0].delay_days == 3
