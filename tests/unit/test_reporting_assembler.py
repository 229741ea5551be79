"""
Unit tests for reporting/assembler.py

Tests the analysis pipeline: short-circuits, failure handling,
configuration and the async variant.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from sitecascade import analyze_cascade, analyze_cascade_async
from sitecascade.bootstrap.config import CascadeConfig
from sitecascade.core.enums import RiskLevel
from sitecascade.core.models import (
    ERROR_IMPACT,
    HEALTHY_IMPACT,
    HEALTHY_RECOMMENDATION,
)
from sitecascade.errors import ErrorCode, ErrorSeverity, InvalidInputError
from sitecascade.reporting import ReportAssembler
from sitecascade.reporting.assembler import DEFAULT_ERROR_MESSAGE


class TestHealthyReport:
    """No delayed phase means the fixed healthy report."""

    def test_all_future(self, make_phase, now):
        report = analyze_cascade([make_phase("a"), make_phase("b", dependencies=["a"])], now)
        assert report.delayed_phases == []
        assert report.impacted_phases == []
        assert report.recommendations == [HEALTHY_RECOMMENDATION]
        assert report.cascade_impact == HEALTHY_IMPACT

    def test_empty_list(self, now):
        assert analyze_cascade([], now).is_healthy

    def test_completed_overdue_phase_is_healthy(self, make_phase, now):
        report = analyze_cascade([make_phase("a", end_in_days=-30, status="Completed")], now)
        assert report.is_healthy

    def test_propagator_not_invoked(self, make_phase, now):
        assembler = ReportAssembler()
        assembler.propagator = Mock()
        assembler.synthesizer = Mock()
        assembler.analyze([make_phase("a")], now)
        assembler.propagator.propagate.assert_not_called()
        assembler.synthesizer.synthesize.assert_not_called()

    def test_healthy_keeps_diagnostics(self, make_phase, now):
        report = analyze_cascade([make_phase("a", dependencies=["ghost"])], now)
        assert report.is_healthy
        assert [d.code for d in report.diagnostics] == [ErrorCode.DEP_DANGLING]


class TestCascadeReport:
    """Test assembled reports."""

    def test_scenario_a(self, scenario_a, now):
        report = analyze_cascade(scenario_a, now)
        assert report.delayed_phases == ["foundation"]
        assert len(report.impacted_phases) == 1
        assert report.impacted_phases[0].risk_level == RiskLevel.HIGH
        assert report.impacted_phases[0].estimated_delay == 10
        assert report.advisory_source == "template"
        assert report.recommendations
        assert report.error is None

    def test_delayed_without_impacted(self, make_phase, now):
        report = analyze_cascade([make_phase("a", end_in_days=-1)], now)
        assert report.delayed_phases == ["a"]
        assert report.impacted_phases == []
        assert "no downstream phases at risk" in report.cascade_impact

    def test_date_reference(self, scenario_a):
        report = analyze_cascade(scenario_a, date(2024, 6, 15))
        assert report.delayed_phases == ["foundation"]

    def test_advisor_used(self, scenario_a, now):
        advisor = Mock(spec=["generate"])
        advisor.generate.return_value = (["Call the concrete supplier"], "Skeleton slips")
        report = analyze_cascade(scenario_a, now, advisor)
        assert report.recommendations == ["Call the concrete supplier"]
        assert report.cascade_impact == "Skeleton slips"
        assert report.advisory_source == "advisor"

    def test_advisor_failure_recorded(self, scenario_a, now):
        advisor = Mock(spec=["generate"])
        advisor.generate.side_effect = ConnectionError("offline")
        report = analyze_cascade(scenario_a, now, advisor)
        assert report.advisory_source == "template"
        assert report.error is None
        assert any(d.code == ErrorCode.ADV_FAILED for d in report.diagnostics)


class TestFailureHandling:
    """Invalid input raises; internal failures become error reports."""

    def test_phases_none(self, now):
        with pytest.raises(InvalidInputError):
            analyze_cascade(None, now)

    def test_phases_mapping(self, now):
        with pytest.raises(InvalidInputError):
            analyze_cascade({"phases": []}, now)

    @pytest.mark.parametrize("bad_now", [None, "2024-06-15", 1718452800])
    def test_now_must_be_instant(self, scenario_a, bad_now):
        with pytest.raises(InvalidInputError):
            analyze_cascade(scenario_a, bad_now)

    def test_internal_failure(self, scenario_a, now):
        assembler = ReportAssembler()
        assembler.propagator = Mock()
        assembler.propagator.propagate.side_effect = RuntimeError("graph exploded")

        report = assembler.analyze(scenario_a, now)

        assert report.error == "graph exploded"
        assert report.cascade_impact == ERROR_IMPACT
        assert report.delayed_phases == []
        assert report.impacted_phases == []
        diagnostic = report.diagnostics[-1]
        assert diagnostic.code == ErrorCode.SYS_INTERNAL
        assert diagnostic.severity == ErrorSeverity.ERROR
        assert diagnostic.detail == {"exception": "RuntimeError"}

    def test_internal_failure_default_message(self, scenario_a, now):
        assembler = ReportAssembler()
        assembler.propagator = Mock()
        assembler.propagator.propagate.side_effect = RuntimeError()
        assert assembler.analyze(scenario_a, now).error == DEFAULT_ERROR_MESSAGE


class TestConfiguration:
    """Test ReportAssembler.from_config()."""

    def _chain(self, make_phase, delay):
        return [
            make_phase("a", "A", end_in_days=-delay),
            make_phase("b", "B", dependencies=["a"]),
            make_phase("c", "C", dependencies=["b"]),
        ]

    def test_default_thresholds(self, make_phase, now):
        report = analyze_cascade(self._chain(make_phase, 4), now)
        assert [p.risk_level for p in report.impacted_phases] == [RiskLevel.HIGH, RiskLevel.MEDIUM]

    def test_custom_thresholds(self, make_phase, now):
        config = CascadeConfig()
        config.risk.high_delay_days = 4
        report = analyze_cascade(self._chain(make_phase, 4), now, config=config)
        assert [p.risk_level for p in report.impacted_phases] == [RiskLevel.HIGH, RiskLevel.HIGH]

    def test_sequencing_disabled(self, israeli_project, now):
        config = CascadeConfig()
        config.sequencing.enabled = False
        report = analyze_cascade(israeli_project, now, config=config)
        assert report.delayed_phases == ["p1"]
        assert report.impacted_phases == []

    def test_custom_categories(self, make_phase, now):
        config = CascadeConfig()
        config.sequencing.categories = [
            {"name": "Groundworks", "order": 0, "keywords": ["ground"]},
            {"name": "Shell", "order": 1, "keywords": ["shell"]},
        ]
        phases = [
            make_phase("g", "Groundworks", end_in_days=-5),
            make_phase("s", "Shell and core"),
        ]
        report = analyze_cascade(phases, now, config=config)
        assert [p.phase_id for p in report.impacted_phases] == ["s"]

    def test_region_cited_in_templates(self, scenario_a, now):
        config = CascadeConfig()
        config.advisor.region = "Israel"
        report = analyze_cascade(scenario_a, now, config=config)
        assert "Israel building standards" in report.recommendations[-1]


class TestAsyncAnalysis:
    """Test analyze_cascade_async()."""

    @pytest.mark.asyncio
    async def test_matches_sync(self, israeli_project, now):
        sync_report = analyze_cascade(israeli_project, now)
        async_report = await analyze_cascade_async(israeli_project, now)
        assert async_report.to_dict() == sync_report.to_dict()

    @pytest.mark.asyncio
    async def test_invalid_input_raises(self, now):
        with pytest.raises(InvalidInputError):
            await analyze_cascade_async("phases", now)

    @pytest.mark.asyncio
    async def test_internal_failure(self, scenario_a, now):
        assembler = ReportAssembler()
        assembler.propagator = Mock()
        assembler.propagator.propagate.side_effect = KeyError("x")
        report = await assembler.analyze_async(scenario_a, now)
        assert report.error is not None
        assert any(d.code == ErrorCode.SYS_INTERNAL for d in report.diagnostics)
