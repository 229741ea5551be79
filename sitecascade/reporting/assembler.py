"""
reporting/assembler.py - Cascade report assembly

Runs the full pipeline for one analysis call:
graph build -> delay detection -> propagation -> recommendations -> report.
"""

from __future__ import annotations
from typing import Any, List, Optional, Tuple, TYPE_CHECKING
import logging

from sitecascade.core.models import CascadeReport, DelayedPhase
from sitecascade.dependencies.cascade import CascadePropagator, PropagationResult, RiskPolicy
from sitecascade.dependencies.delays import detect_delays, normalize_now
from sitecascade.dependencies.graph import PhaseGraph, PhaseGraphBuilder
from sitecascade.dependencies.sequencing import CategoryTable
from sitecascade.errors import (
    DiagnosticsCollector,
    ErrorCode,
    ErrorSeverity,
    InvalidInputError,
)
from sitecascade.explain.narrative import TemplateRecommendationAdvisor
from sitecascade.explain.synthesizer import (
    DEFAULT_ADVISOR_TIMEOUT_SECONDS,
    RecommendationAdvisor,
    RecommendationSynthesizer,
    SynthesisResult,
)

if TYPE_CHECKING:
    from sitecascade.bootstrap.config import CascadeConfig

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to analyze delays"


class ReportAssembler:
    """
    Orchestrates one cascade analysis.

    Holds no per-call state, so one instance can serve many calls.

    Args:
        categories: Implicit sequencing table (default table if None)
        policy: Risk thresholds (defaults if None)
        advisor: Optional recommendation advisor tried before templates
        timeout_seconds: Upper bound on the advisor call
        use_implicit: Disable implicit sequencing edges
        standards_reference: Building standard cited by template advice
    """

    def __init__(
        self,
        categories: Optional[CategoryTable] = None,
        policy: Optional[RiskPolicy] = None,
        advisor: Optional[RecommendationAdvisor] = None,
        timeout_seconds: float = DEFAULT_ADVISOR_TIMEOUT_SECONDS,
        use_implicit: bool = True,
        standards_reference: Optional[str] = None,
    ):
        self.builder = PhaseGraphBuilder(categories=categories, use_implicit=use_implicit)
        self.propagator = CascadePropagator(policy)
        self.synthesizer = RecommendationSynthesizer(
            advisor=advisor,
            fallback=TemplateRecommendationAdvisor(standards_reference),
            timeout_seconds=timeout_seconds,
        )

    @classmethod
    def from_config(
        cls,
        config: "CascadeConfig",
        advisor: Optional[RecommendationAdvisor] = None,
    ) -> "ReportAssembler":
        region = config.advisor.region
        return cls(
            categories=CategoryTable.from_config(config.sequencing.categories),
            policy=RiskPolicy(
                high_delay_days=config.risk.high_delay_days,
                medium_delay_days=config.risk.medium_delay_days,
                medium_depth=config.risk.medium_depth,
            ),
            advisor=advisor,
            timeout_seconds=config.advisor.timeout_seconds,
            use_implicit=config.sequencing.enabled,
            standards_reference=f"{region} building standards" if region else None,
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def analyze(self, phases: Any, now: Any) -> CascadeReport:
        """
        Analyze a phase list at the reference instant `now`.

        Raises:
            InvalidInputError: if phases is not a sequence or now is not an instant
        """
        diagnostics = DiagnosticsCollector()
        reference = normalize_now(now)

        try:
            graph, delayed = self._detect(phases, reference, diagnostics)
            if not delayed:
                return self._healthy(diagnostics)

            result = self.propagator.propagate(graph, delayed)
            synthesis = self.synthesizer.synthesize(delayed, result.to_list(), diagnostics)
            return self._assemble(delayed, result, synthesis, diagnostics)

        except InvalidInputError:
            raise
        except Exception as e:
            return self._failed(e, diagnostics)

    async def analyze_async(self, phases: Any, now: Any) -> CascadeReport:
        """Async variant of analyze(); awaits the advisor instead of blocking."""
        diagnostics = DiagnosticsCollector()
        reference = normalize_now(now)

        try:
            graph, delayed = self._detect(phases, reference, diagnostics)
            if not delayed:
                return self._healthy(diagnostics)

            result = self.propagator.propagate(graph, delayed)
            synthesis = await self.synthesizer.asynthesize(
                delayed, result.to_list(), diagnostics
            )
            return self._assemble(delayed, result, synthesis, diagnostics)

        except InvalidInputError:
            raise
        except Exception as e:
            return self._failed(e, diagnostics)

    # =========================================================================
    # PIPELINE STEPS
    # =========================================================================

    def _detect(
        self,
        phases: Any,
        reference: Any,
        diagnostics: DiagnosticsCollector,
    ) -> Tuple[PhaseGraph, List[DelayedPhase]]:
        graph = self.builder.build(phases, diagnostics)
        delayed = detect_delays(graph.phases, reference, diagnostics)
        logger.info(
            f"Analyzing {len(graph)} phase(s) at {reference.isoformat()}: "
            f"{len(delayed)} delayed"
        )
        return graph, delayed

    def _healthy(self, diagnostics: DiagnosticsCollector) -> CascadeReport:
        logger.info("No delays detected")
        return CascadeReport.healthy(diagnostics.diagnostics)

    def _assemble(
        self,
        delayed: List[DelayedPhase],
        result: PropagationResult,
        synthesis: SynthesisResult,
        diagnostics: DiagnosticsCollector,
    ) -> CascadeReport:
        return CascadeReport(
            delayed_phases=[d.phase_id for d in delayed],
            impacted_phases=result.to_list(),
            recommendations=list(synthesis.recommendations),
            cascade_impact=synthesis.summary,
            diagnostics=diagnostics.diagnostics,
            advisory_source=synthesis.source,
        )

    def _failed(self, error: Exception, diagnostics: DiagnosticsCollector) -> CascadeReport:
        logger.error(f"Delay analysis failed: {error}", exc_info=True)
        message = str(error) or DEFAULT_ERROR_MESSAGE
        diagnostics.record(
            ErrorCode.SYS_INTERNAL,
            message,
            severity=ErrorSeverity.ERROR,
            exception=type(error).__name__,
        )
        return CascadeReport.error_report(message, diagnostics.diagnostics)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def _assembler_for(
    advisor: Optional[RecommendationAdvisor],
    config: Optional["CascadeConfig"],
) -> ReportAssembler:
    if config is not None:
        return ReportAssembler.from_config(config, advisor=advisor)
    return ReportAssembler(advisor=advisor)


def analyze_cascade(
    phases: Any,
    now: Any,
    advisor: Optional[RecommendationAdvisor] = None,
    *,
    config: Optional["CascadeConfig"] = None,
) -> CascadeReport:
    """
    Analyze delay cascades in a project phase list.

    Args:
        phases: Phase objects or phase mappings
        now: Reference instant (datetime or date); never read from the clock here
        advisor: Optional recommendation advisor
        config: Optional configuration (risk thresholds, sequencing, timeout)

    Returns:
        CascadeReport; internal failures come back as an error-shaped report

    Raises:
        InvalidInputError: if phases is not a sequence or now is not an instant
    """
    return _assembler_for(advisor, config).analyze(phases, now)


async def analyze_cascade_async(
    phases: Any,
    now: Any,
    advisor: Optional[RecommendationAdvisor] = None,
    *,
    config: Optional["CascadeConfig"] = None,
) -> CascadeReport:
    """Async variant of analyze_cascade()."""
    return await _assembler_for(advisor, config).analyze_async(phases, now)
