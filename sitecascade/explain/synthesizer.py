"""
explain/synthesizer.py - Recommendation synthesis with advisor fallback

Runs an optional RecommendationAdvisor under a timeout and falls
back to the deterministic templates when the advisor is absent,
fails, times out or returns something unusable.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import (
    Any,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)
import asyncio
import logging

from sitecascade.core.models import DelayedPhase, ImpactedPhase
from sitecascade.errors import (
    AdvisoryUnavailable,
    DiagnosticsCollector,
    ErrorCode,
    ErrorSeverity,
)
from .narrative import TemplateRecommendationAdvisor

logger = logging.getLogger(__name__)

DEFAULT_ADVISOR_TIMEOUT_SECONDS = 20.0

SOURCE_TEMPLATE = "template"
SOURCE_ADVISOR = "advisor"


@runtime_checkable
class RecommendationAdvisor(Protocol):
    """
    Capability that writes recommendation text for a cascade.

    Implementations may call out to a text generation service; they
    are always invoked under a timeout.
    """

    def generate(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Tuple[List[str], str]:
        """
        Returns:
            (recommendations, cascade impact summary)
        """
        ...


@dataclass
class SynthesisResult:
    """Recommendations plus where they came from."""
    recommendations: List[str] = field(default_factory=list)
    summary: str = ""
    source: str = SOURCE_TEMPLATE


def validate_advice(result: Any) -> Tuple[List[str], str]:
    """
    Check an advisor's output shape.

    Raises:
        AdvisoryUnavailable: if the output is not (non-empty list of str, str)
    """
    if not isinstance(result, (tuple, list)) or len(result) != 2:
        raise AdvisoryUnavailable(
            "Advisor returned an unexpected value", ErrorCode.ADV_UNPARSABLE
        )
    recommendations, summary = result
    if isinstance(recommendations, (str, bytes)) or not isinstance(recommendations, (list, tuple)):
        raise AdvisoryUnavailable(
            "Advisor recommendations are not a list", ErrorCode.ADV_UNPARSABLE
        )
    cleaned = [r.strip() for r in recommendations if isinstance(r, str) and r.strip()]
    if not cleaned:
        raise AdvisoryUnavailable(
            "Advisor returned no usable recommendations", ErrorCode.ADV_UNPARSABLE
        )
    if not isinstance(summary, str) or not summary.strip():
        raise AdvisoryUnavailable(
            "Advisor returned no cascade summary", ErrorCode.ADV_UNPARSABLE
        )
    return cleaned, summary.strip()


class RecommendationSynthesizer:
    """
    Produces recommendations and the cascade summary.

    Args:
        advisor: Optional advisor tried before the templates
        fallback: Deterministic advisor (default templates)
        timeout_seconds: Upper bound on the advisor call
    """

    def __init__(
        self,
        advisor: Optional[RecommendationAdvisor] = None,
        fallback: Optional[TemplateRecommendationAdvisor] = None,
        timeout_seconds: float = DEFAULT_ADVISOR_TIMEOUT_SECONDS,
    ):
        self.advisor = advisor
        self.fallback = fallback or TemplateRecommendationAdvisor()
        self.timeout_seconds = timeout_seconds

    def synthesize(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> SynthesisResult:
        if self.advisor is not None and self.advisor is not self.fallback:
            try:
                raw = self._call_with_timeout(delayed_phases, impacted_phases)
                recommendations, summary = validate_advice(raw)
                return SynthesisResult(recommendations, summary, SOURCE_ADVISOR)
            except AdvisoryUnavailable as e:
                self._record_fallback(e, diagnostics)

        return self._template(delayed_phases, impacted_phases)

    async def asynthesize(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> SynthesisResult:
        """Async variant; awaits advisors that expose agenerate()."""
        if self.advisor is not None and self.advisor is not self.fallback:
            try:
                raw = await self._acall_with_timeout(delayed_phases, impacted_phases)
                recommendations, summary = validate_advice(raw)
                return SynthesisResult(recommendations, summary, SOURCE_ADVISOR)
            except AdvisoryUnavailable as e:
                self._record_fallback(e, diagnostics)

        return self._template(delayed_phases, impacted_phases)

    def _template(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> SynthesisResult:
        recommendations, summary = self.fallback.generate(delayed_phases, impacted_phases)
        return SynthesisResult(recommendations, summary, SOURCE_TEMPLATE)

    def _call_with_timeout(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Any:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="advisor")
        try:
            future = executor.submit(self.advisor.generate, delayed_phases, impacted_phases)
            return future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError as e:
            raise AdvisoryUnavailable(
                f"Advisor timed out after {self.timeout_seconds}s",
                ErrorCode.ADV_TIMEOUT,
                e,
            )
        except AdvisoryUnavailable:
            raise
        except Exception as e:
            raise AdvisoryUnavailable(f"Advisor failed: {e}", ErrorCode.ADV_FAILED, e)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    async def _acall_with_timeout(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Any:
        agenerate = getattr(self.advisor, "agenerate", None)
        try:
            if agenerate is not None:
                call = agenerate(delayed_phases, impacted_phases)
            else:
                loop = asyncio.get_running_loop()
                call = loop.run_in_executor(
                    None, self.advisor.generate, delayed_phases, impacted_phases
                )
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise AdvisoryUnavailable(
                f"Advisor timed out after {self.timeout_seconds}s",
                ErrorCode.ADV_TIMEOUT,
                e,
            )
        except AdvisoryUnavailable:
            raise
        except Exception as e:
            raise AdvisoryUnavailable(f"Advisor failed: {e}", ErrorCode.ADV_FAILED, e)

    def _record_fallback(
        self,
        error: AdvisoryUnavailable,
        diagnostics: Optional[DiagnosticsCollector],
    ) -> None:
        logger.warning(f"Advisor unavailable, using template recommendations: {error}")
        if diagnostics is not None:
            diagnostics.add(error.to_diagnostic(ErrorSeverity.WARNING))
