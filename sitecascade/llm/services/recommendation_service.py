"""
sitecascade/llm/services/recommendation_service.py - LLM Recommendation Advisor

RecommendationAdvisor backed by an LLM provider. Failures surface as
AdvisoryUnavailable; the RecommendationSynthesizer owns the fallback.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from sitecascade.core.models import DelayedPhase, ImpactedPhase
from sitecascade.errors import AdvisoryUnavailable, ErrorCode
from ..exceptions import LLMError, TimeoutError as LLMTimeoutError, ValidationError
from ..protocol import LLMOptions
from ..prompts.schemas import CascadeAdvice
from ..prompts.cascade import create_cascade_prompt, create_cascade_system_prompt

if TYPE_CHECKING:
    from ..protocol import LLMProviderProtocol

logger = logging.getLogger("llm.services.recommendation")


class LLMRecommendationAdvisor:
    """
    Writes cascade recommendations with an LLM.

    Args:
        llm: LLM provider instance
        region: Optional project region, used to ask for local standards
        max_recommendations: Number of strategies requested
        timeout_seconds: Per-request provider timeout
    """

    def __init__(
        self,
        llm: "LLMProviderProtocol",
        region: Optional[str] = None,
        max_recommendations: int = 3,
        timeout_seconds: float = 20.0,
    ):
        self.llm = llm
        self.region = region or None
        self.max_recommendations = max_recommendations
        self.options = LLMOptions(temperature=0.0, timeout_seconds=timeout_seconds)

    async def agenerate(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Tuple[List[str], str]:
        prompt = create_cascade_prompt(
            delayed_phases,
            impacted_phases,
            max_recommendations=self.max_recommendations,
        )

        try:
            advice = await self.llm.complete_json(
                prompt=prompt,
                response_model=CascadeAdvice,
                system_prompt=create_cascade_system_prompt(self.region),
                options=self.options,
            )
        except ValidationError as e:
            raise AdvisoryUnavailable(f"LLM advice unparsable: {e}", ErrorCode.ADV_UNPARSABLE, e)
        except LLMTimeoutError as e:
            raise AdvisoryUnavailable(str(e), ErrorCode.ADV_TIMEOUT, e)
        except LLMError as e:
            raise AdvisoryUnavailable(f"LLM advice failed: {e}", ErrorCode.ADV_FAILED, e)

        if not isinstance(advice, CascadeAdvice):
            raise AdvisoryUnavailable(
                f"LLM returned {type(advice).__name__}, expected CascadeAdvice",
                ErrorCode.ADV_UNPARSABLE,
            )

        logger.debug(f"LLM advice with {len(advice.recommendations)} recommendations")
        return list(advice.recommendations), advice.cascade_impact

    def generate(
        self,
        delayed_phases: Sequence[DelayedPhase],
        impacted_phases: Sequence[ImpactedPhase],
    ) -> Tuple[List[str], str]:
        """Blocking variant; must not be called from inside a running event loop."""
        return asyncio.run(self.agenerate(delayed_phases, impacted_phases))
