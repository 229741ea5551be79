"""
deployment/api.py - HTTP endpoint for delay cascade analysis

Provides:
- POST /api/analyze-delays
- GET /health
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from sitecascade.core.parsing import parse_instant
from sitecascade.errors import InvalidInputError
from sitecascade.explain.synthesizer import RecommendationAdvisor
from sitecascade.reporting.assembler import ReportAssembler
from sitecascade.bootstrap.config import CascadeConfig

__all__ = [
    "create_cascade_router",
    "create_app",
    "AnalyzeDelaysResponse",
    "ImpactedPhaseResponse",
]

logger = logging.getLogger(__name__)

PHASES_REQUIRED = "Phases array is required"


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ImpactedPhaseResponse(BaseModel):
    """One downstream phase put at risk by a delay."""
    phaseId: str
    phaseName: str
    riskLevel: str = Field(..., description="high, medium or low")
    estimatedDelay: int = Field(..., ge=0, description="Estimated slip in days")
    reason: str


class DiagnosticResponse(BaseModel):
    """Non-fatal finding recorded during analysis."""
    code: str
    category: str
    severity: str
    message: str
    phaseId: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


class AnalyzeDelaysResponse(BaseModel):
    """Cascade report, keyed the way the dashboard reads it."""
    delayedPhases: List[str] = Field(default_factory=list)
    impactedPhases: List[ImpactedPhaseResponse] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    cascadeImpact: str = ""
    error: Optional[str] = None
    diagnostics: Optional[List[DiagnosticResponse]] = None


# =============================================================================
# ROUTER FACTORY
# =============================================================================

def bad_request(message: str) -> JSONResponse:
    """400 with the {"error": ...} body the dashboard reads."""
    return JSONResponse(status_code=400, content={"error": message})


def create_cascade_router(
    assembler: Optional[ReportAssembler] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> APIRouter:
    """
    Create FastAPI router for cascade analysis.

    Args:
        assembler: Configured ReportAssembler (defaults if None)
        clock: Source of the reference instant when a request omits "now"

    Returns:
        FastAPI APIRouter
    """
    engine = assembler or ReportAssembler()
    current_time = clock or (lambda: datetime.now(timezone.utc))

    router = APIRouter(prefix="/api", tags=["analysis"])

    @router.post(
        "/analyze-delays",
        response_model=AnalyzeDelaysResponse,
        response_model_exclude_none=True,
    )
    async def analyze_delays(
        request: Request,
        diagnostics: bool = Query(False, description="Include diagnostics in the response"),
    ) -> Any:
        """
        Analyze delayed phases and their cascade into upcoming work.

        Body: {"phases": [...], "now"?: ISO-8601 instant}
        """
        try:
            body = await request.json()
        except ValueError:
            return bad_request(PHASES_REQUIRED)

        if not isinstance(body, dict) or not isinstance(body.get("phases"), list):
            return bad_request(PHASES_REQUIRED)

        if body.get("now") is not None:
            now = parse_instant(body["now"])
            if now is None:
                return bad_request(f"Invalid now: {body['now']!r}")
        else:
            now = current_time()

        try:
            report = await engine.analyze_async(body["phases"], now)
        except InvalidInputError as e:
            return bad_request(str(e))

        payload = report.to_dict(include_diagnostics=diagnostics)
        if report.error is not None:
            return JSONResponse(status_code=500, content=payload)
        return payload

    return router


def create_app(
    config: Optional[CascadeConfig] = None,
    advisor: Optional[RecommendationAdvisor] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Builds the LLM advisor from config when advisor.enabled is set and
    no advisor is passed in.
    """
    config = config or CascadeConfig()

    if advisor is None and config.advisor.enabled:
        from sitecascade.llm import LLMRecommendationAdvisor, create_llm_provider_from_config

        advisor = LLMRecommendationAdvisor(
            create_llm_provider_from_config(config.llm),
            region=config.advisor.region,
            timeout_seconds=config.advisor.timeout_seconds,
        )

    app = FastAPI(
        title="SiteCascade API",
        description="Project delay cascade analysis",
        version=config.version,
    )

    assembler = ReportAssembler.from_config(config, advisor=advisor)
    app.include_router(create_cascade_router(assembler, clock))

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "advisor": advisor is not None}

    logger.info(f"API created (advisor={'on' if advisor is not None else 'off'})")
    return app
