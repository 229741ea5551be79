"""
Unit tests for the LLM layer

Tests the provider base class, the local provider, the factory,
prompt construction and the LLM-backed recommendation advisor.
"""

import asyncio
import json
from typing import List, Optional
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from sitecascade.core.enums import RiskLevel
from sitecascade.core.models import DelayedPhase, ImpactedPhase
from sitecascade.errors import AdvisoryUnavailable, ErrorCode
from sitecascade.explain import RecommendationSynthesizer, SOURCE_ADVISOR
from sitecascade.llm import (
    LLMError,
    LLMOptions,
    LLMRecommendationAdvisor,
    LLMResponse,
    create_llm_provider,
)
from sitecascade.llm.exceptions import (
    TimeoutError as LLMTimeoutError,
    TransientError,
    ValidationError,
)
from sitecascade.llm.prompts import (
    CascadeAdvice,
    create_cascade_prompt,
    create_cascade_system_prompt,
)
from sitecascade.llm.providers import AnthropicProvider, BaseProvider, LocalProvider
from sitecascade.llm.providers.base import extract_json_text


DELAYED = [DelayedPhase("foundation", "Foundation", 10)]
IMPACTED = [ImpactedPhase(
    "skeleton", "Skeleton", RiskLevel.HIGH, 10, "Depends on Foundation, delayed by 10 days",
)]

ADVICE_JSON = json.dumps({
    "recommendations": ["Add a second concrete crew", "Pre-order rebar"],
    "cascadeImpact": "Skeleton start slips by 10 days.",
})


class ScriptedProvider(BaseProvider):
    """Provider that replays queued outcomes (str content or an exception)."""

    name = "scripted"

    def __init__(self, outcomes: List[object], **kwargs):
        kwargs.setdefault("retry_delay_ms", 0)
        super().__init__(model="scripted-model", **kwargs)
        self.outcomes = list(outcomes)
        self.calls = 0
        self.last_system_prompt: Optional[str] = None

    async def _raw_complete(self, prompt, system_prompt, options):
        self.calls += 1
        self.last_system_prompt = system_prompt
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return LLMResponse(content=outcome, model=self.model)


class SleepyProvider(BaseProvider):
    name = "sleepy"

    async def _raw_complete(self, prompt, system_prompt, options):
        await asyncio.sleep(1)
        return LLMResponse(content="{}", model=self.model)


# =============================================================================
# BASE PROVIDER
# =============================================================================

class TestExtractJsonText:
    """Test markdown fence stripping."""

    def test_plain_json(self):
        assert extract_json_text('  {"a": 1}  ') == '{"a": 1}'

    def test_fenced_json(self):
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert extract_json_text('```\n{"a": 1}\n```') == '{"a": 1}'


class TestBaseProvider:
    """Test retry, timeout and JSON validation."""

    @pytest.mark.asyncio
    async def test_complete_sets_request_metadata(self):
        provider = ScriptedProvider(["hello"])
        response = await provider.complete("prompt")
        assert response.content == "hello"
        assert response.request_id
        assert response.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_transient_error_retried(self):
        provider = ScriptedProvider([TransientError("overloaded"), "ok"], retry_attempts=1)
        response = await provider.complete("prompt")
        assert response.content == "ok"
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_transient_errors_exhaust_retries(self):
        provider = ScriptedProvider([TransientError("overloaded"), TransientError("overloaded")], retry_attempts=1)
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert "failed after 2 attempts" in str(exc.value)
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_not_retried(self):
        provider = ScriptedProvider([RuntimeError("boom"), "never"], retry_attempts=3)
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert "boom" in str(exc.value)
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_non_recoverable_error_not_retried(self):
        provider = ScriptedProvider([LLMError("bad request"), "never"], retry_attempts=3)
        with pytest.raises(LLMError):
            await provider.complete("prompt")
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_timeout(self):
        provider = SleepyProvider(model="m", retry_attempts=2)
        with pytest.raises(LLMTimeoutError) as exc:
            await provider.complete("prompt", options=LLMOptions(timeout_seconds=0.05))
        assert "timed out" in str(exc.value)

    @pytest.mark.asyncio
    async def test_complete_json_validates(self):
        provider = ScriptedProvider([f"```json\n{ADVICE_JSON}\n```"])
        advice = await provider.complete_json("prompt", CascadeAdvice, system_prompt="Be brief.")
        assert isinstance(advice, CascadeAdvice)
        assert advice.recommendations[0] == "Add a second concrete crew"
        assert advice.cascade_impact == "Skeleton start slips by 10 days."
        assert provider.last_system_prompt.startswith("Be brief.")
        assert "valid JSON" in provider.last_system_prompt

    @pytest.mark.asyncio
    async def test_complete_json_rejects_non_json(self):
        provider = ScriptedProvider(["Sure! Here are some ideas."])
        with pytest.raises(ValidationError) as exc:
            await provider.complete_json("prompt", CascadeAdvice)
        assert exc.value.raw_response == "Sure! Here are some ideas."

    @pytest.mark.asyncio
    async def test_complete_json_rejects_schema_mismatch(self):
        provider = ScriptedProvider([json.dumps({"recommendations": []})])
        with pytest.raises(ValidationError):
            await provider.complete_json("prompt", CascadeAdvice)


# =============================================================================
# LOCAL PROVIDER
# =============================================================================

class TestLocalProvider:
    """Test the Ollama provider against a mock transport."""

    def _provider(self, handler, **kwargs):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="http://ollama.test",
        )
        return LocalProvider(model="llama3", base_url="http://ollama.test", client=client, **kwargs)

    @pytest.mark.asyncio
    async def test_generate_request_and_usage(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "llama3",
                "response": ADVICE_JSON,
                "prompt_eval_count": 40,
                "eval_count": 12,
                "done_reason": "stop",
            })

        provider = self._provider(handler)
        response = await provider.complete("prompt", system_prompt="system")

        assert seen["path"] == "/api/generate"
        assert seen["body"]["model"] == "llama3"
        assert seen["body"]["stream"] is False
        assert seen["body"]["system"] == "system"
        assert response.content == ADVICE_JSON
        assert response.total_tokens == 52
        await provider.close()

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        def handler(request):
            return httpx.Response(503, text="loading model")

        provider = self._provider(handler, retry_attempts=0)
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert "503" in str(exc.value)

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, text="model \"nope\" not found")

        provider = self._provider(handler, retry_attempts=2, retry_delay_ms=0)
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert "400" in str(exc.value)
        assert not exc.value.retryable
        assert len(calls) == 1


# =============================================================================
# ANTHROPIC PROVIDER
# =============================================================================

class StatusError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


class TestAnthropicProvider:
    """Test error classification with a stubbed client."""

    def _provider(self, error, **kwargs):
        provider = AnthropicProvider(api_key="test-key", retry_delay_ms=0, **kwargs)
        client = Mock()
        client.messages.create = AsyncMock(side_effect=error)
        provider._client = client
        return provider, client

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 403, 404])
    async def test_permanent_status_not_retried(self, status_code):
        provider, client = self._provider(
            StatusError("connection refused for this key", status_code), retry_attempts=2,
        )
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert not isinstance(exc.value, TransientError)
        assert client.messages.create.await_count == 1

    @pytest.mark.asyncio
    async def test_overloaded_retried(self):
        provider, client = self._provider(StatusError("Overloaded", 529), retry_attempts=2)
        with pytest.raises(LLMError) as exc:
            await provider.complete("prompt")
        assert "failed after 3 attempts" in str(exc.value)
        assert client.messages.create.await_count == 3


# =============================================================================
# FACTORY
# =============================================================================

class TestProviderFactory:
    """Test create_llm_provider()."""

    def test_local_provider(self, monkeypatch):
        monkeypatch.delenv("SITECASCADE_LLM_MODEL", raising=False)
        provider = create_llm_provider(provider="local", base_url="http://gpu-box:11434/")
        assert isinstance(provider, LocalProvider)
        assert provider.model == "llama3"
        assert provider.base_url == "http://gpu-box:11434"

    def test_ollama_alias(self):
        provider = create_llm_provider(provider="ollama", model="mistral")
        assert isinstance(provider, LocalProvider)
        assert provider.model == "mistral"

    def test_anthropic_provider_is_lazy(self, monkeypatch):
        monkeypatch.delenv("SITECASCADE_LLM_MODEL", raising=False)
        provider = create_llm_provider(provider="anthropic", api_key="test-key", timeout_seconds=5)
        assert isinstance(provider, AnthropicProvider)
        assert provider.timeout_seconds == 5
        assert provider._client is None

    def test_provider_from_env(self, monkeypatch):
        monkeypatch.setenv("SITECASCADE_LLM_PROVIDER", "local")
        monkeypatch.setenv("SITECASCADE_LLM_MODEL", "phi3")
        provider = create_llm_provider()
        assert isinstance(provider, LocalProvider)
        assert provider.model == "phi3"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            create_llm_provider(provider="carrier-pigeon")


# =============================================================================
# PROMPTS
# =============================================================================

class TestPrompts:
    """Test cascade prompt construction."""

    def test_prompt_lists_phases(self):
        prompt = create_cascade_prompt(DELAYED, IMPACTED, max_recommendations=4)
        assert "DELAYED PHASES:" in prompt
        assert "- Foundation (ID: foundation): 10 days overdue" in prompt
        assert "high risk, estimated delay 10 days" in prompt
        assert "Provide 4 specific" in prompt
        assert '"cascadeImpact"' in prompt

    def test_prompt_without_impacted(self):
        prompt = create_cascade_prompt(DELAYED, [])
        assert "IMPACTED PHASES:\nNone" in prompt

    def test_region_guidance(self):
        assert "Israel" in create_cascade_system_prompt("Israel")
        assert create_cascade_system_prompt() == create_cascade_system_prompt(None)


# =============================================================================
# RECOMMENDATION ADVISOR
# =============================================================================

def mock_llm(result=None, error=None):
    llm = Mock()
    llm.complete_json = AsyncMock(return_value=result, side_effect=error)
    return llm


class TestLLMRecommendationAdvisor:
    """Test LLMRecommendationAdvisor."""

    @pytest.mark.asyncio
    async def test_agenerate_returns_advice(self):
        llm = mock_llm(CascadeAdvice(recommendations=["Add crew"], cascadeImpact="Minor slip"))
        advisor = LLMRecommendationAdvisor(llm, region="Israel", timeout_seconds=7)

        recommendations, summary = await advisor.agenerate(DELAYED, IMPACTED)

        assert recommendations == ["Add crew"]
        assert summary == "Minor slip"
        kwargs = llm.complete_json.call_args.kwargs
        assert kwargs["response_model"] is CascadeAdvice
        assert "Israel" in kwargs["system_prompt"]
        assert kwargs["options"].temperature == 0.0
        assert kwargs["options"].timeout_seconds == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,code", [
        (ValidationError("not json"), ErrorCode.ADV_UNPARSABLE),
        (LLMTimeoutError(20), ErrorCode.ADV_TIMEOUT),
        (LLMError("quota"), ErrorCode.ADV_FAILED),
    ])
    async def test_errors_mapped(self, error, code):
        advisor = LLMRecommendationAdvisor(mock_llm(error=error))
        with pytest.raises(AdvisoryUnavailable) as exc:
            await advisor.agenerate(DELAYED, IMPACTED)
        assert exc.value.code == code
        assert exc.value.original_error is error

    @pytest.mark.asyncio
    async def test_unexpected_result_type(self):
        advisor = LLMRecommendationAdvisor(mock_llm({"recommendations": ["x"]}))
        with pytest.raises(AdvisoryUnavailable) as exc:
            await advisor.agenerate(DELAYED, IMPACTED)
        assert exc.value.code == ErrorCode.ADV_UNPARSABLE

    def test_generate_blocking(self):
        llm = mock_llm(CascadeAdvice(recommendations=["Add crew"], cascade_impact="Minor slip"))
        assert LLMRecommendationAdvisor(llm).generate(DELAYED, IMPACTED) == (["Add crew"], "Minor slip")

    @pytest.mark.asyncio
    async def test_advisor_through_synthesizer(self):
        provider = ScriptedProvider([ADVICE_JSON])
        synthesizer = RecommendationSynthesizer(advisor=LLMRecommendationAdvisor(provider))
        result = await synthesizer.asynthesize(DELAYED, IMPACTED)
        assert result.source == SOURCE_ADVISOR
        assert result.recommendations == ["Add a second concrete crew", "Pre-order rebar"]
