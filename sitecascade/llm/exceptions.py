"""
sitecascade/llm/exceptions.py - Provider layer exceptions

BaseProvider retries errors whose `retryable` flag is set and raises
the rest at once. LLMRecommendationAdvisor maps all of them onto
AdvisoryUnavailable codes.
"""

from __future__ import annotations

from typing import Optional


class LLMError(Exception):
    """A provider request failed."""

    retryable = False

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id

    def __str__(self) -> str:
        if self.request_id:
            return f"{self.message} [request_id={self.request_id}]"
        return self.message


class ProviderUnavailableError(LLMError):
    """The provider client could not be created (missing SDK, bad settings)."""

    def __init__(self, provider: str, message: Optional[str] = None):
        super().__init__(message or f"LLM provider '{provider}' is unavailable")
        self.provider = provider


class ValidationError(LLMError):
    """The reply was not JSON matching the requested schema."""

    def __init__(
        self,
        message: str,
        raw_response: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message, request_id)
        self.raw_response = raw_response


class TimeoutError(LLMError):
    """One attempt exceeded its timeout."""

    def __init__(self, timeout_seconds: float, request_id: Optional[str] = None):
        super().__init__(f"Request timed out after {timeout_seconds}s", request_id)
        self.timeout_seconds = timeout_seconds


class TransientError(LLMError):
    """Rate limiting, overload or a dropped connection; worth another attempt."""

    retryable = True

    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message, request_id)
        self.original_error = original_error
