"""Pydantic models for the LLM subsystem."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from repopost.errors import UpstreamError


class LLMError(UpstreamError):
    """Wraps provider-specific exceptions with context."""

    def __init__(
        self, provider: str, operation: str, cause: Exception, retryable: bool = False
    ) -> None:
        self.provider = provider
        self.retryable = retryable
        super().__init__(provider, operation, str(cause), cause)


class LLMConfig(BaseModel):
    """Configuration for an LLM provider."""

    provider: Literal["google", "anthropic", "openai"]
    model: str
    max_tokens: int = 2048
    temperature: float = 0.7
    api_key: str | None = None


class TokenUsage(BaseModel):
    """Token usage stats from a single LLM call."""

    input_tokens: int
    output_tokens: int


class LLMResponse(BaseModel):
    """Structured response from an LLM provider."""

    content: str
    usage: TokenUsage
    model: str
