"""AI backend abstraction layer and admission control."""

import os

from repopost.config.models import LLMSettings
from repopost.errors import AuthenticationRequired
from repopost.llm.base import LLMProvider
from repopost.llm.claude import ClaudeProvider
from repopost.llm.gemini import GeminiProvider
from repopost.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage
from repopost.llm.openai_adapter import OpenAIProvider
from repopost.llm.rate_limiter import (
    LimiterStats,
    RateLimiter,
    ThrottledLLM,
    TokenUsageRecord,
    estimate_tokens,
)

_PROVIDER_MAP: dict[str, type[LLMProvider]] = {
    "google": GeminiProvider,
    "anthropic": ClaudeProvider,
    "openai": OpenAIProvider,
}


def create_llm_provider(settings: LLMSettings) -> LLMProvider:
    """Create an LLM provider from app-level settings.

    Resolves the API key from the env var in settings.api_key_env, then
    bridges the app-level settings to the provider-level LLMConfig.
    """
    cls = _PROVIDER_MAP.get(settings.provider)
    if cls is None:
        raise ValueError(
            f"Unsupported LLM provider: {settings.provider!r}. "
            f"Supported: {', '.join(_PROVIDER_MAP)}"
        )
    api_key = os.environ.get(settings.api_key_env)
    if not api_key:
        raise AuthenticationRequired(
            f"Missing AI backend API key: set environment variable {settings.api_key_env!r}"
        )
    llm_config = LLMConfig(
        provider=settings.provider,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=api_key,
    )
    return cls(llm_config)


__all__ = [
    "ClaudeProvider",
    "GeminiProvider",
    "LimiterStats",
    "LLMConfig",
    "LLMError",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "RateLimiter",
    "ThrottledLLM",
    "TokenUsage",
    "TokenUsageRecord",
    "create_llm_provider",
    "estimate_tokens",
]
