"""Anthropic Claude adapter for repopost."""

from __future__ import annotations

from anthropic import (
    APIConnectionError,
    APIError,
    AsyncAnthropic,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
)

from repopost.errors import AuthenticationRequired
from repopost.llm.base import LLMProvider
from repopost.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage

# Worth another attempt in a later run; never retried here.
_TRANSIENT = (RateLimitError, APIConnectionError, InternalServerError)


class ClaudeProvider(LLMProvider):
    """Claude adapter using the Anthropic async SDK."""

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        # No SDK-level retries; every call is paced by RateLimiter.
        self._client = AsyncAnthropic(api_key=config.api_key, max_retries=0)

    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        kwargs = {"system": system} if system else {}
        try:
            message = await self._client.messages.create(
                model=self.config.model,
                max_tokens=self._max_tokens(max_tokens),
                temperature=self.config.temperature,
                messages=[{"role": "user", "content": user}],
                **kwargs,
            )
        except (AuthenticationError, PermissionDeniedError) as e:
            raise AuthenticationRequired(f"Anthropic rejected the configured API key: {e}") from e
        except APIError as e:
            raise LLMError("claude", "generate", e, retryable=isinstance(e, _TRANSIENT)) from e

        # Drafts can come back split across several text blocks.
        text = "".join(block.text for block in message.content or [] if hasattr(block, "text"))
        if not text:
            raise LLMError("claude", "generate", ValueError("No text content in Claude response"))
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            ),
            model=message.model,
        )
