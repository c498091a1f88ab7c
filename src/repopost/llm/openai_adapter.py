"""OpenAI adapter for repopost."""

from __future__ import annotations

from openai import (
    APIConnectionError,
    APIError,
    AsyncOpenAI,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
)

from repopost.errors import AuthenticationRequired
from repopost.llm.base import LLMProvider
from repopost.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage

_TRANSIENT = (RateLimitError, APIConnectionError, InternalServerError)


class OpenAIProvider(LLMProvider):
    """OpenAI adapter using the async SDK."""

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        self._client = AsyncOpenAI(api_key=config.api_key, max_retries=0)

    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})
        try:
            response = await self._client.chat.completions.create(
                model=self.config.model,
                max_tokens=self._max_tokens(max_tokens),
                temperature=self.config.temperature,
                messages=messages,
            )
        except (AuthenticationError, PermissionDeniedError) as e:
            raise AuthenticationRequired(f"OpenAI rejected the configured API key: {e}") from e
        except APIError as e:
            raise LLMError("openai", "generate", e, retryable=isinstance(e, _TRANSIENT)) from e

        if not response.choices:
            raise LLMError("openai", "generate", ValueError("No choices in OpenAI response"))
        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise LLMError("openai", "generate", ValueError("Response withheld by content filter"))
        if not choice.message.content:
            raise LLMError("openai", "generate", ValueError("No text content in OpenAI response"))

        usage = response.usage
        return LLMResponse(
            content=choice.message.content,
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
            ),
            model=response.model,
        )
