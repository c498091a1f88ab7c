"""Google Gemini adapter for repopost."""

from __future__ import annotations

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from repopost.errors import AuthenticationRequired
from repopost.llm.base import LLMProvider
from repopost.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage

_TRANSIENT = (
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
)


class GeminiProvider(LLMProvider):
    """Gemini adapter using the google-generativeai async SDK.

    A model handle is built per call because the system instruction is bound
    to the model object and differs between the draft and analysis prompts.
    """

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        genai.configure(api_key=config.api_key)

    def _model_for(self, system: str):
        if system:
            return genai.GenerativeModel(self.config.model, system_instruction=system)
        return genai.GenerativeModel(self.config.model)

    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        model = self._model_for(system)
        try:
            response = await model.generate_content_async(
                user,
                generation_config=genai.types.GenerationConfig(
                    max_output_tokens=self._max_tokens(max_tokens),
                    temperature=self.config.temperature,
                ),
            )
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise AuthenticationRequired(f"Gemini rejected the configured API key: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            raise LLMError("gemini", "generate", e, retryable=isinstance(e, _TRANSIENT)) from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty.
            raise LLMError("gemini", "generate", e) from e
        if not text:
            raise LLMError("gemini", "generate", ValueError("No text content in Gemini response"))

        usage = response.usage_metadata
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                input_tokens=usage.prompt_token_count,
                output_tokens=usage.candidates_token_count,
            ),
            model=self.config.model,
        )
