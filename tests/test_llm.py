"""Tests for repopost.llm: provider factory and SDK adapters."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest
from google.api_core import exceptions as google_exceptions

from repopost.config.models import LLMSettings
from repopost.errors import AuthenticationRequired, UpstreamError
from repopost.llm import create_llm_provider
from repopost.llm.claude import ClaudeProvider
from repopost.llm.gemini import GeminiProvider
from repopost.llm.models import LLMConfig, LLMError
from repopost.llm.openai_adapter import OpenAIProvider
from repopost.llm.rate_limiter import RateLimiter, ThrottledLLM


# ── create_llm_provider ─────────────────────────────────────────────


class TestCreateLLMProvider:
    @patch.dict(os.environ, {"GEMINI_API_KEY": "gem-key"})
    @patch("repopost.llm.gemini.genai")
    def test_creates_gemini_by_default(self, mock_genai):
        provider = create_llm_provider(LLMSettings())
        assert isinstance(provider, GeminiProvider)
        assert provider.config.api_key == "gem-key"
        mock_genai.configure.assert_called_once_with(api_key="gem-key")

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-ant"})
    def test_creates_claude(self):
        settings = LLMSettings(
            provider="anthropic", model="claude-haiku", api_key_env="ANTHROPIC_API_KEY"
        )
        assert isinstance(create_llm_provider(settings), ClaudeProvider)

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-oai"})
    def test_creates_openai(self):
        settings = LLMSettings(provider="openai", model="gpt-4o-mini", api_key_env="OPENAI_API_KEY")
        assert isinstance(create_llm_provider(settings), OpenAIProvider)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key(self):
        with pytest.raises(AuthenticationRequired, match="GEMINI_API_KEY"):
            create_llm_provider(LLMSettings())

    def test_unsupported_provider(self):
        settings = LLMSettings.model_construct(provider="ollama", api_key_env="X")
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_llm_provider(settings)


# ── Gemini ──────────────────────────────────────────────────────────


def _gemini_response(text="Draft text"):
    response = MagicMock()
    response.text = text
    response.usage_metadata.prompt_token_count = 120
    response.usage_metadata.candidates_token_count = 40
    return response


class TestGeminiProvider:
    @pytest.fixture
    def config(self):
        return LLMConfig(provider="google", model="gemini-2.5-flash-lite", api_key="k")

    @patch("repopost.llm.gemini.genai")
    async def test_generate(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=_gemini_response())

        response = await GeminiProvider(config).generate(system="Be brief", user="Write")

        assert response.content == "Draft text"
        assert response.usage.input_tokens == 120
        assert response.usage.output_tokens == 40
        mock_genai.GenerativeModel.assert_called_once_with(
            "gemini-2.5-flash-lite", system_instruction="Be brief"
        )
        mock_genai.types.GenerationConfig.assert_called_once_with(
            max_output_tokens=2048, temperature=0.7
        )

    @patch("repopost.llm.gemini.genai")
    async def test_empty_system_prompt_not_sent(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=_gemini_response())
        await GeminiProvider(config).generate(system="", user="Pick files", max_tokens=256)
        mock_genai.GenerativeModel.assert_called_once_with("gemini-2.5-flash-lite")
        mock_genai.types.GenerationConfig.assert_called_once_with(
            max_output_tokens=256, temperature=0.7
        )

    @patch("repopost.llm.gemini.genai")
    async def test_quota_error_is_retryable(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(
            side_effect=google_exceptions.ResourceExhausted("quota exceeded")
        )
        with pytest.raises(LLMError) as exc:
            await GeminiProvider(config).generate(system="", user="x")
        assert exc.value.retryable is True
        assert isinstance(exc.value, UpstreamError)
        assert "gemini generate failed" in str(exc.value)

    @patch("repopost.llm.gemini.genai")
    async def test_other_api_error_not_retryable(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(
            side_effect=google_exceptions.InvalidArgument("bad request")
        )
        with pytest.raises(LLMError) as exc:
            await GeminiProvider(config).generate(system="", user="x")
        assert exc.value.retryable is False

    @patch("repopost.llm.gemini.genai")
    async def test_unavailable_is_retryable(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(
            side_effect=google_exceptions.ServiceUnavailable("model overloaded")
        )
        with pytest.raises(LLMError) as exc:
            await GeminiProvider(config).generate(system="", user="x")
        assert exc.value.retryable is True

    @patch("repopost.llm.gemini.genai")
    async def test_rejected_key(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(
            side_effect=google_exceptions.PermissionDenied("API key not valid")
        )
        with pytest.raises(AuthenticationRequired, match="Gemini rejected"):
            await GeminiProvider(config).generate(system="", user="x")

    @patch("repopost.llm.gemini.genai")
    async def test_empty_text(self, mock_genai, config):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=_gemini_response(text=""))
        with pytest.raises(LLMError, match="No text content"):
            await GeminiProvider(config).generate(system="", user="x")

    @patch("repopost.llm.gemini.genai")
    async def test_blocked_response(self, mock_genai, config):
        class _Blocked:
            @property
            def text(self):
                raise ValueError("blocked")

        response = _Blocked()
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=response)
        with pytest.raises(LLMError, match="blocked"):
            await GeminiProvider(config).generate(system="", user="x")


# ── Claude ──────────────────────────────────────────────────────────


_REQUEST = httpx.Request("POST", "https://api.example.test/v1")


class TestClaudeProvider:
    @pytest.fixture
    def provider(self):
        provider = ClaudeProvider(
            LLMConfig(provider="anthropic", model="claude-haiku", api_key="sk-ant")
        )
        provider._client = MagicMock()
        return provider

    async def test_generate(self, provider):
        message = MagicMock()
        message.content = [MagicMock(text="Hello")]
        message.usage.input_tokens = 10
        message.usage.output_tokens = 3
        message.model = "claude-haiku"
        provider._client.messages.create = AsyncMock(return_value=message)

        response = await provider.generate(system="sys", user="hi")

        assert response.content == "Hello"
        kwargs = provider._client.messages.create.await_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]

    async def test_empty_system_omitted(self, provider):
        message = MagicMock()
        message.content = [MagicMock(text="[]")]
        message.usage.input_tokens = 1
        message.usage.output_tokens = 1
        message.model = "claude-haiku"
        provider._client.messages.create = AsyncMock(return_value=message)
        await provider.generate(system="", user="hi")
        assert "system" not in provider._client.messages.create.await_args.kwargs

    async def test_rate_limit_error(self, provider):
        error = anthropic.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        )
        provider._client.messages.create = AsyncMock(side_effect=error)
        with pytest.raises(LLMError) as exc:
            await provider.generate(system="", user="hi")
        assert exc.value.retryable is True
        assert exc.value.__cause__ is error

    async def test_connection_error(self, provider):
        provider._client.messages.create = AsyncMock(
            side_effect=anthropic.APIConnectionError(request=_REQUEST)
        )
        with pytest.raises(LLMError, match="claude generate failed") as exc:
            await provider.generate(system="", user="hi")
        assert exc.value.retryable is True

    async def test_overloaded_is_retryable(self, provider):
        provider._client.messages.create = AsyncMock(
            side_effect=anthropic.InternalServerError(
                "overloaded", response=httpx.Response(529, request=_REQUEST), body=None
            )
        )
        with pytest.raises(LLMError) as exc:
            await provider.generate(system="", user="hi")
        assert exc.value.retryable is True

    async def test_rejected_key(self, provider):
        provider._client.messages.create = AsyncMock(
            side_effect=anthropic.AuthenticationError(
                "invalid x-api-key", response=httpx.Response(401, request=_REQUEST), body=None
            )
        )
        with pytest.raises(AuthenticationRequired, match="Anthropic rejected"):
            await provider.generate(system="", user="hi")

    async def test_joins_text_blocks(self, provider):
        provider._client.messages.create = AsyncMock(
            return_value=_claude_message("Ever wanted ", "a widget?")
        )
        response = await provider.generate(system="", user="hi")
        assert response.content == "Ever wanted a widget?"

    async def test_no_text_blocks(self, provider):
        provider._client.messages.create = AsyncMock(return_value=_claude_message())
        with pytest.raises(LLMError, match="No text content"):
            await provider.generate(system="", user="hi")


def _claude_message(*texts):
    message = MagicMock()
    message.content = [MagicMock(text=t) for t in texts]
    message.usage.input_tokens = 10
    message.usage.output_tokens = 3
    message.model = "claude-haiku"
    return message


# ── OpenAI ──────────────────────────────────────────────────────────


class TestOpenAIProvider:
    @pytest.fixture
    def provider(self):
        provider = OpenAIProvider(LLMConfig(provider="openai", model="gpt-4o-mini", api_key="k"))
        provider._client = MagicMock()
        return provider

    async def test_generate_with_system(self, provider):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = "Post"
        response.usage.prompt_tokens = 7
        response.usage.completion_tokens = 2
        response.model = "gpt-4o-mini"
        provider._client.chat.completions.create = AsyncMock(return_value=response)

        result = await provider.generate(system="sys", user="hi")

        assert result.content == "Post"
        assert result.usage.output_tokens == 2
        messages = provider._client.chat.completions.create.await_args.kwargs["messages"]
        assert messages == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    async def test_connection_error_is_retryable(self, provider):
        provider._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=_REQUEST)
        )
        with pytest.raises(LLMError, match="openai generate failed") as exc:
            await provider.generate(system="", user="hi")
        assert exc.value.retryable is True

    async def test_bad_request_not_retryable(self, provider):
        provider._client.chat.completions.create = AsyncMock(
            side_effect=openai.BadRequestError(
                "context too long", response=httpx.Response(400, request=_REQUEST), body=None
            )
        )
        with pytest.raises(LLMError) as exc:
            await provider.generate(system="", user="hi")
        assert exc.value.retryable is False

    async def test_rejected_key(self, provider):
        provider._client.chat.completions.create = AsyncMock(
            side_effect=openai.AuthenticationError(
                "invalid api key", response=httpx.Response(401, request=_REQUEST), body=None
            )
        )
        with pytest.raises(AuthenticationRequired, match="OpenAI rejected"):
            await provider.generate(system="", user="hi")

    @pytest.mark.parametrize(
        "content, finish_reason, message",
        [
            (None, "stop", "No text content"),
            ("", "length", "No text content"),
            ("partial", "content_filter", "content filter"),
        ],
    )
    async def test_unusable_completion(self, provider, content, finish_reason, message):
        response = MagicMock()
        response.choices = [MagicMock(finish_reason=finish_reason)]
        response.choices[0].message.content = content
        provider._client.chat.completions.create = AsyncMock(return_value=response)
        with pytest.raises(LLMError, match=message):
            await provider.generate(system="", user="hi")


# ── Adapters behind the rate limiter ────────────────────────────────


class TestAdaptersThroughLimiter:
    @pytest.fixture
    def claude(self):
        provider = ClaudeProvider(
            LLMConfig(provider="anthropic", model="claude-haiku", api_key="sk-ant")
        )
        provider._client = MagicMock()
        return provider

    async def test_throttled_failure_is_counted_and_not_retried(self, claude, fake_clock):
        error = anthropic.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        )
        claude._client.messages.create = AsyncMock(
            side_effect=[error, _claude_message("Second try")]
        )
        limiter = RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
        llm = ThrottledLLM(claude, limiter)

        with pytest.raises(LLMError) as exc:
            await llm.generate(system="", user="x" * 400)
        assert exc.value.retryable is True
        assert claude._client.messages.create.await_count == 1
        stats = limiter.stats()
        assert stats.requests_in_window == 1
        assert stats.tokens_in_window == 100

        response = await llm.generate(system="", user="again")
        assert response.content == "Second try"
        assert limiter.stats().requests_in_window == 2

    async def test_rejected_key_surfaces_through_limiter(self, fake_clock):
        provider = OpenAIProvider(LLMConfig(provider="openai", model="gpt-4o-mini", api_key="k"))
        provider._client = MagicMock()
        provider._client.chat.completions.create = AsyncMock(
            side_effect=openai.AuthenticationError(
                "invalid api key", response=httpx.Response(401, request=_REQUEST), body=None
            )
        )
        limiter = RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
        with pytest.raises(AuthenticationRequired):
            await ThrottledLLM(provider, limiter).generate(system="sys", user="hi")
        assert limiter.stats().requests_in_window == 1
