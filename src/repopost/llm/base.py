"""Abstract LLM interface for repopost."""

from __future__ import annotations

from abc import ABC, abstractmethod

from repopost.llm.models import LLMConfig, LLMResponse


class LLMProvider(ABC):
    """Provider-agnostic interface for one-shot text generation.

    The pipeline only ever needs a complete response: a post draft, a JSON
    array of file paths, or a JSON array of public pages. ``system`` may be
    empty for calls that carry all instructions in the user prompt.
    """

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a complete response (one-shot)."""
        ...

    def _max_tokens(self, max_tokens: int | None) -> int:
        return max_tokens if max_tokens is not None else self.config.max_tokens
