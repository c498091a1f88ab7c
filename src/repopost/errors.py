"""Error taxonomy shared by every stage of the post pipeline."""

from __future__ import annotations


class RepoPostError(Exception):
    """Base class for all repopost errors."""


class AuthenticationRequired(RepoPostError):
    """No usable upstream credential: none configured, or the upstream rejected it."""


class UpstreamError(RepoPostError):
    """A source-control, AI backend, rendering or publish call failed outright."""

    def __init__(
        self, service: str, operation: str, message: str, cause: Exception | None = None
    ) -> None:
        self.service = service
        self.operation = operation
        super().__init__(f"{service} {operation} failed: {message}")
        if cause is not None:
            self.__cause__ = cause


class MalformedAIResponse(UpstreamError):
    """AI output was unusable: no JSON structure where one was asked for, or no text at all."""

    def __init__(
        self, operation: str, text: str, reason: str = "no parseable JSON array in response"
    ) -> None:
        preview = text[:200].replace("\n", " ")
        super().__init__("ai", operation, f"{reason}: {preview!r}")
        self.text = text


class PartialFetchFailure(RepoPostError):
    """A single item of a batch (one file, one screenshot) could not be fetched."""

    def __init__(self, item: str, cause: Exception | None = None) -> None:
        self.item = item
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to fetch {item}{detail}")
        if cause is not None:
            self.__cause__ = cause


class ValidationError(RepoPostError):
    """User-facing input problem (empty post text, oversized upload, ...)."""
