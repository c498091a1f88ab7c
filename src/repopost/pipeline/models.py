"""Pydantic models for the draft pipeline."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class PublicPage(BaseModel):
    """A publicly reachable page of the project's website."""

    path: str
    url: str
    description: str = ""

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"path must start with '/', got {v!r}")
        return v


class DraftResult(BaseModel):
    """Everything the post editor needs after a generation run."""

    draft: str
    repo_url: str
    homepage: str | None = None
    public_pages: list[PublicPage] = Field(default_factory=list)
    analyzed_files: list[str] = Field(
        default_factory=list, description="Paths whose content was shown to the model"
    )
