"""Pydantic models for source-control data."""

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RepoMetadata(BaseModel):
    """Metadata for a repository, as needed to write about it."""

    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)
    full_name: str = Field(description="Full name including owner (e.g. owner/repo)")
    description: str | None = None
    language: str | None = None
    stargazers_count: int = 0
    homepage: str | None = None
    topics: list[str] = Field(default_factory=list)
    default_branch: str = "main"
    html_url: str = ""

    @field_validator("homepage")
    @classmethod
    def blank_homepage_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("html_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if v == "":
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"html_url must use http or https scheme, got {parsed.scheme!r}")
        if not parsed.netloc:
            raise ValueError("html_url must have a valid host")
        return v

    @property
    def has_public_homepage(self) -> bool:
        """True when the homepage is an absolute http(s) URL."""
        return bool(self.homepage) and self.homepage.startswith("http")


class TreeEntry(BaseModel):
    """One entry of a recursive git tree listing."""

    path: str
    type: Literal["blob", "tree", "commit"]
    size: int | None = None


class RepoFile(BaseModel):
    """A file path worth considering for analysis."""

    model_config = ConfigDict(frozen=True)

    path: str
    size: int = 0


class SelectedFile(BaseModel):
    """A downloaded file, possibly truncated."""

    path: str
    content: str
