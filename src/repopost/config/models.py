from typing import Literal

from pydantic import BaseModel, Field


class LLMSettings(BaseModel):
    provider: Literal["google", "anthropic", "openai"] = "google"
    model: str = "gemini-2.5-flash-lite"
    api_key_env: str = "GEMINI_API_KEY"
    max_tokens: int = Field(default=2048, gt=0)
    temperature: float = Field(default=0.7, ge=0)


class RateLimitConfig(BaseModel):
    max_tpm: int = Field(default=15_000, gt=0)
    max_rpm: int = Field(default=15, gt=0)
    min_delay_ms: int = Field(default=1_000, ge=0)
    window_ms: int = Field(default=60_000, gt=0)


class VCSConfig(BaseModel):
    provider: Literal["github"] = "github"
    token_env: str = "GITHUB_TOKEN"


class PipelineConfig(BaseModel):
    max_files_to_select: int = Field(default=30, gt=0)
    max_paths_in_selection_prompt: int = Field(default=200, gt=0)
    max_chars_per_file: int = Field(default=5_000, gt=0)
    download_concurrency: int = Field(default=5, gt=0)
    max_tree_paths_in_prompt: int = Field(default=100, gt=0)
    max_prompt_chars: int = Field(default=28_000, gt=0)
    max_routing_files: int = Field(default=10, gt=0)
    max_chars_per_routing_file: int = Field(default=1_000, gt=0)
    max_public_pages: int = Field(default=5, gt=0)


class ScreenshotConfig(BaseModel):
    api_url: str = "https://api.microlink.io/"
    api_key_env: str = "MICROLINK_API_KEY"
    viewport_width: int = Field(default=1200, gt=0)
    viewport_height: int = Field(default=630, gt=0)
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_pages: int = Field(default=5, gt=0)


class LinkedInConfig(BaseModel):
    api_base: str = "https://api.linkedin.com/v2"
    token_env: str = "LINKEDIN_ACCESS_TOKEN"
    person_urn_env: str = "LINKEDIN_PERSON_URN"
    max_post_chars: int = Field(default=3_000, gt=0)
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    timeout_seconds: float = Field(default=60.0, gt=0)


class RepoPostConfig(BaseModel):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    vcs: VCSConfig = Field(default_factory=VCSConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    screenshots: ScreenshotConfig = Field(default_factory=ScreenshotConfig)
    linkedin: LinkedInConfig = Field(default_factory=LinkedInConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
