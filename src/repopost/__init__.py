"""repopost - turn a GitHub repository into a LinkedIn post draft, with screenshots."""

from repopost.config import RepoPostConfig, load_config
from repopost.errors import (
    AuthenticationRequired,
    MalformedAIResponse,
    PartialFetchFailure,
    RepoPostError,
    UpstreamError,
    ValidationError,
)
from repopost.llm import RateLimiter, ThrottledLLM, create_llm_provider
from repopost.pipeline import DraftGenerator, DraftResult, create_draft_generator
from repopost.publish import LinkedInPublisher
from repopost.screenshots import ScreenshotClient, ScreenshotOrchestrator
from repopost.state import PostStore

__version__ = "0.1.0"

__all__ = [
    "AuthenticationRequired",
    "DraftGenerator",
    "DraftResult",
    "LinkedInPublisher",
    "MalformedAIResponse",
    "PartialFetchFailure",
    "PostStore",
    "RateLimiter",
    "RepoPostConfig",
    "RepoPostError",
    "ScreenshotClient",
    "ScreenshotOrchestrator",
    "ThrottledLLM",
    "UpstreamError",
    "ValidationError",
    "create_draft_generator",
    "create_llm_provider",
    "load_config",
]
