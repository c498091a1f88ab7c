from .loader import load_config
from .models import (
    LinkedInConfig,
    LLMSettings,
    PipelineConfig,
    RateLimitConfig,
    RepoPostConfig,
    ScreenshotConfig,
    VCSConfig,
)

__all__ = [
    "LinkedInConfig",
    "LLMSettings",
    "PipelineConfig",
    "RateLimitConfig",
    "RepoPostConfig",
    "ScreenshotConfig",
    "VCSConfig",
    "load_config",
]
