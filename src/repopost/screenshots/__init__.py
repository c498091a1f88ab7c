"""Screenshot capture for the project's public pages."""

from repopost.screenshots.batch import ScreenshotOrchestrator
from repopost.screenshots.microlink import ScreenshotClient, normalize_url
from repopost.screenshots.models import PageScreenshot

__all__ = [
    "PageScreenshot",
    "ScreenshotClient",
    "ScreenshotOrchestrator",
    "normalize_url",
]
