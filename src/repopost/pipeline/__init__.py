"""Draft pipeline: file selection, download, prompting and page detection."""

from repopost.pipeline.downloader import BatchDownloader
from repopost.pipeline.generator import DraftGenerator, create_draft_generator
from repopost.pipeline.json_extract import extract_json_array
from repopost.pipeline.models import DraftResult, PublicPage
from repopost.pipeline.pages import PublicPageDetector
from repopost.pipeline.prompts import PostPromptBuilder
from repopost.pipeline.selector import FileSelector, fallback_selection

__all__ = [
    "BatchDownloader",
    "DraftGenerator",
    "DraftResult",
    "FileSelector",
    "PostPromptBuilder",
    "PublicPage",
    "PublicPageDetector",
    "create_draft_generator",
    "extract_json_array",
    "fallback_selection",
]
