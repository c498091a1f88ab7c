"""Parallel screenshot capture for a set of public pages."""

from __future__ import annotations

import logging
from functools import partial

from repopost.concurrency import run_bounded
from repopost.pipeline.models import PublicPage
from repopost.screenshots.microlink import ScreenshotClient
from repopost.screenshots.models import PageScreenshot

logger = logging.getLogger(__name__)

MAX_SCREENSHOTS = 5


class ScreenshotOrchestrator:
    """Captures up to ``max_pages`` pages at once and reports each result.

    Failed captures stay in the output with ``screenshot_url=None`` so the
    caller can show which pages failed. Nothing is retried.
    """

    def __init__(self, client: ScreenshotClient, max_pages: int = MAX_SCREENSHOTS) -> None:
        self.client = client
        self.max_pages = max_pages

    async def capture_all(self, pages: list[PublicPage]) -> list[PageScreenshot]:
        targets = pages[: self.max_pages]
        if len(pages) > len(targets):
            logger.info("Capturing the first %d of %d pages", len(targets), len(pages))
        if not targets:
            return []

        tasks = [partial(self.client.capture, page.url) for page in targets]
        outcomes = await run_bounded(tasks, limit=len(targets))

        shots: list[PageScreenshot] = []
        for page, outcome in zip(targets, outcomes):
            if not outcome.ok:
                logger.warning("Screenshot failed for %s: %s", page.url, outcome.error)
            shots.append(
                PageScreenshot(
                    path=page.path,
                    url=page.url,
                    description=page.description,
                    screenshot_url=outcome.value if outcome.ok else None,
                )
            )
        succeeded = sum(1 for s in shots if s.screenshot_url)
        logger.info("Screenshots: %d captured, %d failed", succeeded, len(shots) - succeeded)
        return shots
