"""Batch content download with bounded concurrency."""

from __future__ import annotations

import base64
import logging
from functools import partial

from repopost.concurrency import run_bounded
from repopost.errors import PartialFetchFailure
from repopost.pipeline.prompts import truncate
from repopost.vcs.base import SourceControlProvider
from repopost.vcs.models import SelectedFile

logger = logging.getLogger(__name__)

MAX_CHARS_PER_FILE = 5_000
DOWNLOAD_CONCURRENCY = 5


class BatchDownloader:
    """Fetches selected files a few at a time, dropping the ones that fail."""

    def __init__(
        self,
        provider: SourceControlProvider,
        max_chars_per_file: int = MAX_CHARS_PER_FILE,
        concurrency: int = DOWNLOAD_CONCURRENCY,
    ) -> None:
        self.provider = provider
        self.max_chars_per_file = max_chars_per_file
        self.concurrency = concurrency

    async def download(self, owner: str, repo: str, paths: list[str]) -> list[SelectedFile]:
        tasks = [partial(self._fetch_one, owner, repo, path) for path in paths]
        outcomes = await run_bounded(tasks, self.concurrency)

        files: list[SelectedFile] = []
        for path, outcome in zip(paths, outcomes):
            if outcome.ok:
                files.append(outcome.value)
            else:
                logger.warning("Skipping %s: %s", path, outcome.error)
        logger.info("Downloaded %d of %d selected files", len(files), len(paths))
        return files

    async def _fetch_one(self, owner: str, repo: str, path: str) -> SelectedFile:
        try:
            encoded = await self.provider.get_content(owner, repo, path)
            text = base64.b64decode(encoded).decode("utf-8", errors="replace")
        except Exception as e:
            raise PartialFetchFailure(path, e) from e
        return SelectedFile(path=path, content=truncate(text, self.max_chars_per_file))
