"""Repository tree fetching with noise filtering."""

from __future__ import annotations

import logging
import re

from repopost.vcs.base import SourceControlProvider
from repopost.vcs.models import RepoFile

logger = logging.getLogger(__name__)

# Paths that never help explain a project: dependencies, VCS metadata,
# build output, lockfiles, binary/media assets, minified bundles, source maps.
SKIP_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        # Dependency / environment directories
        r"(^|/)node_modules/",
        r"(^|/)vendor/",
        r"(^|/)bower_components/",
        r"(^|/)\.venv/",
        r"(^|/)venv/",
        r"(^|/)__pycache__/",
        # Version-control metadata
        r"(^|/)\.git/",
        r"(^|/)\.svn/",
        r"(^|/)\.hg/",
        # Build / output directories
        r"(^|/)dist/",
        r"(^|/)build/",
        r"(^|/)out/",
        r"(^|/)target/",
        r"(^|/)\.next/",
        r"(^|/)\.nuxt/",
        r"(^|/)\.turbo/",
        r"(^|/)coverage/",
        # Lockfiles
        r"\.lock$",
        r"lock\.json$",
        r"lock\.yaml$",
        r"(^|/)go\.sum$",
        # Binary and media assets
        r"\.(png|jpe?g|gif|svg|ico|webp|bmp|avif)$",
        r"\.(woff2?|ttf|otf|eot)$",
        r"\.(mp4|mov|webm|mp3|wav|ogg)$",
        r"\.(zip|tar|gz|tgz|bz2|7z|rar|jar)$",
        r"\.(pdf|exe|dll|so|dylib|bin|wasm|pyc)$",
        # Minified bundles and source maps
        r"\.min\.(js|css)$",
        r"\.map$",
    )
]


def should_skip(path: str) -> bool:
    """True when *path* is noise that should never reach the AI backend."""
    return any(p.search(path) for p in SKIP_PATTERNS)


class RepoTreeFetcher:
    """Lists every interesting file of a branch with a single recursive tree call."""

    def __init__(self, provider: SourceControlProvider) -> None:
        self.provider = provider

    async def fetch(self, owner: str, repo: str, branch: str) -> list[RepoFile]:
        entries = await self.provider.get_tree(owner, repo, branch, recursive=True)
        files = [
            RepoFile(path=e.path, size=e.size or 0)
            for e in entries
            if e.type == "blob" and e.path and not should_skip(e.path)
        ]
        logger.info(
            "Tree for %s/%s@%s: %d entries, %d files kept",
            owner,
            repo,
            branch,
            len(entries),
            len(files),
        )
        return files
