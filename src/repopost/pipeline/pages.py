"""Public-page detection for screenshot candidates."""

from __future__ import annotations

import logging
import re
from typing import Any

from repopost.errors import MalformedAIResponse
from repopost.llm.rate_limiter import ThrottledLLM
from repopost.pipeline.json_extract import extract_json_array
from repopost.pipeline.models import PublicPage
from repopost.pipeline.prompts import build_pages_prompt
from repopost.vcs.models import SelectedFile

logger = logging.getLogger(__name__)

MAX_PUBLIC_PAGES = 5

_ROUTING_SEGMENTS = frozenset({"pages", "app", "routes", "router", "route"})
_ROUTE_NAME_RE = re.compile(r"route", re.IGNORECASE)
_PAGE_FILE_RE = re.compile(r"(^|/)\+?page\.(tsx?|jsx?|vue|svelte|astro)$", re.IGNORECASE)


def is_routing_file(path: str) -> bool:
    """True when *path* looks like it defines or lists site routes."""
    *dirs, name = path.split("/")
    if any(d.lower() in _ROUTING_SEGMENTS for d in dirs):
        return True
    return bool(_ROUTE_NAME_RE.search(name) or _PAGE_FILE_RE.search(path))


def page_url(homepage: str, path: str) -> str:
    """Absolute URL for *path* on *homepage*; the root path is the homepage itself."""
    if path == "/":
        return homepage
    return homepage.rstrip("/") + path


def homepage_only(homepage: str) -> list[PublicPage]:
    return [PublicPage(path="/", url=homepage, description="Homepage")]


class PublicPageDetector:
    """Infers public pages worth screenshotting from already-downloaded routing files."""

    def __init__(
        self,
        llm: ThrottledLLM,
        max_routing_files: int = 10,
        max_chars_per_file: int = 1_000,
        max_pages: int = MAX_PUBLIC_PAGES,
    ) -> None:
        self.llm = llm
        self.max_routing_files = max_routing_files
        self.max_chars_per_file = max_chars_per_file
        self.max_pages = max_pages

    async def detect(self, homepage: str | None, files: list[SelectedFile]) -> list[PublicPage]:
        """Return up to ``max_pages`` pages, or just the homepage when inference yields nothing.

        Returns an empty list when there is no absolute homepage URL.
        """
        if not homepage or not homepage.startswith("http"):
            return []

        routing = [f for f in files if is_routing_file(f.path)][: self.max_routing_files]
        if not routing:
            logger.info("No routing files among downloaded files, using homepage only")
            return homepage_only(homepage)

        prompt = build_pages_prompt(homepage, routing, self.max_chars_per_file, self.max_pages)
        try:
            response = await self.llm.generate(system="", user=prompt)
            items = extract_json_array(response.content)
            if items is None:
                raise MalformedAIResponse("detect_pages", response.content)
            pages = self._shape(items, homepage)
        except Exception as e:
            logger.warning("Public page detection failed, using homepage only: %s", e)
            pages = []

        if not pages:
            return homepage_only(homepage)
        logger.info("Detected %d public page(s) for %s", len(pages), homepage)
        return pages

    def _shape(self, items: list[Any], homepage: str) -> list[PublicPage]:
        pages: list[PublicPage] = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                continue
            path = item["path"].strip()
            if not path.startswith("/"):
                path = "/" + path
            # Dynamic segments ([id], :id) cannot be visited as-is.
            if "[" in path or ":" in path or path in seen:
                continue
            seen.add(path)
            description = item.get("description")
            words = description.split() if isinstance(description, str) else []
            pages.append(
                PublicPage(
                    path=path,
                    url=page_url(homepage, path),
                    description=" ".join(words[:3]) or "Page",
                )
            )
            if len(pages) == self.max_pages:
                break
        return pages
