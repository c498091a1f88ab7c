"""Draft generator: orchestrates the pipeline from repository to post draft."""

from __future__ import annotations

import logging

from repopost.config import RepoPostConfig
from repopost.config.models import PipelineConfig, RateLimitConfig
from repopost.errors import MalformedAIResponse
from repopost.llm import create_llm_provider
from repopost.llm.rate_limiter import RateLimiter, ThrottledLLM
from repopost.pipeline.downloader import BatchDownloader
from repopost.pipeline.models import DraftResult
from repopost.pipeline.pages import PublicPageDetector
from repopost.pipeline.prompts import PostPromptBuilder
from repopost.pipeline.selector import FileSelector
from repopost.vcs import create_provider
from repopost.vcs.base import SourceControlProvider
from repopost.vcs.tree import RepoTreeFetcher

logger = logging.getLogger(__name__)

# Estimated tokens held back for the selection prompt, the page-detection
# prompt and the fixed text of the draft prompt.
PROMPT_TOKEN_RESERVE = 8_000
MIN_DRAFT_CONTENT_CHARS = 4_000


def draft_content_budget(pipeline: PipelineConfig, rate_limit: RateLimitConfig) -> int:
    """Characters of file content the draft prompt may carry.

    A run makes three model calls that should all fit one rate-limit window,
    so the bound never exceeds what is left of ``max_tpm`` after the reserve.
    """
    spare = (rate_limit.max_tpm - PROMPT_TOKEN_RESERVE) * 4
    return max(min(pipeline.max_prompt_chars, spare), MIN_DRAFT_CONTENT_CHARS)


class DraftGenerator:
    """Turns a repository into a LinkedIn post draft plus screenshot candidates.

    Pipeline:
        metadata → tree → file selection → batch download → prompt → draft
        downloaded routing files → public pages

    Metadata, tree and the draft call are mandatory and propagate their
    errors. File selection and page detection degrade to rule-based
    fallbacks instead of failing the run.
    """

    def __init__(
        self,
        provider: SourceControlProvider,
        llm: ThrottledLLM,
        config: PipelineConfig | None = None,
        rate_limit: RateLimitConfig | None = None,
    ) -> None:
        cfg = config or PipelineConfig()
        self.provider = provider
        self.llm = llm
        self.tree_fetcher = RepoTreeFetcher(provider)
        self.selector = FileSelector(
            llm,
            max_files=cfg.max_files_to_select,
            max_paths_in_prompt=cfg.max_paths_in_selection_prompt,
        )
        self.downloader = BatchDownloader(
            provider,
            max_chars_per_file=cfg.max_chars_per_file,
            concurrency=cfg.download_concurrency,
        )
        self.page_detector = PublicPageDetector(
            llm,
            max_routing_files=cfg.max_routing_files,
            max_chars_per_file=cfg.max_chars_per_routing_file,
            max_pages=cfg.max_public_pages,
        )
        self.prompts = PostPromptBuilder(
            max_tree_paths=cfg.max_tree_paths_in_prompt,
            max_content_chars=draft_content_budget(cfg, rate_limit or RateLimitConfig()),
        )

    async def generate(self, owner: str, repo: str) -> DraftResult:
        metadata = await self.provider.get_repo(owner, repo)
        files = await self.tree_fetcher.fetch(owner, repo, metadata.default_branch)
        selected = await self.selector.select(files, metadata.name, metadata.description)
        contents = await self.downloader.download(owner, repo, selected)

        system, user = self.prompts.render(metadata, files, contents)
        response = await self.llm.generate(system=system, user=user)
        draft = response.content.strip()
        if not draft:
            raise MalformedAIResponse("generate_draft", response.content, reason="empty draft")
        logger.info("Drafted %d-character post for %s", len(draft), metadata.full_name)

        public_pages = []
        if metadata.has_public_homepage:
            public_pages = await self.page_detector.detect(metadata.homepage, contents)

        return DraftResult(
            draft=draft,
            repo_url=metadata.html_url,
            homepage=metadata.homepage,
            public_pages=public_pages,
            analyzed_files=[f.path for f in contents],
        )


def create_draft_generator(
    config: RepoPostConfig,
    limiter: RateLimiter,
    user_token: str | None = None,
) -> DraftGenerator:
    """Wire a DraftGenerator from config.

    Credentials are resolved here, before any network call: a missing GitHub
    token or AI backend key raises AuthenticationRequired. *limiter* should be
    shared by every generator in the process so they compete for one budget.
    """
    provider = create_provider(config.vcs, user_token=user_token)
    llm = ThrottledLLM(create_llm_provider(config.llm), limiter)
    return DraftGenerator(provider, llm, config.pipeline, config.rate_limit)
