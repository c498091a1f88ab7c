"""File selection: decide which files the model should read."""

from __future__ import annotations

import logging
import re

from repopost.errors import MalformedAIResponse
from repopost.llm.rate_limiter import ThrottledLLM
from repopost.pipeline.json_extract import extract_json_array
from repopost.pipeline.prompts import build_selection_prompt
from repopost.vcs.models import RepoFile

logger = logging.getLogger(__name__)

MAX_FILES_TO_SELECT = 30
MAX_FALLBACK_SOURCE_FILES = 20

# Manifests and build/runtime config, matched on the basename.
CONFIG_FILES: frozenset[str] = frozenset(
    name.lower()
    for name in (
        "package.json",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "requirements.txt",
        "Pipfile",
        "Cargo.toml",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "build.gradle.kts",
        "Gemfile",
        "composer.json",
        "deno.json",
        "tsconfig.json",
        "Dockerfile",
        "docker-compose.yml",
        "docker-compose.yaml",
        "Makefile",
        "vercel.json",
        "netlify.toml",
    )
)
_CONFIG_RE = re.compile(r"(^|/)(next|vite|nuxt|svelte|astro|webpack)\.config\.\w+$", re.IGNORECASE)

_DOC_RE = re.compile(r"(^|/)(readme|changelog|contributing)(\.\w+)?$", re.IGNORECASE)
_DOCS_DIR_RE = re.compile(r"^docs?/.*\.(md|mdx|rst|txt)$", re.IGNORECASE)

_ENTRY_RE = re.compile(
    r"^(src/)?(index|main|app|lib|server|cli|__main__)\.\w+$"
    r"|^app/(page|layout)\.\w+$"
    r"|^src/app/(page|layout)\.\w+$"
    r"|^(manage|wsgi|asgi)\.py$"
    r"|^cmd/[^/]+/main\.go$"
    r"|^src/(main|lib)\.rs$",
    re.IGNORECASE,
)

_TEST_RE = re.compile(
    r"(^|/)(tests?|__tests__|spec|specs|examples?|fixtures|__mocks__|e2e)/"
    r"|\.(test|spec|stories)\.\w+$"
    r"|(^|/)test_[^/]+\.py$"
    r"|_test\.(go|py)$",
    re.IGNORECASE,
)

SOURCE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".py", ".ts", ".tsx", ".js", ".jsx", ".mjs", ".vue", ".svelte", ".astro",
        ".go", ".rs", ".java", ".kt", ".swift", ".rb", ".php", ".cs", ".c", ".cc",
        ".cpp", ".h", ".hpp", ".scala", ".ex", ".exs", ".dart", ".lua", ".sh",
    }
)


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _extension(path: str) -> str:
    name = _basename(path)
    return name[name.rfind(".") :].lower() if "." in name else ""


def categorize(path: str) -> str:
    """Return one of ``docs``, ``config``, ``entry``, ``test``, ``source``, ``other``."""
    if _TEST_RE.search(path):
        return "test"
    if _DOC_RE.search(path) or _DOCS_DIR_RE.search(path):
        return "docs"
    if _basename(path).lower() in CONFIG_FILES or _CONFIG_RE.search(path):
        return "config"
    if _ENTRY_RE.search(path):
        return "entry"
    if _extension(path) in SOURCE_EXTENSIONS:
        return "source"
    return "other"


def group_files(files: list[RepoFile]) -> dict[str, list[RepoFile]]:
    """Bucket files by category, shallowest paths first within each bucket."""
    groups: dict[str, list[RepoFile]] = {
        key: [] for key in ("config", "docs", "entry", "source", "test", "other")
    }
    for f in files:
        groups[categorize(f.path)].append(f)
    for bucket in groups.values():
        bucket.sort(key=lambda f: f.path.count("/"))
    return groups


def fallback_selection(files: list[RepoFile], max_files: int = MAX_FILES_TO_SELECT) -> list[str]:
    """Deterministic selection: docs, config, entry points, then some source files.

    Never raises. Returns an empty list only when *files* is empty.
    """
    groups = group_files(files)
    ordered = (
        groups["docs"]
        + groups["config"]
        + groups["entry"]
        + groups["source"][:MAX_FALLBACK_SOURCE_FILES]
    )
    if not ordered:
        ordered = groups["other"] + groups["test"]
    return _dedupe([f.path for f in ordered])[:max_files]


def _dedupe(paths: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for p in paths:
        if p not in seen:
            seen.add(p)
            unique.append(p)
    return unique


class FileSelector:
    """Chooses a bounded, high-value subset of a repository's files.

    Asks the model first; any failure (call error, no parseable array, no
    known paths in the answer) falls back to :func:`fallback_selection`.
    """

    def __init__(
        self,
        llm: ThrottledLLM,
        max_files: int = MAX_FILES_TO_SELECT,
        max_paths_in_prompt: int = 200,
    ) -> None:
        self.llm = llm
        self.max_files = max_files
        self.max_paths_in_prompt = max_paths_in_prompt

    async def select(
        self, files: list[RepoFile], repo_name: str, description: str | None = None
    ) -> list[str]:
        if not files:
            return []
        try:
            selected = await self._select_with_ai(files, repo_name, description)
        except Exception as e:
            logger.warning("AI file selection failed for %s, using rule-based selection: %s", repo_name, e)
            selected = fallback_selection(files, self.max_files)
        logger.info("Selected %d of %d files for %s", len(selected), len(files), repo_name)
        return selected

    async def _select_with_ai(
        self, files: list[RepoFile], repo_name: str, description: str | None
    ) -> list[str]:
        groups = group_files(files)
        budget = self.max_paths_in_prompt
        shown: dict[str, list[RepoFile]] = {}
        for key in ("config", "docs", "entry", "source", "other", "test"):
            shown[key] = groups[key][:budget]
            budget -= len(shown[key])
        prompt = build_selection_prompt(repo_name, description, shown, self.max_files)

        response = await self.llm.generate(system="", user=prompt)
        items = extract_json_array(response.content)
        if items is None:
            raise MalformedAIResponse("select_files", response.content)

        known = {f.path for f in files}
        paths = _dedupe([p for p in items if isinstance(p, str) and p in known])
        if not paths:
            raise MalformedAIResponse("select_files", response.content)
        return paths[: self.max_files]
