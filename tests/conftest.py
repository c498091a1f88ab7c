"""Shared test fixtures for repopost."""

import asyncio
import base64

import pytest
from unittest.mock import AsyncMock, MagicMock

from repopost.config.models import RepoPostConfig
from repopost.llm.models import LLMResponse, TokenUsage
from repopost.llm.rate_limiter import ThrottledLLM
from repopost.vcs.base import SourceControlProvider
from repopost.vcs.models import RepoFile, RepoMetadata, TreeEntry


class FakeClock:
    """Manual clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


def llm_response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        usage=TokenUsage(input_tokens=100, output_tokens=50),
        model="test-model",
    )


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_repo_metadata():
    return RepoMetadata(
        owner="acme",
        name="widget",
        full_name="acme/widget",
        description="Widgets for everyone",
        language="TypeScript",
        stargazers_count=42,
        homepage="https://widget.dev",
        topics=["widgets", "web"],
        default_branch="main",
        html_url="https://github.com/acme/widget",
    )


@pytest.fixture
def sample_tree():
    """Recursive tree listing with directories, noise and a submodule."""
    return [
        TreeEntry(path="README.md", type="blob", size=2000),
        TreeEntry(path="package.json", type="blob", size=450),
        TreeEntry(path="package-lock.json", type="blob", size=90000),
        TreeEntry(path="src", type="tree"),
        TreeEntry(path="src/index.ts", type="blob", size=800),
        TreeEntry(path="src/lib/format.ts", type="blob", size=300),
        TreeEntry(path="app", type="tree"),
        TreeEntry(path="app/page.tsx", type="blob", size=600),
        TreeEntry(path="app/about/page.tsx", type="blob", size=400),
        TreeEntry(path="public/logo.png", type="blob", size=12000),
        TreeEntry(path="node_modules/react/index.js", type="blob", size=100),
        TreeEntry(path="tests/format.test.ts", type="blob", size=200),
        TreeEntry(path="vendor-lib", type="commit"),
    ]


@pytest.fixture
def sample_files():
    return [
        RepoFile(path="README.md", size=2000),
        RepoFile(path="package.json", size=450),
        RepoFile(path="src/index.ts", size=800),
        RepoFile(path="src/lib/format.ts", size=300),
        RepoFile(path="app/page.tsx", size=600),
        RepoFile(path="app/about/page.tsx", size=400),
        RepoFile(path="tests/format.test.ts", size=200),
    ]


@pytest.fixture
def mock_vcs_provider(sample_repo_metadata, sample_tree):
    provider = MagicMock(spec=SourceControlProvider)
    provider.get_repo = AsyncMock(return_value=sample_repo_metadata)
    provider.get_tree = AsyncMock(return_value=sample_tree)

    async def _content(owner, repo, path):
        return b64(f"content of {path}")

    provider.get_content = AsyncMock(side_effect=_content)
    return provider


@pytest.fixture
def mock_llm():
    llm = MagicMock(spec=ThrottledLLM)
    llm.generate = AsyncMock(return_value=llm_response("Generated post."))
    return llm


@pytest.fixture
def sample_config():
    return RepoPostConfig()


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with no credentials or user config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in (
        "GITHUB_TOKEN",
        "GEMINI_API_KEY",
        "MICROLINK_API_KEY",
        "LINKEDIN_ACCESS_TOKEN",
        "LINKEDIN_PERSON_URN",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path
