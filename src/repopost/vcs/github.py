"""GitHub source-control provider using PyGithub."""

import asyncio
from functools import cached_property

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository

from repopost.errors import UpstreamError
from repopost.vcs.base import SourceControlProvider
from repopost.vcs.models import RepoMetadata, TreeEntry


class GitHubProvider(SourceControlProvider):
    """GitHub implementation of SourceControlProvider using PyGithub.

    PyGithub is synchronous, so all blocking calls are wrapped
    with asyncio.to_thread() to avoid blocking the event loop.
    """

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("GitHub token required.")
        self._token = token

    @cached_property
    def _client(self) -> Github:
        return Github(auth=Auth.Token(self._token))

    def _repo(self, owner: str, repo: str, lazy: bool = True) -> Repository:
        return self._client.get_repo(f"{owner}/{repo}", lazy=lazy)

    async def get_repo(self, owner: str, repo: str) -> RepoMetadata:
        def _sync() -> RepoMetadata:
            r = self._repo(owner, repo, lazy=False)
            return RepoMetadata(
                owner=owner,
                name=r.name,
                full_name=r.full_name,
                description=r.description,
                language=r.language,
                stargazers_count=r.stargazers_count,
                homepage=r.homepage,
                topics=r.topics or [],
                default_branch=r.default_branch,
                html_url=r.html_url,
            )

        try:
            return await asyncio.to_thread(_sync)
        except GithubException as e:
            raise UpstreamError("github", "get_repo", _describe(e), e) from e
        except requests.RequestException as e:
            raise UpstreamError("github", "get_repo", str(e) or type(e).__name__, e) from e

    async def get_tree(
        self, owner: str, repo: str, branch: str, recursive: bool = True
    ) -> list[TreeEntry]:
        def _sync() -> list[TreeEntry]:
            tree = self._repo(owner, repo).get_git_tree(branch, recursive=recursive)
            return [
                TreeEntry(path=el.path, type=el.type, size=el.size)
                for el in tree.tree
                if el.type in ("blob", "tree", "commit")
            ]

        try:
            return await asyncio.to_thread(_sync)
        except GithubException as e:
            raise UpstreamError("github", "get_tree", _describe(e), e) from e
        except requests.RequestException as e:
            raise UpstreamError("github", "get_tree", str(e) or type(e).__name__, e) from e

    async def get_content(self, owner: str, repo: str, path: str) -> str:
        def _sync() -> str:
            content = self._repo(owner, repo).get_contents(path)
            if isinstance(content, list):
                raise UpstreamError("github", "get_content", f"{path!r} is a directory")
            # Files over 1 MB come back without an inline base64 payload.
            if content.encoding != "base64" or not content.content:
                raise UpstreamError("github", "get_content", f"{path!r} has no inline content")
            return content.content

        try:
            return await asyncio.to_thread(_sync)
        except GithubException as e:
            raise UpstreamError("github", "get_content", _describe(e), e) from e
        except requests.RequestException as e:
            raise UpstreamError("github", "get_content", str(e) or type(e).__name__, e) from e


def _describe(e: GithubException) -> str:
    message = e.data.get("message") if isinstance(e.data, dict) else None
    return f"HTTP {e.status}: {message or e}"
