"""Source-control collaborators for repopost."""

import os

from repopost.config.models import VCSConfig
from repopost.errors import AuthenticationRequired
from repopost.vcs.base import SourceControlProvider
from repopost.vcs.github import GitHubProvider
from repopost.vcs.models import RepoFile, RepoMetadata, SelectedFile, TreeEntry
from repopost.vcs.tree import RepoTreeFetcher, should_skip


def resolve_token(config: VCSConfig, user_token: str | None = None) -> str:
    """Pick the caller's own token, else the shared fallback token from the environment.

    Raises AuthenticationRequired when neither is available.
    """
    if user_token:
        return user_token
    fallback = os.environ.get(config.token_env, "")
    if fallback:
        return fallback
    raise AuthenticationRequired(
        "GitHub not connected. Connect your GitHub account or set the "
        f"{config.token_env} environment variable."
    )


def create_provider(config: VCSConfig, user_token: str | None = None) -> SourceControlProvider:
    """Create a source-control provider from config."""
    if config.provider != "github":
        raise ValueError(
            f"Unsupported VCS provider: {config.provider!r}. "
            "Currently only 'github' is supported."
        )
    return GitHubProvider(token=resolve_token(config, user_token))


__all__ = [
    "GitHubProvider",
    "RepoFile",
    "RepoMetadata",
    "RepoTreeFetcher",
    "SelectedFile",
    "SourceControlProvider",
    "TreeEntry",
    "create_provider",
    "resolve_token",
    "should_skip",
]
