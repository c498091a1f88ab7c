"""Abstract source-control interface for repopost."""

from abc import ABC, abstractmethod

from repopost.vcs.models import RepoMetadata, TreeEntry


class SourceControlProvider(ABC):
    """Read-only view of a hosted repository.

    Implementations raise :class:`repopost.errors.UpstreamError` when the
    remote call fails; nothing is retried at this level.
    """

    @abstractmethod
    async def get_repo(self, owner: str, repo: str) -> RepoMetadata:
        """Get metadata for a repository."""
        ...

    @abstractmethod
    async def get_tree(
        self, owner: str, repo: str, branch: str, recursive: bool = True
    ) -> list[TreeEntry]:
        """List the tree of *branch* in one call.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            branch: Branch name or tree SHA.
            recursive: Whether to descend into sub-trees.
        """
        ...

    @abstractmethod
    async def get_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch the base64-encoded content of a file."""
        ...
