"""Collaborator interfaces consumed by analyzers and the dynamic flow.

Two capabilities are needed from the outside world: reading (and, for the
explicit commit step, writing) repository files, and generating text from a
prompt. Anything implementing these protocols can be injected, which is how
tests run the whole pipeline without network access.
"""

import logging
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from repograde.errors import UpstreamUnavailableError
from repograde.models.repository import RepoEntry, RepositoryInfo

logger = logging.getLogger(__name__)

# Directories never descended into when walking a repository
SKIPPED_DIRECTORIES = frozenset({"node_modules"})


@runtime_checkable
class RemoteFileProvider(Protocol):
    """Read and write access to repository contents."""

    def fetch_listing(self, owner: str, repo: str, path: str = "") -> list[RepoEntry]:
        """List one directory (raises UpstreamUnavailableError on failure)."""
        ...

    def fetch_file_content(self, owner: str, repo: str, path: str) -> str | None:
        """Decoded file content, or None when the file does not exist."""
        ...

    def get_file_sha(
        self, owner: str, repo: str, path: str, branch: str | None = None
    ) -> str | None:
        """Blob SHA of an existing file, or None when it does not exist."""
        ...

    def write_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        branch: str,
        message: str,
        prior_sha: str | None = None,
    ) -> str:
        """Create or update a file; returns the committed path."""
        ...

    def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        """Repository metadata (raises UpstreamUnavailableError when unreachable)."""
        ...


@runtime_checkable
class TextGenerationProvider(Protocol):
    """Single-shot text completion."""

    def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str: ...


def _is_skipped_directory(entry: RepoEntry) -> bool:
    return entry.name in SKIPPED_DIRECTORIES or entry.name.startswith(".")


def walk_repository(
    provider: RemoteFileProvider,
    owner: str,
    repo: str,
    path: str = "",
) -> Iterator[RepoEntry]:
    """Yield every file in a repository, depth first in listing order.

    ``node_modules`` and dot-directories are not descended into. The root
    listing must succeed; a subdirectory that cannot be listed is logged and
    skipped.

    Args:
        provider: Remote file provider
        owner: Repository owner
        repo: Repository name
        path: Directory to start from ("" for the root)

    Yields:
        File entries
    """
    for entry in provider.fetch_listing(owner, repo, path):
        if entry.is_file:
            yield entry
        elif entry.type == "dir" and not _is_skipped_directory(entry):
            try:
                yield from walk_repository(provider, owner, repo, entry.path)
            except UpstreamUnavailableError as e:
                logger.warning("Could not list directory %s: %s", entry.path, e)


def list_files_with_extensions(
    provider: RemoteFileProvider,
    owner: str,
    repo: str,
    extensions: frozenset[str],
) -> list[RepoEntry]:
    """All repository files whose lowercase extension is in ``extensions``."""
    return [
        entry
        for entry in walk_repository(provider, owner, repo)
        if entry.extension in extensions
    ]
