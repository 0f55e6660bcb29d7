"""Repository entities: references to a GitHub repository and its contents."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RepoRef:
    """An ``owner/repo`` pair identifying a GitHub repository.

    Attributes:
        owner: Account or organization that owns the repository
        repo: Repository name
    """

    owner: str
    repo: str

    def __post_init__(self) -> None:
        if not self.owner or not self.owner.strip():
            raise ValueError("Repository owner cannot be empty")
        if not self.repo or not self.repo.strip():
            raise ValueError("Repository name cannot be empty")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.full_name

    @classmethod
    def parse(cls, value: str) -> "RepoRef":
        """Parse ``owner/repo`` (a GitHub URL is accepted too).

        Args:
            value: Repository reference string

        Returns:
            RepoRef instance

        Raises:
            ValueError: If the value is not of the form owner/repo
        """
        text = value.strip()
        for prefix in ("https://github.com/", "http://github.com/", "github.com/"):
            if text.startswith(prefix):
                text = text[len(prefix) :]
                break
        text = text.rstrip("/")
        if text.endswith(".git"):
            text = text[: -len(".git")]

        parts = text.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected owner/repo, got: {value!r}")
        return cls(owner=parts[0], repo=parts[1])


@dataclass(frozen=True)
class RepoEntry:
    """One entry of a repository listing.

    Attributes:
        name: Base name of the file or directory
        path: Path relative to the repository root
        type: "file" or "dir"
    """

    name: str
    path: str
    type: str

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    @property
    def extension(self) -> str:
        """Lowercase extension without the dot ("" when there is none)."""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1].lower()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepoEntry":
        """Create from a GitHub contents API item."""
        return cls(
            name=str(data.get("name", "")),
            path=str(data.get("path", "")),
            type=str(data.get("type", "file")),
        )


@dataclass(frozen=True)
class RepositoryInfo:
    """Repository metadata needed by the workflow flow.

    Attributes:
        full_name: "owner/repo"
        default_branch: Branch workflows are committed to
        private: Whether the repository is private
        language: Primary language reported by GitHub
    """

    full_name: str
    default_branch: str = "main"
    private: bool = False
    language: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryInfo":
        return cls(
            full_name=str(data.get("full_name", "")),
            default_branch=str(data.get("default_branch") or "main"),
            private=bool(data.get("private", False)),
            language=data.get("language"),
        )


@dataclass(frozen=True)
class SourceFile:
    """A downloaded file sample fed to a prompt.

    Attributes:
        path: Path relative to the repository root
        name: Base name
        content: Decoded content (possibly truncated)
        size: Length of the full content before truncation
    """

    path: str
    name: str
    content: str
    size: int = 0
