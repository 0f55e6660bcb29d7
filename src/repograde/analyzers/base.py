"""Abstract base classes for analyzer adapters.

Every adapter follows the same skeleton:
1. Acquire a private temporary directory (removed on every exit path)
2. Pull the files it needs through the remote file provider
3. Invoke the external tool with a fixed, hard-coded rule configuration
4. Convert native findings to Issues and score them
5. Turn every exception into a structured AnalysisResult

Adding a new tool MUST NOT require changes outside its adapter module and
the registry.
"""

import json
import logging
import subprocess
import tempfile
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from repograde.config import RepogradeConfig
from repograde.errors import (
    NotApplicableError,
    ToolExecutionError,
    ToolNotAvailableError,
    UpstreamUnavailableError,
)
from repograde.models.analysis import AnalysisResult, Issue
from repograde.models.repository import RepoEntry
from repograde.providers.base import RemoteFileProvider, list_files_with_extensions
from repograde.scoring import ScoringConfig

logger = logging.getLogger(__name__)

# Materialized repository files live below this directory of the workdir;
# tool configuration files sit next to it so they never collide.
SOURCE_DIR = "repo"

VERSION_CHECK_TIMEOUT = 10


class AnalyzerAdapter(ABC):
    """Abstract interface for pluggable analysis tools.

    Subclasses set the catalog attributes and implement ``_analyze``.

    Attributes:
        tool_id: Tool identifier used on the command line and in records
        display_name: Human readable tool name
        description: One-line description for the catalog
        features: Short feature list for the catalog
        note: Optional caveat shown in the catalog
        requires_workdir: Whether ``_analyze`` needs a temporary directory
    """

    tool_id: str = ""
    display_name: str = ""
    description: str = ""
    features: tuple[str, ...] = ()
    note: str | None = None
    requires_workdir: bool = True

    def __init__(
        self,
        files: RemoteFileProvider,
        config: RepogradeConfig | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            files: Remote file provider (carries the credential)
            config: Configuration (defaults when None)
        """
        self.files = files
        self.config = config or RepogradeConfig()
        self._version: str | None = None

    @property
    def scoring(self) -> ScoringConfig:
        return self.config.scoring

    @property
    def version(self) -> str | None:
        """Get the tool version (cached after first check)."""
        if self._version is None:
            self._version = self.get_version()
        return self._version

    # =========================================================================
    # Public entry point
    # =========================================================================

    def analyze(self, owner: str, repo: str) -> AnalysisResult:
        """Run the tool against a repository; never raises.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            AnalysisResult (``success=False`` with ``message`` or ``error``)
        """
        repository = f"{owner}/{repo}"
        logger.info("Running %s on %s", self.display_name, repository)

        try:
            result = self._run(owner, repo)
        except NotApplicableError as e:
            logger.info("%s skipped for %s: %s", self.display_name, repository, e)
            return AnalysisResult.not_applicable(self.tool_id, repository, str(e))
        except Exception as e:
            logger.error("%s failed for %s: %s", self.display_name, repository, e)
            return AnalysisResult.failure(self.tool_id, repository, str(e))

        logger.info(
            "%s on %s: score %d (%s)",
            self.display_name,
            repository,
            result.score,
            result.grade.value,
        )
        return result

    def _run(self, owner: str, repo: str) -> AnalysisResult:
        if not self.requires_workdir:
            return self._analyze(owner, repo, None)
        with tempfile.TemporaryDirectory(prefix=f"repograde-{self.tool_id}-") as tmp:
            return self._analyze(owner, repo, Path(tmp))

    @abstractmethod
    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        """Produce the scored result.

        Raises:
            NotApplicableError: If the repository has nothing for this tool
            ToolNotAvailableError: If the tool cannot be started
            ToolExecutionError: If the tool fails or its output is unreadable
        """

    # =========================================================================
    # Tool invocation
    # =========================================================================

    def npx(self, package: str, *args: str) -> list[str]:
        """Command line running ``package`` through npx."""
        return [self.config.tools.npx, "--yes", package, *args]

    def check_available(self) -> bool:
        """Check that the Node.js tool runner is installed."""
        try:
            result = subprocess.run(
                [self.config.tools.npx, "--version"],
                capture_output=True,
                text=True,
                timeout=VERSION_CHECK_TIMEOUT,
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            return False

    def get_version(self) -> str | None:
        """Version of the tool runner, None when unavailable."""
        try:
            result = subprocess.run(
                [self.config.tools.npx, "--version"],
                capture_output=True,
                text=True,
                timeout=VERSION_CHECK_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip().splitlines()[0] if result.stdout.strip() else None

    def run_tool(
        self,
        args: Sequence[str],
        cwd: Path,
        ok_codes: Iterable[int] | None = (0,),
    ) -> subprocess.CompletedProcess[str]:
        """Run an external tool process.

        Args:
            args: Command line
            cwd: Working directory
            ok_codes: Exit codes treated as success (None accepts any)

        Returns:
            Completed process with text stdout/stderr

        Raises:
            ToolNotAvailableError: If the executable does not exist
            ToolExecutionError: On timeout, OS failure or unexpected exit code
        """
        timeout = self.config.tools.timeout
        logger.debug("Executing %s in %s", " ".join(args), cwd)

        try:
            result = subprocess.run(
                list(args),
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolExecutionError(
                self.tool_id,
                f"{self.display_name} timed out after {timeout} seconds",
                stderr=str(e),
            )
        except FileNotFoundError:
            raise ToolNotAvailableError(
                self.tool_id,
                f"{args[0]} is not installed. Install Node.js 18+ to run "
                f"{self.display_name}.",
            )
        except OSError as e:
            raise ToolExecutionError(
                self.tool_id,
                f"Failed to execute {self.display_name}: {e}",
            )

        if ok_codes is not None and result.returncode not in set(ok_codes):
            raise ToolExecutionError(
                self.tool_id,
                f"{self.display_name} run failed",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result

    def parse_json(self, text: str, stderr: str | None = None) -> Any:
        """Decode tool JSON output.

        Raises:
            ToolExecutionError: If the text is empty or not JSON
        """
        if not text or not text.strip():
            raise ToolExecutionError(
                self.tool_id,
                f"{self.display_name} produced no output",
                stderr=stderr,
            )
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ToolExecutionError(
                self.tool_id,
                f"Failed to parse {self.display_name} JSON output: {e}",
                stderr=stderr,
            )

    # =========================================================================
    # Files
    # =========================================================================

    def materialize(
        self,
        owner: str,
        repo: str,
        entries: Iterable[RepoEntry],
        root: Path,
    ) -> list[str]:
        """Download files into ``root`` preserving their relative paths.

        Files that cannot be fetched are skipped.

        Returns:
            Relative paths of the files written, in input order
        """
        root.mkdir(parents=True, exist_ok=True)
        base = root.resolve()
        written: list[str] = []

        for entry in entries:
            target = (base / entry.path).resolve()
            if not target.is_relative_to(base):
                logger.warning("Skipping %s: path escapes the work directory", entry.path)
                continue
            try:
                content = self.files.fetch_file_content(owner, repo, entry.path)
            except UpstreamUnavailableError as e:
                logger.debug("Skipping %s: %s", entry.path, e)
                continue
            if content is None:
                logger.debug("Skipping %s: no content", entry.path)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            written.append(entry.path)

        return written

    # =========================================================================
    # Catalog
    # =========================================================================

    @classmethod
    def catalog_entry(cls) -> dict[str, Any]:
        """Catalog description of this tool."""
        return {
            "id": cls.tool_id,
            "name": cls.display_name,
            "description": cls.description,
            "features": list(cls.features),
            "note": cls.note,
        }

    def get_metadata(self) -> dict[str, Any]:
        """Get adapter metadata for logging and debugging."""
        return {
            "name": self.tool_id,
            "version": self.version,
            "available": self.check_available(),
        }


class FileLintAdapter(AnalyzerAdapter):
    """Adapter for tools that lint repository source files.

    Attributes:
        extensions: Lowercase file extensions the tool checks
        max_files: Most files downloaded per run
        kind: Label used in messages ("CSS/SCSS", "HTML", ...)
        not_found_message: Override for the no-files message
    """

    extensions: frozenset[str] = frozenset()
    max_files: int = 50
    kind: str = ""
    not_found_message: str | None = None

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        if workdir is None:
            raise ValueError(f"{self.display_name} needs a work directory")
        candidates = list_files_with_extensions(self.files, owner, repo, self.extensions)
        if not candidates:
            raise NotApplicableError(
                self.not_found_message or f"No {self.kind} files found in repository"
            )

        if len(candidates) > self.max_files:
            logger.info(
                "%s: checking %d of %d files",
                self.display_name,
                self.max_files,
                len(candidates),
            )

        root = workdir / SOURCE_DIR
        written = self.materialize(owner, repo, candidates[: self.max_files], root)
        if not written:
            raise ToolExecutionError(self.tool_id, f"Failed to download {self.kind} files")

        return self.lint(owner, repo, workdir, root, written)

    @abstractmethod
    def lint(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        root: Path,
        files: list[str],
    ) -> AnalysisResult:
        """Run the tool on the materialized files.

        Args:
            owner: Repository owner
            repo: Repository name
            workdir: Temporary directory (tool configs go here)
            root: Directory holding the materialized files
            files: Relative paths of the materialized files
        """


class ManifestAdapter(AnalyzerAdapter):
    """Adapter for tools that read package manifests at the repository root.

    Attributes:
        required_manifests: Files that must exist for the tool to apply
        optional_manifests: Files downloaded when present
    """

    required_manifests: tuple[str, ...] = ("package.json",)
    optional_manifests: tuple[str, ...] = ()

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        if workdir is None:
            raise ValueError(f"{self.display_name} needs a work directory")
        manifests: dict[str, str] = {}

        for name in self.required_manifests:
            content = self.files.fetch_file_content(owner, repo, name)
            if content is None:
                raise NotApplicableError(f"{name} not found in repository")
            manifests[name] = content

        for name in self.optional_manifests:
            content = self.files.fetch_file_content(owner, repo, name)
            if content is not None:
                manifests[name] = content

        for name, content in manifests.items():
            (workdir / name).write_text(content, encoding="utf-8")

        return self.check(owner, repo, workdir, manifests)

    @abstractmethod
    def check(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        manifests: dict[str, str],
    ) -> AnalysisResult:
        """Run the tool against the materialized manifests."""


# =============================================================================
# Issue helpers
# =============================================================================


def cap_per_severity(issues: Iterable[Issue], cap: int) -> list[Issue]:
    """Keep at most ``cap`` issues of each severity, preserving order."""
    seen: Counter[str] = Counter()
    kept = []
    for issue in issues:
        if seen[issue.severity] < cap:
            kept.append(issue)
        seen[issue.severity] += 1
    return kept


def count_by_category(issues: Iterable[Issue]) -> dict[str, int]:
    counts = Counter(issue.category or "Other" for issue in issues)
    return dict(sorted(counts.items()))


def top_files(issues: Iterable[Issue], limit: int = 5) -> list[dict[str, Any]]:
    """Files with the most issues, most first."""
    counts = Counter(issue.file for issue in issues)
    return [
        {"file": name, "issues": count}
        for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))[
            :limit
        ]
    ]


def relative_path(path: str, root: Path) -> str:
    """Tool-reported path relative to the materialized repository root."""
    candidate = Path(path)
    if not candidate.is_absolute():
        return candidate.as_posix()
    try:
        return candidate.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return candidate.name
