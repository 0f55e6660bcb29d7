"""Shared pytest fixtures for repograde tests.

Fixtures are organized by category:
- Collaborator fakes: in-memory repository contents and scripted text output
- Configuration fixtures: configs that never touch the network
- Result fixtures: pre-built results for renderer and store tests
"""

from collections import deque
from collections.abc import Iterable
from typing import Any

import pytest

from repograde.analyzers import reset_registry
from repograde.config import RepogradeConfig, RetryConfig
from repograde.models.analysis import (
    AnalysisResult,
    Issue,
    RecordStatus,
    TestingRecord,
)
from repograde.models.repository import RepoEntry, RepositoryInfo
from repograde.scoring import grade

# =============================================================================
# Collaborator Fakes
# =============================================================================


class FakeRemoteProvider:
    """In-memory RemoteFileProvider.

    Directory listings are derived from the file paths; writes are recorded
    in ``commits`` and update the stored contents.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        default_branch: str = "main",
        shas: dict[str, str] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.default_branch = default_branch
        self.shas = dict(shas or {})
        self.commits: list[dict[str, Any]] = []
        self.fetched: list[str] = []

    def fetch_listing(self, owner: str, repo: str, path: str = "") -> list[RepoEntry]:
        prefix = f"{path}/" if path else ""
        entries: dict[str, RepoEntry] = {}
        for file_path in sorted(self.files):
            if not file_path.startswith(prefix):
                continue
            head, sep, _ = file_path[len(prefix) :].partition("/")
            child = f"{prefix}{head}"
            entries.setdefault(
                child, RepoEntry(name=head, path=child, type="dir" if sep else "file")
            )
        return list(entries.values())

    def fetch_file_content(self, owner: str, repo: str, path: str) -> str | None:
        self.fetched.append(path)
        return self.files.get(path)

    def get_file_sha(
        self, owner: str, repo: str, path: str, branch: str | None = None
    ) -> str | None:
        return self.shas.get(path)

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
        self.commits.append(
            {
                "path": path,
                "content": content,
                "branch": branch,
                "message": message,
                "prior_sha": prior_sha,
            }
        )
        self.files[path] = content
        return path

    def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        return RepositoryInfo(
            full_name=f"{owner}/{repo}", default_branch=self.default_branch
        )


class FakeTextProvider:
    """TextGenerationProvider returning queued responses in order.

    A queued exception is raised instead of returned.
    """

    def __init__(self, responses: Iterable[str | BaseException] = ()) -> None:
        self.responses: deque[str | BaseException] = deque(responses)
        self.calls: list[dict[str, Any]] = []

    def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if not self.responses:
            raise AssertionError("FakeTextProvider has no queued response")
        response = self.responses.popleft()
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def make_files() -> type[FakeRemoteProvider]:
    """Factory for in-memory repositories: ``make_files({"a.js": "..."})``."""
    return FakeRemoteProvider


@pytest.fixture
def make_text() -> type[FakeTextProvider]:
    """Factory for scripted text providers: ``make_text(["SCORE: 80"])``."""
    return FakeTextProvider


@pytest.fixture
def fake_files() -> FakeRemoteProvider:
    """A small web project."""
    return FakeRemoteProvider(
        {
            "package.json": '{"name": "site", "dependencies": {"left-pad": "1.0.0"}}',
            "index.html": "<!DOCTYPE html><html><head><title>x</title></head></html>",
            "README.md": "# Site\n",
            "src/app.js": "var a = 1;\nconsole.log(a);\n",
            "src/styles/main.css": "a { color: #fff; }\n",
            "node_modules/left-pad/index.js": "module.exports = 1;\n",
        }
    )


@pytest.fixture
def empty_files() -> FakeRemoteProvider:
    return FakeRemoteProvider()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config() -> RepogradeConfig:
    """Default configuration with retrying disabled."""
    return RepogradeConfig(retry=RetryConfig(attempts=1, min_wait=0, max_wait=0))


@pytest.fixture(autouse=True)
def _fresh_registry() -> Iterable[None]:
    """Every test starts with an empty global tool registry."""
    reset_registry()
    yield
    reset_registry()


# =============================================================================
# Result Fixtures
# =============================================================================


@pytest.fixture
def eslint_result() -> AnalysisResult:
    """A scored ESLint result with one error and one warning."""
    return AnalysisResult.scored(
        tool="eslint",
        repository="octocat/site",
        score=93,
        files_analyzed=2,
        issues=[
            Issue(
                file="src/app.js",
                line=3,
                column=5,
                message="'x' is not defined.",
                severity="error",
                rule_id="no-undef",
                fix_title="Define undefined variables",
            ),
            Issue(
                file="src/util.js",
                line=1,
                message="Unexpected var | use let",
                severity="warning",
                rule_id="no-var",
                fix_title="Use let or const instead of var",
            ),
        ],
        summary={"errors": 1, "warnings": 1, "total": 2},
        headline="Found 1 errors and 1 warnings across 2 files",
    )


@pytest.fixture
def sample_record(eslint_result: AnalysisResult) -> TestingRecord:
    """A two-tool record: one completed tool, one not applicable."""
    return TestingRecord(
        owner="octocat",
        repo="site",
        test_type="multiple",
        overall_score=47,
        grade=grade(47),
        status=RecordStatus.COMPLETED,
        results={
            "eslint": {"status": "COMPLETED", **eslint_result.to_dict()},
            "stylelint": {
                "status": "NOT_CONFIGURED",
                "score": 0,
                "grade": "F",
                "message": "No CSS/SCSS files found in repository",
            },
        },
    )
