"""Unit tests for the heuristic full test."""

import json
from unittest.mock import MagicMock

import pytest

from repograde.errors import MalformedProviderOutputError
from repograde.full_test import (
    CHECK_WEIGHTS,
    FullTestRunner,
    RepositorySnapshot,
    check_code_quality,
    check_performance,
    check_security,
    check_test_readiness,
    full_test_score,
    parse_review,
    review_latest_commit,
)
from repograde.models.analysis import AnalysisResult
from repograde.models.repository import RepoEntry
from repograde.providers.github import GitHubError


def snapshot(
    *names: str,
    package: dict | str | None = None,
    requirements: str | None = None,
) -> RepositorySnapshot:
    if isinstance(package, dict):
        package = json.dumps(package)
    return RepositorySnapshot(
        owner="octocat",
        repo="site",
        entries=[RepoEntry(name=name, path=name, type="file") for name in names],
        package_text=package,
        requirements_text=requirements,
    )


def scored(tool: str, score: int) -> AnalysisResult:
    return AnalysisResult.scored(tool, "octocat/site", score, 1, [], {})


class TestCodeQuality:
    def test_all_essentials(self) -> None:
        result = check_code_quality(
            snapshot("README.md", ".gitignore", "LICENSE", ".github", "package.json", "tests", "src")
        )

        assert result.score == 100
        assert result.issues == []
        assert result.details["metrics"]["file_count"] == 7

    def test_empty_root(self) -> None:
        result = check_code_quality(snapshot())

        assert result.score == 0
        assert [i.file for i in result.issues] == [
            "README.md",
            ".gitignore",
            "LICENSE",
            ".github/workflows",
            "tests",
        ]
        assert {i.category for i in result.issues} == {"missing"}
        assert result.issues[0].severity == "high"

    def test_partial(self) -> None:
        """Test README (15), dependency file (10) and source layout (10)."""
        result = check_code_quality(snapshot("readme.md", "requirements.txt", "lib"))

        assert result.score == 35
        assert result.summary == {"missing": 4}


class TestSecurity:
    def test_findings(self) -> None:
        result = check_security(
            snapshot(
                "package.json",
                "requirements.txt",
                ".env",
                package={
                    "dependencies": {"left-pad": "*", "react": "^18.2.0"},
                    "devDependencies": {"jest": "latest"},
                },
                requirements="flask==3.0.0\nrequests\n# tooling\n\n",
            )
        )

        # 100 - 5 - 5 - 3 - 30
        assert result.score == 57
        assert result.summary == {"critical": 1, "high": 0, "moderate": 2, "low": 1, "total": 4}
        assert result.files_analyzed == 2
        assert {i.package for i in result.issues if i.category == "dependency"} == {
            "left-pad",
            "jest",
            "requests",
        }
        assert result.details["warnings"] == ["No SECURITY.md file found"]

    def test_clean(self) -> None:
        result = check_security(snapshot("SECURITY.md", package={"dependencies": {"a": "1.0.0"}}))

        assert result.score == 100
        assert result.issues == []
        assert result.details["warnings"] == []

    def test_malformed_manifest(self) -> None:
        with pytest.raises(MalformedProviderOutputError, match="not a JSON object"):
            check_security(snapshot("package.json", package="[1, 2]"))


class TestTestReadiness:
    def test_node_project(self) -> None:
        result = check_test_readiness(
            snapshot(
                "tests",
                ".github",
                "package.json",
                package={
                    "scripts": {"test": "vitest", "coverage": "vitest --coverage"},
                    "devDependencies": {"vitest": "^1.0.0"},
                },
            )
        )

        # directory 40, test script 20, coverage 20, CI 10
        assert result.score == 90
        assert result.issues == []
        assert result.details == {
            "has_tests": True,
            "test_framework": "Vitest",
            "coverage": "configured",
        }

    def test_python_project(self) -> None:
        result = check_test_readiness(snapshot("tests", "pytest.ini"))

        assert result.score == 60
        assert result.details["test_framework"] == "Pytest"
        assert result.headline == "Test framework: Pytest"

    def test_nothing_to_run(self) -> None:
        result = check_test_readiness(snapshot("package.json", package={"name": "site"}))

        assert result.score == 0
        assert result.headline == "No test framework detected"
        assert [i.severity for i in result.issues] == ["high", "moderate", "low"]


class TestPerformance:
    def test_heavy_dependencies(self) -> None:
        result = check_performance(
            snapshot("package.json", package={"dependencies": {"moment": "2.29.0", "jquery": "3.7.0"}})
        )

        assert result.score == 90
        assert [i.package for i in result.issues] == ["moment", "jquery"]
        assert result.details["suggestions"] == [
            "Add build script for production optimization",
            "Consider adding service worker for offline caching",
        ]

    def test_bonuses_are_capped(self) -> None:
        result = check_performance(snapshot("vite.config.js", "sw.js"))

        assert result.score == 100
        assert result.details["suggestions"] == []


class TestParseReview:
    def test_fenced_json(self) -> None:
        review = parse_review(
            '```json\n{"score": 82, "insights": ["Clear naming"], "patterns": ["MVC"]}\n```'
        )

        assert review == {
            "score": 82,
            "insights": ["Clear naming"],
            "suggestions": [],
            "patterns": ["MVC"],
        }

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("{}", 70), ('{"score": "high"}', 70), ('{"score": 140}', 100)],
    )
    def test_score_defaults_and_clamping(self, raw: str, expected: int) -> None:
        assert parse_review(raw)["score"] == expected

    @pytest.mark.parametrize("raw", ["I think the code is fine", "[1, 2]"])
    def test_rejects_non_objects(self, raw: str) -> None:
        with pytest.raises(MalformedProviderOutputError):
            parse_review(raw)


class TestReviewLatestCommit:
    @pytest.fixture
    def history(self) -> MagicMock:
        files = MagicMock()
        files.list_commits.return_value = [{"sha": "c0ffee"}, {"sha": "older"}]
        files.get_commit.return_value = {
            "files": [
                {"filename": "a.py", "patch": "+" + "x" * 600},
                {"filename": "b.py", "patch": "+b = 2"},
                {"filename": "logo.png"},
                {"filename": "d.py", "patch": "+d = 4"},
            ]
        }
        return files

    def test_review(self, history: MagicMock, make_text) -> None:
        text = make_text(
            ['{"score": 82, "insights": ["Clear naming"], "suggestions": ["Add tests"]}']
        )

        result = review_latest_commit(history, text, "octocat", "site")

        assert result.success is True
        assert result.score == 82
        assert result.files_analyzed == 3
        assert result.details["commit"] == "c0ffee"
        assert result.details["suggestions"] == ["Add tests"]
        history.get_commit.assert_called_once_with("octocat", "site", "c0ffee")

        call = text.calls[0]
        assert call["temperature"] == 0.3
        assert "File: b.py" in call["user_prompt"]
        assert "File: d.py" not in call["user_prompt"]
        assert "x" * 499 in call["user_prompt"]
        assert "x" * 500 not in call["user_prompt"]

    def test_without_model(self, history: MagicMock) -> None:
        result = review_latest_commit(history, None, "octocat", "site")

        assert result.score == 60
        assert result.details["insights"] == ["AI review skipped: no LLM configured"]
        history.list_commits.assert_not_called()

    def test_without_commit_history(self, fake_files, make_text) -> None:
        result = review_latest_commit(fake_files, make_text(), "octocat", "site")

        assert result.score == 60
        assert result.details["insights"] == ["AI review skipped: commit history unavailable"]

    def test_no_commits(self, history: MagicMock, make_text) -> None:
        history.list_commits.return_value = []

        result = review_latest_commit(history, make_text(), "octocat", "site")

        assert result.score == 50
        assert result.headline == "Repository has no commits yet"

    def test_unusable_answer(self, history: MagicMock, make_text) -> None:
        result = review_latest_commit(history, make_text(["Looks good to me!"]), "octocat", "site")

        assert result.success is True
        assert result.score == 60
        assert result.details["insights"] == ["Unable to perform detailed AI analysis"]
        assert result.details["suggestions"] == ["Ensure repository has recent commits"]

    def test_github_failure(self, history: MagicMock, make_text) -> None:
        history.list_commits.side_effect = GitHubError("boom", status_code=502)

        result = review_latest_commit(history, make_text(), "octocat", "site")

        assert result.score == 60


class TestSnapshot:
    def test_fetch_reads_named_manifests_once(self) -> None:
        files = MagicMock()
        files.fetch_listing.return_value = [
            RepoEntry(name="package.json", path="package.json", type="file")
        ]
        files.fetch_file_content.return_value = "{}"
        files.list_languages.return_value = {"TypeScript": 1200, "CSS": 80}

        result = RepositorySnapshot.fetch(files, "octocat", "site")

        files.fetch_file_content.assert_called_once_with("octocat", "site", "package.json")
        assert result.package_text == "{}"
        assert result.requirements_text is None
        assert result.languages == ["TypeScript", "CSS"]


class TestFullTestRunner:
    def test_run(self, fake_files) -> None:
        results = FullTestRunner(fake_files).run("octocat", "site")

        assert list(results) == list(CHECK_WEIGHTS)
        assert {tool: r.score for tool, r in results.items()} == {
            "code-quality": 35,
            "security": 100,
            "test-readiness": 0,
            "performance": 100,
            "ai-review": 60,
        }
        assert results["code-quality"].details["metrics"]["languages"] == []
        assert fake_files.fetched == ["package.json"]

    def test_unreadable_root(self) -> None:
        files = MagicMock()
        files.fetch_listing.side_effect = GitHubError("Bad credentials", status_code=401)

        results = FullTestRunner(files).run("o", "r")

        assert list(results) == list(CHECK_WEIGHTS)
        assert all(not r.success for r in results.values())
        assert "Bad credentials" in results["security"].error
        assert full_test_score(results) == 0

    def test_failing_check_is_isolated(self, make_files) -> None:
        files = make_files({"package.json": "{not json", "README.md": "# Site\n"})

        results = FullTestRunner(files).run("octocat", "site")

        assert results["code-quality"].success is True
        assert results["ai-review"].success is True
        for tool in ("security", "test-readiness", "performance"):
            assert results[tool].success is False
            assert "package.json is not valid JSON" in results[tool].error


class TestFullTestScore:
    def test_weights(self) -> None:
        results = {tool: scored(tool, 80) for tool in CHECK_WEIGHTS}

        assert full_test_score(results) == 80

    def test_failed_check_counts_as_zero(self) -> None:
        results = {tool: scored(tool, 80) for tool in CHECK_WEIGHTS}
        results["security"] = AnalysisResult.failure("security", "octocat/site", "boom")

        # 80 * (1 - 0.30)
        assert full_test_score(results) == 56
