"""Unit tests for result and repository entities."""

import pytest

from repograde.models.analysis import (
    AnalysisResult,
    DynamicTestResult,
    Issue,
    RecordStatus,
    TestingRecord,
    WorkflowArtifact,
)
from repograde.models.repository import RepoEntry, RepoRef, RepositoryInfo
from repograde.scoring import Grade


class TestIssue:
    """Tests for Issue normalization."""

    def test_non_positive_positions_dropped(self) -> None:
        """Test that line/column 0 become None."""
        issue = Issue(file="a.css", message="m", severity="warning", line=0, column=-1)

        assert issue.line is None
        assert issue.column is None

    def test_empty_fix_title_defaults(self) -> None:
        """Test that fix_title is never empty."""
        issue = Issue(file="a.js", message="m", severity="error", fix_title="")

        assert issue.fix_title == "Fix this issue"

    def test_to_dict(self) -> None:
        """Test serialization keys."""
        data = Issue(file="a.js", message="m", severity="error", line=3).to_dict()

        assert data["file"] == "a.js"
        assert data["line"] == 3
        assert data["column"] is None
        assert set(data) >= {"rule_id", "suggestion", "fix_title", "package", "category"}


class TestAnalysisResult:
    """Tests for AnalysisResult constructors."""

    def test_scored_derives_grade(self) -> None:
        """Test the grade always follows the score."""
        result = AnalysisResult.scored("eslint", "o/r", 65, 3, [], {"errors": 3})

        assert result.success is True
        assert result.grade == Grade.D
        assert result.metadata.tool == "eslint"
        assert result.metadata.repository == "o/r"

    def test_not_applicable(self) -> None:
        """Test not-applicable results carry a message and no error."""
        result = AnalysisResult.not_applicable("stylelint", "o/r", "No CSS/SCSS files found in repository")

        assert result.success is False
        assert result.score == 0
        assert result.message == "No CSS/SCSS files found in repository"
        assert result.error is None

    def test_failure(self) -> None:
        """Test failures carry an error and no message."""
        result = AnalysisResult.failure("eslint", "o/r", "boom")

        assert result.success is False
        assert result.error == "boom"
        assert result.message is None

    def test_error_and_warning_views(self) -> None:
        """Test the errors/warnings properties filter by severity."""
        issues = [
            Issue(file="a", message="1", severity="error"),
            Issue(file="a", message="2", severity="warning"),
            Issue(file="a", message="3", severity="warning"),
        ]
        result = AnalysisResult.scored("eslint", "o/r", 91, 1, issues, {})

        assert len(result.errors) == 1
        assert len(result.warnings) == 2

    def test_to_dict(self) -> None:
        """Test serialization of nested values."""
        data = AnalysisResult.scored(
            "eslint", "o/r", 100, 0, [], {"total": 0}, headline="clean"
        ).to_dict()

        assert data["grade"] == "A+"
        assert data["headline"] == "clean"
        assert data["metadata"]["tool"] == "eslint"
        assert data["issues"] == []


class TestDynamicTestResult:
    """Tests for DynamicTestResult."""

    def test_workflow_properties(self) -> None:
        """Test the workflow accessors delegate to the artifact."""
        artifact = WorkflowArtifact(
            yaml="name: CI", workflow_name="eslint-test.yml", default_branch="main"
        )
        result = DynamicTestResult(
            success=True, test_type="eslint", repository="o/r", workflow=artifact
        )

        assert result.yaml == "name: CI"
        assert result.can_commit is True
        assert artifact.path == ".github/workflows/eslint-test.yml"
        assert result.to_dict()["default_branch"] == "main"

    def test_without_workflow(self) -> None:
        """Test a result without a workflow cannot be committed."""
        result = DynamicTestResult(success=False, test_type="eslint", repository="o/r")

        assert result.yaml is None
        assert result.can_commit is False
        assert result.to_dict()["grade"] == "F"


class TestTestingRecord:
    """Tests for TestingRecord serialization."""

    def test_round_trip(self) -> None:
        """Test from_dict restores a serialized record."""
        record = TestingRecord(
            owner="o",
            repo="r",
            test_type="eslint",
            overall_score=65,
            grade=Grade.D,
            status=RecordStatus.COMPLETED,
            results={"eslint": {"status": "COMPLETED", "score": 65}},
        )

        restored = TestingRecord.from_dict(record.to_dict())

        assert restored == record
        assert restored.repository == "o/r"

    def test_ids_are_unique(self) -> None:
        """Test each record gets its own id."""
        first = TestingRecord(owner="o", repo="r", test_type="x", overall_score=0, grade=Grade.F)
        second = TestingRecord(owner="o", repo="r", test_type="x", overall_score=0, grade=Grade.F)

        assert first.id != second.id


class TestRepoRef:
    """Tests for RepoRef.parse."""

    @pytest.mark.parametrize(
        "value",
        [
            "octocat/site",
            "https://github.com/octocat/site",
            "github.com/octocat/site/",
            "https://github.com/octocat/site.git",
        ],
    )
    def test_parse(self, value: str) -> None:
        """Test accepted spellings."""
        ref = RepoRef.parse(value)

        assert ref.owner == "octocat"
        assert ref.repo == "site"
        assert str(ref) == "octocat/site"

    @pytest.mark.parametrize("value", ["octocat", "a/b/c", "/site", ""])
    def test_parse_rejects(self, value: str) -> None:
        """Test malformed references raise ValueError."""
        with pytest.raises(ValueError):
            RepoRef.parse(value)


class TestRepoEntry:
    """Tests for RepoEntry and RepositoryInfo."""

    def test_extension(self) -> None:
        """Test lowercase extensions and names without one."""
        assert RepoEntry(name="App.JSX", path="src/App.JSX", type="file").extension == "jsx"
        assert RepoEntry(name="Makefile", path="Makefile", type="file").extension == ""

    def test_from_api(self) -> None:
        """Test building entries from the contents API."""
        entry = RepoEntry.from_api({"name": "src", "path": "src", "type": "dir"})

        assert entry.is_file is False

    def test_repository_info_default_branch(self) -> None:
        """Test a missing default branch falls back to main."""
        info = RepositoryInfo.from_api({"full_name": "o/r", "default_branch": None})

        assert info.default_branch == "main"
