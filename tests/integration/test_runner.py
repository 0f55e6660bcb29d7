"""Integration tests for the runner entry points with in-memory collaborators."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from repograde.analyzers.base import AnalyzerAdapter
from repograde.analyzers.registry import ToolRegistry
from repograde.config import RepogradeConfig, RunnerConfig, StoreConfig, ToolsConfig
from repograde.errors import NotApplicableError
from repograde.models.analysis import AnalysisResult, RecordStatus
from repograde.models.repository import RepositoryInfo
from repograde.providers.github import GitHubError
from repograde.runner import (
    commit_generated_workflow,
    dynamic_record,
    list_available_tests,
    result_entry,
    run_actions_test,
    run_adapter,
    run_dynamic_test,
    run_full_test,
    run_multiple,
)
from repograde.scoring import Grade
from repograde.store import ResultStore


class ScoredAdapter(AnalyzerAdapter):
    tool_id = "scored"
    display_name = "Scored"
    requires_workdir = False

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        return AnalysisResult.scored(self.tool_id, f"{owner}/{repo}", 90, 3, [], {"total": 0})


class SkippedAdapter(ScoredAdapter):
    tool_id = "skipped"

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        raise NotApplicableError("No CSS/SCSS files found in repository")


class BrokenAdapter(ScoredAdapter):
    tool_id = "broken"

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        raise RuntimeError("npx exploded")


@pytest.fixture
def registry() -> ToolRegistry:
    registry = ToolRegistry()
    for adapter in (ScoredAdapter, SkippedAdapter, BrokenAdapter):
        registry.register(adapter)
    return registry


class TestRunMultiple:
    """Tests for run_multiple."""

    def test_aggregates_in_requested_order(
        self, registry: ToolRegistry, fake_files, config, tmp_path: Path
    ) -> None:
        """Test failures score 0 and count towards the mean."""
        store = ResultStore(tmp_path / "history.json")

        record = run_multiple(
            ["broken", "scored", "skipped", "scored"],
            "octocat",
            "site",
            None,
            config,
            files=fake_files,
            registry=registry,
            store=store,
        )

        assert list(record.results) == ["broken", "scored", "skipped"]
        assert record.results["scored"]["status"] == "COMPLETED"
        assert record.results["scored"]["score"] == 90
        assert record.results["skipped"] == {
            "status": "NOT_CONFIGURED",
            "score": 0,
            "grade": "F",
            "message": "No CSS/SCSS files found in repository",
        }
        assert record.results["broken"]["status"] == "ERROR"
        assert record.results["broken"]["message"] == "npx exploded"
        assert record.overall_score == 30
        assert record.grade == Grade.F
        assert record.status == RecordStatus.COMPLETED
        assert record.test_type == "multiple"
        assert store.get(record.id) == record

    def test_single_tool(self, registry: ToolRegistry, fake_files, config) -> None:
        record = run_multiple(["scored"], "o", "r", None, config, files=fake_files, registry=registry)

        assert record.test_type == "scored"
        assert record.overall_score == 90
        assert record.grade == Grade.A_MINUS

    def test_nothing_succeeded(self, registry: ToolRegistry, fake_files, config) -> None:
        """Test a record without any successful tool has status ERROR."""
        record = run_multiple(
            ["broken", "skipped"], "o", "r", None, config, files=fake_files, registry=registry
        )

        assert record.status == RecordStatus.ERROR
        assert record.overall_score == 0

    def test_unknown_tool(self, registry: ToolRegistry, fake_files, config) -> None:
        record = run_multiple(
            ["scored", "sonarcloud"], "o", "r", None, config, files=fake_files, registry=registry
        )

        assert record.results["sonarcloud"]["status"] == "ERROR"
        assert "not registered" in record.results["sonarcloud"]["message"]
        assert record.overall_score == 45

    def test_default_tools_and_configured_store(
        self, registry: ToolRegistry, fake_files, tmp_path: Path
    ) -> None:
        """Test an empty tool list runs tools.default and save_results persists."""
        path = tmp_path / "records.json"
        config = RepogradeConfig(
            tools=ToolsConfig(default=["scored"]),
            runner=RunnerConfig(max_workers=1, save_results=True),
            store=StoreConfig(path=str(path)),
        )

        record = run_multiple([], "o", "r", None, config, files=fake_files, registry=registry)

        assert list(record.results) == ["scored"]
        assert ResultStore(path).get(record.id) is not None

    def test_not_saved_by_default(self, registry: ToolRegistry, fake_files, config, tmp_path: Path) -> None:
        with patch("repograde.runner.ResultStore") as store_cls:
            run_multiple(["scored"], "o", "r", None, config, files=fake_files, registry=registry)

        store_cls.assert_not_called()


class TestRunAdapter:
    """Tests for run_adapter and result_entry."""

    def test_run_adapter(self, registry: ToolRegistry, fake_files, config) -> None:
        result = run_adapter("scored", "o", "r", None, config, files=fake_files, registry=registry)

        assert result.success is True
        assert result.score == 90

    def test_unknown_tool(self, registry: ToolRegistry, fake_files, config) -> None:
        result = run_adapter("nope", "o", "r", None, config, files=fake_files, registry=registry)

        assert result.success is False
        assert "not registered" in (result.error or "")

    def test_result_entry_completed(self, eslint_result: AnalysisResult) -> None:
        entry = result_entry(eslint_result)

        assert entry["status"] == "COMPLETED"
        assert entry["headline"] == eslint_result.headline

    def test_list_available_tests(self) -> None:
        """Test the default catalog is populated on first use."""
        ids = [entry["id"] for entry in list_available_tests()]

        assert ids[0] == "eslint"
        assert "code-scanning" in ids


class TestRunFullTest:
    """Tests for run_full_test."""

    def test_record(self, fake_files, config, tmp_path: Path) -> None:
        store = ResultStore(tmp_path / "records.json")

        record = run_full_test("octocat", "site", None, config, files=fake_files, store=store)

        assert record.test_type == "full"
        assert list(record.results) == [
            "code-quality",
            "security",
            "test-readiness",
            "performance",
            "ai-review",
        ]
        # 35 * 0.25 + 100 * 0.30 + 0 * 0.25 + 100 * 0.10 + 60 * 0.10
        assert record.overall_score == 55
        assert record.grade == Grade.F
        assert record.status == RecordStatus.COMPLETED
        assert record.results["security"]["status"] == "COMPLETED"
        assert store.get(record.id) is not None

    def test_ai_review_uses_text_provider(self, config, make_text) -> None:
        files = MagicMock()
        files.fetch_listing.return_value = []
        files.list_languages.return_value = {}
        files.list_commits.return_value = [{"sha": "c0ffee"}]
        files.get_commit.return_value = {"files": [{"filename": "a.py", "patch": "+a = 1"}]}

        record = run_full_test(
            "o", "r", None, config, files=files, text=make_text(['{"score": 90}'])
        )

        assert record.results["ai-review"]["score"] == 90

    def test_unreadable_repository(self, config) -> None:
        files = MagicMock()
        files.fetch_listing.side_effect = GitHubError("Bad credentials", status_code=401)

        record = run_full_test("o", "r", None, config, files=files)

        assert record.status == RecordStatus.ERROR
        assert record.overall_score == 0
        assert {entry["status"] for entry in record.results.values()} == {"ERROR"}


REPORT = "SCORE: 88\nANALYSIS:\nClean code."
WORKFLOW = "name: ESLint\non: [push]"


class TestDynamicEntryPoints:
    """Tests for the dynamic flow entry points."""

    def test_run_dynamic_test(self, fake_files, make_text, config) -> None:
        result = run_dynamic_test(
            "eslint", "octocat", "site", "token", config,
            files=fake_files, text=make_text([WORKFLOW, REPORT]),
        )

        assert result.success is True
        assert result.score == 88
        assert result.yaml == WORKFLOW

    def test_run_dynamic_test_without_llm(self, config) -> None:
        """Test a disabled LLM is reported without contacting GitHub."""
        with patch("repograde.runner.github_client") as github_client:
            result = run_dynamic_test("eslint", "o", "r", "token", config)

        github_client.assert_not_called()
        assert result.success is False
        assert result.conclusion == "error"
        assert "Configure the llm section" in (result.error or "")

    def test_commit_generated_workflow(self, fake_files, config) -> None:
        result = commit_generated_workflow(
            "o", "r", "eslint-test.yml", WORKFLOW, "main", "token", config, files=fake_files
        )

        assert result.success is True
        assert fake_files.files[".github/workflows/eslint-test.yml"] == WORKFLOW + "\n"

    def test_run_actions_test(self, config) -> None:
        """Test the default workflow name and the conclusion fallback."""
        github = MagicMock()
        github.get_repository.return_value = RepositoryInfo(full_name="o/r", default_branch="main")
        github.list_workflow_runs.return_value = [
            {
                "id": 5,
                "status": "completed",
                "conclusion": "success",
                "created_at": "2999-01-01T00:00:00Z",
            }
        ]
        github.list_run_jobs.return_value = []

        with patch("repograde.dynamic.actions.time.sleep"):
            result = run_actions_test("jest", "o", "r", "token", config, github=github)

        github.dispatch_workflow.assert_called_once_with("o", "r", "jest-test.yml", "main")
        assert result.success is True
        assert result.score == 90
        assert result.details["workflow"] == "jest-test.yml"

    def test_dynamic_record(self, fake_files, make_text, config) -> None:
        result = run_dynamic_test(
            "eslint", "octocat", "site", None, config,
            files=fake_files, text=make_text([WORKFLOW, REPORT]),
        )

        record = dynamic_record(result)

        assert record.owner == "octocat"
        assert record.repo == "site"
        assert record.test_type == "dynamic-eslint"
        assert record.overall_score == 88
        assert record.status == RecordStatus.COMPLETED
        assert record.results["eslint"]["status"] == "COMPLETED"
