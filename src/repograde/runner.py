"""Entry points for running analyzers and the dynamic workflow flow.

These functions are the outward surface of the package: each takes the
caller's GitHub credential, builds its own collaborators from configuration
and converts every failure into a structured result. Nothing raised below
them escapes ``run_adapter``, ``run_full_test``, ``run_dynamic_test``,
``run_actions_test`` or ``commit_generated_workflow``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import ExitStack
from dataclasses import replace
from pathlib import Path
from typing import Any

from repograde.analyzers import ToolRegistry, get_registry, setup_default_adapters
from repograde.config import RepogradeConfig
from repograde.dynamic.actions import ActionsRunner
from repograde.dynamic.orchestrator import (
    WorkflowOrchestrator,
    commit_workflow,
    workflow_file_name,
)
from repograde.errors import ToolNotAvailableError
from repograde.full_test import FullTestRunner, full_test_score
from repograde.llm.client import create_client
from repograde.models.analysis import (
    AnalysisResult,
    CommitResult,
    DynamicTestResult,
    RecordStatus,
    TestingRecord,
)
from repograde.providers.base import RemoteFileProvider, TextGenerationProvider
from repograde.providers.github import GitHubClient
from repograde.scoring import grade, overall_score
from repograde.store import ResultStore

logger = logging.getLogger(__name__)


def default_registry() -> ToolRegistry:
    """Global registry, populated with the default adapters on first use."""
    registry = get_registry()
    if not registry.list_tools():
        setup_default_adapters(registry)
    return registry


def github_client(credential: str | None, config: RepogradeConfig) -> GitHubClient:
    """GitHub client authenticated with the caller's credential."""
    github = replace(config.github, token=credential or config.github.token)
    return GitHubClient(github, retry=config.retry)


def list_available_tests(registry: ToolRegistry | None = None) -> list[dict[str, Any]]:
    """Catalog (id, name, description, features, note) of every registered tool."""
    return (registry or default_registry()).catalog()


# =============================================================================
# Analyzer runs
# =============================================================================


def _analyze(
    tool: str,
    owner: str,
    repo: str,
    files: RemoteFileProvider,
    config: RepogradeConfig,
    registry: ToolRegistry,
) -> AnalysisResult:
    try:
        adapter = registry.create(tool, files, config)
    except ToolNotAvailableError as e:
        logger.error("Unknown tool %s: %s", tool, e)
        return AnalysisResult.failure(tool, f"{owner}/{repo}", str(e))
    return adapter.analyze(owner, repo)


def run_adapter(
    tool: str,
    owner: str,
    repo: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    files: RemoteFileProvider | None = None,
    registry: ToolRegistry | None = None,
) -> AnalysisResult:
    """Run one analyzer against a repository.

    Args:
        tool: Tool id (see ``list_available_tests``)
        owner: Repository owner
        repo: Repository name
        credential: GitHub token of the caller
        config: Configuration (defaults when None)
        files: Remote file provider to use instead of a GitHub client
        registry: Tool registry (global default registry when None)

    Returns:
        AnalysisResult; never raises
    """
    config = config or RepogradeConfig()
    registry = registry or default_registry()

    with ExitStack() as stack:
        if files is None:
            files = stack.enter_context(github_client(credential, config))
        return _analyze(tool, owner, repo, files, config, registry)


def result_entry(result: AnalysisResult) -> dict[str, Any]:
    """Per-tool entry stored in a TestingRecord."""
    if result.success:
        return {"status": RecordStatus.COMPLETED.value, **result.to_dict()}
    status = RecordStatus.NOT_CONFIGURED if result.message else RecordStatus.ERROR
    return {
        "status": status.value,
        "score": 0,
        "grade": result.grade.value,
        "message": result.message or result.error,
    }


def run_multiple(
    tools: list[str],
    owner: str,
    repo: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    files: RemoteFileProvider | None = None,
    registry: ToolRegistry | None = None,
    store: ResultStore | None = None,
) -> TestingRecord:
    """Run several analyzers concurrently and aggregate them into a record.

    A tool that fails is recorded with score 0 and the run continues. The
    overall score is the rounded mean of every tool's score; a record in
    which no tool succeeded has status ERROR.

    Args:
        tools: Tool ids (empty runs ``tools.default``)
        owner: Repository owner
        repo: Repository name
        credential: GitHub token of the caller
        config: Configuration (defaults when None)
        files: Remote file provider to use instead of a GitHub client
        registry: Tool registry (global default registry when None)
        store: Where to persist the record (``runner.save_results`` decides
            when None)

    Returns:
        TestingRecord with one entry per tool, in the requested order
    """
    config = config or RepogradeConfig()
    registry = registry or default_registry()
    selected = list(dict.fromkeys(tools or config.tools.default))
    logger.info("Running %d tools on %s/%s", len(selected), owner, repo)

    results: dict[str, AnalysisResult] = {}
    with ExitStack() as stack:
        if files is None:
            files = stack.enter_context(github_client(credential, config))

        workers = min(config.runner.max_workers, max(len(selected), 1))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_tool = {
                executor.submit(_analyze, tool, owner, repo, files, config, registry): tool
                for tool in selected
            }
            for future in as_completed(future_to_tool):
                tool = future_to_tool[future]
                try:
                    results[tool] = future.result()
                except Exception as e:
                    logger.error("%s crashed: %s", tool, e)
                    results[tool] = AnalysisResult.failure(tool, f"{owner}/{repo}", str(e))

    entries = {tool: result_entry(results[tool]) for tool in selected}
    overall = overall_score(entry["score"] for entry in entries.values())
    succeeded = any(results[tool].success for tool in selected)

    record = TestingRecord(
        owner=owner,
        repo=repo,
        test_type=selected[0] if len(selected) == 1 else "multiple",
        overall_score=overall,
        grade=grade(overall),
        status=RecordStatus.COMPLETED if succeeded else RecordStatus.ERROR,
        results=entries,
    )
    logger.info(
        "All tests completed for %s/%s with score %d (%s)",
        owner,
        repo,
        record.overall_score,
        record.grade.value,
    )

    _persist(record, config, store)
    return record


def _persist(record: TestingRecord, config: RepogradeConfig, store: ResultStore | None) -> None:
    if store is None and config.runner.save_results:
        store = ResultStore(Path(config.store.path))
    if store is not None:
        try:
            store.save(record)
        except OSError as e:
            logger.error("Could not save record %s: %s", record.id, e)


# =============================================================================
# Full test
# =============================================================================


def run_full_test(
    owner: str,
    repo: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    files: RemoteFileProvider | None = None,
    text: TextGenerationProvider | None = None,
    store: ResultStore | None = None,
) -> TestingRecord:
    """Run the heuristic full test and wrap it in a record.

    The AI review uses ``text``, or the configured LLM when one is enabled;
    without either it falls back to a neutral score.

    Args:
        owner: Repository owner
        repo: Repository name
        credential: GitHub token of the caller
        config: Configuration (defaults when None)
        files: Remote file provider to use instead of a GitHub client
        text: Text provider to use instead of the configured LLM
        store: Where to persist the record (``runner.save_results`` decides
            when None)

    Returns:
        TestingRecord of test type "full"; never raises
    """
    config = config or RepogradeConfig()

    if text is None and config.llm.enabled:
        try:
            text = create_client(config.llm, retry=config.retry)
        except ValueError as e:
            logger.warning("AI review disabled: %s", e)

    with ExitStack() as stack:
        if files is None:
            files = stack.enter_context(github_client(credential, config))
        results = FullTestRunner(files, text).run(owner, repo)

    overall = full_test_score(results)
    succeeded = any(result.success for result in results.values())
    record = TestingRecord(
        owner=owner,
        repo=repo,
        test_type="full",
        overall_score=overall,
        grade=grade(overall),
        status=RecordStatus.COMPLETED if succeeded else RecordStatus.ERROR,
        results={tool: result_entry(result) for tool, result in results.items()},
    )
    logger.info(
        "Test completed for %s/%s with score %d (%s)",
        owner,
        repo,
        record.overall_score,
        record.grade.value,
    )

    _persist(record, config, store)
    return record


# =============================================================================
# Dynamic workflow flow
# =============================================================================


def run_dynamic_test(
    test_type: str,
    owner: str,
    repo: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    files: RemoteFileProvider | None = None,
    text: TextGenerationProvider | None = None,
) -> DynamicTestResult:
    """Generate a CI workflow and an AI quality report for a repository.

    Nothing is written to the repository; commit the returned workflow with
    ``commit_generated_workflow``.

    Returns:
        DynamicTestResult; never raises
    """
    config = config or RepogradeConfig()

    if text is None:
        try:
            text = create_client(config.llm, retry=config.retry)
        except ValueError as e:
            logger.error("Dynamic %s test unavailable: %s", test_type, e)
            return DynamicTestResult(
                success=False,
                test_type=test_type,
                repository=f"{owner}/{repo}",
                conclusion="error",
                error=f"{e}. Configure the llm section to run dynamic tests.",
            )

    with ExitStack() as stack:
        if files is None:
            files = stack.enter_context(github_client(credential, config))
        return WorkflowOrchestrator(files, text).run(test_type, owner, repo)


def commit_generated_workflow(
    owner: str,
    repo: str,
    workflow_name: str,
    yaml: str,
    branch: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    files: RemoteFileProvider | None = None,
) -> CommitResult:
    """Write a generated workflow to ``.github/workflows/<workflow_name>``.

    Returns:
        CommitResult; never raises
    """
    config = config or RepogradeConfig()

    with ExitStack() as stack:
        if files is None:
            files = stack.enter_context(github_client(credential, config))
        return commit_workflow(files, owner, repo, workflow_name, yaml, branch)


def run_actions_test(
    test_type: str,
    owner: str,
    repo: str,
    credential: str | None,
    config: RepogradeConfig | None = None,
    *,
    workflow: str | None = None,
    github: GitHubClient | None = None,
    text: TextGenerationProvider | None = None,
) -> DynamicTestResult:
    """Run a committed workflow on GitHub Actions and summarize the outcome.

    The model summary is used when an LLM is configured; otherwise the score
    falls back to the run conclusion.

    Args:
        test_type: Test type the workflow was generated for
        owner: Repository owner
        repo: Repository name
        credential: GitHub token of the caller
        config: Configuration (defaults when None)
        workflow: Workflow file name (``<test_type>-test.yml`` when None)
        github: GitHub client to use instead of building one
        text: Text provider to use instead of the configured LLM

    Returns:
        DynamicTestResult; never raises
    """
    config = config or RepogradeConfig()
    workflow = workflow or workflow_file_name(test_type)

    if text is None and config.llm.enabled:
        text = create_client(config.llm, retry=config.retry)

    with ExitStack() as stack:
        if github is None:
            github = stack.enter_context(github_client(credential, config))
        return ActionsRunner(github, text).run(test_type, owner, repo, workflow)


def dynamic_record(result: DynamicTestResult) -> TestingRecord:
    """Wrap a dynamic run in a TestingRecord for the history store."""
    owner, _, repo = result.repository.partition("/")
    entry = result.to_dict()
    entry["status"] = (
        RecordStatus.COMPLETED.value if result.success else RecordStatus.ERROR.value
    )
    return TestingRecord(
        owner=owner,
        repo=repo,
        test_type=f"dynamic-{result.test_type}",
        overall_score=result.score,
        grade=result.grade,
        status=RecordStatus.COMPLETED if result.success else RecordStatus.ERROR,
        results={result.test_type: entry},
    )
