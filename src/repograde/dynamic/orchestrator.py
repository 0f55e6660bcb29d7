"""Dynamic workflow orchestrator.

Drives a text-generation provider through one run:

    GENERATING_WORKFLOW -> FETCHING_FILES -> ANALYZING -> DONE | FAILED

The run writes nothing to the repository. The generated workflow comes back
as an artifact; committing it is the separate ``commit_workflow`` step.
"""

import logging
import re
from itertools import islice

from repograde.dynamic.parser import ReportParser, effective_score
from repograde.errors import MalformedProviderOutputError, UpstreamUnavailableError
from repograde.llm.prompts import (
    ANALYSIS_SAMPLING,
    ANALYSIS_SYSTEM_PROMPT,
    WORKFLOW_SAMPLING,
    WORKFLOW_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_workflow_prompt,
)
from repograde.models.analysis import (
    CommitResult,
    DynamicTestResult,
    RunState,
    WorkflowArtifact,
)
from repograde.models.repository import RepoEntry, SourceFile
from repograde.providers.base import (
    RemoteFileProvider,
    TextGenerationProvider,
    walk_repository,
)
from repograde.scoring import Grade, conclusion_for, grade

logger = logging.getLogger(__name__)

SAMPLE_EXTENSIONS = frozenset(
    {"js", "jsx", "ts", "tsx", "json", "html", "css", "md", "py", "java"}
)
MAX_SAMPLE_FILES = 20
MAX_SAMPLE_CHARS = 5000

# Outcome when the repository has no file worth sampling
NO_FILES_SCORE = 50
NO_FILES_GRADE = Grade.D

WORKFLOW_PREFIX = "name:"
_FENCE_RE = re.compile(r"```[A-Za-z]*\n?")


def workflow_file_name(test_type: str) -> str:
    """File name of the workflow generated for a test type."""
    return f"{test_type}-test.yml"


def workflow_path(workflow_name: str) -> str:
    return f".github/workflows/{workflow_name}"


def clean_workflow_text(text: str) -> str:
    """Strip code fences and surrounding whitespace from generated YAML."""
    return _FENCE_RE.sub("", text).strip()


def validate_workflow(text: str) -> str:
    """Accept workflow text only when it starts with ``name:``.

    Raises:
        MalformedProviderOutputError: If the text fails the prefix check
    """
    if not text.startswith(WORKFLOW_PREFIX):
        raise MalformedProviderOutputError(
            f"Invalid YAML generated: workflow must start with '{WORKFLOW_PREFIX}'"
        )
    return text


class WorkflowOrchestrator:
    """Runs the AI-assisted workflow generation and quality report flow.

    Example:
        orchestrator = WorkflowOrchestrator(github, llm)
        result = orchestrator.run("eslint", "octocat", "hello-world")
        if result.success and result.can_commit:
            commit_workflow(github, "octocat", "hello-world",
                            result.workflow_name, result.yaml,
                            result.default_branch)
    """

    def __init__(
        self,
        files: RemoteFileProvider,
        text: TextGenerationProvider,
        parser: ReportParser | None = None,
        max_files: int = MAX_SAMPLE_FILES,
        max_chars: int = MAX_SAMPLE_CHARS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            files: Repository access
            text: Text generation
            parser: Report parser (default limits when None)
            max_files: Most files sampled for analysis
            max_chars: Characters kept per sampled file
        """
        self.files = files
        self.text = text
        self.parser = parser or ReportParser()
        self.max_files = max_files
        self.max_chars = max_chars

    def run(self, test_type: str, owner: str, repo: str) -> DynamicTestResult:
        """Execute one run; never raises.

        Args:
            test_type: Requested test type (eslint, jest, security, ...)
            owner: Repository owner
            repo: Repository name

        Returns:
            DynamicTestResult (``success=False`` with ``error`` on failure)
        """
        repository = f"{owner}/{repo}"
        states: list[str] = []

        def enter(state: RunState) -> None:
            states.append(state.value)
            logger.debug("%s %s: %s", test_type, repository, state.value)

        logger.info("Starting dynamic %s test for %s", test_type, repository)

        try:
            enter(RunState.GENERATING_WORKFLOW)
            info = self.files.get_repository(owner, repo)
            artifact = self.generate_workflow(
                test_type, owner, repo, info.default_branch
            )

            enter(RunState.FETCHING_FILES)
            samples = self.fetch_samples(owner, repo)

            enter(RunState.ANALYZING)
            if not samples:
                logger.warning("No code files found in %s", repository)
                enter(RunState.DONE)
                return DynamicTestResult(
                    success=True,
                    test_type=test_type,
                    repository=repository,
                    conclusion="warning",
                    score=NO_FILES_SCORE,
                    grade=NO_FILES_GRADE,
                    analysis="No code files found in repository to analyze.",
                    details={"files_analyzed": 0, "states": states},
                    workflow=artifact,
                )

            result = self._analyze(test_type, owner, repo, samples)
            result.workflow = artifact
            enter(RunState.DONE)
            result.details["states"] = states
            logger.info(
                "Dynamic %s test for %s: score %d (%s)",
                test_type,
                repository,
                result.score,
                result.conclusion,
            )
            return result

        except Exception as e:
            enter(RunState.FAILED)
            logger.error("Dynamic %s test for %s failed: %s", test_type, repository, e)
            return DynamicTestResult(
                success=False,
                test_type=test_type,
                repository=repository,
                conclusion="error",
                error=str(e),
                details={"states": states},
            )

    def generate_workflow(
        self,
        test_type: str,
        owner: str,
        repo: str,
        default_branch: str,
    ) -> WorkflowArtifact:
        """Ask the model for a CI workflow and validate it.

        Raises:
            MalformedProviderOutputError: If the output lacks the ``name:`` prefix
            UpstreamUnavailableError: If a provider call fails
        """
        root = self.files.fetch_listing(owner, repo)
        file_names = [entry.name for entry in root if entry.is_file]
        has_package_json = any(entry.name == "package.json" for entry in root)

        prompt = build_workflow_prompt(
            owner, repo, test_type, file_names, has_package_json
        )
        raw = self.text.generate_text(
            WORKFLOW_SYSTEM_PROMPT,
            prompt,
            temperature=WORKFLOW_SAMPLING.temperature,
            max_tokens=WORKFLOW_SAMPLING.max_tokens,
        )
        workflow = validate_workflow(clean_workflow_text(raw))

        return WorkflowArtifact(
            yaml=workflow,
            workflow_name=workflow_file_name(test_type),
            default_branch=default_branch,
            can_commit=True,
        )

    def _sample_candidates(self, owner: str, repo: str) -> list[RepoEntry]:
        candidates = (
            entry
            for entry in walk_repository(self.files, owner, repo)
            if entry.extension in SAMPLE_EXTENSIONS
        )
        return list(islice(candidates, self.max_files))

    def fetch_samples(self, owner: str, repo: str) -> list[SourceFile]:
        """Download up to ``max_files`` files, skipping any that fail."""
        samples: list[SourceFile] = []
        candidates = self._sample_candidates(owner, repo)
        logger.info("Fetching %d files from %s/%s", len(candidates), owner, repo)

        for entry in candidates:
            try:
                content = self.files.fetch_file_content(owner, repo, entry.path)
            except UpstreamUnavailableError as e:
                logger.warning("Failed to fetch %s: %s", entry.path, e)
                continue
            if not content:
                continue
            samples.append(
                SourceFile(
                    path=entry.path,
                    name=entry.name,
                    content=content[: self.max_chars],
                    size=len(content),
                )
            )

        return samples

    def _analyze(
        self,
        test_type: str,
        owner: str,
        repo: str,
        samples: list[SourceFile],
    ) -> DynamicTestResult:
        prompt = build_analysis_prompt(owner, repo, test_type, samples)
        raw = self.text.generate_text(
            ANALYSIS_SYSTEM_PROMPT,
            prompt,
            temperature=ANALYSIS_SAMPLING.temperature,
            max_tokens=ANALYSIS_SAMPLING.max_tokens,
        )
        parsed = self.parser.parse(raw)
        score = effective_score(parsed)

        return DynamicTestResult(
            success=True,
            test_type=test_type,
            repository=f"{owner}/{repo}",
            conclusion=conclusion_for(score),
            score=score,
            grade=grade(score),
            analysis=parsed.analysis or "",
            details={
                "files_analyzed": len(samples),
                "test_type": test_type,
                "issues": parsed.issues,
                "recommendations": parsed.recommendations,
                "total_issues": parsed.total_issues,
                "generated_config": parsed.generated_config,
                "reported_grade": parsed.grade,
                "score_reported": parsed.score is not None,
            },
        )


def commit_workflow(
    files: RemoteFileProvider,
    owner: str,
    repo: str,
    workflow_name: str,
    yaml: str,
    branch: str,
) -> CommitResult:
    """Write a generated workflow to ``.github/workflows/<name>``.

    Updates in place when the file already exists on ``branch``. Never
    retried and never raises.

    Returns:
        CommitResult; failures carry a write-access hint
    """
    path = workflow_path(workflow_name)
    logger.info("Committing workflow %s to %s/%s (%s)", workflow_name, owner, repo, branch)

    try:
        if not workflow_name or "/" in workflow_name:
            raise ValueError(f"Invalid workflow name: {workflow_name!r}")
        validate_workflow(yaml.strip())

        prior_sha = files.get_file_sha(owner, repo, path, branch)
        if prior_sha:
            logger.debug("Workflow exists, updating sha %s", prior_sha)

        committed = files.write_file(
            owner,
            repo,
            path,
            yaml.strip() + "\n",
            branch,
            f"Add {workflow_name} workflow for automated testing",
            prior_sha=prior_sha,
        )
    except Exception as e:
        logger.error("Commit of %s to %s/%s failed: %s", workflow_name, owner, repo, e)
        return CommitResult(
            success=False,
            path=path,
            error=(
                f"Failed to commit workflow: {e}. "
                f"Make sure you have write access to {owner}/{repo}."
            ),
        )

    return CommitResult(
        success=True,
        path=committed,
        message="Workflow committed successfully to GitHub",
    )
