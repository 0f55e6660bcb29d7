"""GitHub Actions runner for committed workflows.

Triggers a workflow through ``workflow_dispatch``, polls until the run it
created completes (runs created before the dispatch are ignored) and asks
the model to assess the job and step conclusions.
"""

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from repograde.errors import UpstreamUnavailableError
from repograde.llm.prompts import (
    RUN_SUMMARY_SAMPLING,
    RUN_SUMMARY_SYSTEM_PROMPT,
    build_run_summary_prompt,
)
from repograde.models.analysis import DynamicTestResult
from repograde.providers.base import TextGenerationProvider
from repograde.providers.github import GitHubClient
from repograde.scoring import Grade, clamp_score, grade

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10.0
MAX_WAIT_MINUTES = 5
# Recent runs inspected when looking for the dispatched one
RUNS_PER_POLL = 5

_SCORE_RE = re.compile(r"score[:\s]+(\d+)", re.IGNORECASE)


@dataclass
class WorkflowRun:
    """A single GitHub Actions workflow run."""

    id: int
    status: str
    conclusion: str | None = None
    html_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    def created_since(self, moment: datetime) -> bool:
        """Whether the run was created at or after ``moment`` (False when unknown)."""
        if not self.created_at:
            return False
        try:
            created = datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))
        except ValueError:
            return False
        return created >= moment.replace(microsecond=0)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "WorkflowRun":
        return cls(
            id=int(data["id"]),
            status=str(data.get("status", "")),
            conclusion=data.get("conclusion"),
            html_url=data.get("html_url"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class RunSummary:
    """Model assessment of a finished run."""

    analysis: str
    score: int
    grade: Grade
    jobs: list[dict[str, Any]] = field(default_factory=list)


class ActionsRunner:
    """Dispatches and monitors workflows on GitHub Actions."""

    def __init__(
        self,
        github: GitHubClient,
        text: TextGenerationProvider | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_wait_minutes: float = MAX_WAIT_MINUTES,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.github = github
        self.text = text
        self.poll_interval = poll_interval
        self.max_wait_minutes = max_wait_minutes
        self._sleep = sleep or time.sleep
        self._clock = clock or (lambda: datetime.now(UTC))

    def trigger_workflow(self, owner: str, repo: str, workflow: str, branch: str) -> None:
        """Create a workflow_dispatch event on ``branch``.

        Raises:
            GitHubError: If the dispatch is rejected
        """
        logger.info("Triggering workflow %s on %s/%s@%s", workflow, owner, repo, branch)
        self.github.dispatch_workflow(owner, repo, workflow, branch)

    def latest_run(
        self,
        owner: str,
        repo: str,
        workflow: str,
        created_after: datetime | None = None,
    ) -> WorkflowRun | None:
        """Newest run of ``workflow``, optionally only one created after a moment."""
        runs = self.github.list_workflow_runs(owner, repo, workflow, per_page=RUNS_PER_POLL)
        for data in runs:
            run = WorkflowRun.from_api(data)
            if created_after is None or run.created_since(created_after):
                return run
        return None

    def wait_for_completion(
        self,
        owner: str,
        repo: str,
        workflow: str,
        created_after: datetime | None = None,
    ) -> WorkflowRun | None:
        """Poll the latest run until it completes.

        Args:
            owner: Repository owner
            repo: Repository name
            workflow: Workflow file name
            created_after: Ignore runs created before this moment

        Returns:
            The completed run, or None when it is still running at the deadline
        """
        attempts = max(1, int(self.max_wait_minutes * 60 / self.poll_interval))
        for attempt in range(attempts):
            try:
                run = self.latest_run(owner, repo, workflow, created_after)
            except UpstreamUnavailableError as e:
                logger.warning("Polling %s failed: %s", workflow, e)
                run = None
            if run is not None and run.completed:
                return run
            if attempt < attempts - 1:
                self._sleep(self.poll_interval)

        logger.warning(
            "Workflow %s still running after %s minutes", workflow, self.max_wait_minutes
        )
        return None

    def run_jobs(self, owner: str, repo: str, run_id: int) -> list[dict[str, Any]]:
        """Job and step conclusions of a run."""
        jobs = []
        for job in self.github.list_run_jobs(owner, repo, run_id):
            jobs.append(
                {
                    "name": job.get("name", ""),
                    "status": job.get("status"),
                    "conclusion": job.get("conclusion"),
                    "steps": [
                        {
                            "name": step.get("name", ""),
                            "status": step.get("status"),
                            "conclusion": step.get("conclusion"),
                            "number": step.get("number"),
                        }
                        for step in job.get("steps") or []
                    ],
                }
            )
        return jobs

    def summarize_run(
        self,
        test_type: str,
        conclusion: str,
        jobs: list[dict[str, Any]],
    ) -> RunSummary:
        """Assess a run with the model, falling back to the run conclusion.

        The score is the first ``score: N`` in the model's answer; without one
        (or without a model) a successful run scores 90 and any other 30.
        """
        fallback = 90 if conclusion == "success" else 30
        analysis = (
            "Tests passed successfully! No issues detected."
            if conclusion == "success"
            else "Tests failed. Check the workflow logs for details."
        )
        score = fallback

        if self.text is not None:
            try:
                analysis = self.text.generate_text(
                    RUN_SUMMARY_SYSTEM_PROMPT,
                    build_run_summary_prompt(test_type, conclusion, jobs),
                    temperature=RUN_SUMMARY_SAMPLING.temperature,
                    max_tokens=RUN_SUMMARY_SAMPLING.max_tokens,
                ) or "Analysis completed."
                match = _SCORE_RE.search(analysis)
                score = clamp_score(int(match.group(1))) if match else fallback
            except UpstreamUnavailableError as e:
                logger.warning("Run summary failed, using conclusion: %s", e)

        return RunSummary(analysis=analysis, score=score, grade=grade(score), jobs=jobs)

    def run(self, test_type: str, owner: str, repo: str, workflow: str) -> DynamicTestResult:
        """Trigger a committed workflow, wait for it and summarize the run.

        Never raises; failures come back as ``success=False`` results.
        """
        repository = f"{owner}/{repo}"
        try:
            branch = self.github.get_repository(owner, repo).default_branch
            dispatched_at = self._clock()
            self.trigger_workflow(owner, repo, workflow, branch)
            # Give GitHub a moment to register the dispatched run
            self._sleep(self.poll_interval)

            run = self.wait_for_completion(owner, repo, workflow, dispatched_at)
            if run is None:
                return DynamicTestResult(
                    success=False,
                    test_type=test_type,
                    repository=repository,
                    conclusion="timeout",
                    error=(
                        f"Workflow {workflow} did not complete within "
                        f"{self.max_wait_minutes} minutes"
                    ),
                )

            conclusion = run.conclusion or "failure"
            jobs = self.run_jobs(owner, repo, run.id)
            summary = self.summarize_run(test_type, conclusion, jobs)
        except UpstreamUnavailableError as e:
            logger.error("Actions run of %s on %s failed: %s", workflow, repository, e)
            return DynamicTestResult(
                success=False,
                test_type=test_type,
                repository=repository,
                conclusion="error",
                error=str(e),
            )

        return DynamicTestResult(
            success=True,
            test_type=test_type,
            repository=repository,
            conclusion=conclusion,
            score=summary.score,
            grade=summary.grade,
            analysis=summary.analysis,
            details={
                "workflow": workflow,
                "run_id": run.id,
                "run_url": run.html_url,
                "jobs": jobs,
            },
        )
