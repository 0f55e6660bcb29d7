"""Integration tests for ActionsRunner with a mocked GitHub API."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from repograde.config import GitHubConfig, RetryConfig
from repograde.dynamic.actions import ActionsRunner, WorkflowRun
from repograde.llm.client import LLMError
from repograde.providers.github import GitHubClient
from repograde.scoring import Grade

JOBS = {
    "jobs": [
        {
            "name": "lint",
            "status": "completed",
            "conclusion": "success",
            "steps": [
                {"name": "Checkout", "status": "completed", "conclusion": "success", "number": 1},
                {"name": "Run ESLint", "status": "completed", "conclusion": "success", "number": 2},
            ],
        }
    ]
}


DISPATCHED_AT = datetime(2026, 3, 1, 12, 0, 0, 250000, tzinfo=UTC)

PREVIOUS_RUN = {
    "id": 41,
    "status": "completed",
    "conclusion": "failure",
    "html_url": "https://github.com/o/r/actions/runs/41",
    "created_at": "2026-03-01T11:00:00Z",
}


def run_payload(status: str, conclusion: str | None = None) -> dict:
    return {
        "workflow_runs": [
            {
                "id": 42,
                "status": status,
                "conclusion": conclusion,
                "html_url": "https://github.com/o/r/actions/runs/42",
                "created_at": "2026-03-01T12:00:00Z",
            },
            PREVIOUS_RUN,
        ]
    }


class FakeActionsAPI:
    """Routes Actions endpoints; runs complete after ``pending`` polls.

    With ``unregistered`` polls, only the previous run is listed at first.
    """

    def __init__(
        self,
        pending: int = 1,
        conclusion: str = "success",
        dispatch_status: int = 204,
        unregistered: int = 0,
    ):
        self.pending = pending
        self.unregistered = unregistered
        self.conclusion = conclusion
        self.dispatch_status = dispatch_status
        self.polls = 0
        self.per_page: str | None = None
        self.dispatched: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/repos/o/r":
            return httpx.Response(200, json={"full_name": "o/r", "default_branch": "trunk"})
        if path.endswith("/dispatches"):
            self.dispatched.append(json.loads(request.content))
            if self.dispatch_status >= 400:
                return httpx.Response(self.dispatch_status, json={"message": "Workflow does not have 'workflow_dispatch' trigger"})
            return httpx.Response(self.dispatch_status)
        if path.endswith("/eslint-test.yml/runs"):
            self.polls += 1
            self.per_page = request.url.params.get("per_page")
            if self.polls <= self.unregistered:
                return httpx.Response(200, json={"workflow_runs": [PREVIOUS_RUN]})
            if self.polls <= self.unregistered + self.pending:
                return httpx.Response(200, json=run_payload("in_progress"))
            return httpx.Response(200, json=run_payload("completed", self.conclusion))
        if path.endswith("/runs/42/jobs"):
            return httpx.Response(200, json=JOBS)
        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def sleeps() -> list[float]:
    return []


def make_runner(api: FakeActionsAPI, sleeps: list[float], text=None, max_wait: float = 0.1):
    github = GitHubClient(
        GitHubConfig(token="t"),
        retry=RetryConfig(attempts=1, min_wait=0, max_wait=0),
        transport=httpx.MockTransport(api),
    )
    return ActionsRunner(
        github,
        text,
        poll_interval=1,
        max_wait_minutes=max_wait,
        sleep=sleeps.append,
        clock=lambda: DISPATCHED_AT,
    )


class TestActionsRunner:
    """Tests for the dispatch, poll and summarize cycle."""

    def test_successful_run_without_model(self, sleeps: list[float]) -> None:
        """Test a green run scores 90 without a model."""
        api = FakeActionsAPI(pending=2)

        result = make_runner(api, sleeps).run("eslint", "o", "r", "eslint-test.yml")

        assert api.dispatched == [{"ref": "trunk"}]
        assert api.polls == 3
        assert result.success is True
        assert result.conclusion == "success"
        assert result.score == 90
        assert result.grade == Grade.A_MINUS
        assert result.analysis == "Tests passed successfully! No issues detected."
        assert result.details["run_id"] == 42
        assert result.details["run_url"] == "https://github.com/o/r/actions/runs/42"
        assert result.details["jobs"][0]["steps"][1]["name"] == "Run ESLint"
        # one settle delay plus two poll intervals
        assert sleeps == [1, 1, 1]

    def test_failed_run_without_model(self, sleeps: list[float]) -> None:
        result = make_runner(FakeActionsAPI(pending=0, conclusion="failure"), sleeps).run(
            "eslint", "o", "r", "eslint-test.yml"
        )

        assert result.success is True
        assert result.conclusion == "failure"
        assert result.score == 30
        assert result.grade == Grade.F

    def test_model_summary(self, sleeps: list[float], make_text) -> None:
        """Test the first score in the model's answer is used."""
        text = make_text(["Overall score: 72. ESLint passed with warnings."])

        result = make_runner(FakeActionsAPI(pending=0), sleeps, text).run(
            "eslint", "o", "r", "eslint-test.yml"
        )

        assert result.score == 72
        assert result.grade == Grade.C_MINUS
        assert result.analysis.startswith("Overall score: 72")
        assert "Run ESLint" in text.calls[0]["user_prompt"]

    def test_model_failure_falls_back(self, sleeps: list[float], make_text) -> None:
        text = make_text([LLMError("down")])

        result = make_runner(FakeActionsAPI(pending=0), sleeps, text).run(
            "eslint", "o", "r", "eslint-test.yml"
        )

        assert result.success is True
        assert result.score == 90

    def test_timeout(self, sleeps: list[float]) -> None:
        """Test a run still in progress at the deadline."""
        api = FakeActionsAPI(pending=100)

        result = make_runner(api, sleeps, max_wait=0.05).run("eslint", "o", "r", "eslint-test.yml")

        assert result.success is False
        assert result.conclusion == "timeout"
        assert result.error == "Workflow eslint-test.yml did not complete within 0.05 minutes"
        assert api.polls == 3

    def test_previous_run_ignored(self, sleeps: list[float]) -> None:
        """Test a completed run from before the dispatch is not picked up."""
        api = FakeActionsAPI(pending=0, unregistered=2)

        result = make_runner(api, sleeps).run("eslint", "o", "r", "eslint-test.yml")

        assert api.polls == 3
        assert api.per_page == "5"
        assert result.conclusion == "success"
        assert result.details["run_id"] == 42

    def test_dispatch_rejected(self, sleeps: list[float]) -> None:
        api = FakeActionsAPI(dispatch_status=422)

        result = make_runner(api, sleeps).run("eslint", "o", "r", "eslint-test.yml")

        assert result.success is False
        assert result.conclusion == "error"
        assert "workflow_dispatch" in (result.error or "")
        assert api.polls == 0


class TestWorkflowRun:
    def test_from_api(self) -> None:
        run = WorkflowRun.from_api({"id": "7", "status": "queued"})

        assert run.id == 7
        assert run.completed is False

    def test_created_since(self) -> None:
        """Test creation times compare at second precision."""
        run = WorkflowRun.from_api({"id": 1, "status": "queued", "created_at": "2026-03-01T12:00:00Z"})

        assert run.created_since(DISPATCHED_AT) is True
        assert run.created_since(datetime(2026, 3, 1, 12, 0, 1, tzinfo=UTC)) is False

    def test_created_since_unknown(self) -> None:
        assert WorkflowRun.from_api({"id": 1, "status": "queued"}).created_since(DISPATCHED_AT) is False
        bad = WorkflowRun.from_api({"id": 1, "status": "queued", "created_at": "yesterday"})
        assert bad.created_since(DISPATCHED_AT) is False
