"""Analysis result entities.

This module contains the result shapes shared by every tool run:
- Issue: One normalized finding
- ResultMetadata: Tool, timestamp and repository of a run
- AnalysisResult: Normalized output of a single analyzer adapter
- RunState: Steps of the dynamic workflow flow
- WorkflowArtifact / DynamicTestResult / CommitResult: dynamic flow outputs
- ParseResult: Tagged parse of an LLM quality report
- TestingRecord: Persistence envelope for one or more tool results
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from repograde.scoring import Grade, grade


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(UTC).isoformat()


@dataclass
class Issue:
    """Single normalized finding reported by a tool.

    Attributes:
        file: File path relative to the repository root
        message: Tool message
        severity: error/warning for linters, critical/high/moderate/low for audits
        line: 1-based line number when known
        column: 1-based column number when known
        rule_id: Rule identifier reported by the tool
        suggestion: Remediation text
        fix_title: Short remediation title (never empty)
        package: Package name for dependency findings
        category: Optional classification (e.g. "Colors", "Structure")
    """

    file: str
    message: str
    severity: str
    line: int | None = None
    column: int | None = None
    rule_id: str | None = None
    suggestion: str = ""
    fix_title: str = "Fix this issue"
    package: str | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        """Drop non-positive positions some tools report for file-level findings."""
        if self.line is not None and self.line < 1:
            self.line = None
        if self.column is not None and self.column < 1:
            self.column = None
        if not self.fix_title:
            self.fix_title = "Fix this issue"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "rule_id": self.rule_id,
            "severity": self.severity,
            "suggestion": self.suggestion,
            "fix_title": self.fix_title,
            "package": self.package,
            "category": self.category,
        }


@dataclass
class ResultMetadata:
    """Where and when a result was produced."""

    tool: str
    repository: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "timestamp": self.timestamp,
            "repository": self.repository,
        }


@dataclass
class AnalysisResult:
    """Normalized output of one analyzer adapter run.

    Attributes:
        success: Whether the tool ran and produced findings
        score: Score in [0, 100]
        grade: Letter grade, always ``grade(score)``
        files_analyzed: Number of files the tool looked at
        issues: Findings in discovery order (capped per tool)
        summary: True totals (not the capped list length)
        headline: One-line human summary of the findings
        metadata: Tool, timestamp and repository
        message: Explanation for not-applicable outcomes
        error: Failure description
        details: Tool-specific extras
    """

    success: bool
    score: int
    grade: Grade
    metadata: ResultMetadata
    files_analyzed: int = 0
    issues: list[Issue] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)
    headline: str = ""
    message: str | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def scored(
        cls,
        tool: str,
        repository: str,
        score: int,
        files_analyzed: int,
        issues: list[Issue],
        summary: dict[str, int],
        details: dict[str, Any] | None = None,
        headline: str = "",
    ) -> "AnalysisResult":
        """Build a successful result; the grade is derived from the score."""
        return cls(
            success=True,
            score=score,
            grade=grade(score),
            metadata=ResultMetadata(tool=tool, repository=repository),
            files_analyzed=files_analyzed,
            issues=issues,
            summary=summary,
            headline=headline,
            details=details or {},
        )

    @classmethod
    def not_applicable(cls, tool: str, repository: str, message: str) -> "AnalysisResult":
        """Build a result for a repository the tool has nothing to check in."""
        return cls(
            success=False,
            score=0,
            grade=Grade.F,
            metadata=ResultMetadata(tool=tool, repository=repository),
            message=message,
        )

    @classmethod
    def failure(cls, tool: str, repository: str, error: str) -> "AnalysisResult":
        """Build a structured failure result."""
        return cls(
            success=False,
            score=0,
            grade=Grade.F,
            metadata=ResultMetadata(tool=tool, repository=repository),
            error=error,
        )

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "score": self.score,
            "grade": self.grade.value,
            "files_analyzed": self.files_analyzed,
            "issues": [i.to_dict() for i in self.issues],
            "summary": dict(self.summary),
            "headline": self.headline,
            "metadata": self.metadata.to_dict(),
            "message": self.message,
            "error": self.error,
            "details": self.details,
        }


class RunState(Enum):
    """Steps of a dynamic workflow run."""

    GENERATING_WORKFLOW = "generating_workflow"
    FETCHING_FILES = "fetching_files"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class WorkflowArtifact:
    """Generated CI workflow, handed back for an explicit commit."""

    yaml: str
    workflow_name: str
    default_branch: str
    can_commit: bool = True

    @property
    def path(self) -> str:
        return f".github/workflows/{self.workflow_name}"


@dataclass
class DynamicTestResult:
    """Outcome of one dynamic workflow run."""

    success: bool
    test_type: str
    repository: str
    conclusion: str = "failure"
    score: int = 0
    grade: Grade = Grade.F
    analysis: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    workflow: WorkflowArtifact | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def yaml(self) -> str | None:
        return self.workflow.yaml if self.workflow else None

    @property
    def workflow_name(self) -> str | None:
        return self.workflow.workflow_name if self.workflow else None

    @property
    def default_branch(self) -> str | None:
        return self.workflow.default_branch if self.workflow else None

    @property
    def can_commit(self) -> bool:
        return self.workflow is not None and self.workflow.can_commit

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "test_type": self.test_type,
            "repository": self.repository,
            "conclusion": self.conclusion,
            "score": self.score,
            "grade": self.grade.value,
            "analysis": self.analysis,
            "details": self.details,
            "yaml": self.yaml,
            "workflow_name": self.workflow_name,
            "default_branch": self.default_branch,
            "can_commit": self.can_commit,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass
class CommitResult:
    """Outcome of writing a generated workflow to the repository."""

    success: bool
    path: str
    message: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "path": self.path,
            "message": self.message,
            "error": self.error,
        }


@dataclass
class ParseResult:
    """Tagged parse of a semi-structured LLM quality report.

    ``grade`` is the text the model wrote after ``GRADE:``; it is kept for
    display only and never used as the result grade.
    """

    raw: str
    score: int | None = None
    grade: str | None = None
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    analysis: str | None = None
    generated_config: str | None = None
    total_issues: int = 0


class RecordStatus(Enum):
    """Status of a persisted testing record."""

    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    RUNNING = "RUNNING"


@dataclass
class TestingRecord:
    """Persistence envelope for one testing session.

    Attributes:
        owner: Repository owner
        repo: Repository name
        test_type: Tool id, "multiple", "full" or "dynamic-<type>"
        overall_score: Rounded mean of the per-tool scores
        grade: ``grade(overall_score)``
        status: Record status
        results: Per-tool result dictionaries keyed by tool id
        id: Record identifier
        created_at: ISO-8601 UTC creation time
    """

    __test__ = False  # not a pytest test class

    owner: str
    repo: str
    test_type: str
    overall_score: int
    grade: Grade
    status: RecordStatus = RecordStatus.COMPLETED
    results: dict[str, dict[str, Any]] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=utc_timestamp)

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "owner": self.owner,
            "repo": self.repo,
            "test_type": self.test_type,
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "status": self.status.value,
            "results": self.results,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestingRecord":
        """Create TestingRecord from its serialized form."""
        return cls(
            id=str(data["id"]),
            owner=str(data["owner"]),
            repo=str(data["repo"]),
            test_type=str(data.get("test_type", "custom")),
            overall_score=int(data.get("overall_score", 0)),
            grade=Grade(data.get("grade", Grade.F.value)),
            status=RecordStatus(data.get("status", RecordStatus.COMPLETED.value)),
            results=dict(data.get("results", {})),
            created_at=str(data.get("created_at", "")),
        )
