"""AI-assisted workflow generation and quality reports."""

from repograde.dynamic.actions import ActionsRunner, RunSummary, WorkflowRun
from repograde.dynamic.orchestrator import (
    WorkflowOrchestrator,
    commit_workflow,
    validate_workflow,
    workflow_file_name,
)
from repograde.dynamic.parser import ReportParser

__all__ = [
    "ActionsRunner",
    "RunSummary",
    "WorkflowRun",
    "WorkflowOrchestrator",
    "ReportParser",
    "commit_workflow",
    "validate_workflow",
    "workflow_file_name",
]
