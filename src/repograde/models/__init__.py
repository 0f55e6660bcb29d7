"""repograde data models.

This module exports the core entities used throughout the application:
- RepoRef / RepoEntry / RepositoryInfo: GitHub repository references
- Issue / AnalysisResult: Normalized analyzer output
- DynamicTestResult / WorkflowArtifact / CommitResult: Dynamic flow output
- TestingRecord: Persisted testing session
"""

from repograde.models.analysis import (
    AnalysisResult,
    CommitResult,
    DynamicTestResult,
    Issue,
    ParseResult,
    RecordStatus,
    ResultMetadata,
    RunState,
    TestingRecord,
    WorkflowArtifact,
)
from repograde.models.repository import RepoEntry, RepoRef, RepositoryInfo, SourceFile

__all__ = [
    "RepoRef",
    "RepoEntry",
    "RepositoryInfo",
    "SourceFile",
    "Issue",
    "ResultMetadata",
    "AnalysisResult",
    "RunState",
    "WorkflowArtifact",
    "DynamicTestResult",
    "CommitResult",
    "ParseResult",
    "RecordStatus",
    "TestingRecord",
]
