"""Codacy adapter.

Scores the repository by the grade Codacy assigned it and lists the issues
Codacy reports.
"""

import logging
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path
from typing import Any

from repograde.analyzers.base import AnalyzerAdapter, top_files
from repograde.config import RepogradeConfig
from repograde.errors import NotApplicableError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.providers.base import RemoteFileProvider
from repograde.providers.codacy import CodacyClient
from repograde.scoring import codacy_score
from repograde.suggestions import suggest

logger = logging.getLogger(__name__)

MAX_ISSUES = 100

SEVERITY_MAP: dict[str, str] = {
    "Error": "error",
    "Warning": "warning",
    "Info": "info",
}


def _grade_letter(analysis: dict[str, Any]) -> str | None:
    letter = analysis.get("gradeLetter") or analysis.get("grade")
    if isinstance(letter, str) and letter.strip():
        return letter.strip().upper()
    return None


def _coverage(data: dict[str, Any] | None) -> dict[str, Any] | None:
    if not data:
        return None
    return {
        "percentage": data.get("coverage") or 0,
        "covered_lines": data.get("coveredLines") or 0,
        "total_lines": data.get("totalLines") or 0,
    }


class CodacyAdapter(AnalyzerAdapter):
    """Repository grade and issues from Codacy."""

    tool_id = "codacy"
    display_name = "Codacy"
    description = "Quality grade and issues reported by Codacy"
    features = ("Repository grade", "Issue list by severity", "Coverage summary")
    note = "Needs codacy.token and the repository added to Codacy"
    requires_workdir = False

    def __init__(
        self,
        files: RemoteFileProvider,
        config: RepogradeConfig | None = None,
        client: CodacyClient | None = None,
    ) -> None:
        super().__init__(files, config)
        self._client = client

    def check_available(self) -> bool:
        return self._client is not None or bool(self.config.codacy.token)

    def get_version(self) -> str | None:
        return None

    def _open_client(self) -> AbstractContextManager[CodacyClient]:
        if self._client is not None:
            return nullcontext(self._client)
        if not self.config.codacy.token:
            raise NotApplicableError("Codacy API token not configured (codacy.token)")
        return CodacyClient(self.config.codacy, retry=self.config.retry)

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        with self._open_client() as client:
            analysis = client.repository_analysis(owner, repo)
            if analysis is None:
                raise NotApplicableError(
                    f"Repository not found on Codacy. Please add {owner}/{repo} to Codacy first."
                )
            letter = _grade_letter(analysis)
            if letter is None:
                raise NotApplicableError("Codacy has not graded this repository yet")

            raw_issues = client.repository_issues(owner, repo, limit=MAX_ISSUES)
            coverage = client.coverage(owner, repo)
            dashboard_url = client.dashboard_url(owner, repo)

        return self._to_result(
            owner, repo, letter, analysis, raw_issues, coverage, dashboard_url
        )

    def _to_result(
        self,
        owner: str,
        repo: str,
        letter: str,
        analysis: dict[str, Any],
        raw_issues: list[dict[str, Any]],
        coverage: dict[str, Any] | None,
        dashboard_url: str,
    ) -> AnalysisResult:
        counts = {"error": 0, "warning": 0, "info": 0}
        issues: list[Issue] = []

        for raw in raw_issues:
            level = str(raw.get("severity") or "Info").capitalize()
            severity = SEVERITY_MAP.get(level, "info")
            counts[severity] += 1

            rule_id = raw.get("patternId") or raw.get("tool")
            suggestion = suggest(rule_id)
            issues.append(
                Issue(
                    file=str(raw.get("filePath") or ""),
                    line=raw.get("lineNumber"),
                    message=str(raw.get("message") or "Codacy issue"),
                    rule_id=rule_id,
                    severity=severity,
                    suggestion=suggestion.suggestion,
                    fix_title=suggestion.title,
                    category=raw.get("category"),
                )
            )

        duplication = analysis.get("duplication")
        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=codacy_score(letter, self.scoring.codacy),
            files_analyzed=len({issue.file for issue in issues if issue.file}),
            issues=issues,
            summary={**counts, "total": len(raw_issues)},
            headline=f"Codacy grade {letter} with {len(raw_issues)} issues",
            details={
                "codacy_grade": letter,
                "coverage": _coverage(coverage),
                "complexity": analysis.get("complexity"),
                "duplication": (
                    {
                        "percentage": duplication.get("percentage") or 0,
                        "clones": duplication.get("clones") or 0,
                    }
                    if isinstance(duplication, dict)
                    else None
                ),
                "dashboard_url": dashboard_url,
                "top_files": top_files(issues),
            },
        )
