"""GitHub code scanning adapter.

Reads the repository's open code-scanning alerts (CodeQL or any SARIF
uploader) instead of running a local tool.
"""

import logging
from pathlib import Path
from typing import Any

from repograde.analyzers.base import AnalyzerAdapter, top_files
from repograde.errors import NotApplicableError, ToolNotAvailableError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.scoring import code_scanning_score
from repograde.suggestions import vulnerability_suggestion

logger = logging.getLogger(__name__)

MAX_ISSUES = 100

SEVERITY_MAP: dict[str, str] = {
    "error": "critical",
    "warning": "high",
    "note": "low",
}


class CodeScanningAdapter(AnalyzerAdapter):
    """Open alerts from GitHub code scanning."""

    tool_id = "code-scanning"
    display_name = "GitHub Code Scanning"
    description = "Security alerts reported by GitHub code scanning"
    features = ("CodeQL alerts", "Third-party SARIF alerts", "Alert locations")
    note = "Code scanning must be enabled on the repository"
    requires_workdir = False

    def check_available(self) -> bool:
        return hasattr(self.files, "list_code_scanning_alerts")

    def get_version(self) -> str | None:
        return None

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        list_alerts = getattr(self.files, "list_code_scanning_alerts", None)
        if list_alerts is None:
            raise ToolNotAvailableError(
                self.tool_id, "Code scanning requires the GitHub provider"
            )

        alerts = list_alerts(owner, repo)
        if alerts is None:
            raise NotApplicableError("Code scanning is not enabled on this repository")

        return self._to_result(owner, repo, alerts)

    def _to_result(
        self, owner: str, repo: str, alerts: list[dict[str, Any]]
    ) -> AnalysisResult:
        counts = {"error": 0, "warning": 0, "note": 0}
        issues: list[Issue] = []

        for alert in alerts:
            rule = alert.get("rule") or {}
            instance = alert.get("most_recent_instance") or {}
            location = instance.get("location") or {}
            level = str(rule.get("severity") or "warning").lower()
            if level not in counts:
                level = "warning"
            counts[level] += 1

            severity = SEVERITY_MAP[level]
            suggestion = vulnerability_suggestion(severity)
            message = (
                rule.get("description")
                or rule.get("name")
                or (instance.get("message") or {}).get("text")
                or "Code scanning alert"
            )
            issues.append(
                Issue(
                    file=str(location.get("path") or ""),
                    line=location.get("start_line"),
                    column=location.get("start_column"),
                    message=str(message),
                    rule_id=rule.get("id"),
                    severity=severity,
                    suggestion=suggestion.suggestion,
                    fix_title=suggestion.title,
                    category=(alert.get("tool") or {}).get("name"),
                )
            )

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=code_scanning_score(
                counts["error"], counts["warning"], counts["note"], self.scoring.code_scanning
            ),
            files_analyzed=len({issue.file for issue in issues if issue.file}),
            issues=issues[:MAX_ISSUES],
            summary={**counts, "total": len(alerts)},
            headline=f"Found {len(alerts)} code scanning alerts",
            details={"top_files": top_files(issues)},
        )
