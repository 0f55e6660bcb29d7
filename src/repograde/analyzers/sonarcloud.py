"""SonarCloud adapter.

Reads the measures, open issues and security hotspots SonarCloud already
holds for the repository; nothing runs locally.
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
from repograde.providers.sonarcloud import SonarCloudClient
from repograde.scoring import sonarcloud_score
from repograde.suggestions import suggest, vulnerability_suggestion

logger = logging.getLogger(__name__)

MAX_ISSUES = 100
MAX_HOTSPOTS = 20

SEVERITY_MAP: dict[str, str] = {
    "BLOCKER": "critical",
    "CRITICAL": "high",
    "MAJOR": "moderate",
    "MINOR": "low",
    "INFO": "low",
}

RATING_METRICS = ("sqale_rating", "reliability_rating", "security_rating")

# The Web API reports ratings as 1.0 (A) to 5.0 (E)
_NUMERIC_RATINGS = {"1": "A", "2": "B", "3": "C", "4": "D", "5": "E"}


def rating_letter(value: str | None) -> str | None:
    """Normalize a SonarCloud rating ("2.0" or "B") to its letter."""
    if not value:
        return None
    value = value.strip().upper()
    if value in _NUMERIC_RATINGS.values():
        return value
    return _NUMERIC_RATINGS.get(value.split(".")[0])


def _count(measures: dict[str, str], metric: str) -> int:
    try:
        return int(float(measures.get(metric) or 0))
    except ValueError:
        return 0


def _percent(measures: dict[str, str], metric: str) -> str:
    value = measures.get(metric)
    return f"{value}%" if value else "N/A"


def _component_path(component: str | None) -> str:
    # Components are "<project key>:<path>"
    return (component or "").split(":", 1)[-1]


class SonarCloudAdapter(AnalyzerAdapter):
    """Project quality from SonarCloud."""

    tool_id = "sonarcloud"
    display_name = "SonarCloud"
    description = "Ratings, bugs, vulnerabilities and hotspots reported by SonarCloud"
    features = (
        "Maintainability, reliability and security ratings",
        "Issue list by severity",
        "Security hotspots",
        "Coverage and duplication",
    )
    note = "Needs sonarcloud.token and a project already analyzed by SonarCloud"
    requires_workdir = False

    def __init__(
        self,
        files: RemoteFileProvider,
        config: RepogradeConfig | None = None,
        client: SonarCloudClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            files: Remote file provider (unused; kept for the adapter contract)
            config: Configuration (defaults when None)
            client: Preconfigured client; built from ``config.sonarcloud`` when None
        """
        super().__init__(files, config)
        self._client = client

    def check_available(self) -> bool:
        return self._client is not None or bool(self.config.sonarcloud.token)

    def get_version(self) -> str | None:
        return None

    def _open_client(self) -> AbstractContextManager[SonarCloudClient]:
        if self._client is not None:
            return nullcontext(self._client)
        if not self.config.sonarcloud.token:
            raise NotApplicableError("SonarCloud token not configured (sonarcloud.token)")
        return SonarCloudClient(self.config.sonarcloud, retry=self.config.retry)

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        with self._open_client() as client:
            project = client.find_project(owner, repo)
            if project is None:
                raise NotApplicableError(
                    "Project not found in SonarCloud. It may not be analyzed yet "
                    "or the project key is different."
                )
            key = str(project["key"])
            logger.debug("Using SonarCloud project %s for %s/%s", key, owner, repo)

            measures = client.measures(key)
            if not measures:
                raise NotApplicableError(f"SonarCloud has no metrics for project {key} yet")
            issues = client.search_issues(key, page_size=MAX_ISSUES)
            hotspots = client.search_hotspots(key)

        return self._to_result(owner, repo, project, measures, issues, hotspots)

    def _to_result(
        self,
        owner: str,
        repo: str,
        project: dict[str, Any],
        measures: dict[str, str],
        raw_issues: list[dict[str, Any]],
        hotspots: list[dict[str, Any]],
    ) -> AnalysisResult:
        counts = {name.lower(): 0 for name in SEVERITY_MAP}
        issues: list[Issue] = []

        for raw in raw_issues:
            level = str(raw.get("severity") or "INFO").upper()
            if level not in SEVERITY_MAP:
                level = "INFO"
            counts[level.lower()] += 1

            severity = SEVERITY_MAP[level]
            issue_type = raw.get("type")
            suggestion = (
                vulnerability_suggestion(severity)
                if issue_type == "VULNERABILITY"
                else suggest(raw.get("rule"))
            )
            issues.append(
                Issue(
                    file=_component_path(raw.get("component")),
                    line=raw.get("line"),
                    message=str(raw.get("message") or "SonarCloud issue"),
                    rule_id=raw.get("rule"),
                    severity=severity,
                    suggestion=suggestion.suggestion,
                    fix_title=suggestion.title,
                    category=issue_type,
                )
            )

        ratings = {metric: rating_letter(measures.get(metric)) for metric in RATING_METRICS}
        bugs = _count(measures, "bugs")
        vulnerabilities = _count(measures, "vulnerabilities")
        score = sonarcloud_score(
            ratings.values(), bugs, vulnerabilities, self.scoring.sonarcloud
        )

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=score,
            files_analyzed=len({issue.file for issue in issues if issue.file}),
            issues=issues,
            summary={
                **counts,
                "total": len(raw_issues),
                "hotspots": len(hotspots),
                "bugs": bugs,
                "vulnerabilities": vulnerabilities,
                "code_smells": _count(measures, "code_smells"),
            },
            headline=(
                f"Found {len(raw_issues)} SonarCloud issues and "
                f"{len(hotspots)} security hotspots"
            ),
            details={
                "project": {
                    "name": project.get("name"),
                    "key": project.get("key"),
                    "last_analysis": project.get("lastAnalysisDate"),
                },
                "metrics": {
                    "maintainability": ratings["sqale_rating"] or "N/A",
                    "reliability": ratings["reliability_rating"] or "N/A",
                    "security": ratings["security_rating"] or "N/A",
                    "coverage": _percent(measures, "coverage"),
                    "duplication": _percent(measures, "duplicated_lines_density"),
                    "lines": _count(measures, "ncloc"),
                },
                "hotspots": [
                    {
                        "file": _component_path(h.get("component")),
                        "line": h.get("line"),
                        "message": h.get("message"),
                        "probability": h.get("vulnerabilityProbability"),
                        "category": h.get("securityCategory"),
                    }
                    for h in hotspots[:MAX_HOTSPOTS]
                ],
                "top_files": top_files(issues),
            },
        )
