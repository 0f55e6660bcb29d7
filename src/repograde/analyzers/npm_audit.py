"""npm audit adapter.

Audits the dependency tree recorded in ``package-lock.json`` against the npm
advisory database without installing anything (``--package-lock-only``).
https://docs.npmjs.com/cli/commands/npm-audit
"""

import json
import logging
from pathlib import Path
from typing import Any

from repograde.analyzers.base import ManifestAdapter
from repograde.errors import ToolExecutionError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.scoring import audit_score
from repograde.suggestions import vulnerability_suggestion

logger = logging.getLogger(__name__)

MAX_ISSUES = 100
LOCKFILE = "package-lock.json"

SEVERITY_RANK: dict[str, int] = {"critical": 0, "high": 1, "moderate": 2, "low": 3}
SEVERITIES = ("critical", "high", "moderate", "low", "info")


def installed_versions(lockfile: str) -> dict[str, str]:
    """Package name -> version from a lockfile (v1, v2 or v3 layout)."""
    try:
        data = json.loads(lockfile)
    except json.JSONDecodeError:
        return {}

    versions: dict[str, str] = {}
    for key, meta in (data.get("packages") or {}).items():
        if key.startswith("node_modules/") and isinstance(meta, dict):
            name = key.rsplit("node_modules/", 1)[-1]
            versions.setdefault(name, str(meta.get("version", "")))
    for name, meta in (data.get("dependencies") or {}).items():
        if isinstance(meta, dict):
            versions.setdefault(name, str(meta.get("version", "")))
    return versions


def advisory_id(url: str | None) -> str | None:
    """GHSA identifier from an advisory URL."""
    if not url:
        return None
    return url.rstrip("/").rsplit("/", 1)[-1] or None


class NpmAuditAdapter(ManifestAdapter):
    """Dependency vulnerability audit."""

    tool_id = "npm-audit"
    display_name = "npm audit"
    description = "Known vulnerabilities in npm dependencies"
    features = (
        "Advisory database lookup",
        "Severity breakdown",
        "Fix availability",
    )
    note = "Requires a committed package-lock.json"
    required_manifests = (LOCKFILE,)
    optional_manifests = ("package.json",)

    def check(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        manifests: dict[str, str],
    ) -> AnalysisResult:
        # npm audit exits non-zero whenever vulnerabilities exist
        result = self.run_tool(
            [self.config.tools.npm, "audit", "--json", "--package-lock-only"],
            cwd=workdir,
            ok_codes=None,
        )
        report = self.parse_json(result.stdout, result.stderr)
        if not isinstance(report, dict):
            raise ToolExecutionError(self.tool_id, "Unexpected npm audit report format")
        if "error" in report:
            error = report["error"] or {}
            raise ToolExecutionError(
                self.tool_id,
                str(error.get("summary") or error.get("code") or "npm audit failed"),
                exit_code=result.returncode,
                stderr=result.stderr,
            )

        return self._to_result(owner, repo, report, installed_versions(manifests[LOCKFILE]))

    def _to_result(
        self,
        owner: str,
        repo: str,
        report: dict[str, Any],
        versions: dict[str, str],
    ) -> AnalysisResult:
        metadata = report.get("metadata") or {}
        counts_raw = metadata.get("vulnerabilities") or {}
        counts = {severity: int(counts_raw.get(severity, 0)) for severity in SEVERITIES}
        total = int(counts_raw.get("total", sum(counts.values())))

        issues: list[Issue] = []
        seen: set[tuple[str, str]] = set()
        fixes_available = 0

        for name, vulnerability in (report.get("vulnerabilities") or {}).items():
            if vulnerability.get("fixAvailable"):
                fixes_available += 1
            for via in vulnerability.get("via") or []:
                # String entries point at another vulnerable package
                if not isinstance(via, dict) or not via.get("severity"):
                    continue
                title = str(via.get("title") or "Vulnerability")
                key = (name, str(via.get("source") or via.get("url") or title))
                if key in seen:
                    continue
                seen.add(key)

                severity = str(via["severity"]).lower()
                suggestion = vulnerability_suggestion(severity)
                installed = versions.get(name)
                message = f"{name}: {title}"
                if via.get("range"):
                    message += f" (vulnerable {via['range']}"
                    message += f", installed {installed})" if installed else ")"
                issues.append(
                    Issue(
                        file=LOCKFILE,
                        message=message,
                        rule_id=advisory_id(via.get("url")),
                        severity=severity,
                        suggestion=suggestion.suggestion,
                        fix_title=suggestion.title,
                        package=name,
                    )
                )

        issues.sort(key=lambda issue: SEVERITY_RANK.get(issue.severity, len(SEVERITY_RANK)))
        dependencies = metadata.get("dependencies") or {}

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=audit_score(
                counts["critical"],
                counts["high"],
                counts["moderate"],
                counts["low"],
                self.scoring.audit,
            ),
            files_analyzed=1,
            issues=issues[:MAX_ISSUES],
            summary={**counts, "total": total},
            headline=f"Found {total} vulnerabilities",
            details={
                "vulnerable_packages": len(report.get("vulnerabilities") or {}),
                "fixes_available": fixes_available,
                "dependencies": (
                    dependencies.get("total", 0)
                    if isinstance(dependencies, dict)
                    else int(dependencies)
                ),
            },
        )
