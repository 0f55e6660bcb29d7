"""Markdownlint adapter.
https://github.com/igorshubovych/markdownlint-cli
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Any

from repograde.analyzers.base import FileLintAdapter, relative_path, top_files
from repograde.errors import ToolExecutionError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.scoring import markdown_score
from repograde.suggestions import suggest

logger = logging.getLogger(__name__)

MARKDOWNLINT_PACKAGE = "markdownlint-cli@0.41"
REPORT_FILE = "markdownlint-report.json"
MAX_ISSUES = 100


class MarkdownlintAdapter(FileLintAdapter):
    """Markdown style checker."""

    tool_id = "markdownlint"
    display_name = "Markdownlint"
    description = "Markdown style and syntax checks"
    features = ("Heading structure", "List formatting", "Line length and whitespace")
    extensions = frozenset({"md"})
    max_files = 30
    kind = "Markdown"

    def lint(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        root: Path,
        files: list[str],
    ) -> AnalysisResult:
        report_path = workdir / REPORT_FILE

        # Exit code 1 means rule violations were found
        result = self.run_tool(
            self.npx(MARKDOWNLINT_PACKAGE, "--json", "--output", str(report_path), *files),
            cwd=root,
            ok_codes=(0, 1),
        )
        if report_path.exists() and report_path.read_text(encoding="utf-8").strip():
            report = self.parse_json(report_path.read_text(encoding="utf-8"), result.stderr)
        else:
            report = []
        if not isinstance(report, list):
            raise ToolExecutionError(self.tool_id, "Unexpected Markdownlint report format")

        return self._to_result(owner, repo, report, root, len(files))

    def _to_result(
        self,
        owner: str,
        repo: str,
        report: list[dict[str, Any]],
        root: Path,
        files_analyzed: int,
    ) -> AnalysisResult:
        issues: list[Issue] = []
        for finding in report:
            rule_names = finding.get("ruleNames") or []
            rule_id = rule_names[0] if rule_names else None
            suggestion = suggest(rule_id)
            message = str(finding.get("ruleDescription", ""))
            if finding.get("errorDetail"):
                message = f"{message} [{finding['errorDetail']}]"
            error_range = finding.get("errorRange") or []
            issues.append(
                Issue(
                    file=relative_path(str(finding.get("fileName", "")), root),
                    line=finding.get("lineNumber"),
                    column=error_range[0] if error_range else None,
                    message=message,
                    rule_id=rule_id,
                    severity="warning",
                    suggestion=suggestion.suggestion,
                    fix_title=suggestion.title,
                )
            )

        by_rule = Counter(issue.rule_id or "unknown" for issue in issues)
        files_with_issues = len({issue.file for issue in issues})

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=markdown_score(len(issues), self.scoring.markdown),
            files_analyzed=files_analyzed,
            issues=issues[:MAX_ISSUES],
            summary={"total": len(issues), "files_with_issues": files_with_issues},
            headline=(
                f"Found {len(issues)} markdown issues across {files_analyzed} files"
            ),
            details={
                "issues_by_rule": dict(by_rule.most_common()),
                "top_files": top_files(issues),
            },
        )
