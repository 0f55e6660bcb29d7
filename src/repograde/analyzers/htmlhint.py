"""HTMLHint adapter.
https://htmlhint.com/
"""

import json
import logging
from pathlib import Path
from typing import Any

from repograde.analyzers.base import (
    FileLintAdapter,
    cap_per_severity,
    count_by_category,
    relative_path,
    top_files,
)
from repograde.errors import ToolExecutionError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.scoring import lint_score
from repograde.suggestions import suggest

logger = logging.getLogger(__name__)

HTMLHINT_PACKAGE = "htmlhint@1"
CONFIG_FILE = "htmlhintrc.json"
MAX_ISSUES_PER_SEVERITY = 50

HTMLHINT_RULES: dict[str, Any] = {
    "tagname-lowercase": True,
    "attr-lowercase": True,
    "attr-value-double-quotes": True,
    "doctype-first": True,
    "tag-pair": True,
    "spec-char-escape": True,
    "id-unique": True,
    "src-not-empty": True,
    "attr-no-duplication": True,
    "title-require": True,
    "alt-require": True,
    "doctype-html5": True,
    "id-class-value": "dash",
    "style-disabled": False,
    "inline-style-disabled": False,
    "inline-script-disabled": False,
    "space-tab-mixed-disabled": "space",
    "id-class-ad-disabled": True,
    "href-abs-or-rel": False,
    "attr-unsafe-chars": True,
}


def rule_category(rule_id: str | None) -> str:
    """Classify a rule by the words in its name."""
    rule = rule_id or ""
    if "attr" in rule or "src" in rule or "value" in rule:
        return "Attributes"
    if "alt" in rule or "title" in rule:
        return "Accessibility"
    if "tag" in rule or "doctype" in rule or "pair" in rule:
        return "Structure"
    return "Best Practices"


class HTMLHintAdapter(FileLintAdapter):
    """HTML linter."""

    tool_id = "htmlhint"
    display_name = "HTMLHint"
    description = "HTML validation for structure, attributes and accessibility"
    features = (
        "Doctype and tag pairing",
        "Attribute quoting and duplicates",
        "Alt text and titles",
    )
    extensions = frozenset({"html", "htm"})
    max_files = 20
    kind = "HTML"

    def lint(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        root: Path,
        files: list[str],
    ) -> AnalysisResult:
        config_path = workdir / CONFIG_FILE
        config_path.write_text(json.dumps(HTMLHINT_RULES, indent=2), encoding="utf-8")

        # Exit code 1 means errors were reported
        result = self.run_tool(
            self.npx(
                HTMLHINT_PACKAGE,
                "--config",
                str(config_path),
                "--format",
                "json",
                *files,
            ),
            cwd=root,
            ok_codes=(0, 1),
        )
        # No findings at all may print nothing
        report = self.parse_json(result.stdout, result.stderr) if result.stdout.strip() else []
        if not isinstance(report, list):
            raise ToolExecutionError(self.tool_id, "Unexpected HTMLHint report format")

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
        for file_result in report:
            path = relative_path(str(file_result.get("file", "")), root)
            for message in file_result.get("messages", []):
                rule_id = (message.get("rule") or {}).get("id")
                suggestion = suggest(rule_id)
                issues.append(
                    Issue(
                        file=path,
                        line=message.get("line"),
                        column=message.get("col"),
                        message=str(message.get("message", "")),
                        rule_id=rule_id,
                        severity="error" if message.get("type") == "error" else "warning",
                        suggestion=suggestion.suggestion,
                        fix_title=suggestion.title,
                        category=rule_category(rule_id),
                    )
                )

        errors = sum(1 for issue in issues if issue.severity == "error")
        warnings = len(issues) - errors

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=lint_score(errors, warnings, self.scoring.lint),
            files_analyzed=files_analyzed,
            issues=cap_per_severity(issues, MAX_ISSUES_PER_SEVERITY),
            summary={"errors": errors, "warnings": warnings, "total": len(issues)},
            headline=(
                f"Found {errors} errors and {warnings} warnings "
                f"across {files_analyzed} HTML files"
            ),
            details={
                "issues_by_category": count_by_category(issues),
                "top_files": top_files(issues),
            },
        )
