"""Stylelint adapter for CSS, SCSS, Sass and Less sources.
https://stylelint.io/
"""

import json
import logging
import re
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

STYLELINT_PACKAGE = "stylelint@16"
CONFIG_FILE = "stylelint.config.json"
REPORT_FILE = "stylelint-report.json"
MAX_ISSUES_PER_SEVERITY = 50

STYLELINT_RULES: dict[str, Any] = {
    "color-no-invalid-hex": True,
    "font-family-no-duplicate-names": True,
    "function-calc-no-unspaced-operator": True,
    "string-no-newline": True,
    "unit-no-unknown": True,
    "property-no-unknown": True,
    "declaration-block-no-duplicate-properties": True,
    "selector-pseudo-class-no-unknown": True,
    "selector-pseudo-element-no-unknown": True,
    "selector-type-no-unknown": True,
    "no-duplicate-selectors": True,
    "no-empty-source": True,
}

# Stylelint appends " (rule-name)" to every warning text
_RULE_SUFFIX_RE = re.compile(r"\s*\([a-z0-9-/@]+\)\s*$")


def rule_category(rule_id: str | None) -> str:
    """Classify a rule by the words in its name."""
    rule = rule_id or ""
    if "color" in rule:
        return "Colors"
    if "font" in rule or "text" in rule:
        return "Typography"
    if "selector" in rule or "property" in rule:
        return "Syntax"
    if "unit" in rule or "value" in rule:
        return "Layout"
    return "Best Practices"


class StylelintAdapter(FileLintAdapter):
    """Style sheet linter."""

    tool_id = "stylelint"
    display_name = "Stylelint"
    description = "CSS/SCSS linting for errors and consistency"
    features = (
        "Invalid colors and units",
        "Unknown properties and selectors",
        "Duplicate selectors and properties",
    )
    extensions = frozenset({"css", "scss", "sass", "less"})
    max_files = 30
    kind = "CSS/SCSS"

    def lint(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        root: Path,
        files: list[str],
    ) -> AnalysisResult:
        config_path = workdir / CONFIG_FILE
        config_path.write_text(
            json.dumps({"rules": STYLELINT_RULES}, indent=2), encoding="utf-8"
        )
        report_path = workdir / REPORT_FILE

        # Exit code 2 means lint problems were found
        result = self.run_tool(
            self.npx(
                STYLELINT_PACKAGE,
                "--config",
                str(config_path),
                "--formatter",
                "json",
                "--output-file",
                str(report_path),
                "--allow-empty-input",
                *files,
            ),
            cwd=root,
            ok_codes=(0, 2),
        )
        output = (
            report_path.read_text(encoding="utf-8")
            if report_path.exists()
            else result.stdout
        )
        report = self.parse_json(output, result.stderr)
        if not isinstance(report, list):
            raise ToolExecutionError(self.tool_id, "Unexpected Stylelint report format")

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
            path = relative_path(str(file_result.get("source", "")), root)
            for warning in file_result.get("warnings", []):
                rule_id = warning.get("rule")
                suggestion = suggest(rule_id)
                issues.append(
                    Issue(
                        file=path,
                        line=warning.get("line"),
                        column=warning.get("column"),
                        message=_RULE_SUFFIX_RE.sub("", str(warning.get("text", ""))),
                        rule_id=rule_id,
                        severity="error" if warning.get("severity") == "error" else "warning",
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
                f"across {files_analyzed} files"
            ),
            details={
                "issues_by_category": count_by_category(issues),
                "top_files": top_files(issues),
            },
        )
