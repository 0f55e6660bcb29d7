"""ESLint adapter.

Lints up to 50 JavaScript/TypeScript files with a fixed flat config written
into the work directory, then scores errors and warnings with the lint
deduction policy.
https://eslint.org/
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

ESLINT_PACKAGE = "eslint@9"
CONFIG_FILE = "eslint.config.cjs"
MAX_ISSUES_PER_SEVERITY = 50

ESLINT_RULES: dict[str, str] = {
    "no-unused-vars": "warn",
    "no-console": "warn",
    "no-debugger": "error",
    "no-undef": "error",
    "no-duplicate-imports": "warn",
    "prefer-const": "warn",
    "no-var": "warn",
}

ESLINT_GLOBALS: dict[str, str] = {
    "window": "readonly",
    "document": "readonly",
    "console": "readonly",
    "process": "readonly",
    "module": "readonly",
    "require": "readonly",
    "__dirname": "readonly",
    "__filename": "readonly",
}

BEST_PRACTICE_RULES = frozenset({"prefer-const", "no-var", "no-duplicate-imports"})


def eslint_config() -> dict[str, Any]:
    """The flat config object every run uses."""
    return {
        "files": ["**/*.{js,jsx,ts,tsx,mjs,cjs}"],
        "languageOptions": {
            "ecmaVersion": "latest",
            "sourceType": "module",
            "parserOptions": {"ecmaFeatures": {"jsx": True}},
            "globals": ESLINT_GLOBALS,
        },
        "rules": ESLINT_RULES,
    }


def rule_category(rule_id: str | None) -> str:
    if rule_id in BEST_PRACTICE_RULES:
        return "Best Practices"
    return "Code Quality"


class ESLintAdapter(FileLintAdapter):
    """JavaScript/TypeScript linter."""

    tool_id = "eslint"
    display_name = "ESLint"
    description = "JavaScript/TypeScript static analysis for code quality issues"
    features = (
        "Unused variables",
        "Undefined references",
        "Debugger and console statements",
        "Modern syntax (const, let)",
    )
    extensions = frozenset({"js", "jsx", "ts", "tsx", "mjs", "cjs"})
    max_files = 50
    kind = "JavaScript/TypeScript"

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
            f"module.exports = [{json.dumps(eslint_config(), indent=2)}];\n",
            encoding="utf-8",
        )

        # Exit code 1 means lint problems were found
        result = self.run_tool(
            self.npx(
                ESLINT_PACKAGE,
                "--config",
                str(config_path),
                "--format",
                "json",
                "--no-warn-ignored",
                *files,
            ),
            cwd=root,
            ok_codes=(0, 1),
        )
        report = self.parse_json(result.stdout, result.stderr)
        if not isinstance(report, list):
            raise ToolExecutionError(self.tool_id, "Unexpected ESLint report format")

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
            path = relative_path(str(file_result.get("filePath", "")), root)
            for message in file_result.get("messages", []):
                rule_id = message.get("ruleId")
                suggestion = suggest(rule_id)
                issues.append(
                    Issue(
                        file=path,
                        line=message.get("line"),
                        column=message.get("column"),
                        message=str(message.get("message", "")),
                        rule_id=rule_id,
                        severity="error" if message.get("severity") == 2 else "warning",
                        suggestion=suggestion.suggestion,
                        fix_title=suggestion.title,
                        category=rule_category(rule_id),
                    )
                )

        errors = sum(1 for issue in issues if issue.severity == "error")
        warnings = len(issues) - errors
        score = lint_score(errors, warnings, self.scoring.lint)
        files_with_issues = sum(1 for f in report if f.get("messages"))

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=score,
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
                "files_with_issues": files_with_issues,
            },
        )
