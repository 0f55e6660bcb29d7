"""Prettier formatting check.

Runs ``prettier --list-different`` over up to 60 files. Files listed on
stdout are unformatted; ``[error] <file>: ...`` lines on stderr are files
Prettier could not parse.
https://prettier.io/
"""

import logging
import re
from collections import Counter
from pathlib import Path, PurePosixPath

from repograde.analyzers.base import FileLintAdapter
from repograde.errors import ToolExecutionError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.scoring import format_score
from repograde.suggestions import format_suggestion, suggest

logger = logging.getLogger(__name__)

PRETTIER_PACKAGE = "prettier@3"
MAX_ISSUES = 60
MAX_UNFORMATTED_DETAIL = 20

PARSERS: dict[str, str] = {
    "js": "babel",
    "jsx": "babel",
    "mjs": "babel",
    "cjs": "babel",
    "ts": "typescript",
    "tsx": "typescript",
    "json": "json",
    "css": "css",
    "scss": "scss",
    "less": "less",
    "html": "html",
    "md": "markdown",
    "yaml": "yaml",
    "yml": "yaml",
}

_ERROR_LINE_RE = re.compile(r"^\[error\]\s+(?P<file>[^:\s][^:]*):\s*(?P<message>.+)$")
_POSITION_RE = re.compile(r"\((?P<line>\d+):(?P<column>\d+)\)")


def parser_for(path: str) -> str | None:
    return PARSERS.get(PurePosixPath(path).suffix.lstrip(".").lower())


def parse_errors(stderr: str) -> dict[str, str]:
    """Map file -> first parse error message from Prettier's stderr."""
    errors: dict[str, str] = {}
    for line in stderr.splitlines():
        match = _ERROR_LINE_RE.match(line.strip())
        if match and match.group("file") not in errors:
            errors[match.group("file")] = match.group("message").strip()
    return errors


class PrettierAdapter(FileLintAdapter):
    """Formatting checker."""

    tool_id = "prettier"
    display_name = "Prettier"
    description = "Code formatting consistency check"
    features = (
        "JavaScript, TypeScript and JSON",
        "CSS, SCSS and Less",
        "HTML, Markdown and YAML",
    )
    note = "Reports files that differ from Prettier's default style"
    extensions = frozenset(PARSERS)
    max_files = 60
    kind = "supported"
    not_found_message = "No supported files found for Prettier"

    def lint(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        root: Path,
        files: list[str],
    ) -> AnalysisResult:
        # Exit code 1: some files differ, 2: something went wrong (parse errors)
        result = self.run_tool(
            self.npx(PRETTIER_PACKAGE, "--list-different", "--no-config", *files),
            cwd=root,
            ok_codes=(0, 1, 2),
        )
        failed = parse_errors(result.stderr)
        unformatted = [
            line.strip()
            for line in result.stdout.splitlines()
            if line.strip() and line.strip() not in failed
        ]
        if result.returncode == 2 and not failed and not unformatted:
            raise ToolExecutionError(
                self.tool_id,
                "Prettier run failed",
                exit_code=result.returncode,
                stderr=result.stderr,
            )

        return self._to_result(owner, repo, files, unformatted, failed)

    def _to_result(
        self,
        owner: str,
        repo: str,
        files: list[str],
        unformatted: list[str],
        failed: dict[str, str],
    ) -> AnalysisResult:
        issues: list[Issue] = []
        fix = format_suggestion()
        parse_fix = suggest(None)

        for path, message in failed.items():
            position = _POSITION_RE.search(message)
            issues.append(
                Issue(
                    file=path,
                    line=int(position.group("line")) if position else None,
                    column=int(position.group("column")) if position else None,
                    message=message,
                    rule_id="parse-error",
                    severity="error",
                    suggestion=parse_fix.suggestion,
                    fix_title=parse_fix.title,
                )
            )
        for path in unformatted:
            issues.append(
                Issue(
                    file=path,
                    message="File is not properly formatted",
                    rule_id="format-issue",
                    severity="warning",
                    suggestion=fix.suggestion,
                    fix_title=fix.title,
                )
            )

        parsers = Counter(parser_for(path) or "unknown" for path in files)
        formatted = len(files) - len(unformatted) - len(failed)

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=format_score(len(failed), len(unformatted), self.scoring.format),
            files_analyzed=len(files),
            issues=issues[:MAX_ISSUES],
            summary={
                "unformatted": len(unformatted),
                "parse_errors": len(failed),
                "formatted": max(formatted, 0),
            },
            headline=(
                f"Found {len(unformatted)} unformatted files "
                f"and {len(failed)} parse errors"
            ),
            details={
                "unformatted_files": unformatted[:MAX_UNFORMATTED_DETAIL],
                "files_by_parser": dict(sorted(parsers.items())),
            },
        )
