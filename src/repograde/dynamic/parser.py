"""Parser for semi-structured LLM quality reports.

A report is a sequence of sections, each introduced by one of a fixed set
of upper-case headers at the start of a line (optionally wrapped in
markdown bold or prefixed by ``#``)::

    SCORE: 82
    GRADE: B
    GENERATED CONFIG:
    ```json
    {...}
    ```
    ISSUES:
    - src/app.js:12 - warning - no-console - Unexpected console statement
    ANALYSIS:
    Free text...
    RECOMMENDATIONS:
    - Remove console statements

Every section is optional. Headers inside fenced code blocks are ignored.
The ``ISSUES:`` variants (e.g. ``CRITICAL ISSUES:``) are merged in order of
appearance. ANALYSIS is free prose and only ends at RECOMMENDATIONS or a
GENERATED section.
"""

import logging
import re
from dataclasses import dataclass, field

from repograde.models.analysis import ParseResult
from repograde.scoring import clamp_score

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 60
MAX_ISSUES = 15
MAX_RECOMMENDATIONS = 8
ANALYSIS_FALLBACK_CHARS = 500

_HEADER_RE = re.compile(
    r"^\s*(?:#+\s*)?\**\s*([A-Z][A-Z0-9 /]*?)\s*\**\s*:\s*\**\s*(.*)$"
)
_FENCE_RE = re.compile(r"^\s*```")
_SCORE_RE = re.compile(r"(\d{1,3})")
_GRADE_RE = re.compile(r"\b([A-F][+-]?)(?![A-Za-z])")

_ISSUE_HEADERS = frozenset(
    {
        "ISSUES",
        "CRITICAL ISSUES",
        "HIGH ISSUES",
        "MEDIUM ISSUES",
        "FORMATTING ISSUES",
        "PERFORMANCE ISSUES",
    }
)

# Only these end an ANALYSIS section
_ANALYSIS_TERMINATORS = frozenset({"recommendations", "generated"})

# Headers that carry no data of interest but still end the previous section
_OTHER_HEADERS = frozenset(
    {
        "TEST RESULTS",
        "ERRORS FOUND",
        "WARNINGS FOUND",
        "VULNERABILITIES",
        "A11Y VIOLATIONS",
    }
)


def _classify(name: str) -> str | None:
    """Map a header name to its section kind, or None when not a header."""
    key = " ".join(name.split())
    if key in {"SCORE", "GRADE", "ANALYSIS", "RECOMMENDATIONS"}:
        return key.lower()
    if key in {"GENERATED CONFIG", "GENERATED TESTS"}:
        return "generated"
    if key in _ISSUE_HEADERS:
        return "issues"
    if key in _OTHER_HEADERS:
        return "other"
    return None


def _bullets(lines: list[str]) -> list[str]:
    """Lines starting with ``-``, with the dash stripped."""
    items = []
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("-"):
            item = stripped[1:].strip()
            if item:
                items.append(item)
    return items


@dataclass
class _Section:
    kind: str
    lines: list[str] = field(default_factory=list)


def _split_sections(text: str) -> list[_Section]:
    sections: list[_Section] = []
    current: _Section | None = None
    in_fence = False

    for line in text.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            match = _HEADER_RE.match(line)
            kind = _classify(match.group(1)) if match else None
            if (
                current is not None
                and current.kind == "analysis"
                and kind not in _ANALYSIS_TERMINATORS
            ):
                kind = None
            if match and kind:
                current = _Section(kind=kind)
                sections.append(current)
                remainder = match.group(2).strip()
                if remainder:
                    current.lines.append(remainder)
                continue
        if current is not None:
            current.lines.append(line)

    return sections


class ReportParser:
    """Parses LLM report text into a ParseResult.

    Example:
        result = ReportParser().parse("SCORE: 85\\nISSUES:\\n- a.js:1 - bad")
        assert result.score == 85
    """

    def __init__(
        self,
        max_issues: int = MAX_ISSUES,
        max_recommendations: int = MAX_RECOMMENDATIONS,
    ) -> None:
        self.max_issues = max_issues
        self.max_recommendations = max_recommendations

    def parse(self, text: str) -> ParseResult:
        """Parse a report.

        Args:
            text: Raw model output

        Returns:
            ParseResult; ``score`` is None when no SCORE header was found
        """
        result = ParseResult(raw=text)
        issues: list[str] = []
        recommendations: list[str] = []
        analysis_parts: list[str] = []

        for section in _split_sections(text):
            body = "\n".join(section.lines).strip()

            if section.kind == "score" and result.score is None:
                match = _SCORE_RE.search(body)
                if match:
                    result.score = clamp_score(int(match.group(1)))
            elif section.kind == "grade" and result.grade is None:
                match = _GRADE_RE.search(body.upper())
                if match:
                    result.grade = match.group(1)
            elif section.kind == "issues":
                issues.extend(_bullets(section.lines))
            elif section.kind == "recommendations":
                recommendations.extend(_bullets(section.lines))
            elif section.kind == "analysis" and body:
                analysis_parts.append(body)
            elif section.kind == "generated" and body and result.generated_config is None:
                result.generated_config = body

        result.total_issues = len(issues)
        result.issues = issues[: self.max_issues]
        result.recommendations = recommendations[: self.max_recommendations]
        result.analysis = (
            "\n\n".join(analysis_parts)
            if analysis_parts
            else text[:ANALYSIS_FALLBACK_CHARS].strip() or None
        )

        if result.score is None:
            logger.debug("Report has no SCORE section")
        return result


def effective_score(result: ParseResult) -> int:
    """Score to grade a report by (the default when SCORE was missing)."""
    return result.score if result.score is not None else DEFAULT_SCORE
