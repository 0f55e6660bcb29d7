"""Score normalization: deduction formulas and the shared grade table.

Every adapter maps its raw counts to a 0-100 score through one of the
deduction functions below, then derives its letter grade from ``grade``.
The grade table exists exactly once; nothing else computes a grade.

Deduction weights and caps are configuration (see ``ScoringConfig``); the
defaults reproduce the historical constants of each tool.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


class Grade(str, Enum):
    """Letter grade derived from a score."""

    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    D_MINUS = "D-"
    F = "F"


# Monotonically decreasing lower bounds; anything below the last band is F
GRADE_BANDS: tuple[tuple[int, Grade], ...] = (
    (97, Grade.A_PLUS),
    (93, Grade.A),
    (90, Grade.A_MINUS),
    (87, Grade.B_PLUS),
    (83, Grade.B),
    (80, Grade.B_MINUS),
    (77, Grade.C_PLUS),
    (73, Grade.C),
    (70, Grade.C_MINUS),
    (67, Grade.D_PLUS),
    (63, Grade.D),
    (60, Grade.D_MINUS),
)

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(value: float) -> int:
    """Round and clamp a raw score into [0, 100]."""
    return max(MIN_SCORE, min(MAX_SCORE, int(round(value))))


def grade(score: float) -> Grade:
    """Map a score to its letter grade using the fixed breakpoint table.

    Args:
        score: Score to grade (clamped to [0, 100] first)

    Returns:
        Grade for the score
    """
    clamped = clamp_score(score)
    for threshold, letter in GRADE_BANDS:
        if clamped >= threshold:
            return letter
    return Grade.F


# =============================================================================
# Deduction Policies
# =============================================================================


@dataclass
class LintPolicy:
    """Deductions for error/warning linters (ESLint, Stylelint, HTMLHint)."""

    error_weight: int = 5
    error_cap: int = 50
    warning_weight: int = 2
    warning_cap: int = 30


@dataclass
class FormatPolicy:
    """Deductions for the formatting checker (Prettier)."""

    parse_error_weight: int = 5
    parse_error_cap: int = 40
    unformatted_weight: int = 2
    unformatted_cap: int = 50


@dataclass
class MarkdownPolicy:
    """Deductions for the Markdown linter."""

    issue_weight: int = 2
    issue_cap: int = 60


@dataclass
class AuditPolicy:
    """Deductions for dependency vulnerability audits (npm audit)."""

    critical_weight: int = 12
    high_weight: int = 8
    moderate_weight: int = 4
    low_weight: int = 1
    cap: int = 100


@dataclass
class DependencyPolicy:
    """Deductions for dependency usage checks (depcheck)."""

    unused_weight: int = 2
    unused_dev_weight: int = 1
    missing_weight: int = 5
    cap: int = 80


@dataclass
class CodeScanningPolicy:
    """Deductions for GitHub code-scanning alerts."""

    error_weight: int = 10
    warning_weight: int = 5
    note_weight: int = 2
    cap: int = 100


@dataclass
class SonarCloudPolicy:
    """Deductions from SonarCloud project measures.

    Scores start at ``base`` and lose ``rating_deductions[letter]`` for each
    of the maintainability, reliability and security ratings.
    """

    base: int = 80
    rating_deductions: dict[str, int] = field(
        default_factory=lambda: {"B": 5, "C": 10, "D": 15, "E": 20}
    )
    bug_weight: int = 2
    bug_cap: int = 20
    vulnerability_weight: int = 3
    vulnerability_cap: int = 30


@dataclass
class CodacyPolicy:
    """Codacy grade letter to score."""

    grade_scores: dict[str, int] = field(
        default_factory=lambda: {"A": 95, "B": 85, "C": 75, "D": 65, "F": 50}
    )


@dataclass
class ScoringConfig:
    """All tunable deduction policies."""

    lint: LintPolicy = field(default_factory=LintPolicy)
    format: FormatPolicy = field(default_factory=FormatPolicy)
    markdown: MarkdownPolicy = field(default_factory=MarkdownPolicy)
    audit: AuditPolicy = field(default_factory=AuditPolicy)
    dependency: DependencyPolicy = field(default_factory=DependencyPolicy)
    code_scanning: CodeScanningPolicy = field(default_factory=CodeScanningPolicy)
    sonarcloud: SonarCloudPolicy = field(default_factory=SonarCloudPolicy)
    codacy: CodacyPolicy = field(default_factory=CodacyPolicy)


# =============================================================================
# Deduction Formulas
# =============================================================================


def lint_score(errors: int, warnings: int, policy: LintPolicy | None = None) -> int:
    """Score = 100 - min(errors*5, 50) - min(warnings*2, 30)."""
    policy = policy or LintPolicy()
    deduction = min(errors * policy.error_weight, policy.error_cap) + min(
        warnings * policy.warning_weight, policy.warning_cap
    )
    return clamp_score(MAX_SCORE - deduction)


def format_score(
    parse_errors: int,
    unformatted: int,
    policy: FormatPolicy | None = None,
) -> int:
    """Score = 100 - min(parse_errors*5, 40) - min(unformatted*2, 50)."""
    policy = policy or FormatPolicy()
    deduction = min(
        parse_errors * policy.parse_error_weight, policy.parse_error_cap
    ) + min(unformatted * policy.unformatted_weight, policy.unformatted_cap)
    return clamp_score(MAX_SCORE - deduction)


def markdown_score(total_issues: int, policy: MarkdownPolicy | None = None) -> int:
    """Score = 100 - min(issues*2, 60)."""
    policy = policy or MarkdownPolicy()
    deduction = min(total_issues * policy.issue_weight, policy.issue_cap)
    return clamp_score(MAX_SCORE - deduction)


def audit_score(
    critical: int,
    high: int,
    moderate: int,
    low: int,
    policy: AuditPolicy | None = None,
) -> int:
    """Score = 100 - min(critical*12 + high*8 + moderate*4 + low, 100)."""
    policy = policy or AuditPolicy()
    weighted = (
        critical * policy.critical_weight
        + high * policy.high_weight
        + moderate * policy.moderate_weight
        + low * policy.low_weight
    )
    return clamp_score(MAX_SCORE - min(weighted, policy.cap))


def dependency_score(
    unused: int,
    unused_dev: int,
    missing: int,
    policy: DependencyPolicy | None = None,
) -> int:
    """Score = 100 - min(unused*2 + unused_dev + missing*5, 80)."""
    policy = policy or DependencyPolicy()
    weighted = (
        unused * policy.unused_weight
        + unused_dev * policy.unused_dev_weight
        + missing * policy.missing_weight
    )
    return clamp_score(MAX_SCORE - min(weighted, policy.cap))


def code_scanning_score(
    errors: int,
    warnings: int,
    notes: int,
    policy: CodeScanningPolicy | None = None,
) -> int:
    """Score = 100 - (errors*10 + warnings*5 + notes*2), floored at 0."""
    policy = policy or CodeScanningPolicy()
    weighted = (
        errors * policy.error_weight
        + warnings * policy.warning_weight
        + notes * policy.note_weight
    )
    return clamp_score(MAX_SCORE - min(weighted, policy.cap))


def sonarcloud_score(
    ratings: Iterable[str | None],
    bugs: int,
    vulnerabilities: int,
    policy: SonarCloudPolicy | None = None,
) -> int:
    """Score = 80 - rating deductions - min(bugs*2, 20) - min(vulns*3, 30).

    Args:
        ratings: Rating letters (A-E); None or unknown letters deduct nothing
        bugs: Bug count
        vulnerabilities: Vulnerability count
        policy: Deduction policy
    """
    policy = policy or SonarCloudPolicy()
    deduction = sum(policy.rating_deductions.get(r or "", 0) for r in ratings)
    deduction += min(bugs * policy.bug_weight, policy.bug_cap)
    deduction += min(vulnerabilities * policy.vulnerability_weight, policy.vulnerability_cap)
    return clamp_score(policy.base - deduction)


def codacy_score(grade_letter: str, policy: CodacyPolicy | None = None) -> int:
    """Fixed score per Codacy grade letter (0 for an unknown letter)."""
    policy = policy or CodacyPolicy()
    return clamp_score(policy.grade_scores.get(grade_letter.strip().upper(), 0))


# =============================================================================
# Aggregates
# =============================================================================


def conclusion_for(score: int) -> str:
    """Summarize a dynamic test score as success, warning or failure."""
    if score >= 70:
        return "success"
    if score >= 50:
        return "warning"
    return "failure"


def overall_score(scores: Iterable[int]) -> int:
    """Rounded mean of the given scores (0 when there are none)."""
    values = list(scores)
    if not values:
        return 0
    return clamp_score(sum(values) / len(values))


def weighted_score(scores: dict[str, int], weights: dict[str, float]) -> int:
    """Rounded weighted sum of ``scores``; missing scores count as 0."""
    return clamp_score(sum(scores.get(name, 0) * weight for name, weight in weights.items()))
