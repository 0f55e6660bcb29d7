"""Static fix suggestions keyed by rule id, severity or issue kind.

Lookups never fail: unknown keys fall back to a generic suggestion so every
issue carries a non-empty ``fix_title``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Suggestion:
    """Human-readable remediation for an issue."""

    title: str
    suggestion: str


GENERIC_SUGGESTION = Suggestion(
    title="Fix this issue",
    suggestion="Review the error message and address the issue accordingly",
)

_RULE_SUGGESTIONS: dict[str, Suggestion] = {
    # ESLint
    "no-unused-vars": Suggestion(
        "Remove unused variables",
        "Delete the variable declaration or use it in your code",
    ),
    "no-console": Suggestion(
        "Remove console statements",
        "Replace console logs with proper logging or remove in production code",
    ),
    "no-debugger": Suggestion(
        "Remove debugger statements",
        "Delete debugger statements before committing code",
    ),
    "no-undef": Suggestion(
        "Define undefined variables",
        "Declare the variable before use or import it from another module",
    ),
    "no-duplicate-imports": Suggestion(
        "Merge duplicate imports",
        "Combine multiple imports from the same module into one statement",
    ),
    "prefer-const": Suggestion(
        "Use const instead of let",
        'Change "let" to "const" if the variable is not reassigned',
    ),
    "no-var": Suggestion(
        "Use let or const instead of var",
        'Replace "var" with "let" or "const" for better scoping',
    ),
    # Stylelint
    "color-no-invalid-hex": Suggestion(
        "Fix invalid hex color codes",
        "Use valid hex color format (#RGB, #RRGGBB, #RGBA, or #RRGGBBAA)",
    ),
    "font-family-no-duplicate-names": Suggestion(
        "Remove duplicate font family names",
        "Remove duplicate font names from font-family declarations",
    ),
    "function-calc-no-unspaced-operator": Suggestion(
        "Add spaces around calc operators",
        "Use spaces around +, -, *, / operators in calc() functions",
    ),
    "unit-no-unknown": Suggestion(
        "Use valid CSS units",
        "Use valid CSS units (px, em, rem, %, etc.) in your declarations",
    ),
    "property-no-unknown": Suggestion(
        "Fix unknown CSS properties",
        "Check the spelling of the CSS property or use a vendor prefix if needed",
    ),
    # HTMLHint
    "doctype-first": Suggestion(
        "Declare the doctype first",
        "Put <!DOCTYPE html> on the first line of the document",
    ),
    "tag-pair": Suggestion(
        "Close unpaired tags",
        "Add the missing closing tag or remove the stray one",
    ),
    "id-unique": Suggestion(
        "Use unique ids",
        "Give every element a distinct id attribute value",
    ),
    "alt-require": Suggestion(
        "Add alt text to images",
        'Describe every <img> with an alt attribute, or alt="" when decorative',
    ),
    "title-require": Suggestion(
        "Add a document title",
        "Add a non-empty <title> element inside <head>",
    ),
    "attr-value-double-quotes": Suggestion(
        "Quote attribute values",
        "Wrap attribute values in double quotes",
    ),
    "spec-char-escape": Suggestion(
        "Escape special characters",
        "Replace literal < and > in text with &lt; and &gt;",
    ),
    # Prettier
    "format-issue": Suggestion(
        "Fix code formatting",
        "Run prettier with --write flag to auto-format: prettier --write <file>",
    ),
    # markdownlint
    "MD001": Suggestion(
        "Fix heading levels",
        "Use correct heading hierarchy (h1 -> h2, no skipping levels)",
    ),
    "MD003": Suggestion(
        "Use consistent heading style",
        "Use consistent heading delimiter (#, ##, etc.) throughout",
    ),
    "MD004": Suggestion(
        "Use consistent unordered list marker",
        "Use the same bullet point style (-, *, +) consistently",
    ),
    "MD005": Suggestion(
        "Fix list indentation", "Ensure list items are properly indented"
    ),
    "MD007": Suggestion(
        "Fix unordered list indentation",
        "Use correct indentation for nested list items",
    ),
    "MD009": Suggestion("Remove trailing spaces", "Remove spaces at the end of lines"),
    "MD010": Suggestion(
        "Use spaces instead of tabs",
        "Replace tab characters with spaces for consistency",
    ),
    "MD012": Suggestion(
        "Limit blank lines", "Remove multiple consecutive blank lines (max 1)"
    ),
    "MD013": Suggestion(
        "Keep lines short", "Break long lines into multiple lines for readability"
    ),
    "MD014": Suggestion(
        "Use proper list markers",
        "Use proper list marker format for ordered lists (1., 2., etc.)",
    ),
    "MD018": Suggestion(
        "Add space after hash in heading",
        "Add space after # character in heading: # Heading",
    ),
    "MD019": Suggestion(
        "Remove spaces after hash in heading",
        "Remove extra spaces after # character: # Heading not ##  Heading",
    ),
    "MD020": Suggestion(
        "Fix closing hash in heading", "Use correct closing hash format in heading"
    ),
    "MD021": Suggestion(
        "Fix heading format", "Ensure heading follows correct markdown format"
    ),
    "MD022": Suggestion(
        "Add blank line around headings", "Add blank line before and after headings"
    ),
    "MD023": Suggestion("Fix heading indentation", "Headings should not be indented"),
    "MD024": Suggestion(
        "Avoid duplicate headings", "Use unique heading text throughout the document"
    ),
    "MD025": Suggestion(
        "Only one h1 heading", "Use only one main heading (# Heading) per document"
    ),
    "MD026": Suggestion(
        "Remove punctuation from heading", "Remove trailing punctuation from headings"
    ),
    "MD027": Suggestion(
        "Remove multiple spaces from list", "Use single space for list indentation"
    ),
    "MD028": Suggestion(
        "Fix blank line in blockquote",
        "Remove blank lines inside blockquotes or add content",
    ),
    "MD029": Suggestion(
        "Use correct ordered list format",
        "Use sequential numbers (1., 2., 3.) for ordered lists",
    ),
    "MD030": Suggestion(
        "Fix spacing in lists", "Use consistent spacing after list markers"
    ),
    "MD031": Suggestion(
        "Add code fence after code", "Properly close code blocks with triple backticks"
    ),
    "MD032": Suggestion(
        "Add blank lines around lists", "Add blank line before and after list blocks"
    ),
    "MD033": Suggestion("Avoid HTML tags", "Use markdown syntax instead of raw HTML"),
    "MD034": Suggestion(
        "Bare URL not linked",
        "Wrap URLs in angle brackets or use proper link syntax: <URL> or [text](URL)",
    ),
    "MD035": Suggestion(
        "Horizontal rule format", "Use consistent horizontal rule format (--- or ***)"
    ),
    "MD036": Suggestion(
        "Emphasis used for heading",
        "Use proper heading syntax (#) instead of emphasis (*text*)",
    ),
    "MD037": Suggestion(
        "Fix spacing in emphasis",
        "Remove spaces inside emphasis markers: *text* not * text *",
    ),
    "MD038": Suggestion(
        "Fix spacing in code",
        "Remove spaces inside code backticks: `code` not ` code `",
    ),
    "MD039": Suggestion(
        "Fix link spacing", "Remove spaces inside link brackets and parentheses"
    ),
    "MD040": Suggestion(
        "Add language to code fence", "Specify language for code blocks: ```javascript"
    ),
    "MD041": Suggestion(
        "First line should be heading", "Start document with a main heading (#)"
    ),
}

_VULNERABILITY_SUGGESTIONS: dict[str, Suggestion] = {
    "critical": Suggestion(
        "Fix immediately",
        "Critical vulnerabilities pose a serious security risk. "
        "Update to the patched version immediately.",
    ),
    "high": Suggestion(
        "Fix soon",
        "High severity vulnerabilities should be addressed as soon as possible. "
        "Check for available updates.",
    ),
    "moderate": Suggestion(
        "Fix in next update",
        "Moderate vulnerabilities should be addressed in your next regular "
        "update cycle.",
    ),
    "low": Suggestion(
        "Consider fixing",
        "Low severity vulnerabilities can usually wait for a planned update.",
    ),
}

_DEPENDENCY_SUGGESTIONS: dict[str, Suggestion] = {
    "unused": Suggestion(
        "Remove unused dependency",
        "Run: npm uninstall <package-name> and remove from import statements",
    ),
    "devUnused": Suggestion(
        "Remove unused dev dependency",
        "Run: npm uninstall --save-dev <package-name>",
    ),
    "missing": Suggestion(
        "Install missing dependency",
        "Run: npm install <package-name> to add the missing dependency",
    ),
}

_FORMAT_SUGGESTION = Suggestion(
    "Auto-format the file",
    "Run: prettier --write <filename> to automatically fix formatting",
)


def suggest(rule_id: str | None) -> Suggestion:
    """Look up the suggestion for a linter rule id.

    Args:
        rule_id: Rule identifier reported by the tool (may be None)

    Returns:
        Matching suggestion, or the generic fallback
    """
    if not rule_id:
        return GENERIC_SUGGESTION
    return _RULE_SUGGESTIONS.get(rule_id, GENERIC_SUGGESTION)


def vulnerability_suggestion(severity: str | None) -> Suggestion:
    """Suggestion for a vulnerability severity (defaults to moderate)."""
    return _VULNERABILITY_SUGGESTIONS.get(
        (severity or "").lower(), _VULNERABILITY_SUGGESTIONS["moderate"]
    )


def dependency_suggestion(kind: str | None) -> Suggestion:
    """Suggestion for a dependency finding kind (defaults to missing)."""
    return _DEPENDENCY_SUGGESTIONS.get(kind or "", _DEPENDENCY_SUGGESTIONS["missing"])


def format_suggestion() -> Suggestion:
    return _FORMAT_SUGGESTION
