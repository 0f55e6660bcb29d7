"""Markdown report rendering for results, records and dynamic runs."""

import logging
from datetime import UTC, datetime
from typing import Any

from jinja2 import Environment, PackageLoader

from repograde.models.analysis import AnalysisResult, DynamicTestResult, TestingRecord

logger = logging.getLogger(__name__)


def format_datetime(dt: datetime | str | None) -> str:
    """Format a datetime or ISO string for display.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None or dt == "":
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    # Ensure UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_location(issue: dict[str, Any]) -> str:
    """``file:line:column`` with the unknown parts left out."""
    location = issue.get("file") or "-"
    if issue.get("line"):
        location += f":{issue['line']}"
        if issue.get("column"):
            location += f":{issue['column']}"
    return location


def escape_cell(value: Any) -> str:
    """Make a value safe inside a Markdown table cell."""
    return str(value if value is not None else "").replace("|", "\\|").replace("\n", " ")


class ReportRenderer:
    """Renders results to Markdown.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render_record(record)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("repograde", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["location"] = format_location
        self._env.filters["cell"] = escape_cell

    def _render(self, template_name: str, **context: Any) -> str:
        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        rendered = template.render(**context)
        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered

    def render_result(self, result: AnalysisResult) -> str:
        """Report for a single analyzer result."""
        return self._render("reports/result.md.j2", result=result.to_dict())

    def render_record(self, record: TestingRecord) -> str:
        """Report for a multi-tool testing record."""
        return self._render("reports/record.md.j2", record=record.to_dict())

    def render_dynamic(self, result: DynamicTestResult) -> str:
        """Report for a dynamic workflow run, including the workflow YAML."""
        return self._render("reports/dynamic.md.j2", result=result.to_dict())
