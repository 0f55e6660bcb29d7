"""repograde template rendering.

Jinja2 templates for LLM prompts (``prompts/``) and Markdown reports
(``reports/``). Identical input always renders identical output.
"""

from repograde.templates.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
