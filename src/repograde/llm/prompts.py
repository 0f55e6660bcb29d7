"""LLM prompt templates for the dynamic workflow flow and the full test.

User prompts live as Jinja2 templates under ``repograde/templates/prompts``;
system prompts and sampling parameters are fixed here so every run of the
same test type asks the same question.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from jinja2 import Environment, PackageLoader

from repograde.models.repository import SourceFile

# Test types with a dedicated analysis template; anything else gets the
# generic template
KNOWN_TEST_TYPES = (
    "eslint",
    "prettier",
    "jest",
    "security",
    "performance",
    "accessibility",
)

WORKFLOW_SYSTEM_PROMPT = (
    "You are a GitHub Actions workflow expert. "
    "Generate only valid YAML, no markdown or explanations."
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert code analyzer. Generate test configurations, run "
    "analysis, and provide specific issues with file locations and line "
    "numbers. Be thorough and specific."
)

RUN_SUMMARY_SYSTEM_PROMPT = (
    "You are a code quality expert analyzing test results. "
    "Be concise and actionable."
)

CODE_REVIEW_SYSTEM_PROMPT = (
    "You are a senior software architect. Return ONLY valid JSON, no markdown."
)


@dataclass(frozen=True)
class SamplingParams:
    """Temperature and token limit for one kind of call."""

    temperature: float
    max_tokens: int


WORKFLOW_SAMPLING = SamplingParams(temperature=0.3, max_tokens=2000)
ANALYSIS_SAMPLING = SamplingParams(temperature=0.2, max_tokens=3000)
RUN_SUMMARY_SAMPLING = SamplingParams(temperature=0.5, max_tokens=1000)
CODE_REVIEW_SAMPLING = SamplingParams(temperature=0.3, max_tokens=1024)

_env: Environment | None = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("repograde", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )
    return _env


def _render(template_name: str, **context: Any) -> str:
    template = _environment().get_template(template_name)
    return template.render(**context).strip()


def analysis_template_name(test_type: str) -> str:
    """Template used for a test type (the generic one when unknown)."""
    key = test_type.lower().strip()
    if key in KNOWN_TEST_TYPES:
        return f"prompts/{key}.j2"
    return "prompts/generic.j2"


def build_workflow_prompt(
    owner: str,
    repo: str,
    test_type: str,
    file_names: Sequence[str],
    has_package_json: bool,
) -> str:
    """Prompt asking for a CI workflow for the repository.

    Args:
        owner: Repository owner
        repo: Repository name
        test_type: Requested test type
        file_names: Names of the files in the repository root
        has_package_json: Whether the root holds a package.json

    Returns:
        Rendered user prompt
    """
    return _render(
        "prompts/workflow.j2",
        owner=owner,
        repo=repo,
        test_type=test_type,
        file_names=list(file_names),
        has_package_json=has_package_json,
    )


def build_analysis_prompt(
    owner: str,
    repo: str,
    test_type: str,
    files: Sequence[SourceFile],
) -> str:
    """Prompt asking for a semi-structured quality report over ``files``."""
    return _render(
        analysis_template_name(test_type),
        owner=owner,
        repo=repo,
        test_type=test_type,
        files=list(files),
    )


def build_run_summary_prompt(
    test_type: str,
    conclusion: str,
    jobs: Sequence[dict[str, Any]],
) -> str:
    """Prompt asking the model to assess a finished Actions run."""
    normalized = [
        {
            "name": job.get("name", ""),
            "status": job.get("status"),
            "conclusion": job.get("conclusion"),
            "steps": job.get("steps") or [],
        }
        for job in jobs
    ]
    return _render(
        "prompts/run_summary.j2",
        test_type=test_type,
        conclusion=conclusion,
        jobs=normalized,
    )


def build_code_review_prompt(changes: Sequence[dict[str, str]]) -> str:
    """Prompt asking for a JSON review of the latest commit's patches.

    Args:
        changes: ``{"filename", "patch"}`` dicts, patches already truncated
    """
    return _render("prompts/code_review.j2", changes=list(changes))
