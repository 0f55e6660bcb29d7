"""repograde configuration system.

Configuration is YAML-based with minimal CLI overrides (--config, --ci).
Supports environment variable substitution (${VAR}) in config files; core
code never reads credentials from the environment on its own.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.repograde/config.yaml
3. ./repograde.yaml
"""

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from repograde.models.llm_config import LLMConfig
from repograde.scoring import (
    AuditPolicy,
    CodacyPolicy,
    CodeScanningPolicy,
    DependencyPolicy,
    FormatPolicy,
    LintPolicy,
    MarkdownPolicy,
    ScoringConfig,
    SonarCloudPolicy,
)

DEFAULT_TOOLS = (
    "eslint",
    "prettier",
    "stylelint",
    "htmlhint",
    "markdownlint",
    "npm-audit",
    "depcheck",
)

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class GitHubConfig:
    """GitHub API access.

    Attributes:
        token: Personal access or OAuth token
        api_base: REST API base URL (GitHub Enterprise uses its own)
        timeout: Per-request timeout in seconds
    """

    token: str | None = None
    api_base: str = "https://api.github.com"
    timeout: float = 30.0


@dataclass
class SonarCloudConfig:
    """SonarCloud Web API access.

    Attributes:
        token: User token; the sonarcloud tool is not applicable without one
        api_base: Web API base URL
        project_key: Project key when it is not derivable from owner and repo
        timeout: Per-request timeout in seconds
    """

    token: str | None = None
    api_base: str = "https://sonarcloud.io/api"
    project_key: str | None = None
    timeout: float = 30.0


@dataclass
class CodacyConfig:
    """Codacy API access.

    Attributes:
        token: Account API token; the codacy tool is not applicable without one
        api_base: API v3 base URL
        provider: Git provider code (gh, gl or bb)
        timeout: Per-request timeout in seconds
    """

    token: str | None = None
    api_base: str = "https://app.codacy.com/api/v3"
    provider: str = "gh"
    timeout: float = 30.0


@dataclass
class ToolsConfig:
    """External tool invocation.

    Attributes:
        npx: Command used to run Node.js linters
        npm: Command used for npm audit
        timeout: Timeout for each tool process in seconds
        default: Tools run when none are named on the command line
    """

    npx: str = "npx"
    npm: str = "npm"
    timeout: int = 300
    default: list[str] = field(default_factory=lambda: list(DEFAULT_TOOLS))


@dataclass
class RetryConfig:
    """Bounded retry for GitHub, hosted service and LLM calls.

    Attributes:
        attempts: Total attempts per call (1 disables retrying)
        min_wait: Minimum backoff in seconds
        max_wait: Maximum backoff in seconds
    """

    attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 10.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"retry.attempts must be at least 1 (got {self.attempts})")


@dataclass
class RunnerConfig:
    """Multi-tool runs.

    Attributes:
        max_workers: Adapters run concurrently
        save_results: Persist every record to the result store
    """

    max_workers: int = 4
    save_results: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(
                f"runner.max_workers must be at least 1 (got {self.max_workers})"
            )


@dataclass
class StoreConfig:
    """Result history persistence.

    Attributes:
        path: JSON file holding saved testing records
    """

    path: str = ".repograde/history.json"


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_under: Exit non-zero when the overall score is below this value
        json_output: Use JSON output format
    """

    fail_under: int | None = None
    json_output: bool = False


@dataclass
class RepogradeConfig:
    """Top-level repograde configuration.

    Attributes:
        github: GitHub API settings
        sonarcloud: SonarCloud API settings
        codacy: Codacy API settings
        llm: LLM settings (needed only for the dynamic workflow flow)
        tools: External tool invocation
        scoring: Deduction weights and caps
        retry: Bounded retry policy
        runner: Multi-tool run settings
        store: History persistence
        ci: CI/CD settings
    """

    github: GitHubConfig = field(default_factory=GitHubConfig)
    sonarcloud: SonarCloudConfig = field(default_factory=SonarCloudConfig)
    codacy: CodacyConfig = field(default_factory=CodacyConfig)
    llm: LLMConfig = field(default_factory=lambda: LLMConfig(enabled=False))
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${GITHUB_TOKEN} -> value of GITHUB_TOKEN

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.repograde/config.yaml
    2. ./repograde.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".repograde" / "config.yaml",
        start_path / "repograde.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _load_section(cls: type, data: Any, section: str) -> Any:
    """Build a flat dataclass section, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{section}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(unknown)}")
    return cls(**data)


def _load_scoring(data: Any) -> ScoringConfig:
    if data is None:
        return ScoringConfig()
    if not isinstance(data, dict):
        raise ValueError("Config section 'scoring' must be a mapping")

    policies: dict[str, type] = {
        "lint": LintPolicy,
        "format": FormatPolicy,
        "markdown": MarkdownPolicy,
        "audit": AuditPolicy,
        "dependency": DependencyPolicy,
        "code_scanning": CodeScanningPolicy,
        "sonarcloud": SonarCloudPolicy,
        "codacy": CodacyPolicy,
    }
    unknown = sorted(set(data) - set(policies))
    if unknown:
        raise ValueError(f"Unknown keys in 'scoring': {', '.join(unknown)}")

    return ScoringConfig(
        **{
            name: _load_section(policy_cls, data.get(name), f"scoring.{name}")
            for name, policy_cls in policies.items()
        }
    )


def load_config_from_dict(data: dict[str, Any]) -> RepogradeConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        RepogradeConfig instance

    Raises:
        ValueError: If a section is malformed or a referenced variable is unset
    """
    data = substitute_env_vars(data)

    config = RepogradeConfig()

    if "github" in data:
        config.github = _load_section(GitHubConfig, data["github"], "github")

    if "sonarcloud" in data:
        config.sonarcloud = _load_section(SonarCloudConfig, data["sonarcloud"], "sonarcloud")

    if "codacy" in data:
        config.codacy = _load_section(CodacyConfig, data["codacy"], "codacy")

    if "llm" in data:
        config.llm = LLMConfig.from_dict(data["llm"] or {})

    if "tools" in data:
        config.tools = _load_section(ToolsConfig, data["tools"], "tools")

    if "scoring" in data:
        config.scoring = _load_scoring(data["scoring"])

    if "retry" in data:
        config.retry = _load_section(RetryConfig, data["retry"], "retry")

    if "runner" in data:
        config.runner = _load_section(RunnerConfig, data["runner"], "runner")

    if "store" in data:
        config.store = _load_section(StoreConfig, data["store"], "store")

    if "ci" in data:
        config.ci = _load_section(CIConfig, data["ci"], "ci")

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> RepogradeConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        RepogradeConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = RepogradeConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return """# repograde configuration

# GitHub access (token needs repo scope to commit workflows)
github:
  token: "${GITHUB_TOKEN}"
  api_base: "https://api.github.com"
  timeout: 30

# Hosted analysis services (the sonarcloud and codacy tools need a token)
# sonarcloud:
#   token: "${SONARCLOUD_TOKEN}"
#   project_key: "github-owner_repo"
# codacy:
#   token: "${CODACY_API_TOKEN}"
#   provider: "gh"

# Text generation for the dynamic workflow flow
llm:
  provider: "groq"       # groq, openai, claude, gemini, ollama
  model: "llama-3.3-70b-versatile"
  api_key: "${GROQ_API_KEY}"
  # api_base: "http://localhost:11434"  # Required for ollama

# External linters run through Node.js
tools:
  npx: "npx"
  npm: "npm"
  timeout: 300
  default: ["eslint", "prettier", "stylelint", "htmlhint", "markdownlint", "npm-audit", "depcheck"]

# Deduction weights and caps (defaults shown)
# scoring:
#   lint: {error_weight: 5, error_cap: 50, warning_weight: 2, warning_cap: 30}
#   format: {parse_error_weight: 5, parse_error_cap: 40, unformatted_weight: 2, unformatted_cap: 50}
#   markdown: {issue_weight: 2, issue_cap: 60}
#   audit: {critical_weight: 12, high_weight: 8, moderate_weight: 4, low_weight: 1, cap: 100}
#   dependency: {unused_weight: 2, unused_dev_weight: 1, missing_weight: 5, cap: 80}
#   code_scanning: {error_weight: 10, warning_weight: 5, note_weight: 2, cap: 100}
#   sonarcloud: {base: 80, bug_weight: 2, bug_cap: 20, vulnerability_weight: 3, vulnerability_cap: 30}
#   codacy: {grade_scores: {A: 95, B: 85, C: 75, D: 65, F: 50}}

# Retry policy for GitHub and LLM calls (1 disables retrying)
retry:
  attempts: 3

runner:
  max_workers: 4
  save_results: true

store:
  path: ".repograde/history.json"

# CI/CD settings
ci:
  # fail_under: 70
  json_output: false
"""
