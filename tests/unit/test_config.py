"""Unit tests for configuration system."""

from pathlib import Path

import pytest
import yaml

from repograde.config import (
    DEFAULT_TOOLS,
    RepogradeConfig,
    RetryConfig,
    RunnerConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("TEST_VAR", "test_value")

        result = substitute_env_vars("prefix_${TEST_VAR}_suffix")

        assert result == "prefix_test_value_suffix"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in nested dicts and lists."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")

        data = {"github": {"token": "${GITHUB_TOKEN}"}, "tools": {"default": ["eslint"]}}
        result = substitute_env_vars(data)

        assert result["github"]["token"] == "ghp_secret"
        assert result["tools"]["default"] == ["eslint"]

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that missing env var raises ValueError."""
        monkeypatch.delenv("REPOGRADE_MISSING", raising=False)

        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${REPOGRADE_MISSING}")

    def test_passthrough_non_string(self) -> None:
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(42) == 42
        assert substitute_env_vars(None) is None


class TestFindConfigFile:
    """Tests for config file discovery."""

    def test_find_repograde_dir_config(self, tmp_path: Path) -> None:
        """Test finding .repograde/config.yaml."""
        config_file = tmp_path / ".repograde" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("tools: {}\n")

        assert find_config_file(tmp_path) == config_file.resolve()

    def test_prefer_dir_over_root(self, tmp_path: Path) -> None:
        """Test .repograde/config.yaml wins over repograde.yaml."""
        (tmp_path / ".repograde").mkdir()
        (tmp_path / ".repograde" / "config.yaml").write_text("{}\n")
        (tmp_path / "repograde.yaml").write_text("{}\n")

        found = find_config_file(tmp_path)

        assert found is not None
        assert found.parent.name == ".repograde"

    def test_no_config_returns_none(self, tmp_path: Path) -> None:
        """Test that None is returned when no config exists."""
        assert find_config_file(tmp_path) is None


class TestLoadConfigFromDict:
    """Tests for loading config from a dictionary."""

    def test_default_values(self) -> None:
        """Test defaults when the dictionary is empty."""
        config = load_config_from_dict({})

        assert config.github.token is None
        assert config.github.api_base == "https://api.github.com"
        assert config.llm.enabled is False
        assert config.tools.default == list(DEFAULT_TOOLS)
        assert config.retry.attempts == 3
        assert config.scoring.lint.error_weight == 5

    def test_github_and_tools(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test github and tools sections."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")

        config = load_config_from_dict(
            {
                "github": {"token": "${GITHUB_TOKEN}", "timeout": 10},
                "tools": {"timeout": 60, "default": ["eslint", "prettier"]},
            }
        )

        assert config.github.token == "ghp_abc"
        assert config.github.timeout == 10
        assert config.tools.timeout == 60
        assert config.tools.default == ["eslint", "prettier"]

    def test_llm_section(self) -> None:
        """Test the llm section builds an enabled LLMConfig."""
        config = load_config_from_dict(
            {"llm": {"provider": "openai", "model": "gpt-4o", "api_key": "sk-test"}}
        )

        assert config.llm.enabled is True
        assert config.llm.provider == "openai"
        assert config.llm.get_litellm_model_name() == "openai/gpt-4o"

    def test_scoring_section(self) -> None:
        """Test partial scoring overrides keep the other defaults."""
        config = load_config_from_dict(
            {"scoring": {"lint": {"error_weight": 10}, "audit": {"cap": 50}}}
        )

        assert config.scoring.lint.error_weight == 10
        assert config.scoring.lint.warning_weight == 2
        assert config.scoring.audit.cap == 50
        assert config.scoring.markdown.issue_weight == 2

    def test_hosted_service_sections(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test sonarcloud and codacy tokens and their scoring policies."""
        monkeypatch.setenv("SONARCLOUD_TOKEN", "sq_abc")

        config = load_config_from_dict(
            {
                "sonarcloud": {"token": "${SONARCLOUD_TOKEN}", "project_key": "octo_app"},
                "codacy": {"token": "cd_abc", "provider": "gl"},
                "scoring": {"codacy": {"grade_scores": {"A": 100}}},
            }
        )

        assert config.sonarcloud.token == "sq_abc"
        assert config.sonarcloud.project_key == "octo_app"
        assert config.sonarcloud.api_base == "https://sonarcloud.io/api"
        assert config.codacy.token == "cd_abc"
        assert config.codacy.provider == "gl"
        assert config.scoring.codacy.grade_scores == {"A": 100}
        assert config.scoring.sonarcloud.base == 80

    def test_hosted_services_default_to_no_token(self) -> None:
        config = load_config_from_dict({})

        assert config.sonarcloud.token is None
        assert config.codacy.token is None

    def test_unknown_key_rejected(self) -> None:
        """Test a misspelled key raises ValueError."""
        with pytest.raises(ValueError, match="Unknown keys in 'tools'"):
            load_config_from_dict({"tools": {"timout": 10}})

    def test_unknown_scoring_policy_rejected(self) -> None:
        """Test an unknown scoring policy raises ValueError."""
        with pytest.raises(ValueError, match="Unknown keys in 'scoring'"):
            load_config_from_dict({"scoring": {"eslint": {}}})

    def test_section_must_be_mapping(self) -> None:
        """Test a scalar section raises ValueError."""
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config_from_dict({"runner": 4})

    def test_invalid_retry_attempts(self) -> None:
        """Test retry.attempts below 1 is rejected."""
        with pytest.raises(ValueError, match="retry.attempts"):
            load_config_from_dict({"retry": {"attempts": 0}})


class TestLoadConfig:
    """Tests for loading config files."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test loading an explicit YAML file."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("runner:\n  max_workers: 2\n  save_results: true\n")

        config = load_config(config_file)

        assert config.runner.max_workers == 2
        assert config.runner.save_results is True
        assert config.config_path == config_file

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        """Test a missing explicit path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_no_file_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test defaults when nothing is discovered."""
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.config_path is None
        assert config.runner == RunnerConfig()

    def test_default_config_round_trips(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the generated default config loads once its variables are set."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")
        monkeypatch.setenv("GROQ_API_KEY", "gsk_abc")

        config = load_config_from_dict(yaml.safe_load(create_default_config()))

        assert config.github.token == "ghp_abc"
        assert config.llm.provider == "groq"
        assert config.llm.api_key == "gsk_abc"
        assert config.runner.save_results is True


class TestConfigObjects:
    """Tests for config dataclass validation."""

    def test_runner_workers_validated(self) -> None:
        """Test max_workers below 1 is rejected."""
        with pytest.raises(ValueError, match="max_workers"):
            RunnerConfig(max_workers=0)

    def test_retry_default(self) -> None:
        """Test the default retry policy."""
        assert RetryConfig().attempts == 3

    def test_default_config_has_disabled_llm(self) -> None:
        """Test the LLM is disabled without configuration."""
        assert RepogradeConfig().llm.enabled is False
