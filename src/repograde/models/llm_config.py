"""LLM Configuration entity for repograde.

Defines the configuration for the text-generation provider used by the
dynamic workflow flow. Supports Groq, OpenAI, Claude, Gemini and Ollama.
"""

from dataclasses import dataclass, field

# Valid LLM providers
VALID_PROVIDERS = frozenset({"groq", "openai", "claude", "gemini", "ollama"})

DEFAULT_PROVIDER = "groq"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

# LiteLLM model prefix per provider
_LITELLM_PREFIXES = {
    "groq": "groq",
    "openai": "openai",
    "claude": "anthropic",
    "gemini": "gemini",
    "ollama": "ollama",
}


@dataclass
class LLMConfig:
    """Configuration for the LLM provider.

    Sampling temperature and token limits are chosen per call by the flow
    that issues it; this object only carries the connection settings.

    Attributes:
        provider: LLM provider (groq, openai, claude, gemini, ollama)
        model: Model identifier (e.g., "llama-3.3-70b-versatile")
        api_key: API key (not required for Ollama)
        api_base: API base URL (required for Ollama)
        timeout: Per-request timeout in seconds
        enabled: Whether LLM-backed flows are enabled
    """

    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    api_base: str | None = None
    timeout: float = field(default=120.0)
    enabled: bool = field(default=True)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.provider = self.provider.lower().strip()

        if self.provider not in VALID_PROVIDERS:
            raise ValueError(
                f"Invalid provider '{self.provider}'. "
                f"Must be one of: {sorted(VALID_PROVIDERS)}"
            )

        if not self.model or not self.model.strip():
            raise ValueError("Model identifier cannot be empty")
        self.model = self.model.strip()

        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive. Got: {self.timeout}")

        if self.provider == "ollama":
            if not self.api_base:
                raise ValueError("api_base is required for Ollama provider")
        elif self.enabled and not self.api_key:
            # Cloud providers require an API key
            raise ValueError(f"api_key is required for {self.provider} provider")

    def validate(self) -> list[str]:
        """Validate configuration and return warnings.

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings: list[str] = []

        if (
            self.provider == "ollama"
            and self.api_base
            and not self.api_base.startswith(("http://", "https://"))
        ):
            warnings.append(
                f"api_base '{self.api_base}' does not start with http:// or https://"
            )

        return warnings

    def to_dict(self) -> dict[str, str | float | bool | None]:
        """Convert to dictionary for serialization.

        The API key is masked so the result is safe to log or print.
        """
        return {
            "provider": self.provider,
            "model": self.model,
            "api_key": "***" if self.api_key else None,
            "api_base": self.api_base,
            "timeout": self.timeout,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str | int | float | bool | None]) -> "LLMConfig":
        """Create LLMConfig from dictionary.

        Args:
            data: Dictionary with configuration values

        Returns:
            LLMConfig instance
        """
        return cls(
            provider=str(data.get("provider") or DEFAULT_PROVIDER),
            model=str(data.get("model") or DEFAULT_MODEL),
            api_key=str(data["api_key"]) if data.get("api_key") else None,
            api_base=str(data["api_base"]) if data.get("api_base") else None,
            timeout=float(data.get("timeout", 120.0)),  # type: ignore[arg-type]
            enabled=bool(data.get("enabled", True)),
        )

    def get_litellm_model_name(self) -> str:
        """Get the model name in LiteLLM format (e.g. ``groq/<model>``)."""
        return f"{_LITELLM_PREFIXES[self.provider]}/{self.model}"
