"""Unified LLM client wrapper using LiteLLM.

Provides the TextGenerationProvider used by the dynamic workflow flow.
Credentials travel with each call; no LiteLLM module globals are set, so
several clients with different keys can coexist in one process.
"""

import logging
from dataclasses import dataclass
from typing import Any

import litellm

from repograde.config import RetryConfig
from repograde.errors import UpstreamUnavailableError
from repograde.models.llm_config import LLMConfig
from repograde.utils.retry import build_retrying

logger = logging.getLogger(__name__)

# LiteLLM exceptions worth another attempt
_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    litellm.exceptions.RateLimitError,
    litellm.exceptions.APIConnectionError,
    litellm.exceptions.Timeout,
    litellm.exceptions.ServiceUnavailableError,
    litellm.exceptions.InternalServerError,
)


class LLMError(UpstreamUnavailableError):
    """Exception raised for LLM-related errors."""


@dataclass
class LLMResponse:
    """Response from LLM completion.

    Attributes:
        content: Generated text content
        model: Model that generated the response
        usage: Token usage statistics
        finish_reason: Reason for completion (stop, length, etc.)
    """

    content: str
    model: str
    usage: dict[str, int]
    finish_reason: str | None = None


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, _TRANSIENT_ERRORS)


class LLMClient:
    """Unified LLM client using LiteLLM.

    Supports multiple providers through a single interface:
    - Groq (default)
    - OpenAI
    - Claude (Anthropic)
    - Gemini (Google)
    - Ollama (local)
    """

    def __init__(self, config: LLMConfig, retry: RetryConfig | None = None) -> None:
        """Initialize LLM client with configuration.

        Args:
            config: LLM configuration with provider, model, and credentials
            retry: Retry policy for transient provider failures
        """
        self.config = config
        self._retrying = build_retrying(retry, _is_transient)

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """Generate a completion from the LLM.

        Args:
            prompt: User prompt for the LLM
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum response tokens

        Returns:
            LLMResponse with generated content

        Raises:
            LLMError: If the completion fails
        """
        messages: list[dict[str, str]] = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        completion_kwargs: dict[str, Any] = {
            "model": self.config.get_litellm_model_name(),
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": self.config.timeout,
        }
        if self.config.api_key:
            completion_kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            completion_kwargs["api_base"] = self.config.api_base

        try:
            response = self._retrying(litellm.completion, **completion_kwargs)
        except litellm.exceptions.AuthenticationError as e:
            raise LLMError(f"Authentication failed for {self.config.provider}: {e}") from e
        except litellm.exceptions.RateLimitError as e:
            raise LLMError(f"Rate limit exceeded for {self.config.provider}: {e}") from e
        except litellm.exceptions.APIConnectionError as e:
            raise LLMError(f"Connection failed to {self.config.provider}: {e}") from e
        except Exception as e:
            raise LLMError(f"LLM completion failed: {e}") from e

        choice = response.choices[0]
        content = choice.message.content or ""

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens or 0,
                "completion_tokens": response.usage.completion_tokens or 0,
                "total_tokens": response.usage.total_tokens or 0,
            }

        logger.debug(
            "LLM completion: %d chars, %d tokens",
            len(content),
            usage.get("total_tokens", 0),
        )

        return LLMResponse(
            content=content,
            model=response.model or self.config.model,
            usage=usage,
            finish_reason=choice.finish_reason,
        )

    def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """TextGenerationProvider entry point: completion text, stripped."""
        response = self.complete(
            user_prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.content.strip()

    def check_available(self) -> bool:
        """Check if the LLM provider is available.

        Performs a minimal API call to verify connectivity.

        Returns:
            True if provider is reachable and credentials are valid
        """
        try:
            self.complete("Say 'ok'", max_tokens=10)
            return True
        except LLMError:
            return False


def create_client(config: LLMConfig, retry: RetryConfig | None = None) -> LLMClient:
    """Create an LLM client from configuration.

    Args:
        config: LLM configuration
        retry: Retry policy

    Returns:
        Configured LLMClient instance

    Raises:
        ValueError: If LLM is disabled in config
    """
    if not config.enabled:
        raise ValueError("LLM is disabled in configuration")

    return LLMClient(config, retry=retry)
