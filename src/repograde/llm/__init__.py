"""LLM integration module for repograde.

Provides the LiteLLM-backed text-generation client and the prompt templates
used by the dynamic workflow flow.
"""

from repograde.llm.client import LLMClient, LLMError, LLMResponse, create_client
from repograde.llm.prompts import (
    ANALYSIS_SAMPLING,
    ANALYSIS_SYSTEM_PROMPT,
    KNOWN_TEST_TYPES,
    WORKFLOW_SAMPLING,
    WORKFLOW_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_run_summary_prompt,
    build_workflow_prompt,
)
from repograde.models.llm_config import VALID_PROVIDERS, LLMConfig

__all__ = [
    "LLMClient",
    "LLMConfig",
    "LLMError",
    "LLMResponse",
    "VALID_PROVIDERS",
    "KNOWN_TEST_TYPES",
    "WORKFLOW_SYSTEM_PROMPT",
    "ANALYSIS_SYSTEM_PROMPT",
    "WORKFLOW_SAMPLING",
    "ANALYSIS_SAMPLING",
    "build_workflow_prompt",
    "build_analysis_prompt",
    "build_run_summary_prompt",
    "create_client",
]
