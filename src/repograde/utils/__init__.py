"""repograde utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Prerequisite checks (Node.js tool chain, credentials, LLM)
- retry: Bounded retry policy for collaborator clients
"""

from repograde.utils.logging import configure_from_cli, setup_logging

__all__ = [
    "configure_from_cli",
    "setup_logging",
]
