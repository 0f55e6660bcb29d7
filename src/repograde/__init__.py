"""repograde - Multi-tool code-quality aggregator for GitHub repositories.

repograde pulls a bounded file sample from a GitHub repository, runs existing
linters and audit tools over it, and normalizes their findings into a single
report shape with a 0-100 score and a letter grade. An LLM-assisted
"dynamic" flow generates a CI workflow and a quality report for a repository.

Core principles:
- Tools are oracles: linters are invoked as-is, never reimplemented
- One scoring table: every grade comes from the same score breakpoints
- Failures are results: adapters return structured failures, never raise
- Explicit configuration: credentials and providers are passed in, not global
"""

__version__ = "0.1.0"
__author__ = "repograde contributors"
