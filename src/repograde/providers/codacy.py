"""Codacy API v3 client."""

import logging
from typing import Any

import httpx

from repograde.config import CodacyConfig, RetryConfig
from repograde.providers.rest import RESTClient, ServiceError

logger = logging.getLogger(__name__)


class CodacyClient(RESTClient):
    """Reads repository analysis, issues and coverage from Codacy."""

    service_name = "Codacy"

    def __init__(
        self,
        settings: CodacyConfig,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            settings.api_base,
            settings.timeout,
            retry=retry,
            transport=transport,
            headers={"api-token": settings.token} if settings.token else None,
        )
        self.settings = settings

    def _repository_path(self, owner: str, repo: str) -> str:
        return (
            f"/analysis/organizations/{self.settings.provider}/{owner}/repositories/{repo}"
        )

    def dashboard_url(self, owner: str, repo: str) -> str:
        return f"https://app.codacy.com/{self.settings.provider}/{owner}/{repo}/dashboard"

    def repository_analysis(self, owner: str, repo: str) -> dict[str, Any] | None:
        """Analysis overview of a repository.

        Returns:
            The ``data`` object, or None when Codacy does not know the repository
        """
        body = self.get(self._repository_path(owner, repo), allow_not_found=True)
        if body is None:
            return None
        return dict(body.get("data") or {})

    def repository_issues(
        self, owner: str, repo: str, limit: int = 100
    ) -> list[dict[str, Any]]:
        body = self.get(
            f"{self._repository_path(owner, repo)}/issues", params={"limit": limit}
        ) or {}
        return list(body.get("data") or [])

    def coverage(self, owner: str, repo: str) -> dict[str, Any] | None:
        """Coverage summary, or None when coverage is not set up."""
        try:
            body = self.get(
                f"{self._repository_path(owner, repo)}/coverage", allow_not_found=True
            )
        except ServiceError as e:
            logger.debug("Codacy coverage unavailable for %s/%s: %s", owner, repo, e)
            return None
        if not body or not body.get("data"):
            return None
        return dict(body["data"])
