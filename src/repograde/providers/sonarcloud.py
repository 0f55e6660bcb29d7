"""SonarCloud Web API client."""

import logging
from typing import Any

import httpx

from repograde.config import RetryConfig, SonarCloudConfig
from repograde.providers.rest import RESTClient

logger = logging.getLogger(__name__)

METRIC_KEYS = (
    "sqale_rating",
    "reliability_rating",
    "security_rating",
    "bugs",
    "vulnerabilities",
    "code_smells",
    "lines_to_cover",
    "coverage",
    "duplicated_lines_density",
    "ncloc",
)


class SonarCloudClient(RESTClient):
    """Reads project measures, issues and hotspots from SonarCloud.

    The token is sent as the basic-auth user name with an empty password.
    """

    service_name = "SonarCloud"

    def __init__(
        self,
        settings: SonarCloudConfig,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            settings.api_base,
            settings.timeout,
            retry=retry,
            transport=transport,
            auth=(settings.token, "") if settings.token else None,
        )
        self.settings = settings

    def candidate_keys(self, owner: str, repo: str) -> list[str]:
        """Project keys tried in order, configured key first."""
        keys = [
            self.settings.project_key or f"github-{owner}_{repo}",
            f"{owner}_{repo}",
            f"{owner}-{repo}",
            repo,
        ]
        return list(dict.fromkeys(key for key in keys if key))

    def search_projects(
        self, projects: str | None = None, query: str | None = None
    ) -> list[dict[str, Any]]:
        params = {}
        if projects:
            params["projects"] = projects
        if query:
            params["q"] = query
        data = self.get("/projects/search", params=params) or {}
        return list(data.get("components") or [])

    def find_project(self, owner: str, repo: str) -> dict[str, Any] | None:
        """Locate the project for ``owner/repo``.

        Each candidate key is looked up exactly; failing that, a name search
        for ``repo`` accepts the first project whose key mentions the owner
        or whose name mentions the repository.

        Returns:
            The project component, or None when SonarCloud has none
        """
        for key in self.candidate_keys(owner, repo):
            components = self.search_projects(projects=key)
            if components:
                return components[0]

        for component in self.search_projects(query=repo):
            if owner in str(component.get("key", "")) or repo in str(
                component.get("name", "")
            ):
                return component
        return None

    def measures(self, project_key: str) -> dict[str, str]:
        """Metric values of a project keyed by metric name."""
        data = self.get(
            "/measures/component",
            params={"component": project_key, "metricKeys": ",".join(METRIC_KEYS)},
        ) or {}
        component = data.get("component") or {}
        return {
            str(m["metric"]): str(m.get("value", ""))
            for m in component.get("measures") or []
            if "metric" in m
        }

    def search_issues(self, project_key: str, page_size: int = 100) -> list[dict[str, Any]]:
        data = self.get(
            "/issues/search",
            params={
                "componentKeys": project_key,
                "s": "FILE_LINE",
                "asc": "true",
                "ps": page_size,
            },
        ) or {}
        return list(data.get("issues") or [])

    def search_hotspots(self, project_key: str, page_size: int = 50) -> list[dict[str, Any]]:
        data = self.get(
            "/hotspots/search", params={"projectKey": project_key, "ps": page_size}
        ) or {}
        return list(data.get("hotspots") or [])
