"""GitHub REST API client.

Implements the RemoteFileProvider protocol over the contents API, plus the
read-only endpoints the code-scanning adapter and the Actions runner need.
Transient failures (timeouts, network errors, 429 and 5xx responses) are
retried with exponential backoff; content writes are never retried.
"""

import base64
import binascii
import logging
from typing import Any

import httpx

from repograde.config import GitHubConfig, RetryConfig
from repograde.errors import UpstreamUnavailableError
from repograde.models.repository import RepoEntry, RepositoryInfo
from repograde.utils.retry import build_retrying

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


class GitHubError(UpstreamUnavailableError):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.status_code is not None and (
            self.status_code == 429 or self.status_code >= 500
        )


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    return isinstance(exc, GitHubError) and exc.retryable


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


class GitHubClient:
    """Authenticated GitHub REST client.

    Example:
        with GitHubClient(GitHubConfig(token="ghp_...")) as gh:
            info = gh.get_repository("octocat", "hello-world")
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: API settings (token, base URL, timeout)
            retry: Retry policy for read calls
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.config = config or GitHubConfig()
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "repograde",
        }
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        self._http = httpx.Client(
            base_url=self.config.api_base.rstrip("/"),
            headers=headers,
            timeout=self.config.timeout,
            follow_redirects=True,
            transport=transport,
        )
        self._retrying = build_retrying(retry, _is_transient)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        """Send one request, mapping HTTP failures to GitHubError."""
        response = self._http.request(method, url, **kwargs)

        if response.status_code == 404 and allow_not_found:
            return None
        if response.status_code == 403 and response.headers.get(
            "x-ratelimit-remaining"
        ) == "0":
            raise GitHubError("GitHub API rate limit exceeded", status_code=429)
        if response.is_error:
            raise GitHubError(
                f"GitHub API {method} {url} failed: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def _request(
        self,
        method: str,
        url: str,
        allow_not_found: bool = False,
        retry: bool = True,
        **kwargs: Any,
    ) -> Any:
        """Send a request and decode its JSON body.

        Returns:
            Decoded JSON, or None for an allowed 404 or an empty body

        Raises:
            GitHubError: On HTTP or transport failure
        """
        try:
            if retry:
                response = self._retrying(
                    self._send, method, url, allow_not_found, **kwargs
                )
            else:
                response = self._send(method, url, allow_not_found, **kwargs)
        except httpx.TimeoutException as e:
            raise GitHubError(f"GitHub API {method} {url} timed out") from e
        except httpx.HTTPError as e:
            raise GitHubError(f"GitHub API {method} {url} failed: {e}") from e

        if response is None or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GitHubError(f"GitHub API {method} {url} returned invalid JSON") from e

    # -------------------------------------------------------------------------
    # RemoteFileProvider
    # -------------------------------------------------------------------------

    def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        data = self._request("GET", f"/repos/{owner}/{repo}", allow_not_found=True)
        if data is None:
            raise GitHubError(
                f"Repository {owner}/{repo} not found or you don't have access to it",
                status_code=404,
            )
        return RepositoryInfo.from_api(data)

    def fetch_listing(self, owner: str, repo: str, path: str = "") -> list[RepoEntry]:
        """List one directory of the default branch.

        Raises:
            GitHubError: When the directory cannot be listed
        """
        data = self._request("GET", f"/repos/{owner}/{repo}/contents/{path}")
        # A file path returns a single object instead of a list
        items = data if isinstance(data, list) else [data] if data else []
        return [RepoEntry.from_api(item) for item in items]

    def fetch_file_content(self, owner: str, repo: str, path: str) -> str | None:
        """Decoded file content; None when missing, a directory, or undecodable.

        Raises:
            GitHubError: On any failure other than a 404
        """
        data = self._request(
            "GET", f"/repos/{owner}/{repo}/contents/{path}", allow_not_found=True
        )

        if data is None or isinstance(data, list):
            return None

        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            try:
                return base64.b64decode(content).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                logger.debug("Skipping undecodable file %s", path)
                return None
        return content

    def get_file_sha(
        self, owner: str, repo: str, path: str, branch: str | None = None
    ) -> str | None:
        params = {"ref": branch} if branch else None
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/contents/{path}",
            allow_not_found=True,
            params=params,
        )
        if not isinstance(data, dict):
            return None
        return data.get("sha")

    def write_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        branch: str,
        message: str,
        prior_sha: str | None = None,
    ) -> str:
        """Create or update a file with a single commit (not retried)."""
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if prior_sha:
            body["sha"] = prior_sha

        self._request(
            "PUT", f"/repos/{owner}/{repo}/contents/{path}", retry=False, json=body
        )
        logger.info("Committed %s to %s/%s@%s", path, owner, repo, branch)
        return path

    # -------------------------------------------------------------------------
    # Code scanning
    # -------------------------------------------------------------------------

    def list_code_scanning_alerts(
        self, owner: str, repo: str, state: str = "open", per_page: int = 100
    ) -> list[dict[str, Any]] | None:
        """Open code-scanning alerts; None when code scanning is not enabled."""
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/code-scanning/alerts",
            allow_not_found=True,
            params={"state": state, "per_page": per_page},
        )
        if data is None:
            return None
        return list(data)

    # -------------------------------------------------------------------------
    # Languages and commits
    # -------------------------------------------------------------------------

    def list_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Bytes of code per language."""
        data = self._request("GET", f"/repos/{owner}/{repo}/languages")
        return dict(data or {})

    def list_commits(self, owner: str, repo: str, per_page: int = 5) -> list[dict[str, Any]]:
        """Most recent commits on the default branch, newest first.

        An empty repository answers 409; that is reported as no commits.
        """
        try:
            data = self._request(
                "GET", f"/repos/{owner}/{repo}/commits", params={"per_page": per_page}
            )
        except GitHubError as e:
            if e.status_code == 409:
                return []
            raise
        return list(data or [])

    def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        """One commit including its changed ``files`` and their patches."""
        return dict(self._request("GET", f"/repos/{owner}/{repo}/commits/{sha}") or {})

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def dispatch_workflow(self, owner: str, repo: str, workflow: str, ref: str) -> None:
        self._request(
            "POST",
            f"/repos/{owner}/{repo}/actions/workflows/{workflow}/dispatches",
            retry=False,
            json={"ref": ref},
        )

    def list_workflow_runs(
        self, owner: str, repo: str, workflow: str, per_page: int = 1
    ) -> list[dict[str, Any]]:
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/actions/workflows/{workflow}/runs",
            params={"per_page": per_page},
        )
        return list((data or {}).get("workflow_runs", []))

    def list_run_jobs(self, owner: str, repo: str, run_id: int) -> list[dict[str, Any]]:
        data = self._request("GET", f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs")
        return list((data or {}).get("jobs", []))
