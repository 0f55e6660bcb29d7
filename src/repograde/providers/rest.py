"""Read-only JSON REST client shared by the hosted analysis services.

SonarCloud and Codacy expose their results over plain JSON GET endpoints;
this client handles authentication headers, error mapping and bounded
retries for them the same way ``GitHubClient`` does for GitHub.
"""

import logging
from typing import Any

import httpx

from repograde.config import RetryConfig
from repograde.errors import UpstreamUnavailableError
from repograde.utils.retry import build_retrying

logger = logging.getLogger(__name__)


class ServiceError(UpstreamUnavailableError):
    """Raised when a hosted analysis service call fails."""

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
    return isinstance(exc, ServiceError) and exc.retryable


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if not isinstance(data, dict):
        return response.reason_phrase
    # SonarCloud: {"errors": [{"msg": ...}]}; Codacy: {"error": ...} or {"message": ...}
    errors = data.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return str(errors[0].get("msg") or response.reason_phrase)
    return str(data.get("error") or data.get("message") or response.reason_phrase)


class RESTClient:
    """Base class for authenticated read-only JSON APIs.

    Attributes:
        service_name: Name used in error messages ("SonarCloud", "Codacy")
    """

    service_name = "API"

    def __init__(
        self,
        base_url: str,
        timeout: float,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root
            timeout: Per-request timeout in seconds
            retry: Retry policy
            transport: Optional httpx transport (tests use MockTransport)
            headers: Extra request headers (credentials)
            auth: Basic-auth pair
        """
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json", "User-Agent": "repograde", **(headers or {})},
            auth=auth,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )
        self._retrying = build_retrying(retry, _is_transient)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RESTClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(
        self, path: str, params: dict[str, Any] | None, allow_not_found: bool
    ) -> httpx.Response | None:
        response = self._http.get(path, params=params)
        if response.status_code == 404 and allow_not_found:
            return None
        if response.is_error:
            raise ServiceError(
                f"{self.service_name} API GET {path} failed: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        """GET ``path`` and decode its JSON body.

        Returns:
            Decoded JSON, or None for an allowed 404 or an empty body

        Raises:
            ServiceError: On HTTP or transport failure (after retries)
        """
        try:
            response = self._retrying(self._send, path, params, allow_not_found)
        except httpx.TimeoutException as e:
            raise ServiceError(f"{self.service_name} API GET {path} timed out") from e
        except httpx.HTTPError as e:
            raise ServiceError(f"{self.service_name} API GET {path} failed: {e}") from e

        if response is None or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(
                f"{self.service_name} API GET {path} returned invalid JSON"
            ) from e
