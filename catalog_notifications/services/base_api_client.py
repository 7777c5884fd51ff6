"""Base client for project catalog REST API communication."""

import asyncio
from typing import Any

import requests
import structlog

from catalog_notifications.auth import CredentialProvider, is_token_expired
from catalog_notifications.constants import (
    AUTHORIZATION_HEADER,
    BEARER_PREFIX,
    JSON_HEADERS,
)
from catalog_notifications.exceptions import (
    ApiError,
    ApiUnavailableError,
    AuthError,
    NetworkError,
)

logger = structlog.get_logger(__name__)


class BaseApiClient:
    """Base class for authenticated HTTP clients of the project catalog API.

    Requests are made with ``requests`` and exposed as coroutines through
    ``asyncio.to_thread`` so that a pending call only suspends the awaiting
    coroutine, never the event loop.
    """

    def __init__(
        self,
        service_name: str,
        base_url: str,
        credentials: CredentialProvider,
        timeout: float = 10.0,
    ):
        """Initialize base API client.

        Args:
            service_name: Name of the remote service (for logging/errors)
            base_url: Base URL for the service
            credentials: Provider of the bearer token
            timeout: Request timeout in seconds
        """
        self.service_name = service_name
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.timeout = timeout
        self._session = requests.Session()

    def _get_headers(self) -> dict[str, str]:
        """Build JSON headers carrying the current bearer token.

        Raises:
            AuthError: If the provider has no token, or the token has expired
        """
        token = self.credentials()
        if not token:
            logger.warning("No credential for API request", service=self.service_name)
            raise AuthError("No credential available")
        if is_token_expired(token):
            logger.warning("Credential expired before API request", service=self.service_name)
            raise AuthError("Credential expired")
        return {**JSON_HEADERS, AUTHORIZATION_HEADER: f"{BEARER_PREFIX} {token}"}

    def url_for(self, path: str) -> str:
        """Join ``path`` onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        **kwargs,
    ) -> requests.Response:
        """Send one authenticated request and map failures to client errors.

        A 404 is handed back to the caller, which knows which resource was
        missing.

        Raises:
            AuthError: Missing or expired credential, or a 401 response
            ApiUnavailableError: 5xx response
            ApiError: Any other 4xx response
            NetworkError: Timeout, connection failure or broken transfer
        """
        headers = {**self._get_headers(), **kwargs.pop("headers", {})}
        kwargs.setdefault("timeout", self.timeout)
        log = logger.bind(service=self.service_name, method=method, url=url)
        log.debug("Sending API request", params=params)

        try:
            response = self._session.request(
                method, url, headers=headers, params=params, json=json_data, **kwargs
            )
        except requests.Timeout as e:
            log.error("API request timed out", timeout=kwargs["timeout"])
            raise NetworkError(f"{self.service_name} request timed out: {e}") from e
        except requests.ConnectionError as e:
            log.error("Could not reach API", error=str(e))
            raise NetworkError(f"Failed to connect to {self.service_name}: {e}") from e
        except requests.RequestException as e:
            log.error("API request failed", error=str(e), error_type=type(e).__name__)
            raise NetworkError(f"{self.service_name} request failed: {e}") from e

        log.info("API responded", status_code=response.status_code)
        self._raise_for_status(response, log)
        return response

    def _raise_for_status(self, response: requests.Response, log) -> None:
        status = response.status_code
        if status == 401:
            log.warning("API rejected credential")
            raise AuthError("Credential rejected by API", status_code=status)
        if status >= 500:
            log.error("API server error", status_code=status, response_text=response.text)
            raise ApiUnavailableError(status_code=status)
        if 400 <= status and status != 404:
            log.error("API client error", status_code=status, response_text=response.text)
            raise ApiError(
                message=f"{self.service_name} returned {status}: {response.text}",
                status_code=status,
            )

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        **kwargs,
    ) -> requests.Response:
        """Run ``_make_request`` in a worker thread and await the response."""
        return await asyncio.to_thread(
            self._make_request, method, url, params, json_data, **kwargs
        )

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._session.close()
