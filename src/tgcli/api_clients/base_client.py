"""Base HTTP client for TigerGraph REST APIs.

Provides the shared httpx session, error classification and JSON helpers
used by the tgcloud and server admin clients.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class APIClientError(Exception):
    """Base exception for API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIClientError):
    """Exception raised when authentication fails."""

    pass


class NetworkError(APIClientError):
    """Exception raised when network operations fail."""

    pass


class BaseAPIClient:
    """Synchronous API client with common HTTP functionality."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize base API client.

        Args:
            base_url: Base URL every endpoint path is appended to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._session: Optional[httpx.Client] = None

    @property
    def session(self) -> httpx.Client:
        """Get or create the HTTP session."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._session

    def _request(
        self, method: str, endpoint: str, base_url: Optional[str] = None, **kwargs
    ) -> httpx.Response:
        """Send a request, translating transport failures.

        Args:
            method: HTTP method
            endpoint: Path appended to the base URL
            base_url: Overrides the client base URL for this request
            **kwargs: Additional arguments for httpx request

        Raises:
            NetworkError: If the server cannot be reached or times out
        """
        url = f"{(base_url or self.base_url).rstrip('/')}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            return self.session.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {url} timed out: {e}")
        except httpx.TransportError as e:
            raise NetworkError(f"Cannot connect to {url}: {e}")
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid URL {url}: {e}")

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body.

        Raises:
            APIClientError: If the body is not a JSON object
        """
        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise APIClientError(
                f"Invalid JSON response: {e}", status_code=response.status_code
            )
        if not isinstance(data, dict):
            raise APIClientError(
                "Unexpected response format", status_code=response.status_code
            )
        return data

    def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.is_closed:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
