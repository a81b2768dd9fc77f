"""
HTTP Remote Store Implementation

Production implementation talking to the JSON REST server with httpx.
Used when ENV_MODE=production or ENV_MODE=staging.

Error mapping:
    - Non-2xx response  -> TransportError(status, body["message"] or reason)
    - httpx.HTTPError   -> TransportError(None, description)

Version: 1.0.0
"""

import logging
from typing import Any, Optional

import httpx

from menu_store.core.config import get_settings
from menu_store.exceptions import TransportError
from menu_store.services.remote.base import BaseRemoteStore

logger = logging.getLogger(__name__)


def extract_error_message(response: httpx.Response) -> str:
    """
    Pull a human-readable message out of a failed response.

    Uses the JSON body's "message" field when present, else the status text.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpRemoteStore(BaseRemoteStore):
    """
    Remote store backed by the REST server.

    Attributes:
        base_url: Server root (e.g., "http://localhost:3001")
        timeout: Per-request timeout handed to httpx

    Example:
        >>> store = HttpRemoteStore("http://localhost:3001")
        >>> categories = await store.request("/categories")
        >>> await store.aclose()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Server root; defaults to API_BASE_URL
            timeout: Seconds per request; defaults to REQUEST_TIMEOUT
            client: Pre-built client (takes precedence over transport)
            transport: Custom transport, e.g. httpx.ASGITransport in tests
        """
        settings = get_settings()

        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

        logger.info(f"HttpRemoteStore initialized ({self.base_url})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "http"

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Any] = None,
    ) -> Any:
        """Send the request and decode the JSON response."""
        method = method.upper()
        logger.debug(f"HTTP: {method} {path}")

        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            logger.error(f"HTTP: {method} {path} failed - {e!r}")
            raise TransportError(f"Request failed: {e!r}") from e

        if not response.is_success:
            message = extract_error_message(response)
            logger.warning(f"HTTP: {method} {path} -> {response.status_code} {message}")
            raise TransportError(message, status=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def health_check(self) -> bool:
        """Check the server's /health endpoint."""
        try:
            response = await self._client.get("/health")
            return response.is_success
        except httpx.HTTPError as e:
            logger.error(f"HTTP: Health check failed - {e!r}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
