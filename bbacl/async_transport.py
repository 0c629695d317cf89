"""
Async HTTP Transport for bbacl.

Same contract as ``bbacl.transport.HTTPTransport`` on top of
``httpx.AsyncClient``; used where requests fan out concurrently.
"""

import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from bbacl.exceptions import TransportError
from bbacl.logging import get_logger, log_http_request
from bbacl.transport import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    handle_response,
    next_page_path,
    read_page,
)

logger = get_logger("http")


class AsyncHTTPTransport:
    """
    Async HTTP transport layer for the Bitbucket Cloud REST API.

    Handles:
    - HTTP Basic authentication on every request
    - Sequential cursor pagination over ``next`` links
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            username: Bitbucket username
            password: Bitbucket app password
            base_url: Base URL for API requests (e.g., "https://api.bitbucket.org/2.0")
            timeout: Request timeout in seconds
            transport: Custom httpx async transport (used by tests to fake the API)
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(username, password),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Make an authenticated request.

        Args:
            method: HTTP method (GET, PUT, DELETE)
            path: API path relative to the base URL
            body: JSON request body (for PUT)

        Returns:
            Parsed JSON response, or None when the response has no body

        Raises:
            BitbucketError: On transport, HTTP or decode errors
        """
        log_http_request(method, f"{self.base_url}{path}", body=body)
        started = time.perf_counter()

        try:
            response = await self._client.request(method, path, json=body)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path}: {e}") from e

        return handle_response(response, started)

    async def paginate(self, path: str) -> AsyncIterator[dict[str, Any]]:
        """
        Iterate over every value of a paginated collection.

        Args:
            path: API path of the first page

        Yields:
            Raw value dicts, in page order

        Raises:
            DecodeError: If a ``next`` link points at a page already read
        """
        next_path: str | None = path
        visited: set[str] = set()
        while next_path:
            visited.add(next_path)
            page = await self.request("GET", next_path)
            values, next_url = read_page(page)
            for value in values:
                yield value
            next_path = next_page_path(self.base_url, next_url, visited)
        logger.debug("Read %d page(s) from %s", len(visited), path)
