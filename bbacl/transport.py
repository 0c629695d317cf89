"""
HTTP Transport for bbacl.

Handles HTTP communication with the Bitbucket Cloud API: Basic auth on every
request, cursor pagination, and error handling. Requests are never retried.
"""

import time
from collections.abc import Iterator
from typing import Any
from urllib.parse import quote

import httpx

from bbacl.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BitbucketError,
    ConflictError,
    DecodeError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from bbacl.logging import get_logger, log_http_request, log_http_response

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"
DEFAULT_TIMEOUT = 30.0

logger = get_logger("http")


class HTTPTransport:
    """
    HTTP transport layer for the Bitbucket Cloud REST API.

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
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            username: Bitbucket username
            password: Bitbucket app password
            base_url: Base URL for API requests (e.g., "https://api.bitbucket.org/2.0")
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used by tests to fake the API)
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.timeout = timeout

        self._client = httpx.Client(
            base_url=self.base_url,
            auth=httpx.BasicAuth(username, password),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
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
            response = self._client.request(method, path, json=body)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path}: {e}") from e

        return handle_response(response, started)

    def paginate(self, path: str) -> Iterator[dict[str, Any]]:
        """
        Iterate over every value of a paginated collection.

        Pages are fetched one at a time; the next page is requested only
        after the current one has been read.

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
            page = self.request("GET", next_path)
            values, next_url = read_page(page)
            yield from values
            next_path = next_page_path(self.base_url, next_url, visited)
        logger.debug("Read %d page(s) from %s", len(visited), path)


def build_path(*segments: str) -> str:
    """
    Join path segments into an API path, percent-encoding each one.

    ``#``, ``?`` and ``/`` inside a segment are escaped so an id can never
    address a different resource. Braces are kept so user UUIDs stay readable.
    """
    return "".join(f"/{quote(segment, safe='{}')}" for segment in segments)


def handle_response(response: httpx.Response, started: float) -> dict[str, Any] | None:
    """
    Turn an httpx response into parsed JSON or a typed exception.

    Shared by the sync and async transports.
    """
    elapsed_ms = (time.perf_counter() - started) * 1000

    if response.status_code >= 400:
        log_http_response(response.status_code, str(response.request.url), elapsed_ms=elapsed_ms)
        raise parse_error_response(response)

    if not response.content:
        log_http_response(response.status_code, str(response.request.url), elapsed_ms=elapsed_ms)
        return None

    try:
        data = response.json()
    except ValueError as e:
        raise DecodeError(
            f"Malformed JSON in response: {response.text[:200]!r}",
            status_code=response.status_code,
        ) from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(data).__name__}",
            status_code=response.status_code,
        )

    log_http_response(response.status_code, str(response.request.url), body=data, elapsed_ms=elapsed_ms)
    return data


def read_page(page: dict[str, Any] | None) -> tuple[list[dict[str, Any]], str | None]:
    """Split a page response into its values and its ``next`` link."""
    if page is None:
        raise DecodeError("Expected a paginated response, got an empty body")

    values = page.get("values", [])
    if not isinstance(values, list):
        raise DecodeError("Paginated response 'values' is not a list")

    next_url = page.get("next")
    if next_url is not None and not isinstance(next_url, str):
        raise DecodeError("Paginated response 'next' is not a string")

    return values, next_url


def next_page_path(base_url: str, next_url: str | None, visited: set[str]) -> str | None:
    """Relative path of the next page, or None on the last page."""
    if not next_url:
        return None
    next_path = relative_path(base_url, next_url)
    if next_path in visited:
        raise DecodeError(f"Pagination loop: next link {next_url!r} was already read")
    return next_path


def relative_path(base_url: str, next_url: str) -> str:
    """
    Convert an absolute ``next`` link into a path relative to ``base_url``.

    Bitbucket returns full URLs such as
    ``https://api.bitbucket.org/2.0/repositories/ws/repo/permissions-config/users?page=2``.
    """
    base_url = base_url.rstrip("/")
    if next_url.startswith(base_url):
        return next_url[len(base_url):]

    url = httpx.URL(next_url)
    path = url.path
    base_path = httpx.URL(base_url).path.rstrip("/")
    if base_path and path.startswith(base_path + "/"):
        path = path[len(base_path):]

    query = url.query.decode()
    return f"{path}?{query}" if query else path


def parse_error_response(response: httpx.Response) -> BitbucketError:
    """
    Parse an error response into a typed exception.

    Bitbucket error bodies look like
    ``{"type": "error", "error": {"message": "...", "fields": {...}}}``.
    When the body is not in that shape, the raw text becomes the message.

    Args:
        response: HTTP response with error status

    Returns:
        Appropriate BitbucketError subclass
    """
    status_code = response.status_code
    code = response.reason_phrase.upper().replace(" ", "_") or "HTTP_ERROR"

    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error = data["error"]
        message = error.get("message") or f"HTTP {status_code}"
        fields = error.get("fields") if isinstance(error.get("fields"), dict) else None
        error_type = data.get("type")
    else:
        message = response.text or f"HTTP {status_code}"
        fields = None
        error_type = None

    kwargs: dict[str, Any] = {
        "status_code": status_code,
        "error_type": error_type,
        "fields": fields,
    }

    if status_code == 401:
        return AuthenticationError(code, message, **kwargs)
    elif status_code == 403:
        return AuthorizationError(code, message, **kwargs)
    elif status_code == 404:
        return NotFoundError(code, message, **kwargs)
    elif status_code == 409:
        return ConflictError(code, message, **kwargs)
    elif status_code == 429:
        retry_after_str = response.headers.get("Retry-After", "60")
        try:
            retry_after = int(retry_after_str)
        except ValueError:
            retry_after = 60
        return RateLimitedError(code, message, retry_after, **kwargs)
    elif status_code >= 500:
        return ServerError(code, message, **kwargs)
    else:
        return ValidationError(code, message, **kwargs)
