"""
bbacl main client.

Provides the primary interface for reading and changing repository access
on Bitbucket Cloud.
"""

from typing import Any

import httpx

from bbacl.clients import DefaultReviewersClient, PermissionsClient
from bbacl.config import Config, load_config
from bbacl.transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, HTTPTransport


class BitbucketClient:
    """
    Main client for the Bitbucket Cloud API.

    Aggregates the resource clients and handles authentication.

    Example:
        ```python
        from bbacl import BitbucketClient, make_operation_list

        with BitbucketClient(username="jdoe", password="app-password") as client:
            source = client.permissions.list_permissions("acme", "api")
            target = client.permissions.list_permissions("acme", "web")
            operations = make_operation_list(source, target)
            client.permissions.update_permissions("acme", "web", operations)
        ```
    """

    DEFAULT_BASE_URL = DEFAULT_BASE_URL
    DEFAULT_TIMEOUT = DEFAULT_TIMEOUT

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            username: Bitbucket username
            password: Bitbucket app password
            base_url: Base URL for API requests (default: https://api.bitbucket.org/2.0)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Custom httpx transport (optional)
        """
        self.username = username
        self.base_url = base_url
        self.timeout = timeout

        self._transport = HTTPTransport(
            username=username,
            password=password,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

        self.permissions = PermissionsClient(self._transport)
        self.default_reviewers = DefaultReviewersClient(self._transport)

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: httpx.BaseTransport | None = None,
    ) -> "BitbucketClient":
        """Create a client from resolved settings."""
        return cls(
            username=config.username,
            password=config.password,
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls, timeout: float = DEFAULT_TIMEOUT) -> "BitbucketClient":
        """
        Create a client from environment variables and the config file.

        Environment variables:
            BITBUCKET_USERNAME: Bitbucket username
            BITBUCKET_PASSWORD: Bitbucket app password
            BITBUCKET_BASE_URL: Base URL for API (optional)

        Raises:
            ConfigurationError: If credentials are missing
        """
        return cls.from_config(load_config(timeout=timeout))

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    def close(self) -> None:
        """Close the client and release resources."""
        self._transport.close()

    def __enter__(self) -> "BitbucketClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
