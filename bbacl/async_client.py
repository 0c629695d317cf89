"""
bbacl async client.

Used where requests fan out concurrently (bulk default reviewer changes).
"""

from typing import Any

import httpx

from bbacl.async_clients import AsyncDefaultReviewersClient
from bbacl.async_transport import AsyncHTTPTransport
from bbacl.config import Config
from bbacl.transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


class AsyncBitbucketClient:
    """
    Async client for the Bitbucket Cloud API.

    Example:
        ```python
        import asyncio
        from bbacl import AsyncBitbucketClient

        async def main():
            async with AsyncBitbucketClient(username="jdoe", password="app-password") as client:
                results = await client.default_reviewers.add_many("acme", "api", ["alice", "bob"])
                failed = [r for r in results if not r.ok]

        asyncio.run(main())
        ```
    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.username = username
        self.base_url = base_url
        self.timeout = timeout

        self._transport = AsyncHTTPTransport(
            username=username,
            password=password,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

        self.default_reviewers = AsyncDefaultReviewersClient(self._transport)

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncBitbucketClient":
        """Create a client from resolved settings."""
        return cls(
            username=config.username,
            password=config.password,
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "AsyncBitbucketClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
