"""Async default reviewers resource client."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from bbacl.clients.reviewers import parse_account, reviewers_path
from bbacl.exceptions import BitbucketError
from bbacl.logging import get_logger
from bbacl.types.reviewers import Account, ReviewerResult

if TYPE_CHECKING:
    from bbacl.async_transport import AsyncHTTPTransport

logger = get_logger("reviewers")


class AsyncDefaultReviewersClient:
    """Async client for repository default reviewer operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the async default reviewers client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def add(self, workspace: str, repository: str, reviewer: str) -> None:
        """Add a default reviewer (username or UUID)."""
        await self.transport.request("PUT", reviewers_path(workspace, repository, reviewer))

    async def remove(self, workspace: str, repository: str, reviewer: str) -> None:
        """Remove a default reviewer (username or UUID)."""
        await self.transport.request("DELETE", reviewers_path(workspace, repository, reviewer))

    async def add_many(
        self,
        workspace: str,
        repository: str,
        reviewers: Iterable[str],
    ) -> list[ReviewerResult]:
        """
        Add several default reviewers concurrently.

        One request is sent per reviewer and all of them are awaited. A
        failing request does not stop the others.

        Args:
            workspace: Workspace slug
            repository: Repository slug
            reviewers: Usernames or UUIDs

        Returns:
            One result per reviewer, in input order
        """
        return await self._fan_out("add", self.add, workspace, repository, reviewers)

    async def remove_many(
        self,
        workspace: str,
        repository: str,
        reviewers: Iterable[str],
    ) -> list[ReviewerResult]:
        """Remove several default reviewers concurrently. See ``add_many``."""
        return await self._fan_out("remove", self.remove, workspace, repository, reviewers)

    async def _fan_out(
        self,
        action: str,
        call: Callable[[str, str, str], Awaitable[None]],
        workspace: str,
        repository: str,
        reviewers: Iterable[str],
    ) -> list[ReviewerResult]:
        async def run(reviewer: str) -> ReviewerResult:
            try:
                await call(workspace, repository, reviewer)
            except BitbucketError as e:
                logger.warning("Failed to %s default reviewer %s: %s", action, reviewer, e)
                return ReviewerResult(reviewer=reviewer, action=action, error=e)
            return ReviewerResult(reviewer=reviewer, action=action)

        results = await asyncio.gather(*(run(r) for r in reviewers))
        return list(results)

    async def list(self, workspace: str, repository: str) -> list[Account]:
        """
        List the default reviewers of a repository.

        Args:
            workspace: Workspace slug
            repository: Repository slug

        Returns:
            Accounts with uuid, nickname and display_name
        """
        path = reviewers_path(workspace, repository)
        return [parse_account(v) async for v in self.transport.paginate(path)]
