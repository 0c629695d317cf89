"""Default reviewers resource client."""

from typing import TYPE_CHECKING, Any

from bbacl.exceptions import DecodeError
from bbacl.transport import build_path
from bbacl.types.reviewers import Account

if TYPE_CHECKING:
    from bbacl.transport import HTTPTransport


def reviewers_path(workspace: str, repository: str, reviewer: str | None = None) -> str:
    segments = ["repositories", workspace, repository, "default-reviewers"]
    if reviewer is not None:
        segments.append(reviewer)
    return build_path(*segments)


def parse_account(value: dict[str, Any]) -> Account:
    try:
        return Account(
            uuid=value["uuid"],
            nickname=value.get("nickname", ""),
            display_name=value.get("display_name", ""),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise DecodeError(f"Malformed account: {value!r}") from e


class DefaultReviewersClient:
    """Client for repository default reviewer operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the default reviewers client.

        Args:
            transport: HTTP transport for making requests
        """
        self.transport = transport

    def list(self, workspace: str, repository: str) -> list[Account]:
        """
        List the default reviewers of a repository.

        Args:
            workspace: Workspace slug
            repository: Repository slug

        Returns:
            Accounts with uuid, nickname and display_name
        """
        path = reviewers_path(workspace, repository)
        return [parse_account(v) for v in self.transport.paginate(path)]

    def add(self, workspace: str, repository: str, reviewer: str) -> None:
        """
        Add a default reviewer.

        Args:
            workspace: Workspace slug
            repository: Repository slug
            reviewer: Username or UUID of the reviewer
        """
        self.transport.request("PUT", reviewers_path(workspace, repository, reviewer))

    def remove(self, workspace: str, repository: str, reviewer: str) -> None:
        """Remove a default reviewer."""
        self.transport.request("DELETE", reviewers_path(workspace, repository, reviewer))
