"""Default reviewer data models."""

from dataclasses import dataclass

from bbacl.exceptions import BitbucketError


@dataclass(frozen=True)
class Account:
    """A Bitbucket account listed as a default reviewer."""

    uuid: str
    nickname: str
    display_name: str


@dataclass(frozen=True)
class ReviewerResult:
    """Outcome of one reviewer mutation in a concurrent batch."""

    reviewer: str
    action: str  # "add" or "remove"
    error: BitbucketError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
