"""bbacl async resource clients."""

from bbacl.async_clients.reviewers import AsyncDefaultReviewersClient

__all__ = [
    "AsyncDefaultReviewersClient",
]
