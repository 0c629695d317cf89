"""bbacl resource clients."""

from bbacl.clients.permissions import PermissionsClient
from bbacl.clients.reviewers import DefaultReviewersClient

__all__ = [
    "PermissionsClient",
    "DefaultReviewersClient",
]
