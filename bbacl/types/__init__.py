"""bbacl type definitions.

This module exports all data model types used by bbacl.
"""

from bbacl.types.permissions import ObjectType, Permission, PermissionType
from bbacl.types.reviewers import Account, ReviewerResult

__all__ = [
    # Permission types
    "ObjectType",
    "PermissionType",
    "Permission",
    # Reviewer types
    "Account",
    "ReviewerResult",
]
