"""bbacl testing utilities.

Provides a fake Bitbucket API and fixtures for testing code that uses bbacl.
"""

from bbacl.testing.fake import (
    TEST_BASE_URL,
    FakeBitbucket,
    account_value,
    error_body,
    group_permission_value,
    make_page,
    user_permission_value,
)
from bbacl.testing.fixtures import create_account, create_permission

__all__ = [
    # Fake API
    "FakeBitbucket",
    "TEST_BASE_URL",
    # Payload builders
    "make_page",
    "group_permission_value",
    "user_permission_value",
    "account_value",
    "error_body",
    # Helper functions
    "create_permission",
    "create_account",
]
