"""
Pytest fixtures for bbacl testing.

Provides a fake Bitbucket API and clients wired to it.
"""

from collections.abc import Generator

import pytest

from bbacl.client import BitbucketClient
from bbacl.config import Config
from bbacl.testing.fake import TEST_BASE_URL, FakeBitbucket
from bbacl.types.permissions import ObjectType, Permission, PermissionType
from bbacl.types.reviewers import Account


def create_permission(
    object_id: str,
    object_name: str | None = None,
    object_type: ObjectType = ObjectType.USER,
    permission: PermissionType = PermissionType.READ,
) -> Permission:
    """Create a Permission with sensible defaults."""
    return Permission(
        object_id=object_id,
        object_name=object_name if object_name is not None else object_id,
        object_type=object_type,
        permission=permission,
    )


def create_account(nickname: str, uuid: str | None = None) -> Account:
    """Create an Account whose UUID is derived from the nickname."""
    return Account(
        uuid=uuid or f"{{{nickname}-0000}}",
        nickname=nickname,
        display_name=nickname.replace("-", " ").title(),
    )


@pytest.fixture
def fake_bitbucket() -> FakeBitbucket:
    """
    Provide an empty FakeBitbucket with a small page size.

    Example:
        ```python
        def test_listing(fake_bitbucket, bitbucket_client):
            fake_bitbucket.grant("acme", "api", create_permission("{u1}"))
            assert len(bitbucket_client.permissions.list_permissions("acme", "api")) == 1
        ```
    """
    return FakeBitbucket(page_len=2)


@pytest.fixture
def bitbucket_config() -> Config:
    """Provide settings pointing at the fake API."""
    return Config(username="test-user", password="test-password", base_url=TEST_BASE_URL)


@pytest.fixture
def bitbucket_client(
    fake_bitbucket: FakeBitbucket, bitbucket_config: Config
) -> Generator[BitbucketClient, None, None]:
    """Provide a BitbucketClient talking to ``fake_bitbucket``."""
    client = BitbucketClient.from_config(bitbucket_config, transport=fake_bitbucket.transport())
    yield client
    client.close()
