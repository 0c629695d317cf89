"""
Tests for the permission and default reviewer clients.

Feature: permission-reconciliation
"""

import asyncio

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bbacl.async_client import AsyncBitbucketClient
from bbacl.client import BitbucketClient
from bbacl.clients.permissions import parse_group_permission, parse_user_permission, permissions_path
from bbacl.clients.reviewers import reviewers_path
from bbacl.exceptions import DecodeError, NotFoundError, ValidationError
from bbacl.operation import Operation, OperationType, make_operation_list
from bbacl.testing import (
    TEST_BASE_URL,
    FakeBitbucket,
    create_account,
    create_permission,
    group_permission_value,
    make_page,
    user_permission_value,
)
from bbacl.types.permissions import ObjectType, Permission, PermissionType

WS = "myworkspace"
REPO = "myrepository"


# ============================================================================
# Listing
# ============================================================================


def test_list_permissions_follows_next_links() -> None:
    """Groups then users, every page, with next links pointing at the API host."""
    groups_path = f"/repositories/{WS}/{REPO}/permissions-config/groups"
    users_path = f"/repositories/{WS}/{REPO}/permissions-config/users"
    groups = [
        group_permission_value("abcdef1234", "my-group_abcdef1234", "read"),
        group_permission_value("administrator", "administrator", "admin"),
    ]
    users = [
        user_permission_value("{1234-fddd-5678-a111}", "john-doe", "admin"),
        user_permission_value("{aaaa-bbbb-1234-cdef}", "operator-1", "write"),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/2.0")
        first_page = "page" not in request.url.params
        values = groups if path == groups_path else users
        next_url = f"{TEST_BASE_URL}{path}?page=2" if first_page else None
        return httpx.Response(200, json=make_page(values, next_url))

    with BitbucketClient("user", "pass", base_url=TEST_BASE_URL, transport=httpx.MockTransport(handler)) as client:
        permissions = client.permissions.list_permissions(WS, REPO)

    group_grants = [
        Permission("abcdef1234", "my-group_abcdef1234", ObjectType.GROUP, PermissionType.READ),
        Permission("administrator", "administrator", ObjectType.GROUP, PermissionType.ADMIN),
    ]
    user_grants = [
        Permission("{1234-fddd-5678-a111}", "john-doe", ObjectType.USER, PermissionType.ADMIN),
        Permission("{aaaa-bbbb-1234-cdef}", "operator-1", ObjectType.USER, PermissionType.WRITE),
    ]
    assert permissions == group_grants * 2 + user_grants * 2


@given(
    page_count=st.integers(min_value=1, max_value=5),
    per_page=st.integers(min_value=1, max_value=4),
)
@settings(max_examples=50)
def test_list_user_permissions_returns_every_grant(page_count: int, per_page: int) -> None:
    """
    Property: N full pages of k grants yield exactly N*k grants, each
    mapped with the right kind, id, name and level.
    """
    fake = FakeBitbucket(page_len=per_page)
    levels = list(PermissionType)
    expected = [
        Permission(f"{{user-{i}}}", f"user-{i}", ObjectType.USER, levels[i % 3])
        for i in range(page_count * per_page)
    ]
    for grant in expected:
        fake.grant(WS, REPO, grant)

    with BitbucketClient("user", "pass", base_url=fake.base_url, transport=fake.transport()) as client:
        permissions = client.permissions.list_user_permissions(WS, REPO)

    assert permissions == expected
    assert len(fake.calls("GET")) == page_count


def test_unknown_permission_level_is_rejected() -> None:
    with pytest.raises(DecodeError):
        parse_user_permission(user_permission_value("{u1}", "jdoe", "owner"))


def test_malformed_group_value_is_rejected() -> None:
    with pytest.raises(DecodeError):
        parse_group_permission({"permission": "read"})


def test_group_value_maps_slug_and_name() -> None:
    grant = parse_group_permission(group_permission_value("devs", "Developers", "write"))

    assert grant == Permission("devs", "Developers", ObjectType.GROUP, PermissionType.WRITE)


def test_missing_repository_raises_not_found(bitbucket_client: BitbucketClient) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        bitbucket_client.permissions.list_permissions(WS, "nope")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Repository not found"


# ============================================================================
# Applying operations
# ============================================================================


def test_apply_add_update_and_remove(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    developer = create_permission("developer", "Developers", ObjectType.GROUP, PermissionType.READ)
    jdoe = create_permission("{u1}", "jdoe", ObjectType.USER, PermissionType.WRITE)
    fake_bitbucket.grant(WS, REPO, jdoe)

    permissions = bitbucket_client.permissions
    permissions.apply(WS, REPO, Operation.add(developer))
    permissions.apply(WS, REPO, Operation.update(developer, PermissionType.ADMIN))
    permissions.apply(WS, REPO, Operation.remove(jdoe))

    assert fake_bitbucket.permissions(WS, REPO) == {
        (ObjectType.GROUP, "developer"): Permission("developer", "developer", ObjectType.GROUP, PermissionType.ADMIN),
    }
    assert fake_bitbucket.calls("PUT") == [
        ("PUT", f"/repositories/{WS}/{REPO}/permissions-config/groups/developer"),
        ("PUT", f"/repositories/{WS}/{REPO}/permissions-config/groups/developer"),
    ]
    assert fake_bitbucket.calls("DELETE") == [
        ("DELETE", f"/repositories/{WS}/{REPO}/permissions-config/users/{{u1}}"),
    ]


@pytest.mark.parametrize("object_id", ["devs#x", "devs?x=1", "devs/x", "dev s%2F"])
def test_ids_with_reserved_characters_address_their_own_grant(
    fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient, object_id: str
) -> None:
    devs = create_permission("devs", "devs", ObjectType.GROUP, PermissionType.READ)
    fake_bitbucket.grant(WS, REPO, devs)

    bitbucket_client.permissions.apply(
        WS, REPO, Operation.add(create_permission(object_id, object_type=ObjectType.GROUP, permission=PermissionType.ADMIN))
    )

    assert fake_bitbucket.calls("PUT") == [
        ("PUT", f"/repositories/{WS}/{REPO}/permissions-config/groups/{object_id}"),
    ]
    assert fake_bitbucket.permissions(WS, REPO) == {
        (ObjectType.GROUP, "devs"): devs,
        (ObjectType.GROUP, object_id): Permission(object_id, object_id, ObjectType.GROUP, PermissionType.ADMIN),
    }

    bitbucket_client.permissions.revoke_permission(WS, REPO, ObjectType.GROUP, object_id)
    assert fake_bitbucket.permissions(WS, REPO) == {(ObjectType.GROUP, "devs"): devs}


def test_permissions_path_encodes_each_segment() -> None:
    path = permissions_path("acme", "api", ObjectType.USER, "{u1}#?/")

    assert path == "/repositories/acme/api/permissions-config/users/{u1}%23%3F%2F"


def test_reviewers_path_encodes_reviewer() -> None:
    assert reviewers_path("acme", "api", "al ice#1") == "/repositories/acme/api/default-reviewers/al%20ice%231"


def test_apply_rejects_no_op(bitbucket_client: BitbucketClient) -> None:
    grant = create_permission("{u1}")
    [same] = make_operation_list([grant], [grant])

    with pytest.raises(ValueError):
        bitbucket_client.permissions.apply(WS, REPO, same)


def test_repeated_upsert_is_harmless(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    """Applying the same add twice against an already-correct state succeeds."""
    grant = create_permission("devs", "devs", ObjectType.GROUP, PermissionType.WRITE)
    fake_bitbucket.create_repository(WS, REPO)
    operation = Operation.add(grant)

    bitbucket_client.permissions.update_permissions(WS, REPO, [operation])
    bitbucket_client.permissions.update_permissions(WS, REPO, [operation])

    assert bitbucket_client.permissions.list_permissions(WS, REPO) == [grant]


def test_update_permissions_stops_at_first_failure(
    fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient
) -> None:
    fake_bitbucket.create_repository(WS, REPO)
    first = Operation.add(create_permission("{a}", permission=PermissionType.READ))
    second = Operation.add(create_permission("{b}", permission=PermissionType.WRITE))
    third = Operation.add(create_permission("{c}", permission=PermissionType.ADMIN))
    fake_bitbucket.fail(
        "PUT",
        f"/repositories/{WS}/{REPO}/permissions-config/users/{{b}}",
        status_code=400,
    )

    with pytest.raises(ValidationError):
        bitbucket_client.permissions.update_permissions(WS, REPO, [first, second, third])

    assert fake_bitbucket.calls("PUT") == [
        ("PUT", f"/repositories/{WS}/{REPO}/permissions-config/users/{{a}}"),
        ("PUT", f"/repositories/{WS}/{REPO}/permissions-config/users/{{b}}"),
    ]
    assert set(fake_bitbucket.permissions(WS, REPO)) == {(ObjectType.USER, "{a}")}


def test_update_permissions_skips_no_ops(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    same = create_permission("{same}")
    added = create_permission("{new}", permission=PermissionType.ADMIN)
    fake_bitbucket.grant(WS, REPO, same)

    operations = make_operation_list([same, added], [same])
    applied = bitbucket_client.permissions.update_permissions(WS, REPO, operations)

    assert [o.action for o in applied] == [OperationType.ADD]
    assert len(fake_bitbucket.calls("PUT")) == 1


def test_copy_makes_target_match_source(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    source = [
        create_permission("developer", "developer", ObjectType.GROUP, PermissionType.WRITE),
        create_permission("{u1}", "jdoe", ObjectType.USER, PermissionType.ADMIN),
        create_permission("{u2}", "asmith", ObjectType.USER, PermissionType.READ),
    ]
    target = [
        create_permission("developer", "developer", ObjectType.GROUP, PermissionType.READ),
        create_permission("{u3}", "old-timer", ObjectType.USER, PermissionType.ADMIN),
        create_permission("{u2}", "asmith", ObjectType.USER, PermissionType.READ),
    ]
    for grant in source:
        fake_bitbucket.grant(WS, "source", grant)
    for grant in target:
        fake_bitbucket.grant(WS, "target", grant)

    client = bitbucket_client.permissions
    operations = make_operation_list(client.list_permissions(WS, "source"), client.list_permissions(WS, "target"))
    client.update_permissions(WS, "target", operations)

    after = {(p.object_type, p.object_id): p.permission for p in client.list_permissions(WS, "target")}
    assert after == {(p.object_type, p.object_id): p.permission for p in source}


# ============================================================================
# Default reviewers
# ============================================================================


def test_list_default_reviewers(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    accounts = [create_account(f"reviewer-{i}") for i in range(5)]
    for account in accounts:
        fake_bitbucket.add_reviewer(WS, REPO, account)

    assert bitbucket_client.default_reviewers.list(WS, REPO) == accounts


def test_add_and_remove_default_reviewer(fake_bitbucket: FakeBitbucket, bitbucket_client: BitbucketClient) -> None:
    alice = create_account("alice")
    fake_bitbucket.create_repository(WS, REPO)
    fake_bitbucket.register_account(alice)

    bitbucket_client.default_reviewers.add(WS, REPO, "alice")
    assert fake_bitbucket.reviewers(WS, REPO) == [alice]

    bitbucket_client.default_reviewers.remove(WS, REPO, alice.uuid)
    assert fake_bitbucket.reviewers(WS, REPO) == []


def test_add_many_reports_each_outcome(fake_bitbucket: FakeBitbucket) -> None:
    """Concurrent adds do not stop on failure, and every failure is reported."""
    alice, bob = create_account("alice"), create_account("bob")
    fake_bitbucket.create_repository(WS, REPO)
    fake_bitbucket.register_account(alice)
    fake_bitbucket.register_account(bob)

    async def run():
        async with AsyncBitbucketClient(
            "user", "pass", base_url=fake_bitbucket.base_url, transport=fake_bitbucket.transport()
        ) as client:
            return await client.default_reviewers.add_many(WS, REPO, ["alice", "ghost", "bob"])

    results = asyncio.run(run())

    assert [r.reviewer for r in results] == ["alice", "ghost", "bob"]
    assert [r.ok for r in results] == [True, False, True]
    assert isinstance(results[1].error, NotFoundError)
    assert {a.nickname for a in fake_bitbucket.reviewers(WS, REPO)} == {"alice", "bob"}


def test_remove_many_clears_reviewers(fake_bitbucket: FakeBitbucket) -> None:
    accounts = [create_account(f"reviewer-{i}") for i in range(4)]
    for account in accounts:
        fake_bitbucket.add_reviewer(WS, REPO, account)

    async def run():
        async with AsyncBitbucketClient(
            "user", "pass", base_url=fake_bitbucket.base_url, transport=fake_bitbucket.transport()
        ) as client:
            listed = await client.default_reviewers.list(WS, REPO)
            results = await client.default_reviewers.remove_many(WS, REPO, [a.uuid for a in listed])
            return listed, results

    listed, results = asyncio.run(run())

    assert listed == accounts
    assert all(r.ok and r.action == "remove" for r in results)
    assert fake_bitbucket.reviewers(WS, REPO) == []
