"""Repository permissions resource client."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from bbacl.exceptions import DecodeError
from bbacl.logging import get_logger
from bbacl.operation import Operation, OperationType
from bbacl.transport import build_path
from bbacl.types.permissions import ObjectType, Permission, PermissionType

if TYPE_CHECKING:
    from bbacl.transport import HTTPTransport

logger = get_logger("permissions")

_COLLECTION = {
    ObjectType.USER: "users",
    ObjectType.GROUP: "groups",
}


def permissions_path(
    workspace: str,
    repository: str,
    object_type: ObjectType,
    object_id: str | None = None,
) -> str:
    segments = ["repositories", workspace, repository, "permissions-config", _COLLECTION[object_type]]
    if object_id is not None:
        segments.append(object_id)
    return build_path(*segments)


def parse_group_permission(value: dict[str, Any]) -> Permission:
    """Map a ``repository_group_permission`` value to a Permission."""
    try:
        group = value["group"]
        return Permission(
            object_id=group["slug"],
            object_name=group["name"],
            object_type=ObjectType.GROUP,
            permission=PermissionType.parse(value["permission"]),
        )
    except (KeyError, TypeError) as e:
        raise DecodeError(f"Malformed group permission: {value!r}") from e


def parse_user_permission(value: dict[str, Any]) -> Permission:
    """Map a ``repository_user_permission`` value to a Permission."""
    try:
        user = value["user"]
        return Permission(
            object_id=user["uuid"],
            object_name=user.get("nickname") or user.get("display_name", ""),
            object_type=ObjectType.USER,
            permission=PermissionType.parse(value["permission"]),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise DecodeError(f"Malformed user permission: {value!r}") from e


class PermissionsClient:
    """Client for repository permission operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the permissions client.

        Args:
            transport: HTTP transport for making requests
        """
        self.transport = transport

    def list_group_permissions(self, workspace: str, repository: str) -> list[Permission]:
        """
        List explicit group permissions of a repository.

        Follows pagination until the last page.

        Args:
            workspace: Workspace slug
            repository: Repository slug

        Returns:
            Group permissions, id is the group slug

        Raises:
            NotFoundError: If the repository does not exist
            DecodeError: If a page cannot be decoded
        """
        path = permissions_path(workspace, repository, ObjectType.GROUP)
        return [parse_group_permission(v) for v in self.transport.paginate(path)]

    def list_user_permissions(self, workspace: str, repository: str) -> list[Permission]:
        """
        List explicit user permissions of a repository.

        Args:
            workspace: Workspace slug
            repository: Repository slug

        Returns:
            User permissions, id is the user UUID
        """
        path = permissions_path(workspace, repository, ObjectType.USER)
        return [parse_user_permission(v) for v in self.transport.paginate(path)]

    def list_permissions(self, workspace: str, repository: str) -> list[Permission]:
        """List all explicit permissions: groups first, then users."""
        permissions = self.list_group_permissions(workspace, repository)
        permissions.extend(self.list_user_permissions(workspace, repository))
        return permissions

    def set_permission(
        self,
        workspace: str,
        repository: str,
        object_type: ObjectType,
        object_id: str,
        permission: PermissionType,
    ) -> None:
        """
        Grant or change a permission.

        The call is an upsert, so repeating it with the same level is harmless.
        """
        self.transport.request(
            "PUT",
            permissions_path(workspace, repository, object_type, object_id),
            body={"permission": permission.value},
        )

    def revoke_permission(
        self,
        workspace: str,
        repository: str,
        object_type: ObjectType,
        object_id: str,
    ) -> None:
        """Revoke an explicit permission."""
        self.transport.request(
            "DELETE",
            permissions_path(workspace, repository, object_type, object_id),
        )

    def apply(self, workspace: str, repository: str, operation: Operation) -> None:
        """
        Apply a single operation.

        Raises:
            ValueError: If the operation is a no-op
            BitbucketError: If the request fails
        """
        if operation.action in (OperationType.ADD, OperationType.UPDATE):
            if operation.permission_after is None:
                raise ValueError(f"{operation.action.value} operation without a level: {operation!r}")
            self.set_permission(
                workspace,
                repository,
                operation.object_type,
                operation.object_id,
                operation.permission_after,
            )
        elif operation.action is OperationType.REMOVE:
            self.revoke_permission(
                workspace,
                repository,
                operation.object_type,
                operation.object_id,
            )
        else:
            raise ValueError(f"Cannot apply a no-op operation: {operation.message()}")

    def update_permissions(
        self,
        workspace: str,
        repository: str,
        operations: Iterable[Operation],
    ) -> list[Operation]:
        """
        Apply operations one at a time, stopping at the first failure.

        No-op operations are skipped. Nothing is rolled back on failure.

        Args:
            workspace: Workspace slug
            repository: Repository slug
            operations: Operations to apply, in order

        Returns:
            The operations that were applied

        Raises:
            BitbucketError: The error of the first failing operation
        """
        applied: list[Operation] = []
        for operation in operations:
            if operation.is_same:
                logger.debug("Skipping no-op: %s", operation.message())
                continue
            logger.info("%s/%s: %s", workspace, repository, operation.message())
            self.apply(workspace, repository, operation)
            applied.append(operation)
        return applied
