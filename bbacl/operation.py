"""
Permission operations and the diff that produces them.

An Operation describes one change to a repository's permissions: grant a
level to a principal, change it, revoke it, or leave it alone. Operations are
built either from a single Permission (``Operation.add`` and friends) or by
diffing two permission sets with ``make_operation_list``.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from bbacl.types.permissions import ObjectType, Permission, PermissionType


class OperationType(str, Enum):
    """What an operation does to the target repository."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    NONE = "none"


@dataclass(frozen=True)
class Operation:
    """A single change to apply to a repository's permissions."""

    object_id: str
    object_name: str
    object_type: ObjectType
    action: OperationType
    permission_before: PermissionType | None = None
    permission_after: PermissionType | None = None

    @classmethod
    def add(cls, permission: Permission) -> "Operation":
        return cls(
            object_id=permission.object_id,
            object_name=permission.object_name,
            object_type=permission.object_type,
            action=OperationType.ADD,
            permission_after=permission.permission,
        )

    @classmethod
    def remove(cls, permission: Permission) -> "Operation":
        return cls(
            object_id=permission.object_id,
            object_name=permission.object_name,
            object_type=permission.object_type,
            action=OperationType.REMOVE,
            permission_before=permission.permission,
        )

    @classmethod
    def update(cls, permission: Permission, after: PermissionType) -> "Operation":
        return cls(
            object_id=permission.object_id,
            object_name=permission.object_name,
            object_type=permission.object_type,
            action=OperationType.UPDATE,
            permission_before=permission.permission,
            permission_after=after,
        )

    @property
    def is_same(self) -> bool:
        """True when the operation leaves the grant unchanged."""
        return self.action is OperationType.NONE

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.object_type.value, self.object_id)

    def message(self) -> str:
        """Render a one-line description, e.g. ``Update: user jdoe READ => WRITE``."""
        kind = self.object_type.value
        before = _level(self.permission_before)
        after = _level(self.permission_after)

        if self.action is OperationType.UPDATE:
            return f"Update: {kind} {self.object_name} {before} => {after}"
        if self.action is OperationType.ADD:
            return f"Add: {kind} {self.object_name} ({after})"
        if self.action is OperationType.REMOVE:
            return f"Remove: {kind} {self.object_name} ({before})"
        return f"Same: {kind} {self.object_name} ({after})"

    def __str__(self) -> str:
        return self.message()


def _level(permission: PermissionType | None) -> str:
    return permission.value.upper() if permission is not None else ""


def _index(permissions: Iterable[Permission]) -> dict[tuple[ObjectType, str], Permission]:
    return {(p.object_type, p.object_id): p for p in permissions}


def make_operation_list(
    source: Iterable[Permission],
    target: Iterable[Permission],
) -> list[Operation]:
    """
    Compute the operations that make ``target`` match ``source``.

    Grants are matched by (object type, object id). Every matched grant yields
    either an update or a no-op, so the result doubles as a full
    reconciliation plan; filter with ``is_same`` before executing.

    Args:
        source: Permissions of the repository to copy from (desired state)
        target: Current permissions of the repository to change

    Returns:
        Operations sorted by object type, then object id
    """
    source_map = _index(source)
    target_map = _index(target)

    operations: list[Operation] = []

    for key, src in source_map.items():
        dst = target_map.get(key)
        if dst is None:
            operations.append(Operation.add(src))
            continue

        operations.append(
            Operation(
                object_id=src.object_id,
                object_name=src.object_name,
                object_type=src.object_type,
                action=(
                    OperationType.UPDATE
                    if dst.permission != src.permission
                    else OperationType.NONE
                ),
                permission_before=dst.permission,
                permission_after=src.permission,
            )
        )

    for key, dst in target_map.items():
        if key not in source_map:
            operations.append(Operation.remove(dst))

    # Keys are unique, so (type, id) is a total order
    operations.sort(key=lambda o: o.sort_key)
    return operations


def changes_only(operations: Iterable[Operation]) -> list[Operation]:
    """Drop no-op operations, preserving order."""
    return [o for o in operations if not o.is_same]


__all__ = [
    "Operation",
    "OperationType",
    "make_operation_list",
    "changes_only",
]
