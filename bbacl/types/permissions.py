"""Permission-related data models."""

from dataclasses import dataclass
from enum import Enum

from bbacl.exceptions import DecodeError


class ObjectType(str, Enum):
    """Kind of principal a grant applies to."""

    USER = "user"
    GROUP = "group"

    def __str__(self) -> str:
        return self.value


class PermissionType(str, Enum):
    """Permission level, in increasing order of privilege."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str) -> "PermissionType":
        try:
            return cls(value)
        except ValueError:
            raise DecodeError(f"Unknown permission type: {value!r}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Permission:
    """One principal's access grant on a repository."""

    object_id: str  # group slug or user UUID
    object_name: str
    object_type: ObjectType
    permission: PermissionType
