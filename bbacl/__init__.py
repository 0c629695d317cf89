"""bbacl - reconcile repository permissions on Bitbucket Cloud."""

__version__ = "1.0.0"

from bbacl.async_client import AsyncBitbucketClient
from bbacl.client import BitbucketClient
from bbacl.config import Config, load_config
from bbacl.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BitbucketError,
    ConfigurationError,
    ConflictError,
    DecodeError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from bbacl.logging import configure_logging, get_logger
from bbacl.operation import Operation, OperationType, changes_only, make_operation_list
from bbacl.transport import HTTPTransport
from bbacl.types import Account, ObjectType, Permission, PermissionType, ReviewerResult

__all__ = [
    "__version__",
    # Main Clients
    "BitbucketClient",
    "AsyncBitbucketClient",
    # Configuration
    "Config",
    "load_config",
    # Model
    "ObjectType",
    "PermissionType",
    "Permission",
    "Account",
    "ReviewerResult",
    # Operations
    "Operation",
    "OperationType",
    "make_operation_list",
    "changes_only",
    # Exceptions
    "BitbucketError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ValidationError",
    "ServerError",
    "TransportError",
    "DecodeError",
    "ConfigurationError",
    # Transport
    "HTTPTransport",
    # Logging
    "configure_logging",
    "get_logger",
]
