"""bbacl exception classes."""

from typing import Any


class BitbucketError(Exception):
    """Base exception for all bbacl errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        fields: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.fields = fields or {}
        super().__init__(self._format())

    def _format(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.status_code is not None:
            text = f"[{self.code}] HTTP {self.status_code}: {self.message}"
        if self.fields:
            details = ", ".join(f"{k}: {v}" for k, v in sorted(self.fields.items()))
            text = f"{text} ({details})"
        return text


class ConfigurationError(BitbucketError):
    """Raised when credentials or the config file are invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class TransportError(BitbucketError):
    """Raised on network, DNS or TLS failures."""

    def __init__(self, message: str) -> None:
        super().__init__("CONNECTION_ERROR", message)


class DecodeError(BitbucketError):
    """Raised when a response payload cannot be decoded."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("DECODE_ERROR", message, status_code=status_code)


class AuthenticationError(BitbucketError):
    """Raised when the credentials are rejected."""

    pass


class AuthorizationError(BitbucketError):
    """Raised when access is denied."""

    pass


class NotFoundError(BitbucketError):
    """Raised when a repository, principal or reviewer is not found."""

    pass


class ConflictError(BitbucketError):
    """Raised on conflicting updates."""

    pass


class RateLimitedError(BitbucketError):
    """Raised when rate limited. Never retried automatically."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        status_code: int | None = None,
        error_type: str | None = None,
        fields: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, status_code, error_type, fields)
        self.retry_after = retry_after


class ValidationError(BitbucketError):
    """Raised on other 4xx responses."""

    pass


class ServerError(BitbucketError):
    """Raised on server errors (5xx)."""

    pass
