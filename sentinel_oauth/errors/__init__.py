"""
Structured error handling for the Sentinel OAuth core.

Every error raised by this package derives from :class:`SentinelError` and
carries an :class:`ErrorCode`, the source of the error and optional context.
Authentication failures are never raised: the client manager degrades them
to the anonymous principal. Only validation, identity, configuration and
storage faults surface as exceptions.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # Token related errors
    INVALID_TOKEN = "invalid_token"
    MISSING_PARAMETER = "missing_parameter"

    # Client errors
    INVALID_CLIENT = "invalid_client"
    INVALID_REDIRECT_URI = "invalid_redirect_uri"
    INVALID_USER_ID = "invalid_user_id"
    INVALID_REQUEST = "invalid_request"

    # Server errors
    SERVER_ERROR = "server_error"
    CONFIGURATION_ERROR = "configuration_error"
    STORAGE_ERROR = "storage_error"


class ErrorSource(Enum):
    """Sources where errors can originate."""

    CLIENT = "client"
    SERVER = "server"
    STORAGE = "storage"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    TOKEN_STORE = "token_store"


@dataclass
class ErrorContext:
    """Additional context for errors."""

    client_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)


class SentinelError(Exception):
    """
    Base exception class for all Sentinel errors.

    Provides structured error information with an error code, the
    component the error originated from, and additional context.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        source: ErrorSource = ErrorSource.SERVER,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.code = code
        self.message = message
        self.source = source
        self.context = context or ErrorContext()
        self.cause = cause

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to an OAuth2 style dictionary."""
        result = {
            "error": self.code.value,
            "error_description": self.message,
            "error_source": self.source.value,
            "timestamp": self.context.timestamp.isoformat(),
        }

        if self.context.client_id:
            result["client_id"] = self.context.client_id

        if self.context.metadata:
            result["metadata"] = self.context.metadata

        if self.cause:
            result["caused_by"] = str(self.cause)

        return result

    def is_client_error(self) -> bool:
        """Check if this is a client-side error."""
        return self.source == ErrorSource.CLIENT or self.code in [
            ErrorCode.INVALID_REQUEST,
            ErrorCode.INVALID_CLIENT,
            ErrorCode.INVALID_REDIRECT_URI,
            ErrorCode.INVALID_USER_ID,
        ]


class TokenValidationError(SentinelError, ValueError):
    """A token is missing one or more mandatory fields."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None, token_id: Optional[str] = None):
        context = ErrorContext()
        self.missing_fields = list(missing_fields or [])
        if self.missing_fields:
            context.metadata["missing_fields"] = self.missing_fields
        if token_id:
            context.metadata["token_id"] = token_id

        super().__init__(
            code=ErrorCode.MISSING_PARAMETER,
            message=message,
            source=ErrorSource.VALIDATION,
            context=context
        )


class IdentityError(SentinelError, ValueError):
    """
    The caller presented an identity that cannot be used.

    Raised by signature authentication only, for unknown or disabled
    clients, redirect URI mismatches and user id mismatches.
    """

    def __init__(self, code: ErrorCode, message: str, client_id: Optional[str] = None):
        super().__init__(
            code=code,
            message=message,
            source=ErrorSource.CLIENT,
            context=ErrorContext(client_id=client_id)
        )


class InvalidClientError(IdentityError):
    """The client does not exist or is disabled."""

    def __init__(self, client_id: Optional[str] = None):
        super().__init__(ErrorCode.INVALID_CLIENT, "The client_id is invalid", client_id)


class InvalidRedirectUriError(IdentityError):
    """The redirect URI does not match the one registered for the client."""

    def __init__(self, client_id: Optional[str] = None):
        super().__init__(ErrorCode.INVALID_REDIRECT_URI, "The redirect_uri is invalid", client_id)


class InvalidUserIdError(IdentityError):
    """The user id of a signature digest differs from its client id."""

    def __init__(self, client_id: Optional[str] = None):
        super().__init__(
            ErrorCode.INVALID_USER_ID,
            "The user_id is invalid, must be equal to client_id",
            client_id
        )


class ConfigurationError(SentinelError):
    """The server options are incomplete or inconsistent."""

    def __init__(self, message: str, option: Optional[str] = None):
        context = ErrorContext()
        if option:
            context.metadata["option"] = option

        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            source=ErrorSource.SERVER,
            context=context
        )


class StorageError(SentinelError):
    """Errors related to storage operations."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(
            code=ErrorCode.STORAGE_ERROR,
            message=message,
            source=ErrorSource.STORAGE,
            cause=cause
        )


__all__ = [
    "ErrorCode",
    "ErrorSource",
    "ErrorContext",
    "SentinelError",
    "TokenValidationError",
    "IdentityError",
    "InvalidClientError",
    "InvalidRedirectUriError",
    "InvalidUserIdError",
    "ConfigurationError",
    "StorageError",
]
