"""
Token storage types and interfaces for Sentinel.

This module provides the token data structures shared by every backend
(authorization codes, access tokens and refresh tokens), the flat
field-to-string mapping used by key-value stores, and the abstract
repository contract the backends implement.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Type, TypeVar

from ..common.utils import (
    ensure_utc,
    get_current_time,
    to_unix_time,
    urlsafe_b64encode,
)
from ..errors import TokenValidationError


logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BaseToken")


class TokenKind(Enum):
    """Token kind enumeration."""

    AUTHORIZATION_CODE = "authorization_code"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"


def generate_token_id(client_id: str, redirect_uri: str, subject: str, value: str) -> str:
    """
    Build the opaque identifier of a token.

    The identifier is the base64url encoding of the token's client,
    redirect URI, subject and value, so the identifier namespace embeds
    the redirect URI the token is bound to.
    """
    return urlsafe_b64encode(f"{client_id}:{redirect_uri}:{subject}:{value}")


@dataclass(eq=False)
class BaseToken:
    """
    Data shared by all token kinds.

    Identity is by ``id``: two tokens with the same identifier compare
    equal whatever their other attributes.
    """

    kind = TokenKind.ACCESS_TOKEN
    value_field = "token"
    required_fields = ("client_id", "redirect_uri", "subject", "value", "created", "valid_to")

    id: str = ""
    client_id: Optional[str] = None
    redirect_uri: Optional[str] = None
    subject: Optional[str] = None
    ticket: Optional[str] = None
    created: Optional[datetime] = field(default_factory=get_current_time)
    valid_to: Optional[datetime] = None

    def __post_init__(self):
        if self.created is not None:
            self.created = ensure_utc(self.created)
        if self.valid_to is not None:
            self.valid_to = ensure_utc(self.valid_to)
        if not self.id and self.value and self.client_id and self.redirect_uri is not None:
            self.id = generate_token_id(self.client_id, self.redirect_uri, self.subject or "", self.value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BaseToken):
            return NotImplemented
        return self.kind == other.kind and self.id == other.id

    def __hash__(self) -> int:
        return hash((self.kind, self.id))

    @property
    def value(self) -> Optional[str]:
        """The code or token value."""
        return getattr(self, self.value_field, None)

    def is_active(self, at: Optional[datetime] = None) -> bool:
        """
        Check if the token is active at the given time.

        A token is active while its expiry is strictly after ``at``.
        """
        if self.valid_to is None:
            return False
        at = ensure_utc(at) if at is not None else get_current_time()
        return self.valid_to > at

    def missing_fields(self) -> List[str]:
        """Names of mandatory fields that are empty."""
        missing = []
        for name in self.required_fields:
            value = getattr(self, name)
            if value is None or value == "":
                missing.append(name)
        if not self.id:
            missing.append("id")
        return missing

    def validate(self) -> None:
        """
        Validate that all mandatory fields are present.

        Raises:
            TokenValidationError: If a mandatory field is missing
        """
        missing = self.missing_fields()
        if missing:
            raise TokenValidationError(
                f"The {self.kind.value.replace('_', ' ')} is invalid, missing: {', '.join(missing)}",
                missing_fields=missing,
                token_id=self.id or None
            )

    def to_hash(self) -> Dict[str, str]:
        """
        Convert the token to a flat field-to-string mapping.

        Timestamps are written in ISO 8601 format; absent optional fields
        are written as empty strings.
        """
        return {
            "id": self.id,
            "client_id": self.client_id or "",
            "redirect_uri": self.redirect_uri or "",
            "subject": self.subject or "",
            "ticket": self.ticket or "",
            "created": self.created.isoformat() if self.created else "",
            "valid_to": self.valid_to.isoformat() if self.valid_to else "",
            self.value_field: self.value or "",
        }

    @property
    def score(self) -> float:
        """Expiry in seconds since the epoch, used to index tokens by expiry."""
        return to_unix_time(self.valid_to)

    @classmethod
    def from_hash(cls: Type[T], entries: Dict[str, str]) -> T:
        """
        Create a token from a flat field-to-string mapping.

        Args:
            entries: Mapping as produced by :meth:`to_hash`

        Returns:
            Token instance
        """
        def _text(name: str) -> Optional[str]:
            value = entries.get(name)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            return value if value else None

        created = _text("created")
        valid_to = _text("valid_to")

        return cls(
            id=_text("id") or "",
            client_id=_text("client_id"),
            redirect_uri=_text("redirect_uri"),
            subject=_text("subject"),
            ticket=_text("ticket"),
            created=datetime.fromisoformat(created) if created else None,
            valid_to=datetime.fromisoformat(valid_to) if valid_to else None,
            **{cls.value_field: _text(cls.value_field)}
        )


@dataclass(eq=False)
class AuthorizationCode(BaseToken):
    """An authorization code. Single use: delete it when it is redeemed."""

    kind = TokenKind.AUTHORIZATION_CODE
    value_field = "code"
    required_fields = BaseToken.required_fields + ("ticket",)

    code: Optional[str] = None


@dataclass(eq=False)
class AccessToken(BaseToken):
    """An access token."""

    kind = TokenKind.ACCESS_TOKEN
    value_field = "token"

    token: Optional[str] = None


@dataclass(eq=False)
class RefreshToken(BaseToken):
    """A refresh token. Single use: delete it when it is redeemed."""

    kind = TokenKind.REFRESH_TOKEN
    value_field = "token"

    token: Optional[str] = None


TOKEN_TYPES: Dict[TokenKind, Type[BaseToken]] = {
    TokenKind.AUTHORIZATION_CODE: AuthorizationCode,
    TokenKind.ACCESS_TOKEN: AccessToken,
    TokenKind.REFRESH_TOKEN: RefreshToken,
}


class TokenRepository(ABC):
    """
    Abstract base class for token repositories.

    Every backend stores authorization codes, access tokens and refresh
    tokens, indexes them by expiry, and must be safe for concurrent use.
    Subclasses implement the kind-generic primitives; the per-kind methods
    are thin wrappers shared by all backends.

    Active queries return tokens whose expiry is strictly after the given
    cutoff. Inserts validate before writing and return ``None`` when the
    backend fails to store the token.
    """

    @abstractmethod
    async def insert(self, token: T) -> Optional[T]:
        """
        Insert a token.

        Args:
            token: Token to insert

        Returns:
            The inserted token, or None if the backend failed to store it

        Raises:
            TokenValidationError: If mandatory fields are missing
        """
        pass

    @abstractmethod
    async def get(self, kind: TokenKind, token_id: str) -> Optional[BaseToken]:
        """
        Look up a token by identifier, regardless of its expiry.

        Args:
            kind: Token kind
            token_id: Token identifier

        Returns:
            The token if it is still stored, None otherwise
        """
        pass

    @abstractmethod
    async def get_active(self, kind: TokenKind, expires: datetime,
                         redirect_uri: Optional[str] = None) -> List[BaseToken]:
        """
        Get tokens that expire after the specified time.

        Args:
            kind: Token kind
            expires: Cutoff time; only tokens with a later expiry are returned
            redirect_uri: When given, only tokens bound to exactly this URI

        Returns:
            List of active tokens in no particular order
        """
        pass

    @abstractmethod
    async def delete(self, token: BaseToken) -> bool:
        """
        Delete exactly the given token.

        Args:
            token: Token to delete

        Returns:
            True if the token was present, False otherwise
        """
        pass

    @abstractmethod
    async def delete_expired(self, kind: TokenKind, expires: datetime) -> int:
        """
        Delete tokens that expire at or before the specified time.

        Args:
            kind: Token kind
            expires: Cutoff time

        Returns:
            Number of tokens removed
        """
        pass

    # Authorization codes

    async def insert_authorization_code(self, code: AuthorizationCode) -> Optional[AuthorizationCode]:
        """Insert an authorization code. Called when creating an authorization code."""
        return await self.insert(code)

    async def get_authorization_code(self, code_id: str) -> Optional[AuthorizationCode]:
        """Get an authorization code by identifier."""
        return await self.get(TokenKind.AUTHORIZATION_CODE, code_id)

    async def get_authorization_codes(self, redirect_uri: str, expires: datetime) -> List[AuthorizationCode]:
        """
        Get authorization codes bound to the redirect URI that expire after
        the specified time. Called when authenticating an authorization code.
        """
        return await self.get_active(TokenKind.AUTHORIZATION_CODE, expires, redirect_uri)

    async def delete_authorization_code(self, code: AuthorizationCode) -> bool:
        """Delete an authorization code to prevent re-use."""
        return await self.delete(code)

    async def delete_authorization_codes(self, expires: datetime) -> int:
        """Delete authorization codes that expire at or before the specified time."""
        return await self.delete_expired(TokenKind.AUTHORIZATION_CODE, expires)

    # Access tokens

    async def insert_access_token(self, token: AccessToken) -> Optional[AccessToken]:
        """Insert an access token. Called when creating an access token."""
        return await self.insert(token)

    async def get_access_token(self, token_id: str) -> Optional[AccessToken]:
        """Get an access token by identifier."""
        return await self.get(TokenKind.ACCESS_TOKEN, token_id)

    async def get_access_tokens(self, expires: datetime,
                                redirect_uri: Optional[str] = None) -> List[AccessToken]:
        """Get access tokens that expire after the specified time."""
        return await self.get_active(TokenKind.ACCESS_TOKEN, expires, redirect_uri)

    async def delete_access_token(self, token: AccessToken) -> bool:
        """Delete an access token."""
        return await self.delete(token)

    async def delete_access_tokens(self, expires: datetime) -> int:
        """Delete access tokens that expire at or before the specified time."""
        return await self.delete_expired(TokenKind.ACCESS_TOKEN, expires)

    # Refresh tokens

    async def insert_refresh_token(self, token: RefreshToken) -> Optional[RefreshToken]:
        """Insert a refresh token. Called when creating a refresh token."""
        return await self.insert(token)

    async def get_refresh_token(self, token_id: str) -> Optional[RefreshToken]:
        """Get a refresh token by identifier."""
        return await self.get(TokenKind.REFRESH_TOKEN, token_id)

    async def get_refresh_tokens(self, expires: datetime,
                                 redirect_uri: Optional[str] = None) -> List[RefreshToken]:
        """Get refresh tokens that expire after the specified time."""
        return await self.get_active(TokenKind.REFRESH_TOKEN, expires, redirect_uri)

    async def delete_refresh_token(self, token: RefreshToken) -> bool:
        """Delete a refresh token to prevent re-use."""
        return await self.delete(token)

    async def delete_refresh_tokens(self, expires: datetime) -> int:
        """Delete refresh tokens that expire at or before the specified time."""
        return await self.delete_expired(TokenKind.REFRESH_TOKEN, expires)

    async def close(self) -> None:
        """Release backend resources."""
        pass
