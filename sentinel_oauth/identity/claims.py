"""
Claims-based identities for Sentinel.

A principal is an identity plus an ordered tuple of typed claims. Failed
authentications produce the canonical anonymous principal rather than
``None``, so callers always receive something they can inspect.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class ClaimType(Enum):
    """Claim vocabulary used by the client authentication engine."""

    NAME = "name"
    NAME_IDENTIFIER = "nameid"
    REDIRECT_URI = "urn:oauth:redirect_uri"
    CLIENT = "urn:oauth:client"
    SCOPE = "urn:oauth:scope"
    AUTHENTICATION_METHOD = "amr"
    AUTHENTICATION_SOURCE = "urn:oauth:authsource"


class AuthenticationType(Enum):
    """Scheme tag of an identity."""

    ANONYMOUS = "anonymous"
    OAUTH = "oauth"
    BASIC = "basic"
    SIGNATURE = "signature"


class AuthenticationMethod:
    """Values of the authentication method claim."""

    CLIENT_ID = "client_id"
    CLIENT_CREDENTIALS = "client_credentials"
    BASIC = "basic"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class Claim:
    """A single typed fact about a principal."""

    type: ClaimType
    value: str


class SentinelIdentity:
    """An authentication scheme tag and its ordered claims."""

    def __init__(self, authentication_type: AuthenticationType, *claims: Claim):
        self.authentication_type = authentication_type
        self._claims: Tuple[Claim, ...] = tuple(claims)

    @property
    def claims(self) -> Tuple[Claim, ...]:
        return self._claims

    def find_first(self, claim_type: ClaimType) -> Optional[Claim]:
        """Get the first claim of the given type, or None."""
        for claim in self._claims:
            if claim.type == claim_type:
                return claim
        return None

    def find_all(self, claim_type: ClaimType) -> List[Claim]:
        """Get all claims of the given type in order."""
        return [claim for claim in self._claims if claim.type == claim_type]

    def has_claim(self, claim_type: ClaimType, value: Optional[str] = None) -> bool:
        """Check for a claim, optionally with a specific value."""
        return any(
            claim.type == claim_type and (value is None or claim.value == value)
            for claim in self._claims
        )

    @property
    def name(self) -> Optional[str]:
        claim = self.find_first(ClaimType.NAME)
        return claim.value if claim else None

    @property
    def is_authenticated(self) -> bool:
        """True iff non-empty name and name identifier claims are present."""
        name = self.find_first(ClaimType.NAME)
        identifier = self.find_first(ClaimType.NAME_IDENTIFIER)
        return bool(name and name.value and identifier and identifier.value)

    def __iter__(self) -> Iterator[Claim]:
        return iter(self._claims)

    def __repr__(self) -> str:
        return f"SentinelIdentity({self.authentication_type.value}, claims={len(self._claims)})"


class SentinelPrincipal:
    """The authenticated (or anonymous) caller."""

    def __init__(self, identity: SentinelIdentity):
        self.identity = identity

    @classmethod
    def anonymous(cls) -> "SentinelPrincipal":
        """The canonical anonymous principal: no claims, not authenticated."""
        return ANONYMOUS

    @property
    def is_anonymous(self) -> bool:
        return not self.identity.is_authenticated

    def __repr__(self) -> str:
        return f"SentinelPrincipal({self.identity!r})"


ANONYMOUS = SentinelPrincipal(SentinelIdentity(AuthenticationType.ANONYMOUS))
