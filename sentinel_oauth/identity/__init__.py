"""
Identity package for Sentinel: claims, principals and credential digests.
"""

from .claims import (
    ANONYMOUS,
    AuthenticationMethod,
    AuthenticationType,
    Claim,
    ClaimType,
    SentinelIdentity,
    SentinelPrincipal,
)
from .digest import (
    BasicAuthenticationCipher,
    BasicAuthenticationDigest,
    SignatureAuthenticationDigest,
)

__all__ = [
    "ANONYMOUS",
    "AuthenticationMethod",
    "AuthenticationType",
    "Claim",
    "ClaimType",
    "SentinelIdentity",
    "SentinelPrincipal",
    "BasicAuthenticationCipher",
    "BasicAuthenticationDigest",
    "SignatureAuthenticationDigest",
]
