"""
Sentinel OAuth Python Package

OAuth2 authorization server core: client authentication and token storage.
"""

__version__ = "0.1.0"

from .clients import Client, ClientManager, ClientRepository, CreateClientResult, MemoryClientRepository
from .core import SentinelOptions, SignatureAuthenticationOptions, configure_authorization_server
from .crypto import BcryptPasswordCryptoProvider, RsaAsymmetricCryptoProvider
from .identity import (
    BasicAuthenticationDigest,
    ClaimType,
    SentinelPrincipal,
    SignatureAuthenticationDigest,
)
from .tokenstore import (
    AccessToken,
    AuthorizationCode,
    MemoryTokenRepository,
    RedisTokenRepository,
    RedisTokenRepositoryConfig,
    RefreshToken,
    TokenRepository,
)

__all__ = [
    "Client",
    "ClientManager",
    "ClientRepository",
    "CreateClientResult",
    "MemoryClientRepository",
    "SentinelOptions",
    "SignatureAuthenticationOptions",
    "configure_authorization_server",
    "BcryptPasswordCryptoProvider",
    "RsaAsymmetricCryptoProvider",
    "BasicAuthenticationDigest",
    "ClaimType",
    "SentinelPrincipal",
    "SignatureAuthenticationDigest",
    "AccessToken",
    "AuthorizationCode",
    "MemoryTokenRepository",
    "RedisTokenRepository",
    "RedisTokenRepositoryConfig",
    "RefreshToken",
    "TokenRepository",
]
