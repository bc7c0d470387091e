"""
Token repository package for Sentinel.

This package provides expiry-indexed storage for authorization codes,
access tokens and refresh tokens, with in-memory and distributed
Redis-based implementations of one shared repository contract.
"""

from .store import (
    TOKEN_TYPES,
    AccessToken,
    AuthorizationCode,
    BaseToken,
    RefreshToken,
    TokenKind,
    TokenRepository,
    generate_token_id,
)

from .memory import MemoryTokenRepository

from .distributed import (
    RedisTokenRepository,
    RedisTokenRepositoryConfig,
    create_redis_repository,
)

__all__ = [
    # Core types and interfaces
    "TOKEN_TYPES",
    "AccessToken",
    "AuthorizationCode",
    "BaseToken",
    "RefreshToken",
    "TokenKind",
    "TokenRepository",
    "generate_token_id",

    # Memory repository
    "MemoryTokenRepository",

    # Distributed repository
    "RedisTokenRepository",
    "RedisTokenRepositoryConfig",
    "create_redis_repository",
]
