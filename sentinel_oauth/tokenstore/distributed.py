"""
Distributed token repository implementation for Sentinel.

This module provides Redis-based token storage suitable for production
deployments with multiple instances.

Layout per token kind:

- every token is a hash stored under ``"<prefix>:<id>"`` with a native
  expiry set to the token's ``valid_to``
- a sorted set stored under ``"<prefix>"`` maps each token key to its
  expiry in seconds since the epoch

Redis removes expired hashes on its own, so bulk cleanup only trims the
sorted set. Expiry is set in milliseconds, rounded up, so a hash never
vanishes while its token is still active. Index entries whose hash has
vanished are pruned lazily when a query runs into them; pruning watches
the key and backs off if the token is written again in the meantime.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from ..common.utils import DATETIME_MAX, mask_sensitive_data, to_unix_time
from ..errors import StorageError
from .store import TOKEN_TYPES, BaseToken, TokenKind, TokenRepository, T


logger = logging.getLogger(__name__)


@dataclass
class RedisTokenRepositoryConfig:
    """Configuration for the Redis token repository."""

    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    ssl: bool = False
    socket_timeout: Optional[float] = 5.0
    authorization_code_prefix: str = "sentinel.oauth.AuthorizationCode"
    access_token_prefix: str = "sentinel.oauth.AccessToken"
    refresh_token_prefix: str = "sentinel.oauth.RefreshToken"
    connection: Optional[Any] = None
    connection_kwargs: Dict[str, Any] = field(default_factory=dict)

    def prefix_for(self, kind: TokenKind) -> str:
        """Get the key prefix for a token kind."""
        if kind == TokenKind.AUTHORIZATION_CODE:
            return self.authorization_code_prefix
        if kind == TokenKind.ACCESS_TOKEN:
            return self.access_token_prefix
        return self.refresh_token_prefix

    @classmethod
    def from_env(cls) -> "RedisTokenRepositoryConfig":
        """Create configuration from SENTINEL_REDIS_* environment variables."""
        timeout = os.getenv("SENTINEL_REDIS_SOCKET_TIMEOUT")
        return cls(
            host=os.getenv("SENTINEL_REDIS_HOST", "localhost"),
            port=int(os.getenv("SENTINEL_REDIS_PORT", "6379")),
            password=os.getenv("SENTINEL_REDIS_PASSWORD") or None,
            database=int(os.getenv("SENTINEL_REDIS_DATABASE", "0")),
            ssl=os.getenv("SENTINEL_REDIS_SSL", "false").lower() in ("true", "1", "yes", "on"),
            socket_timeout=float(timeout) if timeout else 5.0,
            authorization_code_prefix=os.getenv(
                "SENTINEL_REDIS_AUTHORIZATION_CODE_PREFIX", "sentinel.oauth.AuthorizationCode"
            ),
            access_token_prefix=os.getenv(
                "SENTINEL_REDIS_ACCESS_TOKEN_PREFIX", "sentinel.oauth.AccessToken"
            ),
            refresh_token_prefix=os.getenv(
                "SENTINEL_REDIS_REFRESH_TOKEN_PREFIX", "sentinel.oauth.RefreshToken"
            ),
        )


class RedisTokenRepository(TokenRepository):
    """
    Redis-based token repository.

    Correctness relies on Redis command atomicity: inserts run as one
    MULTI/EXEC transaction and single deletes decide their result from
    the ZREM reply, so only one of two racing deletes observes the token.
    Network timeouts are whatever the connection is configured with.
    """

    def __init__(self, config: RedisTokenRepositoryConfig):
        """
        Initialize the Redis token repository.

        Args:
            config: Repository configuration; when ``config.connection`` is
                set that client is used as-is and never closed here
        """
        self.config = config
        self._redis = config.connection
        self._owns_connection = config.connection is None

    def _get_database(self):
        """Get the Redis client, creating it on first use."""
        if self._redis is None:
            self._redis = redis.Redis(
                host=self.config.host,
                port=self.config.port,
                password=self.config.password,
                db=self.config.database,
                ssl=self.config.ssl,
                socket_timeout=self.config.socket_timeout,
                decode_responses=True,
                **self.config.connection_kwargs
            )
            logger.info(f"Connecting to Redis at {self.config.host}:{self.config.port} db {self.config.database}")
        return self._redis

    def _generate_key(self, token: BaseToken) -> str:
        return f"{self.config.prefix_for(token.kind)}:{token.id}"

    @staticmethod
    def _masked(key: str) -> str:
        # Token ids embed the token value
        prefix, _, token_id = key.rpartition(":")
        return f"{prefix}:{mask_sensitive_data(token_id, visible_chars=8)}"

    @staticmethod
    def _expire_at_ms(token: BaseToken) -> int:
        return math.ceil(to_unix_time(token.valid_to) * 1000)

    async def _prune(self, db, prefix: str, key: str) -> None:
        """Remove an index entry whose hash is gone, unless the key is rewritten meanwhile."""
        async with db.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                if await pipe.exists(key):
                    return

                pipe.multi()
                pipe.zrem(prefix, key)
                await pipe.execute()
                logger.debug(f"Pruned orphaned index entry {self._masked(key)} from {prefix}")

            except WatchError:
                logger.debug(f"Index entry {self._masked(key)} was rewritten while pruning, keeping it")

    async def insert(self, token: T) -> Optional[T]:
        """Validate a token, then write its hash, index entry and expiry."""
        token.validate()

        prefix = self.config.prefix_for(token.kind)
        key = self._generate_key(token)
        score = token.score

        try:
            db = self._get_database()

            async with db.pipeline(transaction=True) as pipe:
                logger.debug(f"Inserting {token.kind.value} hash in key {self._masked(key)}")
                pipe.hset(key, mapping=token.to_hash())

                logger.debug(f"Inserting key {self._masked(key)} to {prefix} set with score {score}")
                pipe.zadd(prefix, {key: score})

                logger.debug(f"Making key {self._masked(key)} expire at {token.valid_to.isoformat()}")
                pipe.pexpireat(key, self._expire_at_ms(token))

                await pipe.execute()

            return token

        except (RedisError, OSError) as e:
            logger.error(f"Error when inserting {token.kind.value}: {e}")

        return None

    async def get(self, kind: TokenKind, token_id: str) -> Optional[BaseToken]:
        """Look up a token by identifier; tokens past their native expiry are gone."""
        key = f"{self.config.prefix_for(kind)}:{token_id}"

        try:
            entries = await self._get_database().hgetall(key)
        except (RedisError, OSError) as e:
            raise StorageError(f"Failed to get {kind.value} {self._masked(key)}", cause=e) from e

        if not entries:
            return None

        return TOKEN_TYPES[kind].from_hash(entries)

    async def get_active(self, kind: TokenKind, expires: datetime,
                         redirect_uri: Optional[str] = None) -> List[BaseToken]:
        """Range-query the expiry index, then fetch each hash."""
        prefix = self.config.prefix_for(kind)
        token_type = TOKEN_TYPES[kind]
        db = self._get_database()

        try:
            keys = await db.zrangebyscore(prefix, f"({to_unix_time(expires)!r}", DATETIME_MAX)

            tokens = []
            for key in keys:
                if isinstance(key, bytes):
                    key = key.decode("utf-8")

                entries = await db.hgetall(key)

                if not entries:
                    await self._prune(db, prefix, key)
                    continue

                token = token_type.from_hash(entries)
                if redirect_uri is not None and token.redirect_uri != redirect_uri:
                    continue

                tokens.append(token)

            return tokens

        except (RedisError, OSError) as e:
            raise StorageError(f"Failed to query {prefix}", cause=e) from e

    async def delete(self, token: BaseToken) -> bool:
        """Remove a token from the index and drop its hash."""
        prefix = self.config.prefix_for(token.kind)
        key = self._generate_key(token)

        try:
            async with self._get_database().pipeline(transaction=True) as pipe:
                pipe.zrem(prefix, key)
                pipe.delete(key)
                removed, _ = await pipe.execute()
        except (RedisError, OSError) as e:
            raise StorageError(f"Failed to delete {self._masked(key)}", cause=e) from e

        if removed:
            logger.debug(f"Deleted {token.kind.value} key {self._masked(key)}")

        return bool(removed)

    async def delete_expired(self, kind: TokenKind, expires: datetime) -> int:
        """
        Trim index entries that expire at or before ``expires``.

        The hashes themselves are removed by Redis through their expiry.
        """
        prefix = self.config.prefix_for(kind)

        try:
            removed = await self._get_database().zremrangebyscore(prefix, 0, to_unix_time(expires))
        except (RedisError, OSError) as e:
            raise StorageError(f"Failed to clean up {prefix}", cause=e) from e

        if removed:
            logger.info(f"Cleaned up {removed} expired {kind.value} index entries")

        return int(removed)

    async def close(self) -> None:
        """Close the Redis connection if this repository created it."""
        if self._redis is not None and self._owns_connection:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")


def create_redis_repository(host: str = "localhost",
                            port: int = 6379,
                            database: int = 0,
                            **kwargs) -> RedisTokenRepository:
    """
    Create a Redis token repository.

    Args:
        host: Redis host
        port: Redis port
        database: Redis database number
        **kwargs: Additional configuration options

    Returns:
        RedisTokenRepository instance
    """
    config = RedisTokenRepositoryConfig(
        host=host,
        port=port,
        database=database,
        **kwargs
    )

    return RedisTokenRepository(config)
