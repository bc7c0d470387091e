"""
In-memory token repository implementation for Sentinel.

This module provides an asyncio-safe in-memory token repository
suitable for development, tests and single-instance deployments.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from ..common.utils import ensure_utc
from .store import BaseToken, TokenKind, TokenRepository, T


logger = logging.getLogger(__name__)


class MemoryTokenRepository(TokenRepository):
    """
    In-memory token repository.

    Each token kind lives in its own dictionary keyed by token identifier.
    Instances are explicitly constructed and owned by the caller; nothing
    is shared between two repositories. Tokens are copied on the way in
    and out, so stored state only changes through the repository.

    There is no native expiry: active filtering is computed from the
    stored expiry at query time and expired tokens stay retrievable by
    identifier until ``delete_expired`` runs.
    """

    def __init__(self):
        self._tokens: Dict[TokenKind, Dict[str, BaseToken]] = {kind: {} for kind in TokenKind}
        self._lock = asyncio.Lock()

    async def insert(self, token: T) -> Optional[T]:
        """Validate and store a token."""
        token.validate()

        async with self._lock:
            self._tokens[token.kind][token.id] = replace(token)

        logger.debug(f"Stored {token.kind.value} for client {token.client_id}")
        return token

    async def get(self, kind: TokenKind, token_id: str) -> Optional[BaseToken]:
        """Look up a token by identifier."""
        async with self._lock:
            token = self._tokens[kind].get(token_id)
            return replace(token) if token is not None else None

    async def get_active(self, kind: TokenKind, expires: datetime,
                         redirect_uri: Optional[str] = None) -> List[BaseToken]:
        """Get tokens whose expiry is strictly after ``expires``."""
        cutoff = ensure_utc(expires)

        async with self._lock:
            tokens = list(self._tokens[kind].values())

        return [
            replace(token) for token in tokens
            if token.valid_to > cutoff
            and (redirect_uri is None or token.redirect_uri == redirect_uri)
        ]

    async def delete(self, token: BaseToken) -> bool:
        """Remove a token; exactly one concurrent caller sees True."""
        async with self._lock:
            removed = self._tokens[token.kind].pop(token.id, None)

        if removed is None:
            return False

        logger.debug(f"Deleted {token.kind.value} for client {removed.client_id}")
        return True

    async def delete_expired(self, kind: TokenKind, expires: datetime) -> int:
        """Remove tokens whose expiry is at or before ``expires``."""
        cutoff = ensure_utc(expires)

        async with self._lock:
            store = self._tokens[kind]
            expired = [token_id for token_id, token in store.items() if token.valid_to <= cutoff]

            for token_id in expired:
                del store[token_id]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired {kind.value} entries")

        return len(expired)

    async def count(self, kind: TokenKind) -> int:
        """Count stored tokens of a kind, expired or not."""
        async with self._lock:
            return len(self._tokens[kind])

    async def clear(self) -> int:
        """
        Clear all tokens from the repository.

        Returns:
            Number of tokens cleared
        """
        async with self._lock:
            count = sum(len(store) for store in self._tokens.values())
            for store in self._tokens.values():
                store.clear()

        logger.info(f"Cleared {count} tokens from memory repository")
        return count
