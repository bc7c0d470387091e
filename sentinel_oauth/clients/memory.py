"""
In-memory client repository.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .store import Client, ClientRepository


logger = logging.getLogger(__name__)


class MemoryClientRepository(ClientRepository):
    """
    In-memory client repository for development and testing.

    Records are copied on the way in and out, so callers only change
    stored state through :meth:`update`.
    """

    def __init__(self):
        self._clients: Dict[str, Client] = {}
        self._lock = asyncio.Lock()

    async def create(self, client: Client) -> Optional[Client]:
        async with self._lock:
            if client.client_id in self._clients:
                logger.warning(f"Client {client.client_id} already exists")
                return None
            self._clients[client.client_id] = replace(client)

        logger.info(f"Created client {client.client_id}")
        return replace(client)

    async def get_client(self, client_id: str) -> Optional[Client]:
        async with self._lock:
            client = self._clients.get(client_id)
            return replace(client) if client else None

    async def get_clients(self) -> List[Client]:
        async with self._lock:
            return [replace(client) for client in self._clients.values()]

    async def update(self, client_id: str, client: Client) -> Optional[Client]:
        async with self._lock:
            if client_id not in self._clients:
                return None
            self._clients[client_id] = replace(client)

        logger.debug(f"Updated client {client_id}")
        return replace(client)

    async def delete(self, client_id: str) -> bool:
        async with self._lock:
            removed = self._clients.pop(client_id, None)

        if removed is not None:
            logger.info(f"Deleted client {client_id}")
        return removed is not None
