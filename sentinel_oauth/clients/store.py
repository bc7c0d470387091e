"""
Client records and the client repository interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Client:
    """
    A registered OAuth2 client.

    ``client_secret`` holds the hash produced by the password provider,
    never the cleartext. ``public_key`` is optional and enables signature
    authentication. ``last_used`` is updated on every successful
    authentication.
    """

    client_id: str
    name: str
    redirect_uri: str
    enabled: bool = True
    client_secret: Optional[str] = None
    public_key: Optional[str] = None
    last_used: Optional[datetime] = None

    def get_identifier(self) -> str:
        return self.client_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation, without the secret hash."""
        return {
            "client_id": self.client_id,
            "name": self.name,
            "redirect_uri": self.redirect_uri,
            "enabled": self.enabled,
            "public_key": self.public_key,
            "last_used": self.last_used.isoformat() if self.last_used else None,
        }


@dataclass
class CreateClientResult:
    """
    Outcome of client creation.

    The cleartext secret and the private key are handed out once here
    and are not stored anywhere on the server.
    """

    client: Client
    client_secret: str
    private_key: str


class ClientRepository(ABC):
    """Abstract base class for client storage."""

    @abstractmethod
    async def create(self, client: Client) -> Optional[Client]:
        """
        Store a new client.

        Returns:
            The stored client, or None if a client with that id exists
        """
        pass

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Client]:
        """Get a client by id, or None."""
        pass

    @abstractmethod
    async def get_clients(self) -> List[Client]:
        """Get all clients."""
        pass

    @abstractmethod
    async def update(self, client_id: str, client: Client) -> Optional[Client]:
        """
        Replace the stored record of a client.

        Returns:
            The updated client, or None if no such client exists
        """
        pass

    @abstractmethod
    async def delete(self, client_id: str) -> bool:
        """Delete a client. Returns True if it existed."""
        pass
