"""
Client package for Sentinel: client records, storage and authentication.
"""

from .store import Client, ClientRepository, CreateClientResult
from .memory import MemoryClientRepository
from .manager import ClientManager

__all__ = [
    "Client",
    "ClientRepository",
    "CreateClientResult",
    "MemoryClientRepository",
    "ClientManager",
]
