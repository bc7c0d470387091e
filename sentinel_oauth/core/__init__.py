"""
Core configuration and assembly of the Sentinel authorization server.
"""

from .config import SentinelOptions, SignatureAuthenticationOptions
from .server import configure_authorization_server

__all__ = [
    "SentinelOptions",
    "SignatureAuthenticationOptions",
    "configure_authorization_server",
]
