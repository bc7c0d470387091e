"""
Crypto provider interfaces for Sentinel.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union


class PasswordCryptoProvider(ABC):
    """Creates salted password hashes and validates cleartext against them."""

    @abstractmethod
    def create_hash(self, cleartext: Optional[str] = None, work_factor: Optional[int] = None) -> Tuple[str, str]:
        """
        Create a salted hash.

        Args:
            cleartext: Value to hash; a random secret is generated when omitted
            work_factor: Cost of the hash, provider specific

        Returns:
            Tuple of (hash, cleartext). The cleartext is meant to be shown to
            the operator once and never stored.
        """
        pass

    @abstractmethod
    def validate_hash(self, cleartext: str, digest: str) -> bool:
        """
        Validate cleartext against a hash in constant time.

        Never raises for malformed hashes; returns False instead.
        """
        pass


class AsymmetricCryptoProvider(ABC):
    """Generates key pairs and signs or verifies arbitrary payloads."""

    @abstractmethod
    def generate_keys(self) -> Tuple[str, str]:
        """
        Generate a key pair.

        Returns:
            Tuple of (public_key, private_key) encoded as transportable strings
        """
        pass

    @abstractmethod
    def sign(self, data: Union[str, bytes], private_key: str) -> str:
        """Sign data with a private key and return the encoded signature."""
        pass

    @abstractmethod
    def validate_signature(self, data: Union[str, bytes], signature: str, public_key: str) -> bool:
        """
        Verify a signature over data with a public key.

        Never raises for malformed keys or signatures; returns False instead.
        """
        pass
