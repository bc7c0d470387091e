"""
Crypto providers for Sentinel: password hashing and asymmetric signatures.
"""

from .types import AsymmetricCryptoProvider, PasswordCryptoProvider
from .password import BcryptPasswordCryptoProvider
from .asymmetric import RsaAsymmetricCryptoProvider

__all__ = [
    "AsymmetricCryptoProvider",
    "PasswordCryptoProvider",
    "BcryptPasswordCryptoProvider",
    "RsaAsymmetricCryptoProvider",
]
