"""
RSA asymmetric crypto provider.

Keys are exchanged as base64 encoded DER (SubjectPublicKeyInfo for public
keys, PKCS#8 for private keys); PEM text is accepted on input as well.
Signatures are RSASSA-PKCS1-v1_5 with SHA-256, base64 encoded.
"""

import base64
import binascii
import logging
from typing import Tuple, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .types import AsymmetricCryptoProvider

logger = logging.getLogger(__name__)

PEM_MARKER = "-----BEGIN"


def _to_bytes(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


class RsaAsymmetricCryptoProvider(AsymmetricCryptoProvider):
    """Asymmetric provider backed by RSA keys from ``cryptography``."""

    def __init__(self, key_size: int = 2048):
        self.key_size = key_size

    def generate_keys(self) -> Tuple[str, str]:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=self.key_size)

        private_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

        return base64.b64encode(public_der).decode("ascii"), base64.b64encode(private_der).decode("ascii")

    def sign(self, data: Union[str, bytes], private_key: str) -> str:
        if private_key.lstrip().startswith(PEM_MARKER):
            key = serialization.load_pem_private_key(private_key.encode("ascii"), password=None)
        else:
            key = serialization.load_der_private_key(base64.b64decode(private_key), password=None)

        signature = key.sign(_to_bytes(data), padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode("ascii")

    def validate_signature(self, data: Union[str, bytes], signature: str, public_key: str) -> bool:
        if not signature or not public_key:
            return False

        try:
            if public_key.lstrip().startswith(PEM_MARKER):
                key = serialization.load_pem_public_key(public_key.encode("ascii"))
            else:
                key = serialization.load_der_public_key(base64.b64decode(public_key))

            key.verify(base64.b64decode(signature), _to_bytes(data), padding.PKCS1v15(), hashes.SHA256())
            return True

        except InvalidSignature:
            return False
        except (ValueError, TypeError, binascii.Error, UnsupportedAlgorithm) as e:
            logger.debug(f"Rejecting malformed key or signature: {e}")
            return False
