"""
bcrypt password crypto provider.
"""

import logging
from typing import Optional, Tuple

import bcrypt

from ..common.utils import generate_secure_token
from .types import PasswordCryptoProvider

logger = logging.getLogger(__name__)

MIN_ROUNDS = 4
MAX_ROUNDS = 31


class BcryptPasswordCryptoProvider(PasswordCryptoProvider):
    """
    Password provider backed by bcrypt.

    The work factor is the bcrypt log2 cost, clamped to the range bcrypt
    accepts. Generated secrets are url-safe random strings.
    """

    def __init__(self, default_work_factor: int = 10, secret_length: int = 32):
        self.default_work_factor = default_work_factor
        self.secret_length = secret_length

    def create_hash(self, cleartext: Optional[str] = None, work_factor: Optional[int] = None) -> Tuple[str, str]:
        if cleartext is None:
            cleartext = generate_secure_token(self.secret_length)

        rounds = work_factor if work_factor is not None else self.default_work_factor
        rounds = max(MIN_ROUNDS, min(MAX_ROUNDS, rounds))

        digest = bcrypt.hashpw(cleartext.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
        return digest.decode("utf-8"), cleartext

    def validate_hash(self, cleartext: str, digest: str) -> bool:
        if not cleartext or not digest:
            return False

        try:
            return bcrypt.checkpw(cleartext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.debug(f"Rejecting malformed password hash: {e}")
            return False
