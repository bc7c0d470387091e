"""
Configuration module for the Sentinel OAuth core.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from ..clients.manager import ClientManager
from ..clients.store import ClientRepository
from ..crypto.types import AsymmetricCryptoProvider, PasswordCryptoProvider
from ..errors import ConfigurationError
from ..tokenstore.store import TokenRepository


@dataclass
class SignatureAuthenticationOptions:
    """Options for signature authenticated requests."""
    realm: str = "Sentinel"
    maximum_clock_skew: timedelta = field(default_factory=lambda: timedelta(minutes=5))
    require_secure_connection: bool = True


@dataclass
class SentinelOptions:
    """
    Options for the authorization server core.

    Components left as None are filled in by
    :func:`~sentinel_oauth.core.server.configure_authorization_server`,
    except the client repository which must always be provided.
    """
    authorization_code_lifetime: timedelta = field(default_factory=lambda: timedelta(minutes=5))
    access_token_lifetime: timedelta = field(default_factory=lambda: timedelta(hours=1))
    refresh_token_lifetime: timedelta = field(default_factory=lambda: timedelta(days=90))
    client_secret_work_factor: int = 10
    signature: SignatureAuthenticationOptions = field(default_factory=SignatureAuthenticationOptions)

    logger: Optional[logging.Logger] = None
    password_crypto_provider: Optional[PasswordCryptoProvider] = None
    asymmetric_crypto_provider: Optional[AsymmetricCryptoProvider] = None
    client_repository: Optional[ClientRepository] = None
    token_repository: Optional[TokenRepository] = None
    client_manager: Optional[ClientManager] = None

    @classmethod
    def from_env(cls) -> "SentinelOptions":
        """Create options from SENTINEL_* environment variables"""
        return cls(
            authorization_code_lifetime=timedelta(
                seconds=int(os.getenv("SENTINEL_AUTHORIZATION_CODE_LIFETIME_SECONDS", "300"))
            ),
            access_token_lifetime=timedelta(
                seconds=int(os.getenv("SENTINEL_ACCESS_TOKEN_LIFETIME_SECONDS", "3600"))
            ),
            refresh_token_lifetime=timedelta(
                seconds=int(os.getenv("SENTINEL_REFRESH_TOKEN_LIFETIME_SECONDS", str(90 * 24 * 3600)))
            ),
            client_secret_work_factor=int(os.getenv("SENTINEL_CLIENT_SECRET_WORK_FACTOR", "10")),
            signature=SignatureAuthenticationOptions(
                realm=os.getenv("SENTINEL_SIGNATURE_REALM", "Sentinel"),
                maximum_clock_skew=timedelta(
                    seconds=int(os.getenv("SENTINEL_SIGNATURE_MAX_CLOCK_SKEW_SECONDS", "300"))
                ),
                require_secure_connection=os.getenv(
                    "SENTINEL_SIGNATURE_REQUIRE_SECURE_CONNECTION", "true"
                ).lower() in ("true", "1", "yes", "on"),
            ),
        )

    def validate(self) -> bool:
        """Validate the options"""
        for name in ("authorization_code_lifetime", "access_token_lifetime", "refresh_token_lifetime"):
            if getattr(self, name) <= timedelta(0):
                raise ConfigurationError(f"{name} must be positive", option=name)
        if self.client_secret_work_factor < 1:
            raise ConfigurationError("client_secret_work_factor must be at least 1", option="client_secret_work_factor")
        if self.signature.maximum_clock_skew < timedelta(0):
            raise ConfigurationError("maximum_clock_skew cannot be negative", option="signature.maximum_clock_skew")
        return True
