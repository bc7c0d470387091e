"""
Assembly of the authorization server core.

The HTTP layer and the token issuance orchestrator are external; this
module only completes a set of options with working default components
so that both can pick them up from one place.
"""

import logging

from ..clients.manager import ClientManager
from ..crypto.asymmetric import RsaAsymmetricCryptoProvider
from ..crypto.password import BcryptPasswordCryptoProvider
from ..errors import ConfigurationError
from ..tokenstore.memory import MemoryTokenRepository
from .config import SentinelOptions


def configure_authorization_server(options: SentinelOptions) -> SentinelOptions:
    """
    Fill in default components and validate the options.

    Defaults: the ``sentinel_oauth`` logger, bcrypt password hashing,
    RSA signatures, an in-memory token repository and a client manager
    built from the other components.

    Args:
        options: Server options; modified in place

    Returns:
        The completed options

    Raises:
        ConfigurationError: If no client repository is set or a value is invalid
    """
    if options is None:
        raise ConfigurationError("options must be provided")

    options.validate()

    if options.logger is None:
        options.logger = logging.getLogger("sentinel_oauth")

    if options.password_crypto_provider is None:
        options.password_crypto_provider = BcryptPasswordCryptoProvider(
            default_work_factor=options.client_secret_work_factor
        )

    if options.asymmetric_crypto_provider is None:
        options.asymmetric_crypto_provider = RsaAsymmetricCryptoProvider()

    if options.client_repository is None:
        raise ConfigurationError("client_repository must be set", option="client_repository")

    if options.token_repository is None:
        options.token_repository = MemoryTokenRepository()
        options.logger.info("No token repository configured, using in-memory repository")

    if options.client_manager is None:
        options.client_manager = ClientManager(
            options.password_crypto_provider,
            options.asymmetric_crypto_provider,
            options.client_repository,
            logger=options.logger,
            client_secret_work_factor=options.client_secret_work_factor,
        )

    return options
