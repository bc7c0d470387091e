"""
Client manager: client creation and the client authentication engine.

Every authentication method follows the same rule: the client must exist
and be enabled, and where a redirect URI is involved it must equal the
registered one exactly (case-sensitive, no normalization). Authentication
failures return the anonymous principal. Signature authentication is the
exception for identity problems, which it raises as :class:`IdentityError`.
"""

import logging
from typing import Iterable, Optional, Union

from ..common.utils import get_current_time
from ..crypto.types import AsymmetricCryptoProvider, PasswordCryptoProvider
from ..errors import InvalidClientError, InvalidRedirectUriError, InvalidUserIdError
from ..identity.claims import (
    AuthenticationMethod,
    AuthenticationType,
    Claim,
    ClaimType,
    SentinelIdentity,
    SentinelPrincipal,
)
from ..identity.digest import BasicAuthenticationDigest, SignatureAuthenticationDigest
from .store import Client, ClientRepository, CreateClientResult


class ClientManager:
    """Creates clients and authenticates them under several credential schemes."""

    def __init__(
        self,
        password_crypto_provider: PasswordCryptoProvider,
        asymmetric_crypto_provider: AsymmetricCryptoProvider,
        client_repository: ClientRepository,
        logger: Optional[logging.Logger] = None,
        client_secret_work_factor: int = 10,
    ):
        """
        Initialize the client manager.

        Args:
            password_crypto_provider: Hashes and validates client secrets
            asymmetric_crypto_provider: Generates client keys and verifies signatures
            client_repository: Client storage
            logger: Logger for diagnostic events
            client_secret_work_factor: Work factor for new client secret hashes
        """
        self.password_crypto_provider = password_crypto_provider
        self.asymmetric_crypto_provider = asymmetric_crypto_provider
        self.client_repository = client_repository
        self.logger = logger or logging.getLogger(__name__)
        self.client_secret_work_factor = client_secret_work_factor

    async def create_client(self, client_id: str, name: str, redirect_uri: str) -> Optional[CreateClientResult]:
        """
        Create an enabled client with a generated secret and key pair.

        Returns:
            The new client with its cleartext secret and private key, or
            None if the repository refused the client
        """
        client_secret_hash, client_secret = self.password_crypto_provider.create_hash(
            work_factor=self.client_secret_work_factor
        )
        public_key, private_key = self.asymmetric_crypto_provider.generate_keys()

        client = Client(
            client_id=client_id,
            name=name,
            redirect_uri=redirect_uri,
            enabled=True,
            client_secret=client_secret_hash,
            public_key=public_key,
        )

        result = await self.client_repository.create(client)
        if result is None:
            return None

        return CreateClientResult(client=result, client_secret=client_secret, private_key=private_key)

    async def authenticate_client(self, client_id: str, redirect_uri: str) -> SentinelPrincipal:
        """
        Authenticate a client by id and redirect URI.
        Used with the authorization_code grant type.
        """
        client = await self.client_repository.get_client(client_id)

        if client is not None and client.enabled and client.redirect_uri == redirect_uri:
            principal = SentinelPrincipal(
                SentinelIdentity(
                    AuthenticationType.OAUTH,
                    Claim(ClaimType.NAME, client_id),
                    Claim(ClaimType.NAME_IDENTIFIER, client.client_id),
                    Claim(ClaimType.REDIRECT_URI, client.redirect_uri),
                    Claim(ClaimType.AUTHENTICATION_METHOD, AuthenticationMethod.CLIENT_ID),
                )
            )
            return await self._complete(client, principal)

        self.logger.warning(f"Client {client_id} failed redirect-bound authentication")
        return SentinelPrincipal.anonymous()

    async def authenticate_client_with_scope(self, client_id: str,
                                             scope: Union[str, Iterable[str]]) -> SentinelPrincipal:
        """
        Authenticate a client by id for the requested scope.
        Used with the client_credentials grant type; no redirect check.

        ``scope`` is either a space-delimited scope string, kept as given,
        or an iterable of scope values joined with spaces.
        """
        scope_value = scope if isinstance(scope, str) else " ".join(scope)

        client = await self.client_repository.get_client(client_id)

        if client is not None and client.enabled:
            principal = SentinelPrincipal(
                SentinelIdentity(
                    AuthenticationType.OAUTH,
                    Claim(ClaimType.NAME, client_id),
                    Claim(ClaimType.NAME_IDENTIFIER, client.client_id),
                    Claim(ClaimType.REDIRECT_URI, client.redirect_uri),
                    Claim(ClaimType.SCOPE, scope_value),
                    Claim(ClaimType.AUTHENTICATION_METHOD, AuthenticationMethod.CLIENT_ID),
                )
            )
            return await self._complete(client, principal)

        self.logger.warning(f"Client {client_id} failed scoped authentication")
        return SentinelPrincipal.anonymous()

    async def authenticate_client_credentials_digest(self, digest: BasicAuthenticationDigest) -> SentinelPrincipal:
        """Authenticate a client with a Basic digest carrying secret and redirect URI."""
        try:
            cipher = digest.get_cipher()
        except ValueError as e:
            self.logger.warning(f"Rejected malformed basic digest for {digest.user_id}: {e}")
            return SentinelPrincipal.anonymous()

        client = await self.client_repository.get_client(digest.user_id)

        if client is not None and client.enabled and client.redirect_uri == cipher.redirect_uri:
            if self.password_crypto_provider.validate_hash(cipher.password, client.client_secret):
                principal = SentinelPrincipal(
                    SentinelIdentity(
                        AuthenticationType.BASIC,
                        Claim(ClaimType.NAME, client.client_id),
                        Claim(ClaimType.NAME_IDENTIFIER, client.client_id),
                        Claim(ClaimType.CLIENT, client.client_id),
                        Claim(ClaimType.REDIRECT_URI, client.redirect_uri),
                        Claim(ClaimType.AUTHENTICATION_SOURCE, "local"),
                        Claim(ClaimType.AUTHENTICATION_METHOD, AuthenticationMethod.BASIC),
                    )
                )
                return await self._complete(client, principal)

        self.logger.warning(f"Client {digest.user_id} failed basic authentication")
        return SentinelPrincipal.anonymous()

    async def authenticate_client_credentials(self, client_id: str, client_secret: str) -> SentinelPrincipal:
        """Authenticate a client using client id and secret."""
        client = await self.client_repository.get_client(client_id)

        if client is not None and client.enabled:
            if self.password_crypto_provider.validate_hash(client_secret, client.client_secret):
                principal = SentinelPrincipal(
                    SentinelIdentity(
                        AuthenticationType.OAUTH,
                        Claim(ClaimType.NAME, client.client_id),
                        Claim(ClaimType.NAME_IDENTIFIER, client.client_id),
                        Claim(ClaimType.CLIENT, client.client_id),
                        Claim(ClaimType.REDIRECT_URI, client.redirect_uri),
                        Claim(ClaimType.AUTHENTICATION_METHOD, AuthenticationMethod.CLIENT_CREDENTIALS),
                    )
                )
                return await self._complete(client, principal)

        self.logger.warning(f"Client {client_id} failed credentials authentication")
        return SentinelPrincipal.anonymous()

    async def authenticate_client_with_signature(self, digest: SignatureAuthenticationDigest) -> SentinelPrincipal:
        """
        Authenticate a client with a signed digest.

        Raises:
            InvalidClientError: If the client does not exist or is disabled
            InvalidRedirectUriError: If the redirect URI does not match
            InvalidUserIdError: If the user id differs from the client id
        """
        client = await self.client_repository.get_client(digest.client_id)

        if client is None or not client.enabled:
            raise InvalidClientError(digest.client_id)

        if client.redirect_uri != digest.redirect_uri:
            raise InvalidRedirectUriError(digest.client_id)

        if digest.user_id != client.client_id:
            raise InvalidUserIdError(digest.client_id)

        if client.public_key:
            is_valid = self.asymmetric_crypto_provider.validate_signature(
                digest.get_data(), digest.signature, client.public_key
            )
            if is_valid:
                principal = SentinelPrincipal(
                    SentinelIdentity(
                        AuthenticationType.SIGNATURE,
                        Claim(ClaimType.NAME, client.client_id),
                        Claim(ClaimType.NAME_IDENTIFIER, client.client_id),
                        Claim(ClaimType.CLIENT, client.client_id),
                        Claim(ClaimType.REDIRECT_URI, client.redirect_uri),
                        Claim(ClaimType.AUTHENTICATION_METHOD, AuthenticationMethod.SIGNATURE),
                    )
                )
                return await self._complete(client, principal)

        self.logger.warning(f"Client {digest.client_id} failed signature authentication")
        return SentinelPrincipal.anonymous()

    async def _complete(self, client: Client, principal: SentinelPrincipal) -> SentinelPrincipal:
        """Record the client as used and hand out the principal, if it is authenticated."""
        if not principal.identity.is_authenticated:
            self.logger.warning(f"Discarding unauthenticated identity for client {client.client_id}")
            return SentinelPrincipal.anonymous()

        client.last_used = get_current_time()
        try:
            await self.client_repository.update(client.get_identifier(), client)
        except Exception as e:
            self.logger.error(f"Failed to update last used time for client {client.client_id}: {e}")

        self.logger.debug(f"Authenticated client {client.client_id} using {principal.identity.authentication_type.value}")
        return principal
