"""
ACL Bootstrap Service

Makes the one-time ACL bootstrap call and persists the resulting token.

The bootstrap API is not idempotent: once it has succeeded, every later call
returns 403 and the token can never be read back. So the token is written to
the secret store, retrying forever, before it is used for anything else.
"""
import logging
from typing import Sequence

from ..core.retry import RetryDriver
from .consul_client import ConsulClientFactory
from .discovery import ServerAddress
from .error_classifier import classify_bootstrap_error
from .secret_store import SecretStore

logger = logging.getLogger("aclinit")


class BootstrapCoordinator:
    """Returns the cluster's bootstrap token, bootstrapping ACLs at most once."""

    def __init__(
        self,
        client_factory: ConsulClientFactory,
        store: SecretStore,
        retry: RetryDriver,
        bootstrap_timeout: float = 300.0,
    ):
        self.client_factory = client_factory
        self.store = store
        self.retry = retry
        # Default API timeouts are seconds long, but bootstrap can take several
        # seconds to commit. Timing out on a call that succeeded server-side
        # loses the token for good.
        self.bootstrap_timeout = bootstrap_timeout

    async def bootstrap(
        self,
        server_addresses: Sequence[ServerAddress],
        stored_token: str,
        secret_name: str,
    ) -> str:
        """
        Return the bootstrap token.

        Parameters:
        - server_addresses: Discovered servers; the first one is used for the bootstrap call
        - stored_token: Token persisted by a previous run ("" if none)
        - secret_name: Key the new token is persisted under

        Raises:
        - RootCredentialLostError / ServerUnreachableError on unrecoverable failures
        """
        if stored_token:
            logger.info('[bootstrap] ACLs already bootstrapped - retrieved bootstrap token from secret "%s"', secret_name)
            return stored_token

        logger.info("[bootstrap] No bootstrap token from previous installation found, continuing on to bootstrapping")
        return await self.bootstrap_acls(server_addresses[0], secret_name)

    async def bootstrap_acls(self, server: ServerAddress, secret_name: str) -> str:
        """Call PUT /v1/acl/bootstrap against one server and persist the token."""
        client = self.client_factory.new_client(server.host, timeout=self.bootstrap_timeout)

        async def _bootstrap() -> str:
            resp = await client.acl_bootstrap()
            return resp.secret_id

        result = await self.retry.run(
            "bootstrapping ACLs - PUT /v1/acl/bootstrap",
            _bootstrap,
            classify=classify_bootstrap_error,
        )
        bootstrap_token = result.unwrap()

        # Persisting is retried on every failure; dropping the token is never an option
        await self.retry.run(
            f'writing bootstrap secret "{secret_name}"',
            lambda: self.store.put(secret_name, bootstrap_token),
        )
        logger.info('[bootstrap] Bootstrap token written to secret "%s"', secret_name)
        return bootstrap_token
