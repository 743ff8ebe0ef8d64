# aclinit/command.py
"""
ACL init command.

Wires the bootstrap, policy and server token steps together:
  1. Look up a bootstrap token persisted by a previous run
  2. Bootstrap ACLs if there is none (and persist the new token)
  3. Upsert the agent policy and give every server its own agent token
"""
import logging
from pathlib import Path
from typing import Optional, Sequence

from aclinit.config import Settings
from aclinit.core.errors import PolicyRenderError, TokenFileError
from aclinit.core.retry import RetryDriver
from aclinit.services.bootstrap import BootstrapCoordinator
from aclinit.services.consul_client import ConsulClientFactory
from aclinit.services.discovery import ServerAddress
from aclinit.services.policy import PolicyProvisioner
from aclinit.services.rules import AGENT_POLICY_DESCRIPTION, AGENT_POLICY_NAME, render_agent_rules
from aclinit.services.secret_store import SecretStore
from aclinit.services.server_tokens import ServerTokenProvisioner

logger = logging.getLogger("aclinit")


class ACLInitCommand:
    """Single entry point of the ACL bootstrap run"""

    def __init__(
        self,
        config: Settings,
        client_factory: ConsulClientFactory,
        store: SecretStore,
        retry: Optional[RetryDriver] = None,
    ):
        self.config = config
        self.client_factory = client_factory
        self.store = store
        self.retry = retry or RetryDriver(interval=config.retry_interval)

        self.bootstrapper = BootstrapCoordinator(
            client_factory, store, self.retry, bootstrap_timeout=config.bootstrap_timeout
        )
        self.policies = PolicyProvisioner(self.retry)
        self.server_tokens = ServerTokenProvisioner(client_factory, self.retry)

    async def stored_bootstrap_token(self) -> str:
        """
        Bootstrap token from a previous run, or "" if there is none.
        A configured, non-empty token file takes precedence over the secret store.
        """
        token_file = self.config.bootstrap_token_file
        if token_file:
            try:
                token = Path(token_file).read_text().strip()
            except OSError as err:
                raise TokenFileError(str(err), step="reading bootstrap token file") from err
            if token:
                logger.info("[bootstrap] Using bootstrap token from file %s", token_file)
                return token
            logger.warning("[bootstrap] Bootstrap token file %s is empty, falling back to secret store", token_file)

        secret_name = self.config.bootstrap_token_secret_name
        result = await self.retry.run(
            f'reading bootstrap secret "{secret_name}"',
            lambda: self.store.get(secret_name),
        )
        return result.unwrap() or ""

    async def run(self, server_addresses: Sequence[ServerAddress], bootstrap_token: Optional[str] = None) -> str:
        """
        Bootstrap ACLs (once) and provision server tokens.

        Parameters:
        - server_addresses: Ordered, non-empty list of Consul servers
        - bootstrap_token: Previously persisted token; looked up when None

        Returns:
        - The effective bootstrap token

        Raises:
        - ACLInitError subclasses on terminal failures
        """
        if bootstrap_token is None:
            bootstrap_token = await self.stored_bootstrap_token()

        bootstrap_token = await self.bootstrapper.bootstrap(
            server_addresses, bootstrap_token, self.config.bootstrap_token_secret_name
        )

        # Server tokens only make sense when the servers run alongside this job
        if self.config.set_server_tokens:
            logger.info("[server-tokens] Setting Consul server tokens")
            await self.set_server_tokens(server_addresses, bootstrap_token)

        return bootstrap_token

    async def set_server_tokens(self, server_addresses: Sequence[ServerAddress], bootstrap_token: str) -> None:
        try:
            rules = render_agent_rules(
                enable_namespaces=self.config.enable_namespaces,
                enable_partitions=self.config.enable_partitions,
                partition_name=self.config.partition_name,
            )
        except PolicyRenderError as err:
            logger.error("[policy] Error templating server agent rules err=%s", err)
            raise

        client = self.client_factory.new_client(server_addresses[0].host, token=bootstrap_token)
        policy = await self.policies.ensure_policy(client, AGENT_POLICY_NAME, AGENT_POLICY_DESCRIPTION, rules)
        await self.server_tokens.provision(server_addresses, bootstrap_token, policy)
