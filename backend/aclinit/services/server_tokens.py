"""
Server Token Service

Gives every Consul server its own agent token bound to the agent policy.

Re-running is safe: an existing token is found by its description and reused,
and the agent token update is idempotent, so it is always re-applied. A run
that crashed between creating a token and pushing it converges next time.
"""
import logging
from typing import List, Optional, Sequence

from ..core.retry import RetryDriver
from ..schemas.acl import ACLPolicy, ACLToken, ACLTokenPolicyLink
from .consul_client import ConsulClientFactory
from .discovery import ServerAddress

logger = logging.getLogger("aclinit")


def server_token_description(server: ServerAddress) -> str:
    """
    Deterministic description that identifies a server's token.
    Consul has no caller-assigned key for tokens we rely on, so this string is the lookup key.
    """
    return f"Server Token for {server.host}"


def find_server_token(tokens: Sequence[ACLToken], policy: ACLPolicy, description: str) -> Optional[str]:
    """Secret of the token bound only to `policy` with the given description, if any."""
    for token in tokens:
        if token.bound_to_only(policy.name) and token.description == description:
            return token.secret_id
    return None


class ServerTokenProvisioner:
    """Creates (or reuses) and pushes an agent token for each server"""

    def __init__(self, client_factory: ConsulClientFactory, retry: RetryDriver):
        self.client_factory = client_factory
        self.retry = retry

    async def fetch_existing_tokens(self, server: ServerAddress, bootstrap_token: str) -> List[ACLToken]:
        client = self.client_factory.new_client(server.host, token=bootstrap_token)
        result = await self.retry.run("listing ACL tokens - GET /v1/acl/tokens", client.token_list)
        return result.unwrap()

    async def provision(
        self,
        server_addresses: Sequence[ServerAddress],
        bootstrap_token: str,
        policy: ACLPolicy,
    ) -> None:
        """
        Ensure each server runs with its own agent token.

        Servers are handled one at a time, in order. Any failure aborts the
        whole call; already provisioned servers are no-ops on the next run.
        """
        # Fetched once, only used to avoid creating duplicates
        existing_tokens = await self.fetch_existing_tokens(server_addresses[0], bootstrap_token)

        for server in server_addresses:
            # Agent token updates are per node, so each call must target this server
            client = self.client_factory.new_client(server.host, token=bootstrap_token)
            description = server_token_description(server)

            token_secret = find_server_token(existing_tokens, policy, description)
            if token_secret:
                logger.info("[server-tokens] Reusing existing server token for %s", server)
            else:
                token_req = ACLToken(
                    description=description,
                    policies=[ACLTokenPolicyLink(name=policy.name)],
                )

                async def _create_token(req: ACLToken = token_req) -> str:
                    token = await client.token_create(req)
                    return token.secret_id

                result = await self.retry.run(
                    f"creating server token for {server} - PUT /v1/acl/token",
                    _create_token,
                )
                token_secret = result.unwrap()

            # Safe to repeat even when the server already has this token
            result = await self.retry.run(
                f"updating server token for {server} - PUT /v1/agent/token/agent",
                lambda: client.update_agent_acl_token(token_secret),
            )
            result.unwrap()
