"""
ACL Policy Service

Upserts the policy server agent tokens are bound to.
"""
import logging

from ..core.retry import RetryDriver
from ..schemas.acl import ACLPolicy
from .consul_client import ConsulClient
from .error_classifier import is_policy_exists_error

logger = logging.getLogger("aclinit")


async def create_or_update_acl_policy(client: ConsulClient, policy: ACLPolicy) -> ACLPolicy:
    """
    Create the policy, or update it in place when one with the same name exists.

    Consul has no upsert endpoint: a create with a taken name fails with
    500 "Invalid Policy: A Policy with Name ... already exists", in which case
    the existing ID is looked up and the policy updated.
    """
    try:
        return await client.policy_create(policy)
    except Exception as err:
        if not is_policy_exists_error(err, policy.name):
            raise

    existing = await client.policy_read_by_name(policy.name)
    updated = policy.model_copy(update={"id": existing.id})
    return await client.policy_update(updated)


class PolicyProvisioner:
    """Ensures a named ACL policy exists with the given rules"""

    def __init__(self, retry: RetryDriver):
        self.retry = retry

    async def ensure_policy(
        self,
        client: ConsulClient,
        name: str,
        description: str,
        rules: str,
    ) -> ACLPolicy:
        """
        Upsert a policy by name. The client must carry the bootstrap token.

        Rules are rendered by the caller; rendering errors never reach this point.
        """
        policy = ACLPolicy(name=name, description=description, rules=rules)
        result = await self.retry.run(
            "creating agent policy - PUT /v1/acl/policy",
            lambda: create_or_update_acl_policy(client, policy),
        )
        applied = result.unwrap()
        logger.info('[policy] Policy "%s" is up to date (id=%s)', name, applied.id)
        return applied
