"""
Agent policy rule rendering

Produces the HCL rule body of the policy every server agent token is bound to.
Pure function: no network, no side effects. Invalid inputs raise
PolicyRenderError, which is never retried.
"""
from ..core.errors import PolicyRenderError

AGENT_POLICY_NAME = "agent-token"
AGENT_POLICY_DESCRIPTION = "Agent Token Policy"


def _indent(block: str, spaces: int = 2) -> str:
    pad = " " * spaces
    return "\n".join(pad + line if line else line for line in block.splitlines())


def render_agent_rules(
    enable_namespaces: bool = False,
    enable_partitions: bool = False,
    partition_name: str = "",
) -> str:
    """
    Render the agent policy rules.

    Agents need write on their own node registration and read on services.
    With namespaces the service rule is scoped by namespace_prefix; with admin
    partitions that block is further wrapped in the partition.

    Raises:
        PolicyRenderError: partitions without namespaces, or an empty partition name
    """
    if enable_partitions and not enable_namespaces:
        raise PolicyRenderError("admin partitions require namespaces to be enabled",
                                step="rendering agent rules")
    if enable_partitions and not partition_name.strip():
        raise PolicyRenderError("partition name must not be empty when partitions are enabled",
                                step="rendering agent rules")

    node_rule = 'node_prefix "" {\n  policy = "write"\n}'
    service_rule = 'service_prefix "" {\n  policy = "read"\n}'

    if enable_namespaces:
        service_rule = 'namespace_prefix "" {\n' + _indent(service_rule) + "\n}"

    if enable_partitions:
        body = node_rule + "\n" + service_rule
        return f'partition "{partition_name.strip()}" {{\n' + _indent(body) + "\n}\n"

    return node_rule + "\n" + service_rule + "\n"
