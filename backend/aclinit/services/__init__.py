"""
Services Module

Steps of the ACL bootstrap run and the collaborators they talk to:
- Consul HTTP API client
- Bootstrap (one-time ACL bootstrap + token persistence)
- Agent policy upsert and server token provisioning
- Secret store, server discovery, rule rendering
"""

from .consul_client import (
    ConsulAPIError,
    ConsulClient,
    ConsulClientFactory,
)
from .bootstrap import BootstrapCoordinator
from .policy import PolicyProvisioner
from .server_tokens import ServerTokenProvisioner
from .secret_store import SecretStore, TortoiseSecretStore
from .discovery import ServerAddress, resolve_server_addresses

__all__ = [
    # Consul client
    "ConsulAPIError",
    "ConsulClient",
    "ConsulClientFactory",
    # Provisioning steps
    "BootstrapCoordinator",
    "PolicyProvisioner",
    "ServerTokenProvisioner",
    # Collaborators
    "SecretStore",
    "TortoiseSecretStore",
    "ServerAddress",
    "resolve_server_addresses",
]
