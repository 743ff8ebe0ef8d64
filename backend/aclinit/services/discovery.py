"""
Consul server address discovery

Turns the configured address list into the ordered set of server IPs the run
works on. The list is resolved once and treated as a value afterwards.
"""
import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import List

from ..core.errors import DiscoveryError

logger = logging.getLogger("aclinit")


@dataclass(frozen=True)
class ServerAddress:
    """Network address of one Consul server. Identity is the host itself."""
    host: str

    def __str__(self) -> str:
        return self.host


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


async def _lookup(host: str) -> List[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return sorted({info[4][0] for info in infos})


async def resolve_server_addresses(raw: str) -> List[ServerAddress]:
    """
    Resolve a comma separated list of hosts into server addresses.

    - IP literals are kept as-is
    - Host names are resolved via DNS; all their IPs are used, sorted
    - Entry order is preserved and duplicates are dropped

    Raises:
        DiscoveryError: nothing configured, or nothing could be resolved
    """
    entries = [e.strip() for e in (raw or "").split(",") if e.strip()]
    if not entries:
        raise DiscoveryError("no Consul server addresses configured", step="discovering servers")

    hosts: List[str] = []
    for entry in entries:
        if _is_ip(entry):
            resolved = [entry]
        else:
            try:
                resolved = await _lookup(entry)
            except socket.gaierror as err:
                raise DiscoveryError(f"resolving {entry}: {err}", step="discovering servers") from err
            logger.info("[discovery] %s resolved to %s", entry, resolved)
        for host in resolved:
            if host not in hosts:
                hosts.append(host)

    if not hosts:
        raise DiscoveryError("no Consul server addresses resolved", step="discovering servers")
    return [ServerAddress(h) for h in hosts]
