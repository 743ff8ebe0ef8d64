# aclinit/__main__.py
"""
Run: python -m aclinit

Exit code 0 on success, 1 on any terminal error. Safe to re-run after a
failure, except when the bootstrap token was lost (manual ACL reset needed).
"""
import asyncio
import logging
import sys

from aclinit.command import ACLInitCommand
from aclinit.config import settings
from aclinit.core.db import close_db, init_db
from aclinit.core.errors import ACLInitError
from aclinit.services.consul_client import ConsulClientFactory
from aclinit.services.discovery import resolve_server_addresses
from aclinit.services.secret_store import TortoiseSecretStore

logger = logging.getLogger("aclinit")


async def _run() -> None:
    server_addresses = await resolve_server_addresses(settings.server_addresses)
    logger.info("[main] Consul servers: %s", ", ".join(str(a) for a in server_addresses))

    await init_db()
    try:
        command = ACLInitCommand(settings, ConsulClientFactory(settings), TortoiseSecretStore())
        await command.run(server_addresses)
    finally:
        await close_db()


def main() -> int:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        asyncio.run(_run())
    except ACLInitError as exc:
        logger.error("[main] %s", exc)
        return 1
    logger.info("[main] ACL bootstrap complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
