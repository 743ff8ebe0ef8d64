"""
Secret Store Interface

Durable key/value storage for the bootstrap token. The token must survive
process restarts: a bootstrapped cluster whose token was never stored cannot
be recovered without an ACL reset.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..models.stored_secret import StoredSecret


class SecretStore(ABC):
    """Secret Store Abstract Base Class"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Store value under key, overwriting any previous value."""
        pass


class TortoiseSecretStore(SecretStore):
    """Secret store backed by the stored_secrets table"""

    async def get(self, key: str) -> Optional[str]:
        record = await StoredSecret.get_or_none(name=key)
        if record is None:
            return None
        return record.value

    async def put(self, key: str, value: str) -> None:
        await StoredSecret.update_or_create(defaults={"value": value}, name=key)
