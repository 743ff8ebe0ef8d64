import uuid
from typing import Optional

import pytest
import pytest_asyncio

from aclinit.config import Settings
from aclinit.core.db import close_db, init_db
from aclinit.core.retry import RetryDriver
from aclinit.schemas.acl import ACLPolicy, ACLToken
from aclinit.services.consul_client import ConsulAPIError
from aclinit.services.discovery import ServerAddress
from aclinit.services.secret_store import SecretStore, TortoiseSecretStore


TEST_DB_URL = "sqlite://:memory:"


class FakeConsulCluster:
    """
    In-memory stand-in for a Consul cluster's ACL state.
    Every client call is recorded in `calls` as (host, operation).
    """

    def __init__(self, bootstrap_secret: str = "root-secret"):
        self.bootstrap_secret = bootstrap_secret
        self.bootstrapped = False
        self.bootstrap_errors: list[Exception] = []
        self.policies: dict[str, ACLPolicy] = {}
        self.tokens: list[ACLToken] = []
        self.agent_tokens: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.timeouts: dict[str, list[Optional[float]]] = {}

    def count(self, operation: str, host: Optional[str] = None) -> int:
        return sum(1 for h, op in self.calls if op == operation and (host is None or h == host))


class FakeConsulClient:
    """Implements the ConsulClient surface against a FakeConsulCluster."""

    def __init__(self, cluster: FakeConsulCluster, host: str, token: Optional[str], timeout: Optional[float]):
        self.cluster = cluster
        self.host = host
        self.token = token
        self.timeout = timeout

    def _record(self, operation: str) -> None:
        self.cluster.calls.append((self.host, operation))

    def _check_token(self) -> None:
        if self.token != self.cluster.bootstrap_secret:
            raise ConsulAPIError(403, "ACL not found")

    async def acl_bootstrap(self) -> ACLToken:
        self._record("bootstrap")
        if self.cluster.bootstrap_errors:
            raise self.cluster.bootstrap_errors.pop(0)
        if self.cluster.bootstrapped:
            raise ConsulAPIError(403, "Permission denied: ACL bootstrap no longer allowed")
        self.cluster.bootstrapped = True
        return ACLToken(accessor_id=str(uuid.uuid4()), secret_id=self.cluster.bootstrap_secret,
                        description="Bootstrap Token (Global Management)")

    async def policy_create(self, policy: ACLPolicy) -> ACLPolicy:
        self._record("policy_create")
        self._check_token()
        if policy.name in self.cluster.policies:
            raise ConsulAPIError(500, f'Invalid Policy: A Policy with Name "{policy.name}" already exists')
        created = policy.model_copy(update={"id": str(uuid.uuid4())})
        self.cluster.policies[policy.name] = created
        return created

    async def policy_read_by_name(self, name: str) -> ACLPolicy:
        self._record("policy_read")
        self._check_token()
        if name not in self.cluster.policies:
            raise ConsulAPIError(404, "ACL policy not found")
        return self.cluster.policies[name]

    async def policy_update(self, policy: ACLPolicy) -> ACLPolicy:
        self._record("policy_update")
        self._check_token()
        self.cluster.policies[policy.name] = policy
        return policy

    async def token_list(self) -> list[ACLToken]:
        self._record("token_list")
        self._check_token()
        return list(self.cluster.tokens)

    async def token_create(self, token: ACLToken) -> ACLToken:
        self._record("token_create")
        self._check_token()
        created = token.model_copy(update={"accessor_id": str(uuid.uuid4()), "secret_id": str(uuid.uuid4())})
        self.cluster.tokens.append(created)
        return created

    async def update_agent_acl_token(self, secret_id: str) -> None:
        self._record("agent_token")
        self._check_token()
        self.cluster.agent_tokens[self.host] = secret_id


class FakeClientFactory:
    """Drop-in replacement for ConsulClientFactory."""

    def __init__(self, cluster: FakeConsulCluster):
        self.cluster = cluster

    def new_client(self, host: str, token: Optional[str] = None, timeout: Optional[float] = None) -> FakeConsulClient:
        self.cluster.timeouts.setdefault(host, []).append(timeout)
        return FakeConsulClient(self.cluster, host, token, timeout)


class InMemorySecretStore(SecretStore):
    """Dict backed secret store, shared between runs of the same test."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.puts = 0
        self.put_errors: list[Exception] = []

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def put(self, key: str, value: str) -> None:
        self.puts += 1
        if self.put_errors:
            raise self.put_errors.pop(0)
        self.data[key] = value


@pytest.fixture
def cluster() -> FakeConsulCluster:
    return FakeConsulCluster()


@pytest.fixture
def client_factory(cluster) -> FakeClientFactory:
    return FakeClientFactory(cluster)


@pytest.fixture
def retry() -> RetryDriver:
    """Retry driver that does not wait between attempts."""
    return RetryDriver(interval=0)


@pytest.fixture
def memory_store() -> InMemorySecretStore:
    return InMemorySecretStore()


@pytest.fixture
def servers() -> list[ServerAddress]:
    return [ServerAddress("10.0.0.1"), ServerAddress("10.0.0.2"), ServerAddress("10.0.0.3")]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        server_addresses="10.0.0.1,10.0.0.2,10.0.0.3",
        bootstrap_token_secret_name="test-bootstrap-token",
        bootstrap_token_file=None,
        set_server_tokens=True,
        enable_namespaces=False,
        enable_partitions=False,
        retry_interval=0,
    )


@pytest_asyncio.fixture
async def secret_store():
    """
    TortoiseSecretStore on a fresh in-memory SQLite database.
    Tables are recreated from scratch for every test.
    """
    await init_db(TEST_DB_URL)
    yield TortoiseSecretStore()
    await close_db()
