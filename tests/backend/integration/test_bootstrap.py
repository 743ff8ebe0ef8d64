"""
Integration tests for services.bootstrap module.
Runs BootstrapCoordinator against the fake Consul cluster.
"""
import httpx
import pytest

from aclinit.core.errors import RootCredentialLostError, ServerUnreachableError
from aclinit.services.bootstrap import BootstrapCoordinator
from aclinit.services.consul_client import ConsulAPIError


SECRET_NAME = "consul-bootstrap-acl-token"


def make_coordinator(client_factory, store, retry):
    return BootstrapCoordinator(client_factory, store, retry, bootstrap_timeout=300)


class TestBootstrapCoordinator:
    """Tests for the one-time bootstrap and token persistence."""

    @pytest.mark.asyncio
    async def test_bootstraps_and_persists_token(self, cluster, client_factory, memory_store, retry, servers):
        coordinator = make_coordinator(client_factory, memory_store, retry)

        token = await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert token == cluster.bootstrap_secret
        assert memory_store.data == {SECRET_NAME: cluster.bootstrap_secret}
        assert cluster.count("bootstrap") == 1

    @pytest.mark.asyncio
    async def test_persists_to_tortoise_store(self, cluster, client_factory, secret_store, retry, servers):
        coordinator = make_coordinator(client_factory, secret_store, retry)

        token = await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert await secret_store.get(SECRET_NAME) == token

    @pytest.mark.asyncio
    async def test_uses_first_server_with_long_timeout(self, cluster, client_factory, memory_store, retry, servers):
        coordinator = make_coordinator(client_factory, memory_store, retry)

        await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert cluster.calls == [("10.0.0.1", "bootstrap")]
        assert cluster.timeouts["10.0.0.1"] == [300]

    @pytest.mark.asyncio
    async def test_stored_token_skips_bootstrap(self, cluster, client_factory, memory_store, retry, servers):
        coordinator = make_coordinator(client_factory, memory_store, retry)

        token = await coordinator.bootstrap(servers, "previous-secret", SECRET_NAME)

        assert token == "previous-secret"
        assert cluster.calls == []
        assert memory_store.puts == 0

    @pytest.mark.asyncio
    async def test_no_leader_is_retried_until_success(self, cluster, client_factory, memory_store, retry, servers):
        cluster.bootstrap_errors = [
            ConsulAPIError(500, "The ACL system is currently in legacy mode."),
            ConsulAPIError(500, "The ACL system is currently in legacy mode."),
        ]
        coordinator = make_coordinator(client_factory, memory_store, retry)

        token = await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert token == cluster.bootstrap_secret
        assert cluster.count("bootstrap") == 3
        assert memory_store.data[SECRET_NAME] == cluster.bootstrap_secret

    @pytest.mark.asyncio
    async def test_already_bootstrapped_without_stored_token_is_fatal(
        self, cluster, client_factory, memory_store, retry, servers
    ):
        cluster.bootstrapped = True
        coordinator = make_coordinator(client_factory, memory_store, retry)

        with pytest.raises(RootCredentialLostError, match="You must reset ACLs") as exc_info:
            await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert exc_info.value.step == "bootstrapping ACLs - PUT /v1/acl/bootstrap"
        assert cluster.count("bootstrap") == 1
        assert memory_store.data == {}

    @pytest.mark.asyncio
    async def test_connection_refused_is_fatal(self, cluster, client_factory, memory_store, retry, servers):
        cluster.bootstrap_errors = [httpx.ConnectError("[Errno 111] Connection refused")]
        coordinator = make_coordinator(client_factory, memory_store, retry)

        with pytest.raises(ServerUnreachableError):
            await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert cluster.bootstrapped is False

    @pytest.mark.asyncio
    async def test_persist_failures_are_retried(self, cluster, client_factory, memory_store, retry, servers):
        memory_store.put_errors = [OSError("disk full"), RuntimeError("database is locked")]
        coordinator = make_coordinator(client_factory, memory_store, retry)

        token = await coordinator.bootstrap(servers, "", SECRET_NAME)

        assert memory_store.puts == 3
        assert memory_store.data[SECRET_NAME] == token
