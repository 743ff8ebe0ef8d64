"""
Consul HTTP API Client

Thin async wrapper around the Consul ACL and agent endpoints used by the
bootstrap run. One client targets exactly one server address; agent token
updates are per-node, so they must go to the right server.
"""
import ssl
import httpx
from urllib.parse import quote
from typing import Any, List, Optional, Union
from ..config import Settings, settings as default_settings
from ..schemas.acl import ACLPolicy, ACLToken


class ConsulAPIError(Exception):
    """
    Non-2xx response from Consul.

    The message mirrors the official Go client ("Unexpected response code: 403 (...)")
    so error classification can match on it.
    """

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Unexpected response code: {status_code} ({body})")
        self.status_code = status_code
        self.body = body


class ConsulClient:
    """Consul API client bound to a single server address"""

    def __init__(
        self,
        address: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        verify: Union[bool, ssl.SSLContext] = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.address = address.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.verify = verify
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"content-type": "application/json"}
        if self.token:
            headers["X-Consul-Token"] = self.token
        return headers

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.address}{path}"
        async with httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify,
            transport=self._transport,
        ) as client:
            resp = await client.request(method, url, headers=self._headers(), json=payload)

        if resp.status_code < 200 or resp.status_code >= 300:
            raise ConsulAPIError(resp.status_code, resp.text.strip())
        if not resp.content:
            return None
        return resp.json()

    # ========== ACL bootstrap ==========
    async def acl_bootstrap(self) -> ACLToken:
        """PUT /v1/acl/bootstrap. Only succeeds once per cluster."""
        data = await self._request("PUT", "/v1/acl/bootstrap")
        return ACLToken.model_validate(data)

    # ========== Policies ==========
    async def policy_create(self, policy: ACLPolicy) -> ACLPolicy:
        payload = policy.model_dump(by_alias=True, exclude_none=True)
        data = await self._request("PUT", "/v1/acl/policy", payload)
        return ACLPolicy.model_validate(data)

    async def policy_read_by_name(self, name: str) -> ACLPolicy:
        data = await self._request("GET", f"/v1/acl/policy/name/{quote(name, safe='')}")
        return ACLPolicy.model_validate(data)

    async def policy_update(self, policy: ACLPolicy) -> ACLPolicy:
        if not policy.id:
            raise ValueError(f"policy {policy.name!r} has no ID")
        payload = policy.model_dump(by_alias=True, exclude_none=True)
        data = await self._request("PUT", f"/v1/acl/policy/{policy.id}", payload)
        return ACLPolicy.model_validate(data)

    # ========== Tokens ==========
    async def token_list(self) -> List[ACLToken]:
        data = await self._request("GET", "/v1/acl/tokens")
        return [ACLToken.model_validate(t) for t in (data or [])]

    async def token_create(self, token: ACLToken) -> ACLToken:
        payload = token.model_dump(by_alias=True, exclude_none=True)
        data = await self._request("PUT", "/v1/acl/token", payload)
        return ACLToken.model_validate(data)

    # ========== Agent ==========
    async def update_agent_acl_token(self, secret_id: str) -> None:
        """PUT /v1/agent/token/agent. Idempotent: setting the same token twice is harmless."""
        await self._request("PUT", "/v1/agent/token/agent", {"Token": secret_id})


def format_host(host: str) -> str:
    """Bracket IPv6 literals so they can carry a port."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


class ConsulClientFactory:
    """
    Builds ConsulClient instances for individual server addresses.

    Components receive the factory instead of a client so each can be tested
    with a substitute implementation.
    """

    def __init__(self, config: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or default_settings
        self._transport = transport

    def address_for(self, host: str) -> str:
        return f"{self.config.scheme}://{format_host(host)}:{self.config.http_port}"

    def new_client(self, host: str, token: Optional[str] = None, timeout: Optional[float] = None) -> ConsulClient:
        verify: Union[bool, ssl.SSLContext] = True
        if self.config.use_tls and self.config.ca_file:
            verify = ssl.create_default_context(cafile=self.config.ca_file)
        return ConsulClient(
            address=self.address_for(host),
            token=token,
            timeout=timeout if timeout is not None else self.config.api_timeout,
            verify=verify,
            transport=self._transport,
        )
