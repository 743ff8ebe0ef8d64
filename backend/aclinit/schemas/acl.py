# aclinit/schemas/acl.py
"""
Pydantic schemas for the Consul ACL HTTP API.
Field aliases match Consul's PascalCase JSON keys.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class ACLTokenPolicyLink(BaseModel):
    """
    Reference from a token to a policy.
    Consul accepts either the policy ID or its name when creating a token.
    """
    id: Optional[str] = Field(default=None, alias="ID")
    name: Optional[str] = Field(default=None, alias="Name")

    class Config:
        """Pydantic configuration: allow both field name and alias for population."""
        populate_by_name = True


class ACLToken(BaseModel):
    """
    ACL token as returned by /v1/acl/bootstrap, /v1/acl/token and /v1/acl/tokens.
    The secret_id is the credential itself; accessor_id only identifies it.
    """
    accessor_id: Optional[str] = Field(default=None, alias="AccessorID")
    secret_id: Optional[str] = Field(default=None, alias="SecretID")
    description: str = Field(default="", alias="Description")
    policies: Optional[List[ACLTokenPolicyLink]] = Field(default=None, alias="Policies")

    class Config:
        populate_by_name = True

    def bound_to_only(self, policy_name: str) -> bool:
        """True if the token's policy set is exactly {policy_name}."""
        policies = self.policies or []
        return len(policies) == 1 and policies[0].name == policy_name


class ACLPolicy(BaseModel):
    """
    Named ACL policy. Identity is the name; the ID is assigned by Consul.
    """
    id: Optional[str] = Field(default=None, alias="ID")
    name: str = Field(alias="Name")
    description: str = Field(default="", alias="Description")
    rules: str = Field(default="", alias="Rules")

    class Config:
        populate_by_name = True
