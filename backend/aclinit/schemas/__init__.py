"""
Schema module initialization.
Exports the Consul ACL wire models.
"""
from .acl import ACLPolicy, ACLToken, ACLTokenPolicyLink
