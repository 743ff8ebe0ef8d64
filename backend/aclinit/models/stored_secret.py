# aclinit/models/stored_secret.py
"""
Database model for persisted secrets.
Holds the cluster bootstrap token so a restarted run can find it again.
"""
from tortoise import fields, models


class StoredSecret(models.Model):
    """
    Named secret value.

    - name: Lookup key (e.g. "consul-bootstrap-acl-token"), unique
    - value: Secret value in plain text
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=253, unique=True, index=True)
    value = fields.TextField()
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "stored_secrets"
