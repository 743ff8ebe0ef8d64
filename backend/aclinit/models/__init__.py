# aclinit/models/__init__.py
"""
Database models module initialization.

Models exported:
- StoredSecret: Durable key/value record for the bootstrap token
"""
from .stored_secret import StoredSecret
