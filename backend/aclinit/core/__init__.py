# aclinit/core/__init__.py
"""
Core infrastructure modules:
- db: Tortoise ORM configuration for the secret store
- errors: Terminal error types of the ACL init run
- retry: Retry loop with explicit attempt results
"""
