# aclinit/core/db.py
"""
Database configuration and initialization module.
Handles Tortoise ORM setup for the secret store.
"""
from typing import Optional

from tortoise import Tortoise

from aclinit.config import settings


def tortoise_config(db_url: Optional[str] = None) -> dict:
    """Tortoise ORM configuration dictionary for the given URL (defaults to DATABASE_URL)."""
    return {
        "connections": {"default": db_url or settings.database_url},
        "apps": {
            "models": {
                "models": ["aclinit.models.stored_secret"],
                "default_connection": "default",
            },
        },
    }


TORTOISE_ORM = tortoise_config()


async def init_db(db_url: Optional[str] = None) -> None:
    """
    Initialize Tortoise ORM and make sure the secret table exists.

    The job ships no migrations, so schemas are generated with safe=True
    (existing tables are left untouched).
    """
    await Tortoise.init(config=tortoise_config(db_url))
    await Tortoise.generate_schemas(safe=True)


async def close_db() -> None:
    """Close all database connections."""
    await Tortoise.close_connections()
