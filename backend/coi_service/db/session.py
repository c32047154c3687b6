"""
Async MongoDB client (pymongo).

One client per process, created lazily and closed by the app lifespan.
The database name comes from MONGODB_DB, else from the URI path.
"""

from __future__ import annotations

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from coi_service.core.config import settings

_client: AsyncMongoClient | None = None


def get_client() -> AsyncMongoClient:
    global _client
    if _client is None:
        _client = AsyncMongoClient(settings.MONGODB_URI, tz_aware=True)
    return _client


def get_database() -> AsyncDatabase:
    client = get_client()
    if settings.MONGODB_DB:
        return client[settings.MONGODB_DB]
    return client.get_default_database()


async def close_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None


async def get_db() -> AsyncDatabase:
    """Dependency that returns the service database."""
    return get_database()
