"""
Potion API — MongoDB Client Management
=======================================

What:  Async MongoDB client lifecycle, index setup, and FastAPI dependencies.
Why:   Centralizes all database connection logic in one place.
How:   create_client() builds a pymongo AsyncMongoClient from the Settings;
       the lifespan handler stores it on `app.state`, and the dependencies
       below hand collections to route handlers.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Client is created at startup and closed at shutdown.

Collections:
    users:    {_id, name (unique index), password (bcrypt hash)}
    potions:  {_id, name, effect, ingredients, price, vendor_id, categories, ratings}

Timeouts:
    The driver enforces `mongo_timeout_ms` for server selection and for each
    operation. Nothing at this layer retries; a failed operation surfaces
    as a DatabaseError for that request only.
"""

import logging

from fastapi import Request
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from potion_api.config import Settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
POTIONS_COLLECTION = "potions"


def create_client(settings: Settings) -> AsyncMongoClient:
    """
    Build the process-wide MongoDB client.

    The client connects lazily, so this does not block or fail when the
    server is down; the first operation does.
    """
    return AsyncMongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        timeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
    )


async def ensure_indexes(db: AsyncDatabase) -> None:
    """
    Create the indexes the API relies on.

    users.name must be unique: registration maps the duplicate key error to
    ConflictError. price and vendor_id back the range and vendor lookups.
    """
    await db[USERS_COLLECTION].create_index([("name", ASCENDING)], unique=True)
    await db[POTIONS_COLLECTION].create_index([("price", ASCENDING)])
    await db[POTIONS_COLLECTION].create_index([("vendor_id", ASCENDING), ("name", ASCENDING)])
    logger.info("MongoDB indexes ensured on '%s'", db.name)


# ── Dependencies ──────────────────────────────────────────────────────────
def get_database(request: Request) -> AsyncDatabase:
    """FastAPI dependency returning the configured database."""
    return request.app.state.database


def get_users_collection(request: Request) -> AsyncCollection:
    return get_database(request)[USERS_COLLECTION]


def get_potions_collection(request: Request) -> AsyncCollection:
    return get_database(request)[POTIONS_COLLECTION]


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def close_client(client: AsyncMongoClient) -> None:
    """
    What:  Closes all pooled connections.
    When:  Called during application shutdown (lifespan handler).
    """
    await client.close()
