"""
Potion API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked collections, settings,
       token service, API client) so no test needs a running MongoDB.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── test_settings: Frozen Settings with a known secret
    ├── token_service: TokenService built from test_settings
    ├── potions_collection / users_collection: AsyncMock collections
    ├── app: FastAPI app with the collections injected via dependency_overrides
    ├── test_client: HTTPX AsyncClient for API endpoint testing
    └── session_cookie: Cookie header carrying a freshly issued token
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["MONGO_URI"] = "mongodb://localhost:27017"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from potion_api.config import Settings
from potion_api.database import get_potions_collection, get_users_collection
from potion_api.main import create_app
from potion_api.services.token_service import TokenService


def make_cursor(docs: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    """A mock pymongo async cursor whose to_list() returns `docs`."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def make_collection() -> MagicMock:
    """
    A mock AsyncCollection.

    find() is synchronous and returns a cursor, like pymongo's async API;
    every other operation is awaitable.
    """
    collection = MagicMock()
    collection.find = MagicMock(return_value=make_cursor())
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.aggregate = AsyncMock(return_value=make_cursor())
    return collection


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret="test-secret-not-real-0123456789abcdef",
        cookie_name="demo_node+mongo_token",
    )


@pytest.fixture
def token_service(test_settings) -> TokenService:
    return TokenService.from_settings(test_settings)


@pytest.fixture
def potions_collection() -> MagicMock:
    return make_collection()


@pytest.fixture
def users_collection() -> MagicMock:
    return make_collection()


@pytest.fixture
def sample_potion() -> Dict[str, Any]:
    return {
        "_id": ObjectId(),
        "name": "Elixir of Vigor",
        "effect": "Restores stamina",
        "ingredients": ["mandrake root", "phoenix feather"],
        "price": 25.0,
        "vendor_id": "vendor-1",
        "categories": ["healing", "energy"],
        "ratings": {"strength": 8, "flavor": 4},
    }


@pytest.fixture
def app(test_settings, potions_collection, users_collection):
    """App instance whose collection dependencies resolve to the mocks."""
    application = create_app(test_settings)
    application.dependency_overrides[get_potions_collection] = lambda: potions_collection
    application.dependency_overrides[get_users_collection] = lambda: users_collection
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The lifespan is not run, so no MongoDB connection is attempted.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def session_cookie(app, test_settings) -> Dict[str, str]:
    """Request headers carrying a valid session cookie."""
    token = app.state.token_service.issue(str(ObjectId()), "merlin")
    return {"Cookie": f"{test_settings.cookie_name}={token}"}
