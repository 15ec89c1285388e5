"""
Potion API — Health, Middleware and Access Policy Tests
========================================================

What we test:
    ✅ /health reports database connectivity
    ✅ Every response carries an X-Request-ID; error bodies repeat it
    ✅ Write routes left public are listed for the startup warning
    ✅ Every subpackage imports cleanly
"""

import importlib
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from potion_api.config import AccessPolicy
from potion_api.database import get_database
from potion_api.middleware.request_id import MAX_REQUEST_ID_LENGTH
from potion_api.security import authorize, policy_for, public_write_routes


@pytest.fixture
def database(app):
    db = MagicMock()
    db.command = AsyncMock(return_value={"ok": 1})
    app.dependency_overrides[get_database] = lambda: db
    return db


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, test_client, database):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        database.command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_database_down(self, test_client, database):
        database.command.side_effect = ServerSelectionTimeoutError("no server")

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"


class TestRequestId:
    @pytest.mark.asyncio
    async def test_generated(self, test_client):
        response = await test_client.get("/potions/names")

        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_value_echoed_in_error_body(self, test_client):
        response = await test_client.post(
            "/potions", json={"name": "x", "effect": "y"}, headers={"X-Request-ID": "abc123"}
        )

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "abc123"
        assert response.json()["request_id"] == "abc123"

    @pytest.mark.asyncio
    async def test_long_client_value_is_truncated(self, test_client):
        response = await test_client.get("/potions/names", headers={"X-Request-ID": "r" * 500})

        assert response.headers["X-Request-ID"] == "r" * MAX_REQUEST_ID_LENGTH

    @pytest.mark.asyncio
    async def test_empty_client_value_is_replaced(self, test_client):
        response = await test_client.get("/potions/names", headers={"X-Request-ID": ""})

        assert len(response.headers["X-Request-ID"]) == 8


class TestAccessPolicies:
    def test_defaults(self, test_settings):
        assert policy_for("create_potion", test_settings) is AccessPolicy.SESSION
        assert policy_for("update_potion", test_settings) is AccessPolicy.PUBLIC
        assert public_write_routes(test_settings) == ["update_potion", "delete_potion"]

    def test_all_locked(self, test_settings):
        locked = test_settings.model_copy(update={
            "potion_update_access": AccessPolicy.SESSION,
            "potion_delete_access": AccessPolicy.SESSION,
        })

        assert public_write_routes(locked) == []

    def test_unknown_route_name(self):
        with pytest.raises(KeyError):
            authorize("drop_everything")


@pytest.mark.parametrize("module", [
    "potion_api.middleware",
    "potion_api.routes",
    "potion_api.schemas",
    "potion_api.services",
])
def test_subpackage_imports(module):
    package = importlib.import_module(module)
    assert package.__doc__.startswith("\nPotion API")
