"""
Potion API — Authentication Endpoint Tests
===========================================

What:  HTTP-level tests for /auth/register, /auth/login and /auth/logout.
How:   HTTPX AsyncClient over ASGITransport, `users` collection mocked.

What we test:
    ✅ Registration stores a bcrypt hash, never the clear password
    ✅ Registration reports every field violation
    ✅ Duplicate names map to 500 "Erreur système"
    ✅ Bad credentials give 401 without a cookie
    ✅ Login sets an HttpOnly, SameSite=Strict cookie holding a valid token
    ✅ Logout clears the cookie
"""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from potion_api.services.auth_service import hash_password, verify_password
from potion_api.services.cookies import extract_session_token


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_success(self, test_client, users_collection):
        users_collection.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        response = await test_client.post("/auth/register", json={"name": "merlin", "password": "secret123"})

        assert response.status_code == 201
        assert response.json()["message"] == "Utilisateur créé"
        stored = users_collection.insert_one.await_args.args[0]
        assert stored["name"] == "merlin"
        assert stored["password"] != "secret123"
        assert verify_password("secret123", stored["password"])

    @pytest.mark.asyncio
    async def test_short_name(self, test_client, users_collection):
        response = await test_client.post("/auth/register", json={"name": "ab", "password": "secret123"})

        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["name"]
        users_collection.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_short_password(self, test_client):
        response = await test_client.post("/auth/register", json={"name": "abc", "password": "12345"})

        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["password"]

    @pytest.mark.asyncio
    async def test_every_violation_is_reported(self, test_client):
        response = await test_client.post("/auth/register", json={"name": "", "password": ""})

        assert response.status_code == 400
        assert len(response.json()["errors"]) >= 2

    @pytest.mark.asyncio
    async def test_duplicate_name(self, test_client, users_collection):
        users_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        response = await test_client.post("/auth/register", json={"name": "merlin", "password": "secret123"})

        assert response.status_code == 500
        assert response.json()["error"] == "Erreur système"
        assert "E11000" not in response.text

    @pytest.mark.asyncio
    async def test_non_json_body(self, test_client):
        response = await test_client.post(
            "/auth/register", content=b"name=merlin", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "errors" in response.json()


class TestLogin:
    @pytest.fixture
    def stored_user(self, users_collection):
        user = {"_id": ObjectId(), "name": "merlin", "password": hash_password("secret123")}
        users_collection.find_one.return_value = user
        return user

    @pytest.mark.asyncio
    async def test_login_sets_session_cookie(self, test_client, stored_user, app, test_settings):
        response = await test_client.post("/auth/login", json={"name": "merlin", "password": "secret123"})

        assert response.status_code == 200
        assert response.json()["message"] == "Connecté avec succès"

        set_cookie = response.headers["set-cookie"]
        attributes = [part.strip().lower() for part in set_cookie.split(";")[1:]]
        assert "httponly" in attributes
        assert "samesite=strict" in attributes
        assert "max-age=86400" in attributes
        assert "secure" not in attributes

        token = extract_session_token(set_cookie.split(";")[0], test_settings.cookie_name)
        claims = app.state.token_service.verify(token)
        assert claims.id == str(stored_user["_id"])
        assert claims.name == "merlin"

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_client, users_collection):
        users_collection.find_one.return_value = None

        response = await test_client.post("/auth/login", json={"name": "nobody", "password": "secret123"})

        assert response.status_code == 401
        assert response.json()["error"] == "Identifiants invalides"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, stored_user):
        response = await test_client.post("/auth/login", json={"name": "merlin", "password": "wrong-one"})

        assert response.status_code == 401
        assert response.json()["error"] == "Identifiants invalides"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client, users_collection):
        response = await test_client.post("/auth/login", json={"name": "merlin"})

        assert response.status_code == 401
        users_collection.find_one.assert_not_awaited()


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, test_client, test_settings):
        response = await test_client.get("/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Déconnecté"
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{test_settings.cookie_name}=")
        assert "max-age=0" in set_cookie.lower()
