"""
Potion API — Credential Service
================================

What:  Registers users and checks login credentials against the `users`
       collection.
Why:   Keeps password hashing and duplicate handling out of the routes.
How:   passlib's bcrypt context hashes on registration and verifies on login.
       The clear password is never stored or logged.

Error mapping:
    duplicate name        → ConflictError   (500 "Erreur système")
    unknown name          → InvalidCredentials (401)
    wrong password        → InvalidCredentials (401)
    other driver failure  → DatabaseError   (500)
"""

import logging
from dataclasses import dataclass

from passlib.context import CryptContext
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from potion_api.exceptions import ConflictError, DatabaseError, InvalidCredentials

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Stored value is not a recognizable hash
        return False


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    name: str


class AuthService:
    """Stateless credential operations; the collection is passed per call."""

    async def register(self, users: AsyncCollection, name: str, password: str) -> str:
        """
        Store a new user with a bcrypt hash of the password.

        Args:
            users:    the `users` collection
            name:     sanitized, validated user name
            password: sanitized, validated clear password

        Returns:
            The new user's id as a hex string.
        """
        try:
            result = await users.insert_one({"name": name, "password": hash_password(password)})
        except DuplicateKeyError:
            logger.info("Registration refused: name already taken")
            raise ConflictError(context={"collection": "users", "field": "name"})
        except PyMongoError as e:
            logger.error("Database error during registration: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: %s", result.inserted_id)
        return str(result.inserted_id)

    async def authenticate(
        self, users: AsyncCollection, name: str, password: str
    ) -> AuthenticatedUser:
        """
        Look up `name` and check `password` against the stored hash.

        Raises:
            InvalidCredentials: unknown user or wrong password
        """
        try:
            user = await users.find_one({"name": name})
        except PyMongoError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        if not user or not verify_password(password, user.get("password", "")):
            raise InvalidCredentials()

        return AuthenticatedUser(id=str(user["_id"]), name=user["name"])


auth_service = AuthService()
