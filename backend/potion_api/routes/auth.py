"""
Potion API — Authentication Route Handlers
===========================================

What:  Registration, login and logout.
How:   Login issues a signed session token and stores it in an HttpOnly,
       SameSite=Strict cookie. Logout asks the client to drop that cookie;
       the server keeps no session state to clean up.

Cookie attributes:
    HttpOnly, SameSite=Strict, Max-Age = session TTL (86400s), Path=/,
    Secure only when ENVIRONMENT=production.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from pymongo.asynchronous.collection import AsyncCollection

from potion_api.config import Settings
from potion_api.database import get_users_collection
from potion_api.exceptions import InvalidCredentials
from potion_api.schemas.auth import CredentialsPayload, MessageResponse
from potion_api.schemas.common import ErrorResponse, ValidationErrorResponse
from potion_api.security import get_settings, get_token_service
from potion_api.services.auth_service import auth_service
from potion_api.services.token_service import TokenService
from potion_api.services.validators import normalize_login, validate_registration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Invalid name or password", "model": ValidationErrorResponse},
        500: {"description": "Name already taken or system error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    payload: CredentialsPayload,
    users: AsyncCollection = Depends(get_users_collection),
) -> MessageResponse:
    name, password = validate_registration(payload.name, payload.password)
    await auth_service.register(users, name, password)
    return MessageResponse(message="Utilisateur créé")


@router.post(
    "/login",
    response_model=MessageResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in and receive a session cookie",
)
async def login(
    payload: CredentialsPayload,
    response: Response,
    users: AsyncCollection = Depends(get_users_collection),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
) -> MessageResponse:
    credentials = normalize_login(payload.name, payload.password)
    if credentials is None:
        raise InvalidCredentials()

    user = await auth_service.authenticate(users, *credentials)
    token = tokens.issue(user.id, user.name)

    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=tokens.ttl_seconds,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    logger.info("User %s logged in", user.id)
    return MessageResponse(message="Connecté avec succès")


@router.get(
    "/logout",
    response_model=MessageResponse,
    summary="Clear the session cookie",
)
async def logout(response: Response, request: Request) -> MessageResponse:
    settings = get_settings(request)
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    return MessageResponse(message="Déconnecté")
