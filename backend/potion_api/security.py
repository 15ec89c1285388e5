"""
Potion API — Auth Gate and Route Access Policies
=================================================

What:  FastAPI dependencies that guard routes behind a valid session cookie.
Why:   Mutating routes must know who is calling; read routes stay public.
How:   require_session() extracts the token from the raw Cookie header,
       verifies it, and attaches the claims to `request.state.user`.
       authorize() resolves a route's named AccessPolicy and runs the gate
       only when the policy asks for a session.

Gate outcomes:
    no cookie / blank token   → Unauthenticated   (401)
    TokenExpired              → SessionExpired    (401)
    TokenMalformed            → InvalidToken      (401)
    anything else             → AuthInternalError (500)
    valid                     → claims returned, handler runs once

The gate never touches the database.
"""

import logging
from typing import Callable, Dict, Optional

from fastapi import Request

from potion_api.config import AccessPolicy, Settings
from potion_api.exceptions import (
    AuthInternalError,
    InvalidToken,
    SessionExpired,
    TokenExpired,
    TokenMalformed,
    Unauthenticated,
)
from potion_api.services.cookies import extract_session_token
from potion_api.services.token_service import SessionClaims, TokenService

logger = logging.getLogger(__name__)

# Route name → accessor for its policy on the Settings
ROUTE_POLICIES: Dict[str, Callable[[Settings], AccessPolicy]] = {
    "create_potion": lambda s: AccessPolicy.SESSION,
    "update_potion": lambda s: s.potion_update_access,
    "delete_potion": lambda s: s.potion_delete_access,
}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def policy_for(route_name: str, settings: Settings) -> AccessPolicy:
    return ROUTE_POLICIES[route_name](settings)


async def require_session(request: Request) -> SessionClaims:
    """
    Auth Gate: accept the request only with a valid session cookie.

    Returns:
        The verified SessionClaims, also stored on `request.state.user`.
    """
    settings = get_settings(request)
    token = extract_session_token(request.headers.get("cookie"), settings.cookie_name)
    if not token or not token.strip():
        raise Unauthenticated()

    try:
        claims = get_token_service(request).verify(token)
    except TokenExpired:
        raise SessionExpired()
    except TokenMalformed:
        raise InvalidToken()
    except Exception as e:
        logger.error("Unexpected token verification failure: %s", str(e), exc_info=True)
        raise AuthInternalError(context={"error_type": type(e).__name__})

    request.state.user = claims
    return claims


def authorize(route_name: str) -> Callable:
    """
    Build the dependency enforcing the access policy named `route_name`.

    Usage:
        @router.put("/{potion_id}", dependencies=[Depends(authorize("update_potion"))])
    """
    if route_name not in ROUTE_POLICIES:
        raise KeyError(f"No access policy registered for route '{route_name}'")

    async def enforce_policy(request: Request) -> Optional[SessionClaims]:
        if policy_for(route_name, get_settings(request)) is AccessPolicy.SESSION:
            return await require_session(request)
        return None

    return enforce_policy


def public_write_routes(settings: Settings) -> list:
    """Names of routes that change data without requiring a session."""
    return [
        name for name in ROUTE_POLICIES
        if policy_for(name, settings) is AccessPolicy.PUBLIC
    ]
