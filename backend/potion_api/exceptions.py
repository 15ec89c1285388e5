"""
Potion API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for each error scenario.
Why:   Global exception handlers (registered in main.py) map each class to an
       HTTP status code and a structured JSON body, so route handlers never
       build error responses themselves.
How:   Each exception carries a user-facing message and an optional context
       dict. The context is logged server-side and never returned.

Exception Hierarchy:
    PotionApiError (base)
    ├── ValidationFailed          → 400 {"errors": [{field, message}, ...]}
    ├── InvalidQueryParameter     → 400 {"error": ...}
    ├── AuthenticationError       → 401 {"error": ...}
    │   ├── Unauthenticated
    │   ├── SessionExpired
    │   ├── InvalidToken
    │   └── InvalidCredentials
    ├── AuthInternalError         → 500
    ├── NotFoundError             → 404
    ├── ConflictError             → 500 (duplicate unique key)
    └── DatabaseError             → 500

Token-level failures (TokenExpired, TokenMalformed) are raised by the token
service and translated by the Auth Gate; they never reach the handlers.
"""

from typing import Any, Dict, List, Optional


class PotionApiError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationFailed(PotionApiError):
    """
    Raised when a request body fails validation.

    Carries every field violation, not just the first one, so a client can
    fix all of them in a single round trip.

    Example response:
        {
            "errors": [
                {"field": "name", "message": "Doit faire entre 3 et 30 caractères."},
                {"field": "password", "message": "Minimum 6 caractères."}
            ]
        }
    """

    def __init__(
        self,
        errors: List[Dict[str, str]],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Validation failed", context=context)
        self.errors = errors


class InvalidQueryParameter(PotionApiError):
    """Raised when a query string parameter is missing, non-numeric, or outside its enumeration."""

    def __init__(
        self,
        message: str = "Paramètre de requête invalide",
        parameter: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if parameter:
            ctx["parameter"] = parameter
        super().__init__(message=message, context=ctx)
        self.parameter = parameter


class AuthenticationError(PotionApiError):
    """Base for every failure that maps to 401 Unauthorized."""


class Unauthenticated(AuthenticationError):
    def __init__(self, message: str = "Token d’authentification manquant ou invalide"):
        super().__init__(message=message)


class SessionExpired(AuthenticationError):
    def __init__(self, message: str = "Session expirée, veuillez vous reconnecter."):
        super().__init__(message=message)


class InvalidToken(AuthenticationError):
    def __init__(self, message: str = "Jeton non valide."):
        super().__init__(message=message)


class InvalidCredentials(AuthenticationError):
    """Unknown user name or wrong password. Both cases share one message."""

    def __init__(self, message: str = "Identifiants invalides"):
        super().__init__(message=message)


class AuthInternalError(PotionApiError):
    """Token verification failed for a reason other than expiry or tampering."""

    def __init__(
        self,
        message: str = "Erreur d’authentification",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PotionApiError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PotionApiError):
    """
    Raised when an insert violates a unique index (e.g. duplicate user name).

    HTTP: 500, with the generic "Erreur système" message. The public
    interface documents 500 for this case; 409 would be the natural code.
    """

    def __init__(
        self,
        message: str = "Erreur système",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PotionApiError):
    """
    Raised when a MongoDB operation fails unexpectedly.

    The message returned to the client is always generic; the driver error
    is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ── Token-level failures ──────────────────────────────────────────────────
class TokenError(Exception):
    """Base for failures raised by TokenService.verify()."""


class TokenExpired(TokenError):
    """The token's signature is valid but its expiry time has passed."""


class TokenMalformed(TokenError):
    """The token is not a JWT, its signature does not verify, or claims are missing."""
