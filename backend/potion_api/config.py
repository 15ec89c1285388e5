"""
Potion API — Application Configuration
=======================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a `settings` instance.
Who:   Passed explicitly to create_app(), which hands it to the token
       service and the MongoDB client.
When:  Loaded once at module import time; frozen afterwards.

Design Decision:
    The settings model is frozen. The JWT secret and the store connection
    string are process-wide and read-only after startup, so any attempt to
    reassign a field raises instead of silently changing behavior.
"""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "dev_change_me"

# RFC 7518 section 3.2: an HS256 key is at least 256 bits
MIN_PRODUCTION_SECRET_BYTES = 32


class AccessPolicy(str, Enum):
    """
    Named authorization policy attached to a route.

    PUBLIC:  anyone may call the route.
    SESSION: the Auth Gate must accept the caller's session cookie first.
    """

    PUBLIC = "public"
    SESSION = "session"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST override JWT_SECRET and MONGO_URI.
    """

    # ── Environment ───────────────────────────────────────────────────────
    # What: "production" turns on the Secure flag of the session cookie
    environment: str = Field(default="development")

    # ── MongoDB ───────────────────────────────────────────────────────────
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    mongo_db_name: str = Field(default="potions")

    # What: Upper bound for a single store operation, enforced by the driver
    # Valid range: 500ms to 60s
    mongo_timeout_ms: int = Field(default=5000, ge=500, le=60000)

    # ── Session Tokens ────────────────────────────────────────────────────
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_algorithm: str = Field(default="HS256")

    # What: Token and cookie lifetime (24 hours)
    session_ttl_seconds: int = Field(default=86400, ge=60, le=604800)

    cookie_name: str = Field(default="demo_node+mongo_token")

    # ── Route Access Policies ─────────────────────────────────────────────
    # Creating a potion always requires a session. Update and delete are
    # public unless these are set to "session".
    potion_update_access: AccessPolicy = Field(default=AccessPolicy.PUBLIC)
    potion_delete_access: AccessPolicy = Field(default=AccessPolicy.PUBLIC)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"development", "production", "test"}:
            raise ValueError(
                f"Invalid environment '{v}'. Must be development, production or test"
            )
        return lower

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        """Session cookies are HTTPS-only in production."""
        return self.is_production

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "frozen": True,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises a single ValueError.
        """
        errors = []
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            errors.append("JWT_SECRET must be set to a private value in production.")
        secret_bytes = len(self.jwt_secret.encode("utf-8"))
        if self.is_production and secret_bytes < MIN_PRODUCTION_SECRET_BYTES:
            errors.append(
                f"JWT_SECRET is too short for production (minimum {MIN_PRODUCTION_SECRET_BYTES} bytes)."
            )
        elif secret_bytes < 8:
            errors.append("JWT_SECRET is too short (minimum 8 characters).")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Default instance, used by `potion_api.main:app`
settings = Settings()
