"""
Potion API — Shared Response Schemas
=====================================

What:  Error and health response shapes used across all routers.
Why:   Clients parse one error format whatever the endpoint.

Error formats:
    {"error": "Potion not found", "request_id": "a1b2c3d4"}
    {"errors": [{"field": "name", "message": "..."}], "request_id": "a1b2c3d4"}
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class FieldError(BaseModel):
    field: str = Field(description="Name of the offending field")
    message: str = Field(description="What is wrong with it")


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError] = Field(description="Every field violation found")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
