"""
Potion API — Authentication Schemas
====================================

What:  Payloads of /auth/register and /auth/login.
Why:   Both fields are optional at the schema level on purpose: registration
       collects its own itemized errors (services/validators.py) and login
       answers a missing field with the generic invalid-credentials 401.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CredentialsPayload(BaseModel):
    name: Optional[str] = Field(default=None, description="User name (3-30 characters)")
    password: Optional[str] = Field(default=None, description="Password (at least 6 characters)")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable outcome")
