"""
Travel Story Backend — Account Schemas
========================================

What:  Request and response contracts for /create-account, /login and /get-user.

Request fields are all optional at the schema level: an absent field must
produce the API's own 400 "All fields are required" response, which the
service raises, rather than FastAPI's field-level validation report.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from travelstory.schemas.common import CamelModel


class CreateAccountRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(CamelModel):
    """Public-safe user projection; never includes the password hash."""
    full_name: str
    email: str


class UserProfile(UserPublic):
    id: uuid.UUID
    created_on: datetime

    @field_validator("created_on")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; every stored instant is UTC
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class AuthResponse(CamelModel):
    """Returned by registration (201) and login (200)."""
    error: bool = False
    user: UserPublic
    access_token: str = Field(description="Bearer token, valid for 72 hours by default")
    message: str


class UserProfileResponse(CamelModel):
    error: bool = False
    user: UserProfile
    message: str = "User Found"
