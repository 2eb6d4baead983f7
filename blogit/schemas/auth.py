"""Authentication-related schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from blogit.schemas.user import UserRead


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class AuthResponse(BaseModel):
    token: str
    user: UserRead
