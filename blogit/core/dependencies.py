"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blogit.core.config import get_settings
from blogit.core.errors import UnauthorizedError
from blogit.core.security import PasswordHasher, TokenIdentity, TokenIssuer
from blogit.db.session import get_session
from blogit.services.images import ImageStorage, build_image_storage

_bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer.from_settings(get_settings())


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().password_hash_rounds)


@lru_cache
def get_image_storage() -> ImageStorage:
    return build_image_storage(get_settings())


async def require_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenIdentity:
    """Resolve the bearer token to a verified identity or fail with 401."""

    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    return issuer.verify(credentials.credentials)
