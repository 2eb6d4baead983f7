"""User service functions for signup, login and identity lookup."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogit.core.errors import ConflictError, InvalidCredentialsError, NotFoundError
from blogit.core.security import PasswordHasher, TokenIdentity, TokenIssuer
from blogit.models.user import User
from blogit.schemas.auth import LoginRequest
from blogit.schemas.user import UserCreate

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    token: str
    user: User


async def get_user_by_id(session: AsyncSession, user_id: int | str) -> User | None:
    try:
        key = int(user_id)
    except (TypeError, ValueError):
        return None
    return await session.get(User, key)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def find_user_by_email_or_username(session: AsyncSession, identifier: str) -> User | None:
    result = await session.execute(
        select(User).where(or_(User.email == identifier.strip().lower(), User.username == identifier.strip()))
    )
    return result.scalars().first()


async def create_user(session: AsyncSession, user_in: UserCreate, hasher: PasswordHasher) -> User:
    """Persist a new user, rejecting a taken username or email with ConflictError."""

    result = await session.execute(
        select(User.id).where(or_(User.email == user_in.email, User.username == user_in.username))
    )
    if result.first() is not None:
        raise ConflictError()

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=await asyncio.to_thread(hasher.hash, user_in.password),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError() from exc
    return user


async def signup(
    session: AsyncSession, user_in: UserCreate, hasher: PasswordHasher, issuer: TokenIssuer
) -> AuthResult:
    user = await create_user(session, user_in, hasher)
    logger.info("Created user %s (id=%s)", user.username, user.id)
    return AuthResult(token=issuer.issue(user.id, user.username), user=user)


async def authenticate_user(session: AsyncSession, email: str, password: str, hasher: PasswordHasher) -> User | None:
    user = await get_user_by_email(session, email)
    if not user:
        return None
    if not await asyncio.to_thread(hasher.verify, password, user.password_hash):
        return None
    return user


async def login(
    session: AsyncSession, credentials: LoginRequest, hasher: PasswordHasher, issuer: TokenIssuer
) -> AuthResult:
    user = await authenticate_user(session, credentials.email, credentials.password, hasher)
    if not user:
        logger.info("Rejected login attempt")
        raise InvalidCredentialsError()
    return AuthResult(token=issuer.issue(user.id, user.username), user=user)


async def get_identity_user(session: AsyncSession, identity: TokenIdentity) -> User:
    """Resolve the token subject to its user record; stale tokens yield NotFoundError."""

    user = await get_user_by_id(session, identity.user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
