"""Authentication endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogit.core.dependencies import get_db, get_password_hasher, get_token_issuer, require_identity
from blogit.core.security import PasswordHasher, TokenIdentity, TokenIssuer
from blogit.schemas.auth import AuthResponse, LoginRequest
from blogit.schemas.user import MeResponse, UserCreate, UserRead
from blogit.services import users as user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse)
async def signup(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthResponse:
    result = await user_service.signup(session, payload, hasher, issuer)
    await session.commit()
    return AuthResponse(token=result.token, user=UserRead.model_validate(result.user))


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthResponse:
    result = await user_service.login(session, payload, hasher, issuer)
    return AuthResponse(token=result.token, user=UserRead.model_validate(result.user))


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    identity: TokenIdentity = Depends(require_identity),
    session: AsyncSession = Depends(get_db),
) -> MeResponse:
    user = await user_service.get_identity_user(session, identity)
    return MeResponse(user=UserRead.model_validate(user))
